"""Typed bindings for the complaint and escalation endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from pydantic import ValidationError

from resolveit.domain.complaints.models import (
    Complaint,
    ComplaintStatus,
    EntityId,
    EscalationCandidate,
    LoadDistribution,
    User,
)
from resolveit.infra.http import ApiClient, ApiError
from resolveit.infra.normalize import UNEXPECTED_SHAPE, Envelope, as_list, as_record, expect_success


def _parse(model: type, raw: Any, envelope: Envelope) -> Any:
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise ApiError(status=200, status_text="OK", data=envelope.data, message=UNEXPECTED_SHAPE) from exc


def _parse_many(model: type, envelope: Envelope) -> list[Any]:
    return [_parse(model, item, envelope) for item in as_list(envelope)]


@dataclass
class ComplaintsAPI:
    """Escalation-related backend calls; paths are the backend's contract."""

    client: ApiClient

    async def get_complaints_requiring_escalation(self) -> list[EscalationCandidate]:
        envelope = expect_success(await self.client.get("/api/complaints/requiring-escalation"))
        return _parse_many(EscalationCandidate, envelope)

    async def trigger_auto_escalation(self) -> Envelope:
        return expect_success(await self.client.post("/api/escalation/trigger-auto"))

    async def escalate_complaint(self, complaint_id: EntityId, senior_employee_id: EntityId, reason: str) -> Envelope:
        payload = {"seniorEmployeeId": senior_employee_id, "reason": reason}
        return expect_success(await self.client.post(f"/api/complaints/{complaint_id}/escalate", payload))

    async def deescalate_complaint(self, complaint_id: EntityId, reason: Optional[str] = None) -> Envelope:
        payload = {"reason": reason} if reason else {}
        return expect_success(await self.client.post(f"/api/senior/complaints/{complaint_id}/deescalate", payload))

    async def update_complaint_status(
        self,
        complaint_id: EntityId,
        status: ComplaintStatus,
        comment: Optional[str] = None,
        internal_note: bool = False,
    ) -> Envelope:
        body: dict[str, Any] = {}
        if comment and comment.strip():
            body["comment"] = comment.strip()
        if internal_note:
            body["internalNote"] = True
        raw = await self.client.put(
            f"/complaints/{complaint_id}/status",
            body or None,
            params={"status": ComplaintStatus(status).value},
        )
        return expect_success(raw)

    async def get_load_distribution(self) -> LoadDistribution:
        envelope = expect_success(await self.client.get("/api/senior/load-distribution"))
        return _parse(LoadDistribution, as_record(envelope), envelope)

    async def get_senior_employees(self) -> list[User]:
        envelope = expect_success(await self.client.get("/api/users/senior-employees"))
        return _parse_many(User, envelope)

    async def get_complaint(self, complaint_id: EntityId) -> Complaint:
        envelope = expect_success(await self.client.get(f"/complaints/{complaint_id}"))
        return _parse(Complaint, as_record(envelope), envelope)

    async def get_all_escalated_complaints(self) -> list[Complaint]:
        envelope = expect_success(await self.client.get("/api/senior/escalated/all"))
        return _parse_many(Complaint, envelope)

    async def get_my_escalated_complaints(self) -> list[Complaint]:
        envelope = expect_success(await self.client.get("/complaints/escalated/my"))
        return _parse_many(Complaint, envelope)


__all__ = ["ComplaintsAPI"]
