"""Session-local state for complaints that need escalation attention."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from resolveit.domain.complaints.api import ComplaintsAPI
from resolveit.domain.complaints.models import (
    Complaint,
    ComplaintStatus,
    EntityId,
    EscalationCandidate,
    LoadDistribution,
    User,
)
from resolveit.domain.escalation.policy import capabilities_for_session
from resolveit.domain.identity.session import Session
from resolveit.infra.http import NETWORK_ERROR_MESSAGE, ApiError
from resolveit.obs import metrics as obs_metrics
from resolveit.settings import settings

logger = logging.getLogger(__name__)


class EscalationValidationError(ValueError):
    """Raised when an action fails a client-side precondition."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


@dataclass(frozen=True, slots=True)
class EscalationStats:
    total: int = 0
    unassigned: int = 0
    assigned: int = 0
    overdue: int = 0

    @classmethod
    def from_candidates(cls, candidates: Iterable[EscalationCandidate], overdue_days: int) -> "EscalationStats":
        total = unassigned = overdue = 0
        for candidate in candidates:
            total += 1
            if candidate.is_unassigned:
                unassigned += 1
            if candidate.days_open is not None and candidate.days_open >= overdue_days:
                overdue += 1
        return cls(total=total, unassigned=unassigned, assigned=total - unassigned, overdue=overdue)

    def as_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "unassigned": self.unassigned,
            "assigned": self.assigned,
            "overdue": self.overdue,
        }


@dataclass(frozen=True, slots=True)
class ActionResult:
    ok: bool
    message: Optional[str] = None
    complaint: Optional[Complaint] = None


def user_message(exc: ApiError) -> str:
    if exc.is_network_error:
        return NETWORK_ERROR_MESSAGE
    return exc.message


class EscalationTracker:
    """Holds the requiring-escalation list and runs escalation actions.

    Nothing here is updated optimistically: every action round-trips to
    the backend and then re-fetches the affected complaint. Failures are
    caught at the operation boundary, recorded in :attr:`error` and leave
    the tracked state untouched.

    Each :meth:`refresh` is tagged with a sequence number so a slow,
    older response can never overwrite a newer one. Once the tracker is
    closed, late responses are dropped.
    """

    def __init__(
        self,
        api: ComplaintsAPI,
        *,
        session: Optional[Session] = None,
        overdue_days: Optional[int] = None,
    ) -> None:
        self.api = api
        self.session = session
        self.overdue_days = int(overdue_days if overdue_days is not None else settings.escalation_overdue_days)
        self.candidates: list[EscalationCandidate] = []
        self.stats = EscalationStats()
        self.error: Optional[str] = None
        self.last_refreshed_at: Optional[datetime] = None
        self._issued = 0
        self._applied = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    def snapshot(self) -> dict[str, Any]:
        return {
            "stats": self.stats.as_dict(),
            "candidates": [candidate.id for candidate in self.candidates],
            "error": self.error,
            "refreshed_at": self.last_refreshed_at.isoformat() if self.last_refreshed_at else None,
        }

    async def refresh(self) -> bool:
        """Replace the candidate list with the backend's current view.

        Returns ``True`` when the response was applied.
        """
        if self._closed:
            return False
        self._issued += 1
        sequence = self._issued
        try:
            candidates = await self.api.get_complaints_requiring_escalation()
        except ApiError as exc:
            if self._closed or sequence < self._applied:
                return False
            self.error = user_message(exc)
            obs_metrics.ESCALATION_REFRESH_TOTAL.labels(outcome="failed").inc()
            logger.warning(
                "escalation refresh failed",
                extra={"status": exc.status, "sequence": sequence},
            )
            return False
        if self._closed:
            logger.debug("dropping refresh result after close", extra={"sequence": sequence})
            return False
        if sequence < self._applied:
            obs_metrics.ESCALATION_STALE_DISCARDED.inc()
            logger.debug(
                "dropping stale refresh result",
                extra={"sequence": sequence, "applied": self._applied},
            )
            return False
        self._applied = sequence
        self.candidates = candidates
        self.stats = EscalationStats.from_candidates(candidates, self.overdue_days)
        self.error = None
        self.last_refreshed_at = datetime.now(timezone.utc)
        obs_metrics.ESCALATION_REFRESH_TOTAL.labels(outcome="applied").inc()
        obs_metrics.ESCALATION_CANDIDATES.set(self.stats.total)
        logger.info("escalation candidates refreshed", extra=self.stats.as_dict())
        return True

    async def trigger_auto_escalation(self) -> ActionResult:
        try:
            await self.api.trigger_auto_escalation()
        except ApiError as exc:
            return self._failed("trigger_auto", exc)
        obs_metrics.record_action("trigger_auto", True)
        logger.info("auto-escalation triggered")
        await self.refresh()
        return ActionResult(ok=True, message="Auto-escalation triggered successfully")

    async def escalate(self, complaint_id: EntityId, senior_employee_id: Optional[EntityId], reason: str) -> ActionResult:
        try:
            if senior_employee_id is None or not str(senior_employee_id).strip():
                raise EscalationValidationError("Please select a senior employee")
            if not reason or not reason.strip():
                raise EscalationValidationError("Please provide an escalation reason")
            await self.api.escalate_complaint(complaint_id, senior_employee_id, reason.strip())
        except EscalationValidationError as exc:
            return self._rejected("escalate", exc)
        except ApiError as exc:
            return self._failed("escalate", exc)
        obs_metrics.record_action("escalate", True)
        logger.info("complaint escalated", extra={"complaint_id": str(complaint_id)})
        return await self._after_action(complaint_id, "Complaint escalated successfully")

    async def deescalate(self, complaint_id: EntityId, reason: str) -> ActionResult:
        try:
            if not reason or not reason.strip():
                raise EscalationValidationError("Please provide a reason for de-escalation")
            complaint = await self._current(complaint_id)
            if not capabilities_for_session(self.session, complaint).can_deescalate:
                raise EscalationValidationError("You are not allowed to de-escalate this complaint")
            await self.api.deescalate_complaint(complaint_id, reason.strip())
        except EscalationValidationError as exc:
            return self._rejected("deescalate", exc)
        except ApiError as exc:
            return self._failed("deescalate", exc)
        obs_metrics.record_action("deescalate", True)
        logger.info("complaint de-escalated", extra={"complaint_id": str(complaint_id)})
        return await self._after_action(complaint_id, "Complaint de-escalated successfully")

    async def update_status(
        self,
        complaint_id: EntityId,
        new_status: ComplaintStatus | str,
        comment: Optional[str] = None,
        internal_note: bool = False,
    ) -> ActionResult:
        try:
            try:
                status = ComplaintStatus(new_status)
            except ValueError:
                raise EscalationValidationError(f"Invalid status: {new_status}") from None
            complaint = await self._current(complaint_id)
            if complaint.status == status:
                raise EscalationValidationError(f"Complaint is already {status.value}")
            await self.api.update_complaint_status(complaint_id, status, comment, internal_note)
        except EscalationValidationError as exc:
            return self._rejected("update_status", exc)
        except ApiError as exc:
            return self._failed("update_status", exc)
        obs_metrics.record_action("update_status", True)
        logger.info(
            "complaint status updated",
            extra={"complaint_id": str(complaint_id), "status": status.value, "internal_note": internal_note},
        )
        return await self._after_action(complaint_id, "Status updated successfully")

    async def fetch_complaint(self, complaint_id: EntityId) -> Optional[Complaint]:
        try:
            return await self.api.get_complaint(complaint_id)
        except ApiError as exc:
            self.error = user_message(exc)
            logger.warning("complaint fetch failed", extra={"complaint_id": str(complaint_id), "status": exc.status})
            return None

    async def load_senior_employees(self) -> list[User]:
        try:
            return await self.api.get_senior_employees()
        except ApiError as exc:
            self.error = user_message(exc)
            logger.warning("senior employee lookup failed", extra={"status": exc.status})
            return []

    async def load_distribution(self) -> Optional[LoadDistribution]:
        try:
            return await self.api.get_load_distribution()
        except ApiError as exc:
            self.error = user_message(exc)
            logger.warning("load distribution lookup failed", extra={"status": exc.status})
            return None

    async def _current(self, complaint_id: EntityId) -> Complaint:
        # Permission and same-status checks always run against the backend's
        # current copy; the candidate list can lag behind it.
        return await self.api.get_complaint(complaint_id)

    async def _after_action(self, complaint_id: EntityId, message: str) -> ActionResult:
        self.error = None
        complaint = await self.fetch_complaint(complaint_id)
        if self._issued:
            await self.refresh()
        return ActionResult(ok=True, message=message, complaint=complaint)

    def _rejected(self, action: str, exc: EscalationValidationError) -> ActionResult:
        self.error = exc.reason
        obs_metrics.record_action(action, False)
        logger.info("escalation action rejected", extra={"action": action, "detail": exc.reason})
        return ActionResult(ok=False, message=exc.reason)

    def _failed(self, action: str, exc: ApiError) -> ActionResult:
        message = user_message(exc)
        self.error = message
        obs_metrics.record_action(action, False)
        logger.warning("escalation action failed", extra={"action": action, "status": exc.status})
        return ActionResult(ok=False, message=message)


__all__ = [
    "ActionResult",
    "EscalationStats",
    "EscalationTracker",
    "EscalationValidationError",
    "user_message",
]
