"""Role-scoped list of complaints already escalated to senior staff."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional

from resolveit.domain.complaints.api import ComplaintsAPI
from resolveit.domain.complaints.models import Complaint, ComplaintStatus, Role, Urgency, same_id
from resolveit.domain.escalation.policy import can_see_all_escalations
from resolveit.domain.escalation.tracker import user_message
from resolveit.domain.identity.session import Session
from resolveit.infra.http import ApiError

logger = logging.getLogger(__name__)

_SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True, slots=True)
class BoardStats:
	total: int = 0
	under_review: int = 0
	resolved: int = 0
	high_priority: int = 0
	average_days: int = 0


@dataclass
class EscalationBoard:
	complaints: list[Complaint] = field(default_factory=list)
	stats: BoardStats = field(default_factory=BoardStats)
	error: Optional[str] = None


def _as_utc(value: datetime) -> datetime:
	if value.tzinfo is None:
		return value.replace(tzinfo=timezone.utc)
	return value


def board_stats(complaints: Iterable[Complaint], *, now: Optional[datetime] = None) -> BoardStats:
	"""Aggregate counters shown above the escalated-complaints table."""
	current = now or datetime.now(timezone.utc)
	items = list(complaints)
	days: list[int] = []
	for complaint in items:
		if complaint.escalation_date is None:
			continue
		elapsed = (current - _as_utc(complaint.escalation_date)).total_seconds()
		days.append(int(elapsed // _SECONDS_PER_DAY))
	return BoardStats(
		total=len(items),
		under_review=sum(1 for c in items if c.status == ComplaintStatus.UNDER_REVIEW),
		resolved=sum(1 for c in items if c.status == ComplaintStatus.RESOLVED),
		high_priority=sum(1 for c in items if c.urgency == Urgency.HIGH),
		average_days=round(sum(days) / len(days)) if days else 0,
	)


async def load_escalation_board(
	api: ComplaintsAPI,
	session: Session,
	*,
	now: Optional[datetime] = None,
) -> EscalationBoard:
	"""Fetch the escalated complaints visible to ``session``.

	Admins see every escalation, senior employees only the ones escalated
	to them, everyone else their own escalated list.
	"""
	role = session.role
	try:
		if can_see_all_escalations(role):
			complaints = await api.get_all_escalated_complaints()
		elif role is Role.SENIOR_EMPLOYEE:
			complaints = [
				complaint
				for complaint in await api.get_all_escalated_complaints()
				if same_id(complaint.escalated_to, session.user_id)
			]
		else:
			complaints = await api.get_my_escalated_complaints()
	except ApiError as exc:
		logger.warning("escalated complaints lookup failed", extra={"status": exc.status})
		return EscalationBoard(error=user_message(exc))
	escalated = [complaint for complaint in complaints if complaint.is_escalated]
	return EscalationBoard(complaints=escalated, stats=board_stats(escalated, now=now))


__all__ = ["BoardStats", "EscalationBoard", "board_stats", "load_escalation_board"]
