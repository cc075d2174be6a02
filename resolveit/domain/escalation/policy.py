"""Role-gated capabilities for escalation views and actions.

Views ask this module what the current user may do; they never compare
role strings themselves. Every function here is pure.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from resolveit.domain.complaints.models import Complaint, ComplaintStatus, EntityId, Role, same_id
from resolveit.domain.identity.session import Session


@dataclass(frozen=True, slots=True)
class Capabilities:
	can_view: bool = False
	can_escalate: bool = False
	can_deescalate: bool = False
	can_update_status: bool = False
	can_see_all_escalations: bool = False
	can_trigger_auto_escalation: bool = False
	can_view_load_distribution: bool = False


NO_CAPABILITIES = Capabilities()


def _is_owner(user_id: EntityId, complaint: Complaint) -> bool:
	return same_id(complaint.user_id, user_id)


def _is_escalated_to(user_id: EntityId, complaint: Complaint) -> bool:
	return same_id(complaint.escalated_to, user_id)


def _is_assigned_to(user_id: EntityId, complaint: Complaint) -> bool:
	return same_id(complaint.assigned_employee_id, user_id)


def _admin(complaint: Complaint) -> Capabilities:
	return Capabilities(
		can_view=True,
		can_escalate=complaint.status == ComplaintStatus.UNDER_REVIEW and not complaint.is_escalated,
		can_deescalate=complaint.is_escalated,
		can_update_status=True,
		can_see_all_escalations=True,
		can_trigger_auto_escalation=True,
		can_view_load_distribution=True,
	)


def _senior(user_id: EntityId, complaint: Complaint) -> Capabilities:
	escalated_to_me = _is_escalated_to(user_id, complaint)
	return Capabilities(
		can_view=True,
		can_deescalate=escalated_to_me,
		can_update_status=escalated_to_me or _is_assigned_to(user_id, complaint),
		can_view_load_distribution=True,
	)


def _employee(user_id: EntityId, complaint: Complaint) -> Capabilities:
	return Capabilities(
		can_view=True,
		can_update_status=_is_assigned_to(user_id, complaint),
	)


def _user(user_id: EntityId, complaint: Complaint) -> Capabilities:
	owner = _is_owner(user_id, complaint)
	return Capabilities(
		can_view=owner or complaint.is_public,
		can_update_status=owner and not complaint.anonymous,
	)


def capabilities_for(role: Any, user_id: Optional[EntityId], complaint: Complaint) -> Capabilities:
	"""Return what ``role``/``user_id`` may do with ``complaint``.

	An absent or unrecognised role, or a missing user id, yields no
	capabilities at all.
	"""
	parsed = Role.parse(role)
	if parsed is None or user_id is None:
		return NO_CAPABILITIES
	if parsed is Role.ADMIN:
		return _admin(complaint)
	if parsed is Role.SENIOR_EMPLOYEE:
		return _senior(user_id, complaint)
	if parsed is Role.EMPLOYEE:
		return _employee(user_id, complaint)
	return _user(user_id, complaint)


def capabilities_for_session(session: Optional[Session], complaint: Complaint) -> Capabilities:
	if session is None:
		return NO_CAPABILITIES
	return capabilities_for(session.role, session.user_id, complaint)


def can_monitor_escalations(role: Any) -> bool:
	"""Only admins may read the requiring-escalation list or trigger runs."""
	return Role.parse(role) is Role.ADMIN


def can_see_all_escalations(role: Any) -> bool:
	return Role.parse(role) is Role.ADMIN


__all__ = [
	"Capabilities",
	"NO_CAPABILITIES",
	"capabilities_for",
	"capabilities_for_session",
	"can_monitor_escalations",
	"can_see_all_escalations",
]
