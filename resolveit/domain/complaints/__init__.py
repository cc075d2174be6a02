"""Complaint models and backend bindings."""

from resolveit.domain.complaints.api import ComplaintsAPI
from resolveit.domain.complaints.models import (
	Complaint,
	ComplaintStatus,
	EscalationCandidate,
	LoadDistribution,
	Role,
	SeniorLoad,
	Urgency,
	User,
)

__all__ = [
	"ComplaintsAPI",
	"Complaint",
	"ComplaintStatus",
	"EscalationCandidate",
	"LoadDistribution",
	"Role",
	"SeniorLoad",
	"Urgency",
	"User",
]
