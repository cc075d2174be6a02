"""Pydantic models for complaints, users and escalation load."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

EntityId = Union[int, str]

UNASSIGNED_SENTINEL = "Unassigned"

_NESTED_REFERENCES = (
	("user", "userId", "userFullName"),
	("assignedEmployee", "assignedEmployeeId", "assignedEmployeeName"),
	("escalatedTo", "escalatedToId", "escalatedToName"),
)


class ComplaintStatus(str, Enum):
	NEW = "NEW"
	UNDER_REVIEW = "UNDER_REVIEW"
	RESOLVED = "RESOLVED"


class Urgency(str, Enum):
	HIGH = "HIGH"
	MEDIUM = "MEDIUM"
	NORMAL = "NORMAL"
	LOW = "LOW"


class Role(str, Enum):
	USER = "USER"
	EMPLOYEE = "EMPLOYEE"
	SENIOR_EMPLOYEE = "SENIOR_EMPLOYEE"
	ADMIN = "ADMIN"

	@classmethod
	def parse(cls, value: Any) -> Optional["Role"]:
		"""Return the role for ``value`` or ``None`` when it is missing/unknown."""
		if isinstance(value, Role):
			return value
		if not isinstance(value, str):
			return None
		try:
			return cls(value.strip().upper())
		except ValueError:
			return None


def same_id(left: Optional[EntityId], right: Optional[EntityId]) -> bool:
	"""Compare two references by their string form; missing never matches."""
	if left is None or right is None:
		return False
	return str(left) == str(right)


class _WireModel(BaseModel):
	model_config = ConfigDict(
		alias_generator=to_camel,
		populate_by_name=True,
		extra="ignore",
	)


class User(_WireModel):
	id: EntityId
	full_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("fullName", "full_name", "name"))
	email: Optional[str] = None
	role: Optional[Role] = None

	@model_validator(mode="before")
	@classmethod
	def _lenient_role(cls, data: Any) -> Any:
		if isinstance(data, dict) and "role" in data:
			data = dict(data)
			data["role"] = Role.parse(data["role"])
		return data


class Complaint(_WireModel):
	id: EntityId
	title: Optional[str] = None
	description: Optional[str] = None
	category: Optional[str] = None
	urgency: Optional[Urgency] = None
	status: Optional[ComplaintStatus] = None
	anonymous: bool = False
	is_public: bool = False
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None

	user_id: Optional[EntityId] = None
	user_full_name: Optional[str] = None

	assigned_employee_id: Optional[EntityId] = None
	assigned_employee_name: Optional[str] = None

	escalated_to: Optional[EntityId] = Field(
		default=None,
		validation_alias=AliasChoices("escalatedToId", "escalatedTo", "escalated_to"),
	)
	escalated_to_name: Optional[str] = None
	escalation_reason: Optional[str] = None
	escalation_date: Optional[datetime] = None
	requires_escalation: Optional[bool] = None

	like_count: int = 0
	comment_count: int = 0
	attachment_count: int = 0

	@model_validator(mode="before")
	@classmethod
	def _flatten_wire(cls, data: Any) -> Any:
		if not isinstance(data, dict):
			return data
		data = dict(data)
		# Entity payloads nest whole users where DTOs carry ids.
		for nested_key, id_key, name_key in _NESTED_REFERENCES:
			nested = data.get(nested_key)
			if isinstance(nested, dict):
				data.pop(nested_key)
				data.setdefault(id_key, nested.get("id"))
				data.setdefault(name_key, nested.get("fullName"))
		# The backend serialises missing counters and flags as null.
		for key in ("likeCount", "commentCount", "attachmentCount", "anonymous", "isPublic"):
			if key in data and data[key] is None:
				data.pop(key)
		return data

	@model_validator(mode="after")
	def _escalation_has_date(self) -> "Complaint":
		if self.escalated_to is not None and self.escalation_date is None:
			raise ValueError("escalated complaint is missing escalationDate")
		return self

	@property
	def is_escalated(self) -> bool:
		return self.escalated_to is not None


class EscalationCandidate(Complaint):
	"""Complaint projection used by the requiring-escalation list."""

	days_open: Optional[int] = Field(
		default=None,
		validation_alias=AliasChoices("daysOpen", "daysSinceCreation", "days_open"),
	)
	assigned_to: Optional[str] = None

	@property
	def is_unassigned(self) -> bool:
		if self.assigned_employee_id is not None:
			return False
		name = (self.assigned_to or "").strip()
		return not name or name == UNASSIGNED_SENTINEL


class SeniorLoad(_WireModel):
	id: EntityId
	name: Optional[str] = None
	email: Optional[str] = None
	escalated_count: int = 0
	assigned_count: int = 0
	total_load: int = 0
	resolution_rate: float = 0.0
	total_handled: int = 0
	resolved_count: int = 0


class LoadDistribution(_WireModel):
	senior_employees: list[SeniorLoad] = Field(default_factory=list)
	total_senior_employees: int = 0
	total_escalated_complaints: int = 0
	escalation_threshold_minutes: Optional[int] = None
	timestamp: Optional[datetime] = None


__all__ = [
	"EntityId",
	"UNASSIGNED_SENTINEL",
	"ComplaintStatus",
	"Urgency",
	"Role",
	"same_id",
	"User",
	"Complaint",
	"EscalationCandidate",
	"SeniorLoad",
	"LoadDistribution",
]
