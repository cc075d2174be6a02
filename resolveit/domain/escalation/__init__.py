"""Escalation tracking, role gating and the escalated-complaint board."""

from resolveit.domain.escalation.board import BoardStats, EscalationBoard, board_stats, load_escalation_board
from resolveit.domain.escalation.policy import Capabilities, capabilities_for, capabilities_for_session
from resolveit.domain.escalation.tracker import (
	ActionResult,
	EscalationStats,
	EscalationTracker,
	EscalationValidationError,
)

__all__ = [
	"ActionResult",
	"BoardStats",
	"Capabilities",
	"EscalationBoard",
	"EscalationStats",
	"EscalationTracker",
	"EscalationValidationError",
	"board_stats",
	"capabilities_for",
	"capabilities_for_session",
	"load_escalation_board",
]
