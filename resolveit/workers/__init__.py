"""Background workers for the escalation client."""

from .escalation_poller import EscalationPoller, spawn_escalation_poller

__all__ = ["EscalationPoller", "spawn_escalation_poller"]
