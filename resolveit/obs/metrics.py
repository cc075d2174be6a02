"""Central registry for Prometheus metrics used by the escalation client."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

API_REQUESTS_TOTAL = Counter(
	"resolveit_api_requests_total",
	"Backend API requests issued by the client",
	["method", "status"],
)

API_REQUEST_LATENCY = Histogram(
	"resolveit_api_request_duration_seconds",
	"Backend API request latency in seconds",
	["method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0),
)

ESCALATION_REFRESH_TOTAL = Counter(
	"resolveit_escalation_refresh_total",
	"Escalation candidate refreshes by outcome",
	["outcome"],
)

ESCALATION_STALE_DISCARDED = Counter(
	"resolveit_escalation_stale_responses_total",
	"Refresh responses discarded because a newer refresh was applied",
)

ESCALATION_ACTIONS_TOTAL = Counter(
	"resolveit_escalation_actions_total",
	"Escalation actions by action and outcome",
	["action", "outcome"],
)

ESCALATION_CANDIDATES = Gauge(
	"resolveit_escalation_candidates",
	"Complaints currently requiring escalation",
)

ESCALATION_POLL_TICKS = Counter(
	"resolveit_escalation_poll_ticks_total",
	"Scheduled escalation poller ticks",
)


def record_action(action: str, ok: bool) -> None:
	ESCALATION_ACTIONS_TOTAL.labels(action=action, outcome="ok" if ok else "failed").inc()


__all__ = [
	"API_REQUESTS_TOTAL",
	"API_REQUEST_LATENCY",
	"ESCALATION_REFRESH_TOTAL",
	"ESCALATION_STALE_DISCARDED",
	"ESCALATION_ACTIONS_TOTAL",
	"ESCALATION_CANDIDATES",
	"ESCALATION_POLL_TICKS",
	"record_action",
]
