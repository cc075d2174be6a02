"""Structured logging helpers for the escalation client."""

from __future__ import annotations

import json
import logging
import random
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from resolveit.settings import settings

_USER_ID: ContextVar[Optional[str]] = ContextVar("resolveit_user_id", default=None)

_LOGGER_NAME = "resolveit"

# Complaint text and credentials never reach the log stream.
_SENSITIVE_KEYWORDS = ("token", "secret", "authorization", "password", "email", "reason", "comment", "body")

_MAX_STRING_LENGTH = 256
_MAX_COLLECTION_ITEMS = 10

_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "taskName"}


def bind_context(*, user_id: Optional[str] = None) -> Dict[str, Token]:
	"""Attach the acting user to every record logged from the current task."""
	tokens: Dict[str, Token] = {}
	if user_id is not None:
		tokens["user_id"] = _USER_ID.set(user_id)
	return tokens


def reset_context(tokens: Dict[str, Token]) -> None:
	token = tokens.get("user_id")
	if token is not None:
		_USER_ID.reset(token)


def _scrub(key: str, value: Any) -> Any:
	if any(keyword in key.lower() for keyword in _SENSITIVE_KEYWORDS):
		return "[redacted]"
	if value is None or isinstance(value, (bool, int, float)):
		return value
	if isinstance(value, str):
		return value if len(value) <= _MAX_STRING_LENGTH else value[:_MAX_STRING_LENGTH] + "…"
	if isinstance(value, dict):
		items = list(value.items())
		scrubbed = {str(k): _scrub(str(k), v) for k, v in items[:_MAX_COLLECTION_ITEMS]}
		if len(items) > _MAX_COLLECTION_ITEMS:
			scrubbed["…"] = f"+{len(items) - _MAX_COLLECTION_ITEMS} keys"
		return scrubbed
	if isinstance(value, (list, tuple, set)):
		values = [_scrub("", item) for item in list(value)[:_MAX_COLLECTION_ITEMS]]
		if len(value) > _MAX_COLLECTION_ITEMS:
			values.append("…")
		return values
	return str(value)


class JSONLogFormatter(logging.Formatter):
	"""One JSON object per line; ``extra`` fields are scrubbed before output."""

	def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (match logging api)
		payload: Dict[str, object] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"msg": record.getMessage(),
			"logger": record.name,
			"service": settings.service_name,
			"env": settings.environment,
			"commit": settings.git_commit,
		}
		user_id = _USER_ID.get()
		if user_id:
			payload["user_id"] = user_id
		if record.exc_info:
			payload["exc_info"] = self.formatException(record.exc_info)
		for key, value in record.__dict__.items():
			if key not in _RECORD_ATTRS and key not in payload:
				payload[key] = _scrub(key, value)
		return json.dumps(payload, separators=(",", ":"))


class InfoSamplingFilter(logging.Filter):
	"""Randomly sample info-level logs, keep warnings/errors."""

	def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
		if record.levelno != logging.INFO:
			return True
		rate = max(0.0, min(1.0, settings.obs_log_sampling_rate_info))
		return rate >= 1.0 or random.random() < rate


def configure_logging() -> logging.Logger:
	"""Configure root logger with JSON formatting and sampling."""
	root = logging.getLogger()
	root.handlers.clear()
	handler = logging.StreamHandler()
	handler.setFormatter(JSONLogFormatter())
	handler.addFilter(InfoSamplingFilter())
	root.addHandler(handler)
	root.setLevel(settings.obs_log_level)
	# httpx logs every request at INFO; the gateway already does
	logging.getLogger("httpx").setLevel(logging.WARNING)
	return logging.getLogger(_LOGGER_NAME)
