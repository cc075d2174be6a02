from __future__ import annotations

import json
import logging

from resolveit.obs.logging import JSONLogFormatter, bind_context, reset_context


def _record(**extra) -> logging.LogRecord:
	record = logging.LogRecord("resolveit.test", logging.INFO, __file__, 1, "complaint escalated", None, None)
	for key, value in extra.items():
		setattr(record, key, value)
	return record


def test_formatter_emits_json_with_context() -> None:
	tokens = bind_context(user_id="42")
	try:
		payload = json.loads(JSONLogFormatter().format(_record(complaint_id="7")))
	finally:
		reset_context(tokens)

	assert payload["msg"] == "complaint escalated"
	assert payload["level"] == "info"
	assert payload["user_id"] == "42"
	assert payload["complaint_id"] == "7"


def test_sensitive_fields_are_redacted() -> None:
	record = _record(reason="customer is furious", auth={"password": "pw", "status": 401})

	payload = json.loads(JSONLogFormatter().format(record))

	assert payload["reason"] == "[redacted]"
	assert payload["auth"] == {"password": "[redacted]", "status": 401}


def test_context_is_reset() -> None:
	reset_context(bind_context(user_id="42"))

	payload = json.loads(JSONLogFormatter().format(_record()))

	assert "user_id" not in payload


def test_long_values_and_collections_are_trimmed() -> None:
	record = _record(candidates=list(range(25)), note="x" * 300)

	payload = json.loads(JSONLogFormatter().format(record))

	assert payload["candidates"] == list(range(10)) + ["…"]
	assert len(payload["note"]) == 257
