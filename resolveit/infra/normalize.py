"""Map the backend's assorted response shapes onto one envelope."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from resolveit.infra.http import ApiError

# Order matters: the first key present wins.
_PAYLOAD_KEYS = ("data", "complaints", "items", "user", "complaint")

UNEXPECTED_SHAPE = "Unexpected response shape"


@dataclass(frozen=True)
class Envelope:
    """Canonical view of a backend response."""

    success: bool
    data: Any = None
    error: Optional[str] = None
    message: Optional[str] = None
    count: Optional[int] = None


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def normalize(payload: Any) -> Envelope:
    """Return an :class:`Envelope` for any known backend payload."""
    if payload is None:
        return Envelope(success=True)
    if isinstance(payload, (list, tuple)):
        return Envelope(success=True, data=list(payload), count=len(payload))
    if not isinstance(payload, Mapping):
        return Envelope(success=True, data=payload)

    success = payload.get("success") is not False
    data: Any = payload
    for key in _PAYLOAD_KEYS:
        if key in payload:
            data = payload[key]
            break
    else:
        if "success" in payload and set(payload) <= {"success", "message", "error", "count"}:
            data = None
    count = payload.get("count")
    if not isinstance(count, int) or isinstance(count, bool):
        count = len(data) if isinstance(data, list) else None
    return Envelope(
        success=success,
        data=data,
        error=_text(payload.get("error")),
        message=_text(payload.get("message")),
        count=count,
    )


def expect_success(payload: Any) -> Envelope:
    """Normalise ``payload`` and raise when the backend flagged a failure."""
    envelope = normalize(payload)
    if not envelope.success:
        raise ApiError(
            status=200,
            status_text="OK",
            data=payload,
            message=envelope.error or envelope.message or "Request was not successful",
        )
    return envelope


def as_list(envelope: Envelope) -> list[Any]:
    data = envelope.data
    if data is None:
        return []
    if isinstance(data, list):
        return data
    if isinstance(data, Mapping):
        # Paged payloads nest the rows one level deeper.
        for key in _PAYLOAD_KEYS:
            nested = data.get(key)
            if isinstance(nested, list):
                return nested
    raise ApiError(status=200, status_text="OK", data=data, message=UNEXPECTED_SHAPE)


def as_record(envelope: Envelope) -> dict[str, Any]:
    data = envelope.data
    if isinstance(data, Mapping):
        return dict(data)
    raise ApiError(status=200, status_text="OK", data=data, message=UNEXPECTED_SHAPE)


__all__ = ["Envelope", "normalize", "expect_success", "as_list", "as_record", "UNEXPECTED_SHAPE"]
