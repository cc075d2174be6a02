"""Explicit authentication session passed to the client and policy."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from resolveit.domain.complaints.models import EntityId, Role, User
from resolveit.infra.http import ApiClient, ApiError

logger = logging.getLogger(__name__)


@dataclass
class Session:
	"""Bearer token plus the user the backend authenticated it for."""

	token: Optional[str] = None
	user: Optional[User] = None

	def get_token(self) -> Optional[str]:
		return self.token

	@property
	def user_id(self) -> Optional[EntityId]:
		return self.user.id if self.user else None

	@property
	def role(self) -> Optional[Role]:
		return self.user.role if self.user else None

	@property
	def is_authenticated(self) -> bool:
		return bool(self.token) and self.user is not None

	def clear(self) -> None:
		self.token = None
		self.user = None


def _user_from(raw: Any) -> Optional[User]:
	if not isinstance(raw, Mapping) or raw.get("id") is None:
		return None
	try:
		return User.model_validate(raw)
	except ValidationError:
		logger.warning("discarding malformed user payload")
		return None


async def login(client: ApiClient, email: str, password: str) -> Session:
	"""Authenticate and return a populated session.

	The backend answers either ``{token, user}`` or
	``{success, token, user|data}``.
	"""
	body = await client.post("/auth/login", {"email": email, "password": password}, include_token=False)
	if not isinstance(body, Mapping):
		raise ApiError(status=200, status_text="OK", data=body, message="Login failed")
	token = body.get("token")
	if body.get("success") is False or not token:
		raise ApiError(
			status=200,
			status_text="OK",
			data=body,
			message=body.get("error") or body.get("message") or "Login failed",
		)
	user = _user_from(body.get("user")) or _user_from(body.get("data"))
	session = Session(token=str(token), user=user)
	if client.session is None:
		client.session = session
	logger.info("login succeeded", extra={"user_id": str(session.user_id), "role": getattr(session.role, "value", None)})
	return session


async def load_current_user(client: ApiClient, session: Session) -> Optional[User]:
	"""Populate ``session.user`` from ``/auth/me``; an invalid token is cleared."""
	try:
		body = await client.get("/auth/me")
	except ApiError:
		logger.info("current user lookup failed, clearing token")
		session.clear()
		raise
	user: Optional[User] = None
	if isinstance(body, Mapping):
		if body.get("user"):
			user = _user_from(body.get("user"))
		elif body.get("success") and body.get("data"):
			user = _user_from(body.get("data"))
		else:
			user = _user_from(body)
	session.user = user
	return user


__all__ = ["Session", "login", "load_current_user"]
