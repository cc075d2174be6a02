from __future__ import annotations

from typing import Any, Callable, Optional

import httpx
import pytest
import pytest_asyncio

from resolveit.domain.complaints.api import ComplaintsAPI
from resolveit.domain.complaints.models import Role, User
from resolveit.domain.identity.session import Session
from resolveit.infra.http import ApiClient

BASE_URL = "http://testserver"

Handler = Callable[[httpx.Request], httpx.Response]


class FakeBackend:
    """In-memory route table served through ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Handler] = {}
        self.requests: list[httpx.Request] = []

    def route(
        self,
        method: str,
        path: str,
        json: Any = None,
        *,
        status: int = 200,
        handler: Optional[Handler] = None,
    ) -> None:
        if handler is None:
            def handler(request: httpx.Request, _json=json, _status=status) -> httpx.Response:
                return httpx.Response(_status, json=_json)
        self.routes[(method.upper(), path)] = handler

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"success": False, "error": f"no route for {request.method} {request.url.path}"})
        return handler(request)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method.upper() and r.url.path == path]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


def make_session(role: Optional[Role], user_id: Any = 1, token: str = "tok-1") -> Session:
    user = User(id=user_id, full_name="Test User", email="test@example.com", role=role)
    return Session(token=token, user=user)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def admin_session() -> Session:
    return make_session(Role.ADMIN, user_id=1)


@pytest_asyncio.fixture
async def api_client(backend: FakeBackend, admin_session: Session):
    client = ApiClient(base_url=BASE_URL, session=admin_session, transport=backend.transport, timeout=5)
    try:
        yield client
    finally:
        await client.aclose()


@pytest.fixture
def complaints_api(api_client: ApiClient) -> ComplaintsAPI:
    return ComplaintsAPI(api_client)
