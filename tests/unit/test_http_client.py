from __future__ import annotations

import json

import httpx
import pytest

from resolveit.domain.identity.session import Session
from resolveit.infra.http import NETWORK_ERROR_MESSAGE, ApiClient, ApiError

from tests.conftest import BASE_URL, FakeBackend


@pytest.mark.asyncio
async def test_json_body_is_returned_unchanged(api_client: ApiClient, backend: FakeBackend) -> None:
    payload = {"success": True, "items": [1, 2], "extra": {"nested": True}}
    backend.route("GET", "/things", payload)

    assert await api_client.get("/things") == payload


@pytest.mark.asyncio
async def test_plain_text_success_is_wrapped(api_client: ApiClient, backend: FakeBackend) -> None:
    backend.route("GET", "/ping", handler=lambda request: httpx.Response(200, text="pong"))

    assert await api_client.get("/ping") == {"success": True, "data": "pong"}


@pytest.mark.asyncio
async def test_no_content_reports_success(api_client: ApiClient, backend: FakeBackend) -> None:
    backend.route("DELETE", "/things/1", handler=lambda request: httpx.Response(204))

    assert await api_client.delete("/things/1") == {"success": True}


@pytest.mark.asyncio
async def test_error_message_prefers_error_field(api_client: ApiClient, backend: FakeBackend) -> None:
    body = {"success": False, "error": "Complaint already escalated", "message": "ignored"}
    backend.route("POST", "/api/complaints/3/escalate", body, status=409)

    with pytest.raises(ApiError) as exc:
        await api_client.post("/api/complaints/3/escalate", {"reason": "x"})
    assert exc.value.status == 409
    assert exc.value.status_text == "Conflict"
    assert exc.value.data == body
    assert exc.value.message == "Complaint already escalated"
    assert not exc.value.retryable


@pytest.mark.asyncio
async def test_error_without_message_fields_uses_status(api_client: ApiClient, backend: FakeBackend) -> None:
    backend.route("GET", "/boom", {"detail": "nope"}, status=500)

    with pytest.raises(ApiError) as exc:
        await api_client.get("/boom")
    assert exc.value.message == "Request failed with status 500"


@pytest.mark.asyncio
async def test_non_json_error_keeps_text(api_client: ApiClient, backend: FakeBackend) -> None:
    backend.route("GET", "/forbidden", handler=lambda request: httpx.Response(403, text="Access Denied"))

    with pytest.raises(ApiError) as exc:
        await api_client.get("/forbidden")
    assert exc.value.status == 403
    assert exc.value.is_auth_error
    assert exc.value.data == {"message": "Access Denied"}
    assert exc.value.message == "Request failed with status 403"


@pytest.mark.asyncio
async def test_transport_failure_becomes_network_error(api_client: ApiClient, backend: FakeBackend) -> None:
    def _refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    backend.route("GET", "/down", handler=_refuse)

    with pytest.raises(ApiError) as exc:
        await api_client.get("/down")
    assert exc.value.status == 0
    assert exc.value.status_text == "Network Error"
    assert exc.value.data == {"error": "Network connection failed"}
    assert exc.value.message == NETWORK_ERROR_MESSAGE
    assert exc.value.retryable


@pytest.mark.asyncio
async def test_timeout_is_a_retryable_network_error(api_client: ApiClient, backend: FakeBackend) -> None:
    def _slow(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    backend.route("GET", "/slow", handler=_slow)

    with pytest.raises(ApiError) as exc:
        await api_client.get("/slow")
    assert exc.value.is_network_error
    assert exc.value.retryable


@pytest.mark.asyncio
async def test_token_is_read_on_every_call(backend: FakeBackend) -> None:
    backend.route("GET", "/me", {"ok": True})
    session = Session(token="first")
    async with ApiClient(base_url=BASE_URL, session=session, transport=backend.transport) as client:
        await client.get("/me")
        session.token = "second"
        await client.get("/me")
        session.clear()
        await client.get("/me")

    headers = [request.headers.get("authorization") for request in backend.calls("GET", "/me")]
    assert headers == ["Bearer first", "Bearer second", None]


@pytest.mark.asyncio
async def test_include_token_false_skips_authorization(api_client: ApiClient, backend: FakeBackend) -> None:
    backend.route("GET", "/public/complaints", [])

    await api_client.get("/public/complaints", include_token=False)

    assert "authorization" not in backend.requests[-1].headers


@pytest.mark.asyncio
async def test_json_body_and_query_params_are_sent(api_client: ApiClient, backend: FakeBackend) -> None:
    backend.route("PUT", "/complaints/5/status", {"success": True})

    await api_client.put("/complaints/5/status", {"comment": "done"}, params={"status": "RESOLVED"})

    request = backend.requests[-1]
    assert request.url.params["status"] == "RESOLVED"
    assert request.headers["content-type"] == "application/json"
    assert json.loads(request.read()) == {"comment": "done"}


@pytest.mark.asyncio
async def test_multipart_upload_is_not_sent_as_json(api_client: ApiClient, backend: FakeBackend) -> None:
    backend.route("POST", "/complaints/5/attachments", {"success": True})

    await api_client.post(
        "/complaints/5/attachments",
        {"description": "photo"},
        files={"file": ("photo.txt", b"hello", "text/plain")},
    )

    assert backend.requests[-1].headers["content-type"].startswith("multipart/form-data")


@pytest.mark.asyncio
async def test_blob_download_returns_bytes(api_client: ApiClient, backend: FakeBackend) -> None:
    backend.route(
        "GET",
        "/api/export/complaints/CSV",
        handler=lambda request: httpx.Response(200, content=b"id,title\n1,x\n", headers={"content-type": "text/csv"}),
    )

    assert await api_client.get("/api/export/complaints/CSV", is_blob=True) == b"id,title\n1,x\n"


@pytest.mark.asyncio
async def test_blob_failure_uses_body_message(api_client: ApiClient, backend: FakeBackend) -> None:
    backend.route("GET", "/api/export/complaints/PDF", {"error": "Format not supported"}, status=400)
    backend.route("GET", "/api/export/complaints/XML", handler=lambda request: httpx.Response(500, text="oops"))

    with pytest.raises(ApiError) as exc:
        await api_client.get("/api/export/complaints/PDF", is_blob=True)
    assert exc.value.message == "Format not supported"

    with pytest.raises(ApiError) as exc:
        await api_client.get("/api/export/complaints/XML", is_blob=True)
    assert exc.value.message == "Download failed: 500"
