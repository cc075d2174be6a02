"""HTTP gateway to the ResolveIt backend."""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping, Optional, Protocol

import httpx

from resolveit.obs import metrics as obs_metrics
from resolveit.settings import settings

logger = logging.getLogger(__name__)

NETWORK_ERROR_MESSAGE = "Network error. Please check your connection."


class TokenSource(Protocol):
    """Anything that can hand out the current bearer token."""

    def get_token(self) -> Optional[str]:
        ...


class ApiError(Exception):
    """Uniform error raised for transport and HTTP failures."""

    def __init__(
        self,
        status: int,
        status_text: str,
        data: Any = None,
        message: Optional[str] = None,
    ) -> None:
        self.status = status
        self.status_text = status_text
        self.data = data
        self.message = message or f"Request failed with status {status}"
        super().__init__(self.message)

    @classmethod
    def network(cls) -> "ApiError":
        return cls(
            status=0,
            status_text="Network Error",
            data={"error": "Network connection failed"},
            message=NETWORK_ERROR_MESSAGE,
        )

    @property
    def is_network_error(self) -> bool:
        return self.status == 0

    @property
    def retryable(self) -> bool:
        return self.status == 0

    @property
    def is_auth_error(self) -> bool:
        return self.status in (401, 403)

    def __repr__(self) -> str:
        return f"ApiError(status={self.status}, status_text={self.status_text!r}, message={self.message!r})"


def _message_from_body(body: Any, fallback: str) -> str:
    if isinstance(body, Mapping):
        for key in ("error", "message"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value
    return fallback


def _is_json(response: httpx.Response) -> bool:
    content_type = response.headers.get("content-type") or ""
    return "application/json" in content_type.lower()


class ApiClient:
    """Thin async wrapper translating backend calls into a uniform result.

    Successful JSON responses are returned unchanged; shape normalisation
    happens in :mod:`resolveit.infra.normalize`. Failures raise
    :class:`ApiError`. The bearer token is read from ``session`` on every
    call so a logout between two calls is honoured immediately.
    """

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        session: Optional[TokenSource] = None,
        timeout: Optional[float] = None,
        http: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.session = session
        self.timeout = float(timeout if timeout is not None else settings.request_timeout_seconds)
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(base_url=self.base_url, transport=transport)

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    def _headers(self, include_token: bool) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if settings.user_agent:
            headers["User-Agent"] = settings.user_agent
        if include_token and self.session is not None:
            token = self.session.get_token()
            if token:
                headers["Authorization"] = f"Bearer {token}"
        return headers

    async def request(
        self,
        path: str,
        method: str = "GET",
        data: Any = None,
        *,
        include_token: bool = True,
        is_blob: bool = False,
        files: Optional[Mapping[str, Any]] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        method = method.upper()
        kwargs: dict[str, Any] = {}
        if method != "GET":
            if files is not None:
                kwargs["files"] = files
                if data is not None:
                    kwargs["data"] = data
            elif data is not None:
                kwargs["json"] = data

        logger.debug("api request", extra={"method": method, "path": path})
        started = time.perf_counter()
        try:
            response = await self._http.request(
                method,
                path,
                headers=self._headers(include_token),
                params=params,
                timeout=self.timeout,
                **kwargs,
            )
        except httpx.TransportError as exc:
            obs_metrics.API_REQUESTS_TOTAL.labels(method=method, status="0").inc()
            logger.warning(
                "api transport failure",
                extra={"method": method, "path": path, "error_type": type(exc).__name__},
            )
            raise ApiError.network() from exc
        finally:
            obs_metrics.API_REQUEST_LATENCY.labels(method=method).observe(time.perf_counter() - started)

        obs_metrics.API_REQUESTS_TOTAL.labels(method=method, status=str(response.status_code)).inc()
        logger.debug("api response", extra={"method": method, "path": path, "status": response.status_code})

        if is_blob:
            return self._handle_blob(response)

        if response.status_code == 204:
            return {"success": True}

        if not _is_json(response):
            text = response.text
            if not response.is_success:
                raise ApiError(
                    status=response.status_code,
                    status_text=response.reason_phrase,
                    data={"message": text},
                )
            return {"success": True, "data": text}

        try:
            body = response.json()
        except ValueError:
            body = {"message": response.text}

        if not response.is_success:
            error = ApiError(
                status=response.status_code,
                status_text=response.reason_phrase,
                data=body,
                message=_message_from_body(body, f"Request failed with status {response.status_code}"),
            )
            logger.info(
                "api request rejected",
                extra={"method": method, "path": path, "status": response.status_code},
            )
            raise error
        return body

    def _handle_blob(self, response: httpx.Response) -> bytes:
        if response.is_success:
            return response.content
        text = response.text
        fallback = f"Download failed: {response.status_code}"
        body: Any = {"message": text}
        message = fallback
        if _is_json(response) or text.lstrip().startswith("{"):
            try:
                body = response.json()
            except ValueError:
                pass
            else:
                message = _message_from_body(body, fallback)
        raise ApiError(
            status=response.status_code,
            status_text=response.reason_phrase,
            data=body,
            message=message,
        )

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.request(path, "GET", **kwargs)

    async def post(self, path: str, data: Any = None, **kwargs: Any) -> Any:
        return await self.request(path, "POST", data, **kwargs)

    async def put(self, path: str, data: Any = None, **kwargs: Any) -> Any:
        return await self.request(path, "PUT", data, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self.request(path, "DELETE", **kwargs)


__all__ = ["ApiClient", "ApiError", "NETWORK_ERROR_MESSAGE", "TokenSource"]
