"""HTTP client for the Grade Edu backend.

Every outbound backend call goes through ``ApiClient``. Bearer attachment
and the single refresh-and-retry on 401 live in ``TokenRefreshAuth``, an
``httpx.Auth`` flow that can be exercised on its own.
"""

from collections.abc import AsyncGenerator
from typing import Any

import httpx
from loguru import logger

from gradeedu.config import settings
from gradeedu.exceptions import AuthExpired, HttpError, NetworkError
from gradeedu.middleware import build_event_hooks
from gradeedu.services.tokens import TokenManager


class TokenRefreshAuth(httpx.Auth):
    """Attach the bearer token; on 401 refresh once and replay the request."""

    requires_request_body = True

    def __init__(self, tokens: TokenManager) -> None:
        self.tokens = tokens

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        token = await self.tokens.get_token()
        if not token:
            # Anonymous calls surface a 401 as a plain HttpError.
            yield request
            return

        request.headers["Authorization"] = f"Bearer {token}"
        response = yield request
        if response.status_code != 401:
            return

        logger.warning("Access token rejected, refreshing", path=request.url.path)
        new_token = await self.tokens.refresh(stale_token=token)

        request.headers["Authorization"] = f"Bearer {new_token}"
        response = yield request
        if response.status_code == 401:
            logger.warning(
                "Request rejected after token refresh",
                path=request.url.path,
            )
            await self.tokens.clear()
            raise AuthExpired(
                "Request rejected after token refresh",
                details={"path": request.url.path},
            )


class ApiClient:
    """Single point of outbound traffic to the backend API."""

    def __init__(
        self,
        tokens: TokenManager,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.tokens = tokens
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.api_url,
            timeout=timeout or settings.request_timeout_seconds,
            auth=TokenRefreshAuth(tokens),
            headers={"Accept": "application/json"},
            event_hooks=build_event_hooks(),
            transport=transport,
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
        authenticated: bool = True,
    ) -> httpx.Response:
        """Send a request and return the 2xx response.

        Raises:
            AuthExpired: Refresh failed or the retried request got a 401.
            NetworkError: No response was received.
            HttpError: Any other non-2xx response.
        """
        extra: dict[str, Any] = {}
        if not authenticated:
            extra["auth"] = None
        if timeout is not None:
            extra["timeout"] = timeout

        try:
            response = await self._client.request(
                method,
                path,
                json=json,
                data=data,
                files=files,
                params=params,
                headers=headers,
                **extra,
            )
        except httpx.TransportError as exc:
            logger.error(
                "Request failed without response",
                method=method,
                path=path,
                error=repr(exc),
            )
            raise NetworkError(
                str(exc) or type(exc).__name__,
                details={"method": method, "path": path},
            ) from exc

        if response.is_error:
            raise HttpError(
                status_code=response.status_code,
                body=self.parse_body(response),
                details={"method": method, "path": path},
            )

        return response

    async def request_json(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a request and return its decoded body."""
        response = await self.request(method, path, **kwargs)
        return self.parse_body(response)

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.request_json("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Any:
        return await self.request_json("POST", path, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    @staticmethod
    def parse_body(response: httpx.Response) -> Any:
        """Decode JSON bodies, falling back to text."""
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text
