"""Ownership of the bearer/refresh token pair and token refresh."""

import asyncio

import httpx
from loguru import logger
from pydantic import ValidationError

from gradeedu.config import settings
from gradeedu.exceptions import AuthExpired, NetworkError
from gradeedu.middleware import build_event_hooks
from gradeedu.schemas.auth import TokenRefreshResponse
from gradeedu.services.storage import AUTH_TOKEN_KEY, REFRESH_TOKEN_KEY, TokenStore


class TokenManager:
    """Single owner of the persisted token pair.

    The pair is always written and cleared together. At most one refresh
    runs at a time; concurrent callers await the same outcome.
    """

    def __init__(
        self,
        store: TokenStore,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.store = store
        # Refresh calls bypass ApiClient so they never re-enter the auth flow.
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.api_url,
            timeout=timeout or settings.request_timeout_seconds,
            event_hooks=build_event_hooks(),
            transport=transport,
        )
        self._refresh_task: asyncio.Task[str] | None = None
        self._has_session = False

    @property
    def has_session(self) -> bool:
        """Whether a complete pair was last seen in the store."""
        return self._has_session

    async def get_token(self) -> str | None:
        return await self.store.get(AUTH_TOKEN_KEY)

    async def get_refresh_token(self) -> str | None:
        return await self.store.get(REFRESH_TOKEN_KEY)

    async def load(self) -> bool:
        """Read the store and report whether both tokens are present.

        A half-written pair is cleared so no dangling bearer is sent later.
        """
        token = await self.get_token()
        refresh_token = await self.get_refresh_token()
        if bool(token) != bool(refresh_token):
            logger.warning("Incomplete token pair in store, clearing")
            await self.clear()
            return False
        self._has_session = bool(token and refresh_token)
        return self._has_session

    async def save(self, token: str, refresh_token: str) -> None:
        """Persist a complete token pair."""
        if not token or not refresh_token:
            raise ValueError("Both token and refresh_token are required")
        await self.store.set_many(
            {AUTH_TOKEN_KEY: token, REFRESH_TOKEN_KEY: refresh_token}
        )
        self._has_session = True

    async def clear(self) -> None:
        """Remove both tokens."""
        await self.store.delete_many([AUTH_TOKEN_KEY, REFRESH_TOKEN_KEY])
        self._has_session = False

    async def refresh(self, stale_token: str | None = None) -> str:
        """Return a fresh access token, refreshing at most once concurrently.

        Args:
            stale_token: The token the failed request was sent with. When a
                different token is already stored, another caller refreshed
                in the meantime and that token is returned as is.

        Raises:
            AuthExpired: No refresh token, or the backend rejected it. The
                pair is cleared before raising.
            NetworkError: The refresh call got no response; tokens are kept.
        """
        current = await self.get_token()
        if current and stale_token and current != stale_token:
            return current

        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.create_task(self._refresh())
            self._refresh_task.add_done_callback(self._consume_result)

        return await asyncio.shield(self._refresh_task)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _refresh(self) -> str:
        refresh_token = await self.get_refresh_token()
        if not refresh_token:
            await self.clear()
            raise AuthExpired("No refresh token available")

        logger.info("Refreshing access token")

        try:
            response = await self._client.post(
                "/auth/refresh",
                json={"refresh_token": refresh_token},
            )
        except httpx.TransportError as exc:
            logger.error("Token refresh request failed", error=str(exc))
            raise NetworkError(str(exc) or type(exc).__name__) from exc

        if response.is_error:
            logger.warning(
                "Token refresh rejected",
                status_code=response.status_code,
            )
            await self.clear()
            raise AuthExpired(
                "Token refresh rejected",
                details={"status_code": response.status_code},
            )

        try:
            payload = TokenRefreshResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            await self.clear()
            raise AuthExpired("Malformed token refresh response") from exc

        if not payload.token:
            await self.clear()
            raise AuthExpired("Token refresh returned no token")

        # The backend only sends a refresh token when it rotates it.
        await self.save(payload.token, payload.refresh_token or refresh_token)
        logger.info("Access token refreshed", rotated=bool(payload.refresh_token))
        return payload.token

    @staticmethod
    def _consume_result(task: asyncio.Task) -> None:
        """Mark the outcome as retrieved when every waiter went away."""
        if not task.cancelled():
            task.exception()
