"""Session lifecycle: login, registration, session check and logout."""

from loguru import logger
from pydantic import ValidationError

from gradeedu.exceptions import (
    AuthExpired,
    GradeEduException,
    HttpError,
    InvalidCredentials,
    NetworkError,
)
from gradeedu.schemas.auth import (
    AuthResponse,
    AuthStatus,
    LoginRequest,
    RegisterRequest,
    Session,
    User,
)
from gradeedu.services.http_client import ApiClient
from gradeedu.services.tokens import TokenManager

CREDENTIAL_REJECTION_STATUSES = (400, 401, 403)


class AuthService:
    """Acquire, validate and drop the authenticated session.

    ``is_authenticated`` is derived from the token pair held by
    ``TokenManager``; clearing the pair anywhere logs the user out here too.
    """

    def __init__(self, api: ApiClient, tokens: TokenManager) -> None:
        self.api = api
        self.tokens = tokens
        self.user: User | None = None
        self.error: str | None = None
        self._authenticating = False

    @property
    def status(self) -> AuthStatus:
        if self._authenticating:
            return AuthStatus.AUTHENTICATING
        if self.tokens.has_session and self.user is not None:
            return AuthStatus.LOGGED_IN
        return AuthStatus.LOGGED_OUT

    @property
    def is_authenticated(self) -> bool:
        return self.status is AuthStatus.LOGGED_IN

    async def login(self, username: str, password: str) -> Session:
        """Log in and persist the token pair.

        Raises:
            InvalidCredentials: The backend rejected the credentials.
            NetworkError: The backend could not be reached.
        """
        try:
            credentials = LoginRequest(username=username, password=password)
            return await self._authenticate("/auth/login", credentials.model_dump())
        except ValidationError as exc:
            error = InvalidCredentials(
                "Username and password are required",
                details={"fields": [str(e["loc"][0]) for e in exc.errors()]},
            )
            self.error = error.message
            raise error from exc
        except HttpError as exc:
            if exc.status_code not in CREDENTIAL_REJECTION_STATUSES:
                raise
            details = {"status_code": exc.status_code}
            if exc.server_message:
                error = InvalidCredentials(
                    exc.server_message,
                    details={**details, "server_message": exc.server_message},
                )
            else:
                error = InvalidCredentials(details=details)
            self.error = error.message
            raise error from exc

    async def register(self, profile: RegisterRequest) -> Session:
        """Create an account; persists tokens exactly like ``login``."""
        return await self._authenticate("/auth/register", profile.model_dump())

    async def check_session(self) -> Session | None:
        """Validate the stored session against the backend.

        Returns None without any network call when no token pair is stored.
        Any failure while fetching the profile clears both tokens.
        """
        if not await self.tokens.load():
            self.user = None
            return None

        self._authenticating = True
        try:
            body = await self.api.get("/auth/me")
            user = User.model_validate(body)
        except (GradeEduException, ValidationError) as exc:
            logger.info("Stored session is no longer valid", error=str(exc))
            await self.tokens.clear()
            self.user = None
            self.error = "Session expired"
            return None
        finally:
            self._authenticating = False

        # A refresh during /auth/me may have rotated the pair.
        token = await self.tokens.get_token()
        refresh_token = await self.tokens.get_refresh_token()
        self.user = user
        logger.info("Session restored", user_id=user.id)
        return Session(token=token, refresh_token=refresh_token, user=user)

    async def logout(self) -> None:
        """Drop the session locally; the server call is best-effort."""
        if await self.tokens.get_token():
            try:
                await self.api.request("POST", "/auth/logout")
            except (NetworkError, HttpError, AuthExpired) as exc:
                logger.warning(
                    "Server logout failed, clearing locally", error=str(exc)
                )

        await self.tokens.clear()
        self.user = None
        logger.info("Logged out")

    async def handle_auth_expired(self) -> None:
        """React to a forced-logout signal raised by any backend call."""
        await self.tokens.clear()
        self.user = None
        self.error = "Session expired"

    async def request_password_reset(self, email: str) -> None:
        """Ask the backend to email a password reset link."""
        await self.api.request(
            "POST",
            "/auth/forgot-password",
            json={"email": email},
            authenticated=False,
        )

    def clear_error(self) -> None:
        self.error = None

    def update_user(self, user: User) -> None:
        """Replace the cached profile, e.g. after a profile edit."""
        self.user = user

    async def _authenticate(self, path: str, payload: dict) -> Session:
        self._authenticating = True
        self.error = None
        try:
            body = await self.api.post(path, json=payload, authenticated=False)
            auth = AuthResponse.model_validate(body)
            await self.tokens.save(auth.token, auth.refresh_token)
        except ValidationError as exc:
            self.error = "Unexpected response from server"
            raise HttpError(
                status_code=502,
                body={"message": self.error},
                details={"path": path},
            ) from exc
        except GradeEduException as exc:
            self.error = exc.message
            raise
        finally:
            self._authenticating = False

        self.user = auth.user
        logger.info("Authenticated", user_id=auth.user.id, path=path)
        return Session(
            token=auth.token,
            refresh_token=auth.refresh_token,
            user=auth.user,
        )
