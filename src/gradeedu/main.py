"""Grade Edu client entry point: wires every service from settings."""

import asyncio
from types import TracebackType

import httpx
from loguru import logger

from gradeedu.config import Settings, settings
from gradeedu.middleware import configure_logging
from gradeedu.schemas.question import QuestionSubmitRequest, QuestionWithSolution
from gradeedu.services.auth import AuthService
from gradeedu.services.conversation import ConversationService
from gradeedu.services.history import HistoryService
from gradeedu.services.http_client import ApiClient
from gradeedu.services.storage import FileTokenStore, TokenStore
from gradeedu.services.submission import QuestionSubmissionService
from gradeedu.services.tokens import TokenManager
from gradeedu.services.transcription import TranscriptionService
from gradeedu.services.upload import FileUploadService


def create_token_store(config: Settings | None = None) -> TokenStore:
    """Return the file-backed token store configured in settings."""
    config = config or settings
    return FileTokenStore(config.token_store_path)


class GradeEduClient:
    """Facade over the auth, submission, history and chat services.

    Use as an async context manager so the HTTP clients are closed.
    """

    def __init__(
        self,
        config: Settings | None = None,
        token_store: TokenStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        transcription_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or settings

        self.tokens = TokenManager(
            store=token_store or create_token_store(self.config),
            base_url=self.config.api_url,
            timeout=self.config.request_timeout_seconds,
            transport=transport,
        )
        self.api = ApiClient(
            tokens=self.tokens,
            base_url=self.config.api_url,
            timeout=self.config.request_timeout_seconds,
            transport=transport,
        )
        self.auth = AuthService(self.api, self.tokens)
        self.uploads = FileUploadService(
            self.api,
            max_size_bytes=self.config.max_upload_size_bytes,
            timeout=self.config.upload_timeout_seconds,
        )
        self.transcription = TranscriptionService(
            api_key=self.config.assembly_ai_api_key,
            base_url=self.config.transcription_base_url,
            poll_interval=self.config.transcription_poll_interval_seconds,
            timeout=self.config.transcription_timeout_seconds,
            transport=transcription_transport,
        )
        self.history = HistoryService(self.api)
        self.questions = QuestionSubmissionService(
            self.api,
            upload_service=self.uploads,
            transcription_service=self.transcription,
            history=self.history,
        )
        self.conversation = ConversationService(self.questions)

    async def __aenter__(self) -> "GradeEduClient":
        logger.info(
            "Client starting",
            environment=self.config.environment,
            api_url=self.config.api_url,
        )
        await self.auth.check_session()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def ask(
        self,
        request: QuestionSubmitRequest,
        cancel_event: asyncio.Event | None = None,
    ) -> QuestionWithSolution:
        """Submit a question through the chat timeline."""
        return await self.conversation.ask(request, cancel_event)

    async def aclose(self) -> None:
        await self.api.aclose()
        await self.tokens.aclose()
        await self.transcription.aclose()
        logger.info("Client shut down")


def create_client(config: Settings | None = None) -> GradeEduClient:
    """Configure logging and build a client from settings."""
    config = config or settings
    configure_logging(config.log_level)
    return GradeEduClient(config)
