"""File upload service for question attachments."""

from collections.abc import Callable

from loguru import logger

from gradeedu.config import settings
from gradeedu.exceptions import AuthExpired, GradeEduException, UploadError
from gradeedu.schemas.question import FileAttachment, QuestionType
from gradeedu.services.http_client import ApiClient

ProgressCallback = Callable[[int], None]

EXPECTED_CONTENT_TYPES: dict[QuestionType, tuple[str, ...]] = {
    QuestionType.IMAGE: ("image/",),
    QuestionType.PDF: ("application/pdf",),
    QuestionType.AUDIO: ("audio/", "video/mp4", "video/webm"),
}
GENERIC_CONTENT_TYPES = {"", "application/octet-stream"}


class FileUploadService:
    """Upload an attachment to the backend and return its durable URL."""

    def __init__(
        self,
        api: ApiClient,
        max_size_bytes: int | None = None,
        timeout: float | None = None,
    ) -> None:
        self.api = api
        self.max_size_bytes = max_size_bytes or settings.max_upload_size_bytes
        self.timeout = timeout or settings.upload_timeout_seconds

    async def upload(
        self,
        file: FileAttachment,
        type: QuestionType,
        on_progress: ProgressCallback | None = None,
    ) -> str:
        """
        Multipart-upload a file tagged with its question type.

        Returns:
            The URL the backend stored the file under.

        Raises:
            UploadError: If the file is rejected locally, the backend answers
                with a non-2xx status, or no response is received.
            AuthExpired: If the session could not be refreshed.
        """
        self._validate_file(file, type)

        if on_progress:
            on_progress(0)

        logger.info(
            "Uploading attachment",
            filename=file.filename,
            type=str(type),
            size_bytes=file.size_bytes,
        )

        try:
            body = await self.api.post(
                "/upload",
                files={"file": (file.filename, file.content, file.content_type)},
                data={"type": str(type)},
                timeout=self.timeout,
            )
        except AuthExpired:
            raise
        except GradeEduException as exc:
            logger.error("Attachment upload failed", filename=file.filename, error=exc.message)
            raise UploadError(
                exc.message,
                filename=file.filename,
                details={"cause": exc.error_code, **exc.details},
            ) from exc

        url = body.get("url") if isinstance(body, dict) else None
        if not url:
            raise UploadError("response did not include a URL", filename=file.filename)

        if on_progress:
            on_progress(100)

        logger.info("Attachment uploaded", filename=file.filename, url=url)
        return url

    def _validate_file(self, file: FileAttachment, type: QuestionType) -> None:
        """Reject empty, oversized, or mistyped files before sending."""
        if file.size_bytes == 0:
            raise UploadError("file is empty", filename=file.filename)

        if file.size_bytes > self.max_size_bytes:
            raise UploadError(
                f"file exceeds maximum of {self.max_size_bytes // (1024 * 1024)}MB",
                filename=file.filename,
                details={
                    "size_bytes": file.size_bytes,
                    "max_bytes": self.max_size_bytes,
                },
            )

        expected = EXPECTED_CONTENT_TYPES.get(type)
        content_type = file.content_type.lower()
        if (
            expected
            and content_type not in GENERIC_CONTENT_TYPES
            and not content_type.startswith(expected)
        ):
            raise UploadError(
                f"{file.content_type} is not a valid {type} file",
                filename=file.filename,
                details={"content_type": file.content_type, "type": str(type)},
            )
