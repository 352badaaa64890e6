"""Custom exceptions for the Grade Edu client."""

from enum import StrEnum
from typing import Any


class GradeEduException(Exception):
    """Base exception for all Grade Edu client errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(message)


class NetworkError(GradeEduException):
    """No response was received (connection failure, timeout, ...)."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=f"Network error: {message}",
            error_code="NETWORK_ERROR",
            details=details,
        )


class HttpError(GradeEduException):
    """The server answered with a non-2xx status."""

    def __init__(
        self,
        status_code: int,
        body: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.status_code = status_code
        self.body = body
        self.server_message = self._extract_message(body)
        super().__init__(
            message=self.server_message or f"HTTP {status_code} error",
            error_code="HTTP_ERROR",
            details={"status_code": status_code, **(details or {})},
        )

    @staticmethod
    def _extract_message(body: Any) -> str | None:
        """Return the server's own error message when the body carries one."""
        if isinstance(body, dict):
            for key in ("message", "detail", "error"):
                value = body.get(key)
                if isinstance(value, str) and value:
                    return value
        return None


class AuthExpired(GradeEduException):
    """The session cannot be refreshed; callers must treat this as a logout."""

    def __init__(
        self,
        message: str = "Session expired",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code="AUTH_EXPIRED",
            details=details,
        )


class InvalidCredentials(GradeEduException):
    """Login was rejected by the backend."""

    def __init__(
        self,
        message: str = "Invalid username or password",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code="INVALID_CREDENTIALS",
            details=details,
        )


class UploadError(GradeEduException):
    """File upload failed or the file was rejected before sending."""

    def __init__(
        self,
        message: str,
        filename: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=f"Upload failed: {message}",
            error_code="UPLOAD_ERROR",
            details={"filename": filename, **(details or {})}
            if filename
            else details,
        )


class TranscriptionFailed(GradeEduException):
    """The transcription service reported an error."""

    def __init__(
        self,
        message: str,
        job_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code="TRANSCRIPTION_FAILED",
            details={"job_id": job_id, **(details or {})} if job_id else details,
        )


class TranscriptionTimeout(GradeEduException):
    """The transcription job did not finish before the deadline."""

    def __init__(
        self,
        job_id: str,
        timeout_seconds: float,
    ) -> None:
        super().__init__(
            message=f"Transcription did not finish within {timeout_seconds:g}s",
            error_code="TRANSCRIPTION_TIMEOUT",
            details={"job_id": job_id, "timeout_seconds": timeout_seconds},
        )


class OperationCancelled(GradeEduException):
    """The caller cancelled the operation."""

    def __init__(
        self,
        operation: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=f"{operation} cancelled",
            error_code="CANCELLED",
            details={"operation": operation, **(details or {})},
        )


class SubmissionStage(StrEnum):
    """Stage of the question submission workflow."""

    UPLOAD = "upload"
    TRANSCRIPTION = "transcription"
    BACKEND = "backend"


class SubmissionFailed(GradeEduException):
    """A question submission failed at one of its stages."""

    def __init__(
        self,
        stage: SubmissionStage,
        cause: GradeEduException,
    ) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(
            message=cause.message,
            error_code="SUBMISSION_FAILED",
            details={
                "stage": str(stage),
                "cause": cause.error_code,
                **cause.details,
            },
        )

    @property
    def auth_expired(self) -> bool:
        """Whether the failure should force a logout."""
        return isinstance(self.cause, AuthExpired)
