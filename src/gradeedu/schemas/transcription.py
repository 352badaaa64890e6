"""Pydantic schemas for the third-party transcription service."""

from enum import StrEnum

from pydantic import BaseModel


class TranscriptionState(StrEnum):
    """Lifecycle of a transcription job as seen by the poll loop.

    The service only reports the first four; the last two are local outcomes.
    """

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"

    @property
    def is_pending(self) -> bool:
        """Whether the job still needs polling."""
        return self in (TranscriptionState.QUEUED, TranscriptionState.PROCESSING)


class AudioUploadResponse(BaseModel):
    """Response of POST /upload."""

    upload_url: str


class TranscriptionJob(BaseModel):
    """Response of POST /transcript and GET /transcript/:id."""

    id: str
    status: TranscriptionState
    text: str | None = None
    error: str | None = None
