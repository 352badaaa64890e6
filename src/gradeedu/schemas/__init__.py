"""Pydantic schemas for the Grade Edu API."""

from gradeedu.schemas.auth import (
    AuthResponse,
    AuthStatus,
    LoginRequest,
    RegisterRequest,
    Session,
    TokenRefreshResponse,
    User,
)
from gradeedu.schemas.question import (
    FileAttachment,
    Question,
    QuestionCreatePayload,
    QuestionStatus,
    QuestionSubmitRequest,
    QuestionType,
    QuestionWithSolution,
    Solution,
    SolutionStep,
)
from gradeedu.schemas.transcription import (
    AudioUploadResponse,
    TranscriptionJob,
    TranscriptionState,
)

__all__ = [
    "AudioUploadResponse",
    "AuthResponse",
    "AuthStatus",
    "FileAttachment",
    "LoginRequest",
    "Question",
    "QuestionCreatePayload",
    "QuestionStatus",
    "QuestionSubmitRequest",
    "QuestionType",
    "QuestionWithSolution",
    "RegisterRequest",
    "Session",
    "Solution",
    "SolutionStep",
    "TokenRefreshResponse",
    "TranscriptionJob",
    "TranscriptionState",
    "User",
]
