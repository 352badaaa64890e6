"""Service layer for the client core."""

from gradeedu.services.auth import AuthService
from gradeedu.services.conversation import ConversationService
from gradeedu.services.history import HistoryService
from gradeedu.services.http_client import ApiClient, TokenRefreshAuth
from gradeedu.services.storage import FileTokenStore, InMemoryTokenStore, TokenStore
from gradeedu.services.submission import QuestionSubmissionService
from gradeedu.services.tokens import TokenManager
from gradeedu.services.transcription import TranscriptionService
from gradeedu.services.upload import FileUploadService

__all__ = [
    "ApiClient",
    "AuthService",
    "ConversationService",
    "FileTokenStore",
    "FileUploadService",
    "HistoryService",
    "InMemoryTokenStore",
    "QuestionSubmissionService",
    "TokenManager",
    "TokenRefreshAuth",
    "TokenStore",
    "TranscriptionService",
]
