"""Grade Edu AI client core: question submission, transcription and session handling."""

from gradeedu.main import GradeEduClient, create_client

__all__ = ["GradeEduClient", "create_client"]

__version__ = "0.1.0"
