"""Pydantic schemas for questions, solutions and submissions."""

import mimetypes
from datetime import datetime
from enum import StrEnum
from pathlib import Path

import aiofiles
from pydantic import BaseModel, Field, field_validator

from gradeedu.schemas.common import CamelModel


class QuestionType(StrEnum):
    """Kind of input a question was asked with."""

    TEXT = "text"
    IMAGE = "image"
    PDF = "pdf"
    AUDIO = "audio"


class QuestionStatus(StrEnum):
    """Server-side processing status of a question."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Question(CamelModel):
    """A user-submitted problem, created by the backend."""

    id: str = Field(..., description="Server-assigned question ID")
    user_id: str = Field(..., description="Owner of the question")
    prompt: str = Field(..., description="Question text")
    type: QuestionType = Field(..., description="Input kind")
    source_url: str | None = Field(None, description="Uploaded attachment URL")
    status: QuestionStatus = Field(..., description="Processing status")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class SolutionStep(CamelModel):
    """A single step of a worked solution."""

    id: str
    content: str = Field(..., description="Step text, may span several lines")
    order: int = Field(..., description="Display position")


class Solution(CamelModel):
    """Step-by-step answer tied to exactly one question."""

    id: str
    question_id: str = Field(..., description="Question this solution answers")
    steps: list[SolutionStep] = Field(default_factory=list)
    is_correct: bool = False
    created_at: datetime
    updated_at: datetime

    @field_validator("steps")
    @classmethod
    def sort_steps(cls, v: list[SolutionStep]) -> list[SolutionStep]:
        """Steps are not guaranteed to arrive sorted on the wire."""
        return sorted(v, key=lambda step: step.order)

    def render(self) -> str:
        """Join the ordered steps into a single display text."""
        return "\n\n".join(step.content for step in self.steps)


class QuestionWithSolution(BaseModel):
    """Response of question creation and lookup."""

    question: Question
    solution: Solution


class FileAttachment(BaseModel):
    """Raw file picked by the user, ready to be uploaded."""

    content: bytes = Field(..., repr=False)
    filename: str = Field(..., min_length=1)
    content_type: str = "application/octet-stream"

    @property
    def size_bytes(self) -> int:
        """Return the attachment size in bytes."""
        return len(self.content)

    @classmethod
    async def from_path(
        cls,
        path: str | Path,
        content_type: str | None = None,
    ) -> "FileAttachment":
        """Read a local file, guessing the mime type from its name if needed."""
        path = Path(path)
        async with aiofiles.open(path, "rb") as in_file:
            content = await in_file.read()

        if content_type is None:
            content_type, _ = mimetypes.guess_type(path.name)

        return cls(
            content=content,
            filename=path.name,
            content_type=content_type or "application/octet-stream",
        )


class QuestionSubmitRequest(BaseModel):
    """What the user asked: a prompt, its kind and an optional file."""

    prompt: str = ""
    type: QuestionType = QuestionType.TEXT
    file: FileAttachment | None = None


class QuestionCreatePayload(CamelModel):
    """Body of POST /questions."""

    prompt: str
    type: QuestionType
    source_url: str | None = None
