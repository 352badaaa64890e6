"""Chat timeline that keeps server messages and optimistic messages apart."""

import asyncio
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone

from gradeedu.exceptions import SubmissionFailed
from gradeedu.schemas.question import (
    Question,
    QuestionSubmitRequest,
    QuestionWithSolution,
    Solution,
)
from gradeedu.services.submission import QuestionSubmissionService

WELCOME_MESSAGE = (
    "Welcome to Grade Edu AI! Ask me any question, "
    "and I'll provide step-by-step solutions."
)


@dataclass(frozen=True)
class ChatMessage:
    """One bubble in the chat."""

    id: str
    content: str
    is_user: bool
    timestamp: datetime
    question_id: str | None = None
    pending: bool = False
    error: str | None = None


class ConversationService:
    """Two lists, merged only when rendering.

    ``confirmed`` holds server-sourced messages, ``pending`` holds the
    user's messages that are still being submitted (or failed). Both are
    tuples and are replaced, never mutated.
    """

    def __init__(self, submission: QuestionSubmissionService) -> None:
        self.submission = submission
        self.confirmed: tuple[ChatMessage, ...] = (
            ChatMessage(
                id="welcome",
                content=WELCOME_MESSAGE,
                is_user=False,
                timestamp=datetime.now(timezone.utc),
            ),
        )
        self.pending: tuple[ChatMessage, ...] = ()

    def merged(self) -> tuple[ChatMessage, ...]:
        return self.confirmed + self.pending

    async def ask(
        self,
        request: QuestionSubmitRequest,
        cancel_event: asyncio.Event | None = None,
    ) -> QuestionWithSolution:
        """Show the question immediately, then swap in the server's answer."""
        local_id = f"local-{uuid.uuid4()}"
        self.pending = (
            *self.pending,
            ChatMessage(
                id=local_id,
                content=self._describe(request),
                is_user=True,
                timestamp=datetime.now(timezone.utc),
                pending=True,
            ),
        )

        try:
            result = await self.submission.submit(request, cancel_event)
        except SubmissionFailed as exc:
            self.pending = tuple(
                replace(message, error=exc.message)
                if message.id == local_id
                else message
                for message in self.pending
            )
            raise

        self.pending = tuple(m for m in self.pending if m.id != local_id)
        self.confirmed = (
            *self.confirmed,
            self._question_message(result.question),
            self._solution_message(result.solution),
        )
        return result

    def dismiss(self, local_id: str) -> None:
        """Drop a pending message, typically one that failed."""
        self.pending = tuple(m for m in self.pending if m.id != local_id)

    @staticmethod
    def _describe(request: QuestionSubmitRequest) -> str:
        if request.prompt:
            return request.prompt
        if request.file is not None:
            return f"[{request.type} attachment: {request.file.filename}]"
        return ""

    @staticmethod
    def _question_message(question: Question) -> ChatMessage:
        return ChatMessage(
            id=question.id,
            content=question.prompt,
            is_user=True,
            timestamp=question.created_at,
            question_id=question.id,
        )

    @staticmethod
    def _solution_message(solution: Solution) -> ChatMessage:
        return ChatMessage(
            id=solution.id,
            content=solution.render(),
            is_user=False,
            timestamp=solution.created_at,
            question_id=solution.question_id,
        )
