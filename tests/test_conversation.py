"""Tests for the chat timeline."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from gradeedu.exceptions import HttpError, SubmissionFailed, SubmissionStage
from gradeedu.schemas.question import (
    FileAttachment,
    QuestionSubmitRequest,
    QuestionType,
    QuestionWithSolution,
)
from gradeedu.services.conversation import WELCOME_MESSAGE, ConversationService


@pytest.fixture
def mock_submission() -> MagicMock:
    """Create a mock QuestionSubmissionService."""
    submission = MagicMock()
    submission.submit = AsyncMock()
    return submission


@pytest.fixture
def conversation(mock_submission: MagicMock) -> ConversationService:
    return ConversationService(mock_submission)


class TestConversation:
    """Tests for ConversationService."""

    def test_starts_with_welcome(self, conversation: ConversationService) -> None:
        """A new timeline holds only the welcome message."""
        (message,) = conversation.merged()

        assert message.content == WELCOME_MESSAGE
        assert message.is_user is False

    @pytest.mark.asyncio
    async def test_success_moves_to_confirmed(
        self,
        conversation: ConversationService,
        mock_submission: MagicMock,
        question_with_solution,
    ) -> None:
        """The optimistic bubble is replaced by the question and its solution."""
        mock_submission.submit.return_value = QuestionWithSolution.model_validate(
            question_with_solution()
        )

        await conversation.ask(QuestionSubmitRequest(prompt="2+2?"))

        assert conversation.pending == ()
        _, question, answer = conversation.confirmed
        assert question.is_user is True
        assert question.content == "2+2?"
        assert answer.is_user is False
        assert answer.content == "Add 2 and 2.\n\nSo the answer is 4."
        assert answer.question_id == "q1"

    @pytest.mark.asyncio
    async def test_pending_message_visible_while_in_flight(
        self,
        conversation: ConversationService,
        mock_submission: MagicMock,
        question_with_solution,
    ) -> None:
        """The user's message shows up before the server answers."""
        seen = []

        async def submit(request, cancel_event):
            seen.extend(conversation.merged())
            return QuestionWithSolution.model_validate(question_with_solution())

        mock_submission.submit.side_effect = submit

        await conversation.ask(QuestionSubmitRequest(prompt="2+2?"))

        assert seen[-1].pending is True
        assert seen[-1].content == "2+2?"

    @pytest.mark.asyncio
    async def test_failure_keeps_pending_with_error(
        self,
        conversation: ConversationService,
        mock_submission: MagicMock,
    ) -> None:
        """A failed ask stays in the timeline, marked with its error."""
        mock_submission.submit.side_effect = SubmissionFailed(
            SubmissionStage.BACKEND, HttpError(500, {"message": "Model overloaded"})
        )

        with pytest.raises(SubmissionFailed):
            await conversation.ask(QuestionSubmitRequest(prompt="2+2?"))

        (failed,) = conversation.pending
        assert failed.error == "Model overloaded"
        assert len(conversation.confirmed) == 1

        conversation.dismiss(failed.id)
        assert conversation.pending == ()

    @pytest.mark.asyncio
    async def test_attachment_without_prompt_is_described(
        self,
        conversation: ConversationService,
        mock_submission: MagicMock,
    ) -> None:
        """File-only questions get a placeholder bubble."""
        mock_submission.submit.side_effect = SubmissionFailed(
            SubmissionStage.UPLOAD, HttpError(413)
        )
        request = QuestionSubmitRequest(
            type=QuestionType.IMAGE,
            file=FileAttachment(content=b"png", filename="q.png"),
        )

        with pytest.raises(SubmissionFailed):
            await conversation.ask(request)

        assert conversation.pending[0].content == "[image attachment: q.png]"
