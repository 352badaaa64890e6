"""Question submission workflow.

Orchestrates the full pipeline: upload -> transcribe -> create question,
tracking UI-facing submission state throughout.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, replace

from loguru import logger
from pydantic import ValidationError

from gradeedu.exceptions import (
    GradeEduException,
    OperationCancelled,
    SubmissionFailed,
    SubmissionStage,
)
from gradeedu.schemas.question import (
    Question,
    QuestionCreatePayload,
    QuestionSubmitRequest,
    QuestionType,
    QuestionWithSolution,
    Solution,
)
from gradeedu.services.history import HistoryService
from gradeedu.services.http_client import ApiClient
from gradeedu.services.transcription import TranscriptionService
from gradeedu.services.upload import FileUploadService


@dataclass(frozen=True)
class SubmissionState:
    """Snapshot of submission state shown by the UI."""

    current_question: Question | None = None
    current_solution: Solution | None = None
    is_submitting: bool = False
    is_processing: bool = False
    upload_progress: int = 0
    error: str | None = None


StateListener = Callable[[SubmissionState], None]


class QuestionSubmissionService:
    """Submit user questions and expose the in-flight state."""

    def __init__(
        self,
        api: ApiClient,
        upload_service: FileUploadService,
        transcription_service: TranscriptionService,
        history: HistoryService | None = None,
    ) -> None:
        self.api = api
        self.upload_service = upload_service
        self.transcription_service = transcription_service
        self.history = history
        self.state = SubmissionState()
        self._listeners: list[StateListener] = []
        self._submitting = 0
        self._transcribing = 0

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a state listener; returns a function that removes it."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    async def submit(
        self,
        request: QuestionSubmitRequest,
        cancel_event: asyncio.Event | None = None,
    ) -> QuestionWithSolution:
        """Run upload, transcription and question creation in order.

        No stage is retried. Once ``cancel_event`` is set (or the task is
        cancelled) the state is left untouched.

        Raises:
            SubmissionFailed: Tagged with the stage that failed.
            OperationCancelled: ``cancel_event`` was set.
        """
        self._submitting += 1
        self._update(error=None)

        try:
            try:
                result = await self._run(request, cancel_event)
                self._raise_if_cancelled(cancel_event)
            finally:
                self._submitting -= 1
        except OperationCancelled:
            logger.info("Question submission cancelled", type=str(request.type))
            raise
        except SubmissionFailed as exc:
            logger.error(
                "Question submission failed",
                stage=str(exc.stage),
                error=exc.message,
            )
            if not self._is_cancelled(cancel_event):
                self._update(upload_progress=0, error=exc.message)
            raise

        self._update(
            current_question=result.question,
            current_solution=result.solution,
            upload_progress=0,
        )
        if self.history is not None:
            self.history.record_submitted(result.question)

        logger.info(
            "Question submitted",
            question_id=result.question.id,
            type=str(result.question.type),
            steps=len(result.solution.steps),
        )
        return result

    async def get_question(self, question_id: str) -> QuestionWithSolution:
        """Load a question and its solution as the current question."""
        self._submitting += 1
        self._update(error=None)
        try:
            try:
                body = await self.api.get(f"/questions/{question_id}")
                result = QuestionWithSolution.model_validate(body)
            finally:
                self._submitting -= 1
        except ValidationError as exc:
            error = GradeEduException(
                "Malformed response from server", error_code="INVALID_RESPONSE"
            )
            self._update(error=error.message)
            raise error from exc
        except GradeEduException as exc:
            self._update(error=exc.message)
            raise

        self._update(current_question=result.question, current_solution=result.solution)
        return result

    def clear_current_question(self) -> None:
        self._update(current_question=None, current_solution=None, error=None)

    def clear_error(self) -> None:
        self._update(error=None)

    def set_upload_progress(self, value: int) -> None:
        self._update(upload_progress=max(0, min(100, int(value))))

    async def _run(
        self,
        request: QuestionSubmitRequest,
        cancel_event: asyncio.Event | None,
    ) -> QuestionWithSolution:
        prompt = request.prompt
        source_url: str | None = None

        self._raise_if_cancelled(cancel_event)
        if request.file is not None:
            try:
                source_url = await self.upload_service.upload(
                    request.file,
                    request.type,
                    on_progress=self._progress_reporter(cancel_event),
                )
            except GradeEduException as exc:
                raise SubmissionFailed(SubmissionStage.UPLOAD, exc) from exc

        if request.type is QuestionType.AUDIO and source_url:
            prompt = await self._transcribe(source_url, cancel_event)

        self._raise_if_cancelled(cancel_event)
        payload = QuestionCreatePayload(
            prompt=prompt,
            type=request.type,
            source_url=source_url,
        )
        try:
            body = await self.api.post("/questions", json=payload.to_wire())
            return QuestionWithSolution.model_validate(body)
        except ValidationError as exc:
            error = GradeEduException(
                "Malformed response from server", error_code="INVALID_RESPONSE"
            )
            raise SubmissionFailed(SubmissionStage.BACKEND, error) from exc
        except GradeEduException as exc:
            raise SubmissionFailed(SubmissionStage.BACKEND, exc) from exc

    async def _transcribe(
        self,
        source_url: str,
        cancel_event: asyncio.Event | None,
    ) -> str:
        self._raise_if_cancelled(cancel_event)
        self._transcribing += 1
        self._update()
        try:
            text = await self.transcription_service.transcribe(source_url, cancel_event)
        except OperationCancelled:
            raise
        except GradeEduException as exc:
            raise SubmissionFailed(SubmissionStage.TRANSCRIPTION, exc) from exc
        finally:
            self._transcribing -= 1

        # Failures are published by submit(); cancellations not at all.
        if not self._is_cancelled(cancel_event):
            self._update()
        return text

    def _progress_reporter(
        self, cancel_event: asyncio.Event | None
    ) -> Callable[[int], None]:
        def report(value: int) -> None:
            if not self._is_cancelled(cancel_event):
                self.set_upload_progress(value)

        return report

    def _update(self, **changes) -> None:
        """Publish a new state snapshot; busy flags follow the in-flight counters."""
        self.state = replace(
            self.state,
            **changes,
            is_submitting=self._submitting > 0,
            is_processing=self._transcribing > 0,
        )
        for listener in list(self._listeners):
            listener(self.state)

    @staticmethod
    def _is_cancelled(cancel_event: asyncio.Event | None) -> bool:
        return cancel_event is not None and cancel_event.is_set()

    def _raise_if_cancelled(self, cancel_event: asyncio.Event | None) -> None:
        if self._is_cancelled(cancel_event):
            raise OperationCancelled("Question submission")
