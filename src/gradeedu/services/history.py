"""Question history listing and solution lookup."""

from enum import StrEnum

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from gradeedu.exceptions import GradeEduException
from gradeedu.schemas.question import Question, QuestionType, Solution
from gradeedu.services.http_client import ApiClient

_QUESTION_LIST = TypeAdapter(list[Question])


class SortOrder(StrEnum):
    """Creation-time ordering of the history list."""

    NEWEST = "newest"
    OLDEST = "oldest"


ALL_TYPES = "all"


class HistoryService:
    """Hold the user's past questions and their solutions."""

    def __init__(self, api: ApiClient) -> None:
        self.api = api
        self.questions: list[Question] = []
        self.solutions: dict[str, Solution] = {}
        self.sort_by = SortOrder.NEWEST
        self.filter_type: QuestionType | str = ALL_TYPES
        self.is_loading = False
        self.error: str | None = None

    def set_sort_by(self, sort_by: SortOrder | str) -> None:
        self.sort_by = SortOrder(sort_by)

    def set_filter_type(self, filter_type: QuestionType | str) -> None:
        self.filter_type = (
            ALL_TYPES if filter_type == ALL_TYPES else QuestionType(filter_type)
        )

    def clear(self) -> None:
        self.questions = []
        self.solutions = {}

    async def fetch_history(self) -> list[Question]:
        """Reload the question list with the current sort and filter."""
        params = {"sort": str(self.sort_by)}
        if self.filter_type != ALL_TYPES:
            params["type"] = str(self.filter_type)

        self.is_loading = True
        self.error = None
        try:
            body = await self.api.get("/questions", params=params)
            questions = _QUESTION_LIST.validate_python(body)
        except ValidationError as exc:
            self.error = "Failed to fetch history"
            raise GradeEduException(
                self.error, error_code="INVALID_RESPONSE"
            ) from exc
        except GradeEduException as exc:
            self.error = exc.message
            raise
        finally:
            self.is_loading = False

        self.questions = questions
        logger.info("History loaded", count=len(questions), **params)
        return questions

    async def fetch_solution(self, question_id: str) -> Solution:
        """Fetch and cache the solution of one question."""
        try:
            body = await self.api.get(f"/questions/{question_id}/solution")
            solution = Solution.model_validate(body)
        except ValidationError as exc:
            self.error = "Failed to fetch solution"
            raise GradeEduException(
                self.error, error_code="INVALID_RESPONSE"
            ) from exc
        except GradeEduException as exc:
            self.error = exc.message
            raise

        self.solutions = {**self.solutions, solution.question_id: solution}
        return solution

    def record_submitted(self, question: Question) -> None:
        """Add a freshly submitted question unless it is already listed."""
        if any(existing.id == question.id for existing in self.questions):
            return

        if self.sort_by is SortOrder.NEWEST:
            self.questions = [question, *self.questions]
        else:
            self.questions = [*self.questions, question]
