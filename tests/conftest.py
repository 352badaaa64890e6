"""Shared fixtures: backend payloads in their wire (camelCase) shape."""

import pytest


def make_question_body(
    question_id: str = "q1",
    prompt: str = "2+2?",
    type: str = "text",
    source_url: str | None = None,
) -> dict:
    body = {
        "id": question_id,
        "userId": "u1",
        "prompt": prompt,
        "type": type,
        "status": "completed",
        "createdAt": "2026-03-01T10:00:00Z",
        "updatedAt": "2026-03-01T10:00:05Z",
    }
    if source_url is not None:
        body["sourceUrl"] = source_url
    return body


def make_solution_body(question_id: str = "q1") -> dict:
    return {
        "id": f"s-{question_id}",
        "questionId": question_id,
        # Deliberately out of order.
        "steps": [
            {"id": "st2", "content": "So the answer is 4.", "order": 2},
            {"id": "st1", "content": "Add 2 and 2.", "order": 1},
        ],
        "isCorrect": True,
        "createdAt": "2026-03-01T10:00:05Z",
        "updatedAt": "2026-03-01T10:00:05Z",
    }


@pytest.fixture
def question_with_solution():
    """Factory for a POST /questions response body."""

    def _make(**question_fields) -> dict:
        question = make_question_body(**question_fields)
        return {"question": question, "solution": make_solution_body(question["id"])}

    return _make
