"""Logging setup and request logging hooks for outbound HTTP traffic."""

import sys
import time
import uuid
from typing import Any

import httpx
from loguru import logger

from gradeedu.config import settings

REQUEST_ID_HEADER = "X-Request-ID"


async def log_request(request: httpx.Request) -> None:
    """Tag the request with a request_id and log it."""
    request_id = str(uuid.uuid4())
    request.headers[REQUEST_ID_HEADER] = request_id
    request.extensions["gradeedu_started_at"] = time.perf_counter()

    logger.info(
        "Request started",
        request_id=request_id,
        method=request.method,
        path=request.url.path,
    )


async def log_response(response: httpx.Response) -> None:
    """Log the response status and duration for the originating request."""
    request = response.request
    started_at = request.extensions.get("gradeedu_started_at")
    duration_ms = (
        (time.perf_counter() - started_at) * 1000 if started_at is not None else 0.0
    )

    logger.info(
        "Request completed",
        request_id=request.headers.get(REQUEST_ID_HEADER),
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(duration_ms, 2),
    )


def build_event_hooks() -> dict[str, list[Any]]:
    """Event hooks to install on every httpx client."""
    return {"request": [log_request], "response": [log_response]}


def configure_logging(level: str | None = None) -> None:
    """Configure loguru for structured logging."""
    logger.remove()  # Avoid duplicate logs
    logger.add(
        sink=sys.stderr,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "{extra} | "
            "<level>{message}</level>"
        ),
        level=level or settings.log_level,
        serialize=False,
    )
