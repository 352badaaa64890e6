"""Speech-to-text through a third-party submit-then-poll transcription API."""

import asyncio
from typing import Any

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

from gradeedu.config import settings
from gradeedu.exceptions import (
    NetworkError,
    OperationCancelled,
    TranscriptionFailed,
    TranscriptionTimeout,
)
from gradeedu.middleware import build_event_hooks
from gradeedu.schemas.transcription import (
    AudioUploadResponse,
    TranscriptionJob,
    TranscriptionState,
)


class TranscriptionService:
    """Turn an uploaded audio URL into text.

    Protocol: register the audio URL, create a transcript job, then poll
    the job until it completes, errors, runs past the deadline, or the
    caller sets the cancel event.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        poll_interval: float | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.poll_interval = (
            settings.transcription_poll_interval_seconds
            if poll_interval is None
            else poll_interval
        )
        self.timeout = (
            settings.transcription_timeout_seconds if timeout is None else timeout
        )
        self.client = httpx.AsyncClient(
            base_url=base_url or settings.transcription_base_url,
            timeout=settings.request_timeout_seconds,
            headers={
                "authorization": api_key or settings.assembly_ai_api_key,
                "content-type": "application/json",
            },
            event_hooks=build_event_hooks(),
            transport=transport,
        )

    async def transcribe(
        self,
        audio_url: str,
        cancel_event: asyncio.Event | None = None,
    ) -> str:
        """Transcribe the audio behind ``audio_url``.

        Args:
            audio_url: Durable URL of the uploaded audio.
            cancel_event: Checked before every wait and every request; once
                set, the loop stops without issuing further requests.

        Returns:
            The transcript text.

        Raises:
            TranscriptionFailed: The service reported an error or answered
                with an unexpected response.
            TranscriptionTimeout: The job was still pending at the deadline.
            OperationCancelled: ``cancel_event`` was set.
            NetworkError: The service could not be reached.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout

        self._raise_if_cancelled(cancel_event, TranscriptionState.QUEUED)
        upload = await self._call(
            "POST", "/upload", AudioUploadResponse, json={"audio_url": audio_url}
        )

        self._raise_if_cancelled(cancel_event, TranscriptionState.QUEUED)
        job = await self._call(
            "POST",
            "/transcript",
            TranscriptionJob,
            json={"audio_url": upload.upload_url},
        )
        logger.info("Transcription job created", job_id=job.id, status=str(job.status))

        while job.status.is_pending:
            self._raise_if_cancelled(cancel_event, job.status, job.id)

            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.warning(
                    "Transcription timed out",
                    job_id=job.id,
                    state=str(TranscriptionState.TIMED_OUT),
                    timeout_seconds=self.timeout,
                )
                raise TranscriptionTimeout(job.id, self.timeout)

            await self._wait(min(self.poll_interval, remaining), cancel_event)
            self._raise_if_cancelled(cancel_event, job.status, job.id)

            previous = job.status
            job = await self._call("GET", f"/transcript/{job.id}", TranscriptionJob)
            if job.status != previous:
                logger.info(
                    "Transcription status changed",
                    job_id=job.id,
                    status=str(job.status),
                )

        if job.status is TranscriptionState.ERROR:
            logger.error("Transcription failed", job_id=job.id, error=job.error)
            raise TranscriptionFailed(job.error or "Transcription failed", job_id=job.id)

        if job.status is not TranscriptionState.COMPLETED:
            raise TranscriptionFailed(
                f"Unexpected transcription status: {job.status}", job_id=job.id
            )

        logger.info(
            "Transcription completed",
            job_id=job.id,
            length=len(job.text or ""),
        )
        return job.text or ""

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _call(
        self,
        method: str,
        path: str,
        model_class: type[BaseModel],
        json: Any = None,
    ) -> Any:
        """Send one request to the service and validate the response body."""
        try:
            response = await self.client.request(method, path, json=json)
        except httpx.TransportError as exc:
            logger.error(
                "Transcription service unreachable",
                path=path,
                error=repr(exc),
            )
            raise NetworkError(
                str(exc) or type(exc).__name__,
                details={"service": "transcription", "path": path},
            ) from exc

        if response.is_error:
            raise TranscriptionFailed(
                f"Transcription service returned HTTP {response.status_code}",
                details={"status_code": response.status_code, "path": path},
            )

        try:
            return model_class.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise TranscriptionFailed(
                "Malformed response from transcription service",
                details={"path": path},
            ) from exc

    @staticmethod
    async def _wait(seconds: float, cancel_event: asyncio.Event | None) -> None:
        """Sleep for ``seconds``, waking early if the cancel event is set."""
        if cancel_event is None:
            await asyncio.sleep(seconds)
            return
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    @staticmethod
    def _raise_if_cancelled(
        cancel_event: asyncio.Event | None,
        state: TranscriptionState,
        job_id: str | None = None,
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.info(
                "Transcription cancelled",
                job_id=job_id,
                from_state=str(state),
                state=str(TranscriptionState.CANCELLED),
            )
            raise OperationCancelled("Transcription", details={"job_id": job_id})
