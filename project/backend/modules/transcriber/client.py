"""
Audio transcription via AssemblyAI.

Upload → request transcript → poll with a fixed delay and attempt cap →
download WebVTT captions.
"""
import asyncio
from typing import Optional

import httpx

from shared.config import settings
from shared.errors import (
    RetryableError,
    TranscriptionError,
    TranscriptionFailedError,
    TranscriptionTimeoutError,
)
from shared.logging import get_logger
from shared.models.collaborators import TranscriptStatus
from shared.retry import retry_with_backoff

logger = get_logger("transcriber.client")


class TranscriptionClient:
    """Submit-and-poll client for the transcription provider."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        poll_attempts: Optional[int] = None,
        poll_interval: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 60.0
    ):
        self.api_key = api_key if api_key is not None else settings.assemblyai_api_key
        self.base_url = base_url or settings.assemblyai_base_url
        self.poll_attempts = poll_attempts or settings.transcript_poll_attempts
        self.poll_interval = poll_interval if poll_interval is not None else settings.transcript_poll_interval
        self._transport = transport
        self._timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @property
    def headers(self) -> dict:
        return {"Authorization": self.api_key}

    @retry_with_backoff(max_attempts=3, base_delay=1)
    async def upload(self, client: httpx.AsyncClient, audio_bytes: bytes) -> str:
        """Upload raw audio and return the provider's upload URL."""
        try:
            response = await client.post(
                f"{self.base_url}/upload",
                content=audio_bytes,
                headers={**self.headers, "Content-Type": "application/octet-stream"}
            )
        except httpx.TransportError as e:
            raise RetryableError(f"Audio upload connection failed: {e}") from e

        if response.is_error:
            logger.error("Transcription upload error", extra={"status_code": response.status_code, "body": response.text})
            raise TranscriptionError("Audio upload failed")
        return response.json()["upload_url"]

    async def request_transcript(self, client: httpx.AsyncClient, upload_url: str) -> str:
        """Start a transcription job and return its id."""
        response = await client.post(
            f"{self.base_url}/transcript",
            json={
                "audio_url": upload_url,
                "language_code": "en",
                "format_text": True,
                "speaker_labels": False,
            },
            headers=self.headers
        )
        if response.is_error:
            logger.error("Transcript request error", extra={"status_code": response.status_code, "body": response.text})
            raise TranscriptionError("Transcription request failed")
        return response.json()["id"]

    async def get_status(self, client: httpx.AsyncClient, transcript_id: str) -> TranscriptStatus:
        response = await client.get(f"{self.base_url}/transcript/{transcript_id}", headers=self.headers)
        if response.is_error:
            raise TranscriptionError(f"Transcript status check failed ({response.status_code})")
        return TranscriptStatus.model_validate(response.json())

    async def wait_for_completion(self, client: httpx.AsyncClient, transcript_id: str) -> TranscriptStatus:
        """
        Poll until the transcript completes.

        Raises:
            TranscriptionFailedError: Provider reported status "error"
            TranscriptionTimeoutError: Attempts exhausted
        """
        for attempt in range(1, self.poll_attempts + 1):
            status = await self.get_status(client, transcript_id)
            if status.status == "completed":
                logger.info(
                    f"Transcript {transcript_id} completed after {attempt} polls",
                    extra={"transcript_id": transcript_id, "attempts": attempt}
                )
                return status
            if status.status == "error":
                raise TranscriptionFailedError(status.error or "Transcription failed")

            if attempt < self.poll_attempts:
                await asyncio.sleep(self.poll_interval)

        raise TranscriptionTimeoutError("Transcription timed out")

    async def fetch_vtt(self, client: httpx.AsyncClient, transcript_id: str) -> str:
        response = await client.get(f"{self.base_url}/transcript/{transcript_id}/vtt", headers=self.headers)
        if response.is_error:
            raise TranscriptionError(f"Caption download failed ({response.status_code})")
        return response.text

    async def transcribe(self, audio_bytes: bytes) -> str:
        """
        Transcribe audio to WebVTT captions.

        Raises:
            TranscriptionError: Not configured, provider failure, or timeout
        """
        if not self.configured:
            raise TranscriptionError("Transcription service not configured")

        async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
            try:
                upload_url = await self.upload(client, audio_bytes)
                transcript_id = await self.request_transcript(client, upload_url)
                logger.info(f"Submitted transcript {transcript_id}", extra={"transcript_id": transcript_id})
                await self.wait_for_completion(client, transcript_id)
                return await self.fetch_vtt(client, transcript_id)
            except RetryableError as e:
                raise TranscriptionError(str(e)) from e
            except (httpx.HTTPError, KeyError, ValueError) as e:
                # Malformed JSON and unexpected payloads surface as KeyError/ValueError
                logger.error(f"Transcription provider error: {e!r}")
                raise TranscriptionError("Transcription service error") from e
