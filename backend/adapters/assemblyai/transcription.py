"""AssemblyAITranscriptionAdapter — upload, submit, then poll until done.

AssemblyAI reports timings in milliseconds and labels speakers with letters
("A", "B", ...). Both are normalized here so the result is indistinguishable
from any other provider's.
"""

import asyncio
import logging
import time
from typing import Any, Optional

import httpx

from domain.errors import MissingCredentialError, ProviderError
from domain.models import TranscriptionResult, TranscriptSegment, TranscriptWord
from domain.providers import ASSEMBLYAI
from ports.transcription import TranscriptionPort

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.assemblyai.com"
DEFAULT_POLL_INTERVAL = 3.0
DEFAULT_MAX_WAIT = 600.0


def _seconds(ms: Any) -> float:
    return float(ms) / 1000


def _speaker_label(value: Any) -> Optional[str]:
    return f"Speaker {value}" if value else None


class AssemblyAITranscriptionAdapter(TranscriptionPort):
    name = ASSEMBLYAI

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 120.0,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_wait: float = DEFAULT_MAX_WAIT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._poll_interval = poll_interval
        self._max_wait = max_wait
        self._transport = transport

    async def transcribe(
        self,
        buffer: bytes,
        file_name: str,
        language: Optional[str] = None,
        diarization: bool = False,
    ) -> TranscriptionResult:
        if not self._api_key:
            raise MissingCredentialError(self.name, "ASSEMBLYAI_API_KEY")

        headers = {"Authorization": self._api_key}
        logger.info(f"AssemblyAI: uploading {file_name} ({len(buffer)} bytes)")
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                headers=headers,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                upload = await self._request(
                    client, "POST", "/v2/upload",
                    content=buffer,
                    headers={"Content-Type": "application/octet-stream"},
                )
                upload_url = upload.get("upload_url")
                if not upload_url:
                    raise ProviderError(self.name, "AssemblyAI error: upload returned no URL")

                submitted = await self._request(
                    client, "POST", "/v2/transcript",
                    json={
                        "audio_url": upload_url,
                        "language_code": language or "en",
                        "speaker_labels": diarization,
                    },
                )
                transcript = await self._poll(client, submitted)
        except httpx.TimeoutException as e:
            raise ProviderError(self.name, f"AssemblyAI error: request timed out ({e})") from e
        except httpx.RequestError as e:
            raise ProviderError(self.name, f"AssemblyAI error: {e}") from e

        return self._to_result(transcript)

    async def _poll(self, client: httpx.AsyncClient, transcript: dict) -> dict:
        transcript_id = transcript.get("id")
        deadline = time.monotonic() + self._max_wait
        while True:
            status = transcript.get("status")
            if status == "completed":
                return transcript
            if status == "error":
                raise ProviderError(self.name, f"AssemblyAI error: {transcript.get('error')}")
            if not transcript_id:
                raise ProviderError(self.name, "AssemblyAI error: transcript has no id")
            if time.monotonic() >= deadline:
                raise ProviderError(
                    self.name,
                    f"AssemblyAI error: transcript {transcript_id} not ready after {self._max_wait:.0f}s",
                )
            logger.debug(f"AssemblyAI: transcript {transcript_id} is {status}")
            await asyncio.sleep(self._poll_interval)
            transcript = await self._request(client, "GET", f"/v2/transcript/{transcript_id}")

    async def _request(self, client: httpx.AsyncClient, method: str, url: str, **kwargs) -> dict:
        response = await client.request(method, url, **kwargs)
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if response.status_code >= 400:
            message = None
            if isinstance(payload, dict):
                message = payload.get("error") or payload.get("message")
            raise ProviderError(
                self.name,
                f"AssemblyAI error: {message or response.text or f'HTTP {response.status_code}'}",
            )
        if not isinstance(payload, dict):
            raise ProviderError(self.name, "AssemblyAI error: response was not valid JSON")
        return payload

    def _to_result(self, transcript: dict) -> TranscriptionResult:
        words = None
        if transcript.get("words") is not None:
            words = [
                TranscriptWord(
                    word=w.get("text", ""),
                    start=_seconds(w["start"]),
                    end=_seconds(w["end"]),
                    confidence=w.get("confidence"),
                    speaker=_speaker_label(w.get("speaker")),
                )
                for w in transcript["words"]
            ]

        segments = None
        if transcript.get("utterances") is not None:
            segments = [
                TranscriptSegment(
                    start=_seconds(u["start"]),
                    end=_seconds(u["end"]),
                    text=u.get("text", ""),
                    speaker=_speaker_label(u.get("speaker")),
                )
                for u in transcript["utterances"]
            ]

        text = transcript.get("text") or ""
        logger.info(
            f"AssemblyAI: {len(text)} characters, "
            f"{len(segments or [])} utterances, {len(words or [])} words"
        )
        return TranscriptionResult(text=text, segments=segments, words=words)
