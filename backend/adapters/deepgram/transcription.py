"""DeepgramTranscriptionAdapter — single-call prerecorded transcription.

The raw audio buffer is posted to /v1/listen and the response is mapped into
the canonical TranscriptionResult. Deepgram already reports timings in seconds
and numbers speakers (0, 1, ...) when diarization is requested.
"""

import logging
import mimetypes
from typing import Any, Optional

import httpx

from domain.errors import MissingCredentialError, ProviderError
from domain.models import TranscriptionResult, TranscriptSegment, TranscriptWord
from domain.providers import DEEPGRAM
from ports.transcription import TranscriptionPort

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.deepgram.com"
DEFAULT_MODEL = "nova-3"


def _speaker_label(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return f"Speaker {value}"


class DeepgramTranscriptionAdapter(TranscriptionPort):
    name = DEEPGRAM

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def transcribe(
        self,
        buffer: bytes,
        file_name: str,
        language: Optional[str] = None,
        diarization: bool = False,
    ) -> TranscriptionResult:
        if not self._api_key:
            raise MissingCredentialError(self.name, "DEEPGRAM_API_KEY")

        params = {
            "model": self._model,
            "language": language or "en",
            "smart_format": "true",
            "diarize": "true" if diarization else "false",
            "punctuate": "true",
            "utterances": "true",
        }
        content_type = mimetypes.guess_type(file_name)[0] or "application/octet-stream"
        headers = {
            "Authorization": f"Token {self._api_key}",
            "Content-Type": content_type,
        }

        logger.info(f"Deepgram: transcribing {file_name} ({len(buffer)} bytes, diarize={diarization})")
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self._base_url}/v1/listen",
                    params=params,
                    content=buffer,
                    headers=headers,
                )
        except httpx.TimeoutException as e:
            raise ProviderError(self.name, f"Deepgram error: request timed out ({e})") from e
        except httpx.RequestError as e:
            raise ProviderError(self.name, f"Deepgram error: {e}") from e

        payload = _json_or_none(response)
        if response.status_code >= 400:
            message = _error_message(payload) or response.text or f"HTTP {response.status_code}"
            raise ProviderError(self.name, f"Deepgram error: {message}")
        if payload is None:
            raise ProviderError(self.name, "Deepgram error: response was not valid JSON")

        return self._to_result(payload)

    def _to_result(self, payload: dict) -> TranscriptionResult:
        results = payload.get("results") or {}
        channels = results.get("channels") or []
        alternatives = channels[0].get("alternatives") if channels else None
        if not alternatives:
            raise ProviderError(self.name, "No transcription results from Deepgram")
        best = alternatives[0]

        words = None
        if best.get("words") is not None:
            words = [
                TranscriptWord(
                    word=w.get("word", ""),
                    start=float(w["start"]),
                    end=float(w["end"]),
                    confidence=w.get("confidence"),
                    speaker=_speaker_label(w.get("speaker")),
                )
                for w in best["words"]
            ]

        segments = None
        if results.get("utterances") is not None:
            segments = [
                TranscriptSegment(
                    start=float(u["start"]),
                    end=float(u["end"]),
                    text=u.get("transcript", ""),
                    speaker=_speaker_label(u.get("speaker")),
                )
                for u in results["utterances"]
            ]

        text = best.get("transcript") or ""
        logger.info(
            f"Deepgram: {len(text)} characters, "
            f"{len(segments or [])} utterances, {len(words or [])} words"
        )
        return TranscriptionResult(text=text, segments=segments, words=words)


def _json_or_none(response: httpx.Response) -> Optional[dict]:
    try:
        data = response.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def _error_message(payload: Optional[dict]) -> Optional[str]:
    if not payload:
        return None
    for key in ("err_msg", "message", "error", "reason"):
        if payload.get(key):
            return str(payload[key])
    return None
