"""TranscriptionPort — abstract interface for speech-to-text providers."""

from abc import ABC, abstractmethod
from typing import Optional

from domain.models import TranscriptionResult


class TranscriptionPort(ABC):
    #: Provider identifier, e.g. "deepgram". Matches a key in PROVIDER_CONFIG.
    name: str = ""

    @abstractmethod
    async def transcribe(
        self,
        buffer: bytes,
        file_name: str,
        language: Optional[str] = None,
        diarization: bool = False,
    ) -> TranscriptionResult:
        """Transcribe an audio buffer. Timings in seconds, speakers as "Speaker {id}"."""
