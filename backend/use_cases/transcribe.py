"""TranscriptionDispatcher — validates input and routes to a provider adapter.

Size and format are checked against the provider's static capabilities before
any network call. Adapter exceptions propagate unchanged.
"""

import logging
from typing import Mapping, Optional

from domain.errors import FileTooLargeError, UnsupportedFormatError, UnsupportedProviderError
from domain.models import TranscriptionResult
from domain.providers import config_for
from ports.transcription import TranscriptionPort

logger = logging.getLogger(__name__)


def file_extension(file_name: str) -> Optional[str]:
    """Lower-cased text after the last ".", or None when there is no dot."""
    if "." not in file_name:
        return None
    return file_name.rsplit(".", 1)[-1].lower() or None


class TranscriptionDispatcher:
    def __init__(self, adapters: Mapping[str, TranscriptionPort]):
        self._adapters = dict(adapters)

    @property
    def providers(self) -> list[str]:
        return list(self._adapters)

    def validate(self, buffer: bytes, file_name: str, provider: str) -> None:
        if provider not in self._adapters:
            raise UnsupportedProviderError(provider)
        config = config_for(provider)

        if len(buffer) > config.max_file_size:
            raise FileTooLargeError(provider, config.max_file_size)

        ext = file_extension(file_name)
        if ext and ext not in config.supported_formats:
            raise UnsupportedFormatError(provider, ext, sorted(config.supported_formats))

    async def transcribe(
        self,
        buffer: bytes,
        file_name: str,
        provider: str,
        language: Optional[str] = None,
        diarization: bool = False,
    ) -> TranscriptionResult:
        self.validate(buffer, file_name, provider)
        logger.debug(f"Dispatching {file_name} to {provider} (language={language or 'en'})")
        return await self._adapters[provider].transcribe(
            buffer, file_name, language=language, diarization=diarization,
        )
