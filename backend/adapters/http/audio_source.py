"""HttpAudioSource — downloads audio blobs from object storage.

Only hosts matching the configured storage suffixes are fetched, so a caller
cannot make the backend request arbitrary URLs.
"""

import logging
from typing import Iterable, Optional
from urllib.parse import urlparse

import httpx

from domain.errors import ProviderError, ValidationError
from ports.audio_source import AudioSourcePort

logger = logging.getLogger(__name__)

DEFAULT_HOST_SUFFIXES = (".convex.cloud",)


class HttpAudioSource(AudioSourcePort):
    def __init__(
        self,
        allowed_host_suffixes: Iterable[str] = DEFAULT_HOST_SUFFIXES,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._suffixes = tuple(s.lower() for s in allowed_host_suffixes if s)
        self._timeout = timeout
        self._transport = transport

    def is_allowed(self, url: str) -> bool:
        try:
            parsed = urlparse(url)
        except ValueError:
            return False
        host = (parsed.hostname or "").lower()
        if parsed.scheme not in ("http", "https") or not host:
            return False
        return any(host.endswith(suffix) for suffix in self._suffixes)

    async def fetch(self, url: str) -> bytes:
        if not self.is_allowed(url):
            logger.warning(f"Rejected audio URL outside storage hosts: {url}")
            raise ValidationError("Invalid file URL")

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(url)
        except httpx.RequestError as e:
            raise ProviderError("storage", f"Failed to fetch file from storage: {e}") from e

        if not response.is_success:
            logger.error(f"Storage returned HTTP {response.status_code} for {url}")
            raise ProviderError("storage", "Failed to fetch file from storage")

        logger.info(f"Fetched {len(response.content)} bytes from storage")
        return response.content
