"""AudioSourcePort — abstract interface for fetching stored audio blobs."""

from abc import ABC, abstractmethod


class AudioSourcePort(ABC):
    @abstractmethod
    async def fetch(self, url: str) -> bytes:
        """Download the audio blob at url and return its bytes."""
