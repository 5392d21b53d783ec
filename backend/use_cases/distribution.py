"""DistributionController — round-robin provider selection with one fallback.

Every call picks the next provider in a fixed rotation as primary. If the
primary fails, the call is retried exactly once against the alternate
provider. Both failing raises AllProvidersFailedError carrying both messages.
There is no circuit breaker: a failing provider still gets its next turn.
"""

import asyncio
import logging
import threading
from typing import Optional, Sequence

from domain.errors import AllProvidersFailedError, MissingCredentialError, ProviderError
from domain.models import DistributionResult, TranscriptionResult
from domain.providers import PROVIDERS
from use_cases.transcribe import TranscriptionDispatcher

logger = logging.getLogger(__name__)


class RoundRobinCursor:
    """Shared rotation index. advance() reads and increments atomically."""

    def __init__(self, size: int):
        if size < 1:
            raise ValueError("RoundRobinCursor needs at least one provider")
        self._size = size
        self._position = 0
        self._lock = threading.Lock()

    @property
    def position(self) -> int:
        return self._position

    def advance(self) -> int:
        with self._lock:
            current = self._position
            self._position = (current + 1) % self._size
            return current

    def reset(self) -> None:
        with self._lock:
            self._position = 0


class DistributionController:
    def __init__(
        self,
        dispatcher: TranscriptionDispatcher,
        providers: Optional[Sequence[str]] = None,
        attempt_timeout: Optional[float] = None,
    ):
        self._dispatcher = dispatcher
        self._attempt_timeout = attempt_timeout
        self._providers = tuple(providers or PROVIDERS)
        if len(set(self._providers)) < 2:
            raise ValueError("Distribution needs at least two distinct providers")
        self._cursor = RoundRobinCursor(len(self._providers))

    @property
    def providers(self) -> tuple[str, ...]:
        return self._providers

    @property
    def cursor_position(self) -> int:
        return self._cursor.position

    def reset(self) -> None:
        self._cursor.reset()

    def next_provider(self) -> str:
        return self._providers[self._cursor.advance()]

    def alternate_provider(self, primary: str) -> str:
        """Next distinct provider in the ring after primary."""
        start = self._providers.index(primary)
        for offset in range(1, len(self._providers)):
            candidate = self._providers[(start + offset) % len(self._providers)]
            if candidate != primary:
                return candidate
        raise ValueError(f"No alternate provider for {primary}")

    async def transcribe_with_distribution(
        self,
        buffer: bytes,
        file_name: str,
        language: Optional[str] = None,
    ) -> DistributionResult:
        primary = self.next_provider()
        fallback = self.alternate_provider(primary)

        try:
            result = await self._attempt(buffer, file_name, primary, language)
            return DistributionResult(result=result, provider=primary, used_fallback=False)
        except Exception as primary_error:
            _log_failure("Primary", primary, primary_error)

            try:
                result = await self._attempt(buffer, file_name, fallback, language)
            except Exception as fallback_error:
                _log_failure("Fallback", fallback, fallback_error)
                raise AllProvidersFailedError(
                    {primary: primary_error, fallback: fallback_error}, primary=primary,
                ) from fallback_error

            logger.info(f"Fallback provider {fallback} succeeded after {primary} failed")
            return DistributionResult(result=result, provider=fallback, used_fallback=True)

    async def _attempt(
        self, buffer: bytes, file_name: str, provider: str, language: Optional[str],
    ) -> TranscriptionResult:
        # Speaker labels are always requested on this path.
        call = self._dispatcher.transcribe(
            buffer, file_name, provider=provider, language=language, diarization=True,
        )
        if self._attempt_timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, timeout=self._attempt_timeout)
        except asyncio.TimeoutError as e:
            raise ProviderError(
                provider, f"{provider} timed out after {self._attempt_timeout:g}s",
            ) from e


def _log_failure(role: str, provider: str, error: Exception) -> None:
    if isinstance(error, MissingCredentialError):
        logger.error(f"{role} provider {provider} is not configured: {error}")
    else:
        logger.error(f"{role} provider {provider} failed: {error}")
