"""Shared fixtures for unit tests."""

import pytest

from adapters.local.memory_record_store import InMemoryRecordStore
from domain.errors import ProviderError
from domain.models import TranscriptionResult, TranscriptSegment
from fakes import FakeTranscriptionAdapter, RecordingProgress
from use_cases.transcribe import TranscriptionDispatcher


@pytest.fixture
def diarized_result():
    return TranscriptionResult(
        text="Hi there. Hello.",
        segments=[
            TranscriptSegment(start=0.0, end=1.2, text="Hi there.", speaker="Speaker 0"),
            TranscriptSegment(start=1.4, end=2.0, text="Hello.", speaker="Speaker 1"),
        ],
    )


@pytest.fixture
def deepgram_fake():
    return FakeTranscriptionAdapter("deepgram")


@pytest.fixture
def assemblyai_fake():
    return FakeTranscriptionAdapter("assemblyai")


@pytest.fixture
def dispatcher(deepgram_fake, assemblyai_fake):
    return TranscriptionDispatcher({"deepgram": deepgram_fake, "assemblyai": assemblyai_fake})


@pytest.fixture
def failing_adapter():
    def make(name: str, message: str = "service unavailable"):
        return FakeTranscriptionAdapter(name, error=ProviderError(name, message))
    return make


@pytest.fixture
def record_store():
    return InMemoryRecordStore()


@pytest.fixture
def progress():
    return RecordingProgress()
