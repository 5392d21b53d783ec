"""Tests for the analyze-call use case."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from domain.errors import AllProvidersFailedError, ValidationError
from fakes import VALID_FEEDBACK_JSON, FakeFeedbackBackend, FakeTranscriptionAdapter
from mappers import record_to_feedback
from use_cases.analyze_call import (
    AnalyzeCallRequest, AnalyzeCallUseCase, get_custom_prompt, save_custom_prompt,
)
from use_cases.distribution import DistributionController
from use_cases.generate_feedback import FeedbackGenerator
from use_cases.transcribe import TranscriptionDispatcher


@pytest.fixture
def backend():
    return FakeFeedbackBackend(content=VALID_FEEDBACK_JSON)


@pytest.fixture
def make_use_case(record_store, progress, backend):
    def make(adapters, audio_source=None):
        distribution = DistributionController(TranscriptionDispatcher(adapters))
        return AnalyzeCallUseCase(
            distribution=distribution,
            feedback=FeedbackGenerator(backend),
            records=record_store,
            progress=progress,
            audio_source=audio_source,
        )
    return make


class TestAnalyzeCall:

    @pytest.mark.asyncio
    async def test_full_flow(self, make_use_case, record_store, progress, backend, diarized_result):
        adapters = {
            "deepgram": FakeTranscriptionAdapter("deepgram", result=diarized_result),
            "assemblyai": FakeTranscriptionAdapter("assemblyai"),
        }
        use_case = make_use_case(adapters)

        result = await use_case.execute(AnalyzeCallRequest(
            user_id="user-1", file_name="call.mp3", audio=b"audio",
        ))

        assert result.provider == "deepgram"
        assert result.used_fallback is False
        assert result.transcription_text == "[Speaker 0]: Hi there.\n\n[Speaker 1]: Hello."
        assert result.feedback.overall_score == 8
        assert result.model == "fake-model"
        assert progress.stages == ["transcribing", "analyzing", "saving"]
        assert progress.finished == [None]
        assert backend.calls[0][1].endswith(result.transcription_text)

        audio_files = record_store.query("audio_files", "user-1")
        transcriptions = record_store.query("transcriptions", "user-1")
        feedback = record_store.query("feedback", "user-1")
        assert audio_files[0]["id"] == result.audio_file_id
        assert transcriptions[0]["provider"] == "deepgram"
        assert transcriptions[0]["status"] == "completed"
        assert transcriptions[0]["text"] == result.transcription_text
        assert feedback[0]["transcription_id"] == result.transcription_id
        assert feedback[0]["feedback"]["overallScore"] == 8
        assert record_to_feedback(feedback[0]) == result.feedback

    @pytest.mark.asyncio
    async def test_existing_audio_file_id_is_reused(self, make_use_case, record_store):
        use_case = make_use_case({
            "deepgram": FakeTranscriptionAdapter("deepgram"),
            "assemblyai": FakeTranscriptionAdapter("assemblyai"),
        })

        result = await use_case.execute(AnalyzeCallRequest(
            user_id="user-1", file_name="call.mp3", audio=b"audio", audio_file_id="af-9",
        ))

        assert result.audio_file_id == "af-9"
        assert record_store.query("audio_files", "user-1") == []

    @pytest.mark.asyncio
    async def test_saved_prompt_used_when_none_supplied(self, make_use_case, record_store, backend):
        save_custom_prompt(record_store, "user-1", "Grade the discovery questions.")
        use_case = make_use_case({
            "deepgram": FakeTranscriptionAdapter("deepgram"),
            "assemblyai": FakeTranscriptionAdapter("assemblyai"),
        })

        await use_case.execute(AnalyzeCallRequest(user_id="user-1", file_name="call.mp3", audio=b"a"))

        assert backend.calls[0][0] == "Grade the discovery questions."

    @pytest.mark.asyncio
    async def test_request_prompt_overrides_saved(self, make_use_case, record_store, backend):
        save_custom_prompt(record_store, "user-1", "Saved prompt")
        use_case = make_use_case({
            "deepgram": FakeTranscriptionAdapter("deepgram"),
            "assemblyai": FakeTranscriptionAdapter("assemblyai"),
        })

        await use_case.execute(AnalyzeCallRequest(
            user_id="user-1", file_name="call.mp3", audio=b"a", custom_prompt="Request prompt",
        ))

        assert backend.calls[0][0] == "Request prompt"

    @pytest.mark.asyncio
    async def test_fetches_audio_by_url(self, make_use_case, progress):
        source = AsyncMock()
        source.fetch.return_value = b"downloaded"
        deepgram = FakeTranscriptionAdapter("deepgram")
        use_case = make_use_case(
            {"deepgram": deepgram, "assemblyai": FakeTranscriptionAdapter("assemblyai")},
            audio_source=source,
        )

        await use_case.execute(AnalyzeCallRequest(
            user_id="user-1", file_name="call.mp3", file_url="https://x.convex.cloud/f/1",
        ))

        source.fetch.assert_awaited_once_with("https://x.convex.cloud/f/1")
        assert deepgram.calls[0]["buffer"] == b"downloaded"
        assert progress.stages[0] == "fetching"

    @pytest.mark.asyncio
    async def test_requires_audio_or_url(self, make_use_case):
        use_case = make_use_case({
            "deepgram": FakeTranscriptionAdapter("deepgram"),
            "assemblyai": FakeTranscriptionAdapter("assemblyai"),
        })
        with pytest.raises(ValidationError):
            await use_case.execute(AnalyzeCallRequest(user_id="user-1", file_name="call.mp3"))

    @pytest.mark.asyncio
    async def test_transcription_failure_skips_feedback(
        self, make_use_case, backend, failing_adapter, record_store, progress,
    ):
        use_case = make_use_case({
            "deepgram": failing_adapter("deepgram"),
            "assemblyai": failing_adapter("assemblyai"),
        })

        with pytest.raises(AllProvidersFailedError):
            await use_case.execute(AnalyzeCallRequest(user_id="user-1", file_name="call.mp3", audio=b"a"))

        assert backend.calls == []
        assert record_store.query("feedback", "user-1") == []
        failed = record_store.query("transcriptions", "user-1")[0]
        assert failed["status"] == "failed"
        assert failed["error"].startswith("All transcription providers failed.")
        assert progress.finished[0].startswith("All transcription providers failed.")

    @pytest.mark.asyncio
    async def test_cancelled_transcription_marked_failed(self, make_use_case, record_store, progress):
        use_case = make_use_case({
            "deepgram": FakeTranscriptionAdapter("deepgram", error=asyncio.CancelledError()),
            "assemblyai": FakeTranscriptionAdapter("assemblyai"),
        })

        with pytest.raises(asyncio.CancelledError):
            await use_case.execute(AnalyzeCallRequest(user_id="user-1", file_name="call.mp3", audio=b"a"))

        record = record_store.query("transcriptions", "user-1")[0]
        assert record["status"] == "failed"
        assert record["error"] == "CancelledError"
        assert progress.finished == ["CancelledError"]


class TestPromptSettings:

    def test_no_settings(self, record_store):
        assert get_custom_prompt(record_store, "user-1") is None

    def test_save_then_update(self, record_store):
        save_custom_prompt(record_store, "user-1", "first")
        save_custom_prompt(record_store, "user-1", "  second  ")
        assert get_custom_prompt(record_store, "user-1") == "second"
        assert len(record_store.query("settings", "user-1")) == 1

    def test_blank_clears(self, record_store):
        save_custom_prompt(record_store, "user-1", "first")
        save_custom_prompt(record_store, "user-1", "   ")
        assert get_custom_prompt(record_store, "user-1") is None
