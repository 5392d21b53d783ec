"""Tests for the AssemblyAI adapter against a mocked HTTP transport."""

import json

import httpx
import pytest

from adapters.assemblyai.transcription import AssemblyAITranscriptionAdapter
from domain.errors import MissingCredentialError, ProviderError

COMPLETED = {
    "id": "tx-1",
    "status": "completed",
    "text": "Hi there. Hello.",
    "words": [
        {"text": "Hi", "start": 100, "end": 300, "confidence": 0.97, "speaker": "A"},
        {"text": "there.", "start": 300, "end": 600, "confidence": 0.96, "speaker": "A"},
        {"text": "Hello.", "start": 1400, "end": 1900, "confidence": 0.91, "speaker": "B"},
    ],
    "utterances": [
        {"start": 100, "end": 600, "text": "Hi there.", "speaker": "A"},
        {"start": 1400, "end": 1900, "text": "Hello.", "speaker": "B"},
    ],
}


class FakeAssemblyAI:
    """Simulates upload, submit and a transcript that needs polling."""

    def __init__(self, final=COMPLETED, pending_polls=1):
        self.final = final
        self.pending_polls = pending_polls
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        path = request.url.path
        if path == "/v2/upload":
            return httpx.Response(200, json={"upload_url": "https://cdn.assemblyai.com/upload/abc"})
        if path == "/v2/transcript":
            return httpx.Response(200, json={"id": "tx-1", "status": "queued"})
        if path == "/v2/transcript/tx-1":
            if self.pending_polls > 0:
                self.pending_polls -= 1
                return httpx.Response(200, json={"id": "tx-1", "status": "processing"})
            return httpx.Response(200, json=self.final)
        return httpx.Response(404, json={"error": "not found"})


def make_adapter(handler, api_key="aai-key", **kwargs):
    return AssemblyAITranscriptionAdapter(
        api_key=api_key, poll_interval=0, transport=httpx.MockTransport(handler), **kwargs,
    )


class TestAssemblyAIAdapter:

    @pytest.mark.asyncio
    async def test_upload_submit_poll_and_normalize(self):
        fake = FakeAssemblyAI()

        result = await make_adapter(fake).transcribe(b"audio", "call.m4a", language="en", diarization=True)

        assert [r.url.path for r in fake.requests] == [
            "/v2/upload", "/v2/transcript", "/v2/transcript/tx-1", "/v2/transcript/tx-1",
        ]
        assert fake.requests[0].content == b"audio"
        assert fake.requests[0].headers["authorization"] == "aai-key"
        submitted = json.loads(fake.requests[1].content)
        assert submitted == {
            "audio_url": "https://cdn.assemblyai.com/upload/abc",
            "language_code": "en",
            "speaker_labels": True,
        }

        assert result.text == "Hi there. Hello."
        assert result.segments[0].start == pytest.approx(0.1)
        assert result.segments[0].end == pytest.approx(0.6)
        assert result.segments[1].speaker == "Speaker B"
        assert result.words[2].word == "Hello."
        assert result.words[2].start == pytest.approx(1.4)
        assert result.words[0].speaker == "Speaker A"

    @pytest.mark.asyncio
    async def test_defaults_language_and_diarization(self):
        fake = FakeAssemblyAI(pending_polls=0)

        await make_adapter(fake).transcribe(b"audio", "call.mp3")

        submitted = json.loads(fake.requests[1].content)
        assert submitted["language_code"] == "en"
        assert submitted["speaker_labels"] is False

    @pytest.mark.asyncio
    async def test_no_speakers_leave_label_unset(self):
        final = dict(COMPLETED, utterances=None, words=[
            {"text": "Hi", "start": 0, "end": 250, "confidence": 0.9, "speaker": None},
        ])
        result = await make_adapter(FakeAssemblyAI(final=final, pending_polls=0)).transcribe(b"a", "a.mp3")

        assert result.segments is None
        assert result.words[0].speaker is None
        assert result.words[0].end == pytest.approx(0.25)

    @pytest.mark.asyncio
    async def test_error_status(self):
        final = {"id": "tx-1", "status": "error", "error": "Audio file could not be decoded"}

        with pytest.raises(ProviderError) as exc_info:
            await make_adapter(FakeAssemblyAI(final=final)).transcribe(b"a", "a.mp3")

        assert str(exc_info.value) == "AssemblyAI error: Audio file could not be decoded"
        assert exc_info.value.provider == "assemblyai"

    @pytest.mark.asyncio
    async def test_http_error_on_upload(self):
        def handler(request):
            return httpx.Response(401, json={"error": "Authentication error, API token missing/invalid"})

        with pytest.raises(ProviderError, match="Authentication error"):
            await make_adapter(handler).transcribe(b"a", "a.mp3")

    @pytest.mark.asyncio
    async def test_gives_up_after_max_wait(self):
        fake = FakeAssemblyAI(pending_polls=10_000)

        with pytest.raises(ProviderError, match="not ready"):
            await make_adapter(fake, max_wait=0).transcribe(b"a", "a.mp3")

    @pytest.mark.asyncio
    async def test_connection_error_is_provider_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ProviderError, match="connection refused"):
            await make_adapter(handler).transcribe(b"a", "a.mp3")

    @pytest.mark.asyncio
    async def test_missing_credential(self):
        fake = FakeAssemblyAI()
        with pytest.raises(MissingCredentialError, match="ASSEMBLYAI_API_KEY"):
            await make_adapter(fake, api_key="").transcribe(b"a", "a.mp3")
        assert fake.requests == []
