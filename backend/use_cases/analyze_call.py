"""AnalyzeCallUseCase — transcribe a sales call and generate coaching feedback.

Accepts all ports via dependency injection: audio source, distribution
controller, feedback generator, record store, and progress reporter.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from domain.errors import ValidationError
from domain.models import SalesFeedback
from mappers import feedback_to_record
from ports.audio_source import AudioSourcePort
from ports.progress import ProgressPort
from ports.record_store import RecordStorePort
from post_processing import format_transcription_text
from use_cases.distribution import DistributionController
from use_cases.generate_feedback import FeedbackGenerator

logger = logging.getLogger(__name__)

SETTINGS_TABLE = "settings"
TRANSCRIPTIONS_TABLE = "transcriptions"

STATUS_PROCESSING = "processing"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"


@dataclass
class AnalyzeCallRequest:
    """All parameters for a call analysis. Either audio or file_url must be set."""
    user_id: str
    file_name: str
    audio: Optional[bytes] = None
    file_url: Optional[str] = None
    audio_file_id: Optional[str] = None
    language: Optional[str] = None
    custom_prompt: Optional[str] = None


@dataclass
class AnalyzeCallResult:
    transcription_text: str
    provider: str
    used_fallback: bool
    feedback: SalesFeedback
    model: str
    audio_file_id: str
    file_name: str
    transcription_id: str
    feedback_id: str


def get_custom_prompt(store: RecordStorePort, user_id: str) -> Optional[str]:
    settings = store.query(SETTINGS_TABLE, user_id)
    if not settings:
        return None
    return settings[0].get("custom_prompt") or None


def save_custom_prompt(store: RecordStorePort, user_id: str, prompt: Optional[str]) -> None:
    prompt = prompt.strip() if prompt else None
    settings = store.query(SETTINGS_TABLE, user_id)
    if settings:
        store.patch(SETTINGS_TABLE, user_id, settings[0]["id"], {"custom_prompt": prompt})
    else:
        store.insert(SETTINGS_TABLE, user_id, {"custom_prompt": prompt})


class AnalyzeCallUseCase:
    def __init__(
        self,
        distribution: DistributionController,
        feedback: FeedbackGenerator,
        records: RecordStorePort,
        progress: ProgressPort,
        audio_source: Optional[AudioSourcePort] = None,
    ):
        self._distribution = distribution
        self._feedback = feedback
        self._records = records
        self._progress = progress
        self._audio_source = audio_source

    async def execute(self, req: AnalyzeCallRequest) -> AnalyzeCallResult:
        job_id = uuid.uuid4().hex[:12]
        try:
            result = await self._run(job_id, req)
        except BaseException as e:
            self._progress.finish(job_id, error=str(e) or type(e).__name__)
            raise
        self._progress.finish(job_id)
        return result

    async def _run(self, job_id: str, req: AnalyzeCallRequest) -> AnalyzeCallResult:
        # 1. Audio bytes
        audio = req.audio
        if audio is None:
            if not req.file_url:
                raise ValidationError("Missing required fields: audio file or file_url")
            if self._audio_source is None:
                raise ValidationError("Fetching audio by URL is not configured")
            self._progress.report(job_id, "fetching", detail=req.file_name)
            audio = await self._audio_source.fetch(req.file_url)

        audio_file_id = req.audio_file_id
        if not audio_file_id:
            audio_file_id = self._records.insert("audio_files", req.user_id, {
                "file_name": req.file_name,
                "file_size": len(audio),
                "file_url": req.file_url,
            })

        # 2. Transcription with round-robin distribution and fallback.
        # Recorded as processing first, then patched to completed or failed.
        self._progress.report(job_id, "transcribing")
        transcription_id = self._records.insert(TRANSCRIPTIONS_TABLE, req.user_id, {
            "audio_file_id": audio_file_id,
            "file_name": req.file_name,
            "text": "",
            "provider": None,
            "diarization_enabled": True,
            "status": STATUS_PROCESSING,
            "language": req.language or "en",
        })
        try:
            distributed = await self._distribution.transcribe_with_distribution(
                audio, req.file_name, language=req.language,
            )
        except BaseException as e:
            # cancellation included, so the record never stays processing
            self._records.patch(TRANSCRIPTIONS_TABLE, req.user_id, transcription_id, {
                "status": STATUS_FAILED,
                "error": str(e) or type(e).__name__,
            })
            raise

        text = format_transcription_text(distributed.result)
        self._records.patch(TRANSCRIPTIONS_TABLE, req.user_id, transcription_id, {
            "text": text,
            "provider": distributed.provider,
            "used_fallback": distributed.used_fallback,
            "status": STATUS_COMPLETED,
        })
        if distributed.used_fallback:
            logger.warning(f"[{job_id}] transcribed by fallback provider {distributed.provider}")

        # 3. Feedback; the user's saved prompt applies when none was supplied
        self._progress.report(job_id, "analyzing", detail=f"provider={distributed.provider}")
        custom_prompt = req.custom_prompt
        if not (custom_prompt and custom_prompt.strip()):
            custom_prompt = get_custom_prompt(self._records, req.user_id)
        feedback = await self._feedback.generate(text, custom_prompt)

        # 4. Persist
        self._progress.report(job_id, "saving")
        feedback_id = self._records.insert("feedback", req.user_id, dict(
            feedback_to_record(feedback),
            audio_file_id=audio_file_id,
            transcription_id=transcription_id,
            file_name=req.file_name,
            model=self._feedback.model_name(),
        ))

        return AnalyzeCallResult(
            transcription_text=text,
            provider=distributed.provider,
            used_fallback=distributed.used_fallback,
            feedback=feedback,
            model=self._feedback.model_name(),
            audio_file_id=audio_file_id,
            file_name=req.file_name,
            transcription_id=transcription_id,
            feedback_id=feedback_id,
        )
