"""FastAPI application for the Sales Call Coach backend.

create_app() wires adapters from config unless a Services bundle is passed in
(tests inject fakes that way).
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from auth import AuthMiddleware
from config import (
    Config, get_config, create_audio_source, create_feedback_adapter,
    create_infra_adapters, create_transcription_adapters,
)
from domain.errors import (
    AllProvidersFailedError, MissingCredentialError, ProviderError, SalesCoachError,
    UnparsableResponseError, UnsupportedProviderError, ValidationError,
)
from domain.providers import PROVIDERS, config_for
from mappers import (
    feedback_to_dto, provider_to_dto, record_to_feedback, segments_to_dtos, words_to_dtos,
)
from models import (
    AnalyzeCallResponse, ErrorResponse, FeedbackHistory, FeedbackRecord, HealthResponse, ProviderList,
    SettingsModel, TranscriptionResponse,
)
from ports.audio_source import AudioSourcePort
from ports.key_store import KeyStorePort
from ports.progress import ProgressPort
from ports.record_store import RecordStorePort
from post_processing import format_transcription_text
from use_cases.analyze_call import (
    AnalyzeCallRequest, AnalyzeCallUseCase, get_custom_prompt, save_custom_prompt,
)
from use_cases.distribution import DistributionController
from use_cases.generate_feedback import DEFAULT_SYSTEM_PROMPT, FeedbackGenerator
from use_cases.transcribe import TranscriptionDispatcher

logger = logging.getLogger(__name__)


@dataclass
class Services:
    dispatcher: TranscriptionDispatcher
    distribution: DistributionController
    feedback: FeedbackGenerator
    records: RecordStorePort
    progress: ProgressPort
    key_store: KeyStorePort
    audio_source: Optional[AudioSourcePort] = None
    default_language: str = "en"


def build_services(cfg: Config) -> Services:
    dispatcher = TranscriptionDispatcher(create_transcription_adapters(cfg))
    infra = create_infra_adapters(cfg)
    return Services(
        dispatcher=dispatcher,
        distribution=DistributionController(
            dispatcher, PROVIDERS, attempt_timeout=cfg.attempt_timeout,
        ),
        feedback=FeedbackGenerator(create_feedback_adapter(cfg)),
        records=infra["records"],
        progress=infra["progress"],
        key_store=infra["key_store"],
        audio_source=create_audio_source(cfg),
        default_language=cfg.default_language,
    )


def status_for(error: SalesCoachError) -> int:
    if isinstance(error, (ValidationError, UnsupportedProviderError)):
        return 400
    if isinstance(error, MissingCredentialError):
        return 503
    if isinstance(error, (ProviderError, AllProvidersFailedError, UnparsableResponseError)):
        return 502
    return 500


async def sales_coach_exception_handler(request: Request, exc: SalesCoachError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc}")
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=str(exc)).model_dump())


def create_app(services: Optional[Services] = None) -> FastAPI:
    cfg = get_config()
    services = services or build_services(cfg)

    app = FastAPI(title="Sales Call Coach", version="0.1.0")
    app.state.services = services
    app.add_middleware(AuthMiddleware, key_store=services.key_store)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(SalesCoachError, sales_coach_exception_handler)

    analyze = AnalyzeCallUseCase(
        distribution=services.distribution,
        feedback=services.feedback,
        records=services.records,
        progress=services.progress,
        audio_source=services.audio_source,
    )

    @app.get("/health", response_model=HealthResponse)
    async def health():
        credentials = cfg.provider_credentials()
        return HealthResponse(
            providers={p: credentials.get(p, False) for p in services.dispatcher.providers},
            feedback_model=services.feedback.model_name(),
        )

    @app.get("/v1/providers", response_model=ProviderList)
    async def list_providers():
        credentials = cfg.provider_credentials()
        return ProviderList(data=[
            provider_to_dto(p, config_for(p), credentials.get(p, False))
            for p in services.dispatcher.providers
        ])

    @app.post("/v1/audio/transcriptions", response_model=TranscriptionResponse)
    async def transcribe(
        file: UploadFile = File(...),
        provider: str = Form(...),
        language: Optional[str] = Form(None),
        diarization: bool = Form(False),
    ):
        buffer = await file.read()
        file_name = file.filename or "audio"
        result = await services.dispatcher.transcribe(
            buffer, file_name,
            provider=provider,
            language=language or services.default_language,
            diarization=diarization,
        )
        return TranscriptionResponse(
            text=format_transcription_text(result),
            raw_text=result.text,
            provider=provider,
            file_name=file_name,
            segments=segments_to_dtos(result),
            words=words_to_dtos(result),
        )

    @app.post("/v1/calls/analyze", response_model=AnalyzeCallResponse, response_model_by_alias=True)
    async def analyze_call(
        request: Request,
        file: Optional[UploadFile] = File(None),
        file_url: Optional[str] = Form(None),
        file_name: Optional[str] = Form(None),
        audio_file_id: Optional[str] = Form(None),
        language: Optional[str] = Form(None),
        custom_prompt: Optional[str] = Form(None),
    ):
        audio = await file.read() if file is not None else None
        name = file_name or (file.filename if file is not None else None)
        if not name or (audio is None and not file_url):
            raise ValidationError("Missing required fields: file or file_url, file_name")

        result = await analyze.execute(AnalyzeCallRequest(
            user_id=request.state.user_id,
            file_name=name,
            audio=audio,
            file_url=file_url,
            audio_file_id=audio_file_id,
            language=language or services.default_language,
            custom_prompt=custom_prompt,
        ))
        return AnalyzeCallResponse(
            transcription_text=result.transcription_text,
            provider=result.provider,
            used_fallback=result.used_fallback,
            audio_file_id=result.audio_file_id,
            file_name=result.file_name,
            feedback=feedback_to_dto(result.feedback),
            model=result.model,
        )

    @app.get("/v1/feedback", response_model=FeedbackHistory, response_model_by_alias=True)
    async def feedback_history(request: Request):
        records = services.records.query("feedback", request.state.user_id)
        return FeedbackHistory(items=[
            FeedbackRecord(
                id=r["id"],
                audio_file_id=r.get("audio_file_id"),
                file_name=r.get("file_name"),
                model=r.get("model"),
                created_at=r["created_at"],
                feedback=feedback_to_dto(record_to_feedback(r)),
            )
            for r in records
        ])

    @app.get("/v1/settings", response_model=SettingsModel, response_model_by_alias=True)
    async def get_settings(request: Request):
        return SettingsModel(
            custom_prompt=get_custom_prompt(services.records, request.state.user_id),
            default_prompt=DEFAULT_SYSTEM_PROMPT,
        )

    @app.put("/v1/settings", response_model=SettingsModel, response_model_by_alias=True)
    async def update_settings(request: Request, settings: SettingsModel):
        save_custom_prompt(services.records, request.state.user_id, settings.custom_prompt)
        return SettingsModel(
            custom_prompt=get_custom_prompt(services.records, request.state.user_id),
            default_prompt=DEFAULT_SYSTEM_PROMPT,
        )

    return app
