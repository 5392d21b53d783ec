from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    """Serializes with camelCase aliases, accepts either spelling on input."""
    model_config = ConfigDict(populate_by_name=True)


class Segment(BaseModel):
    """A speaker-attributed utterance in the transcription"""
    start: float
    end: float
    text: str
    speaker: Optional[str] = None


class Word(BaseModel):
    word: str
    start: float
    end: float
    confidence: Optional[float] = None
    speaker: Optional[str] = None


class TranscriptionResponse(BaseModel):
    """Response format for direct transcription"""
    success: bool = True
    text: str
    raw_text: str
    provider: str
    file_name: str
    segments: Optional[List[Segment]] = None
    words: Optional[List[Word]] = None


class KeyMomentModel(CamelModel):
    timestamp: Optional[str] = None
    speaker: str = "Unknown"
    observation: str


class MetricsModel(CamelModel):
    tone_professionalism: int = Field(alias="toneProfessionalism", ge=1, le=10)
    active_listening: int = Field(alias="activeListening", ge=1, le=10)
    objection_handling: int = Field(alias="objectionHandling", ge=1, le=10)
    closing_technique: int = Field(alias="closingTechnique", ge=1, le=10)
    product_knowledge: int = Field(alias="productKnowledge", ge=1, le=10)


class SalesFeedbackModel(CamelModel):
    overall_score: int = Field(alias="overallScore", ge=1, le=10)
    summary: str
    strengths: List[str]
    improvements: List[str]
    key_moments: List[KeyMomentModel] = Field(default_factory=list, alias="keyMoments")
    metrics: MetricsModel


class AnalyzeCallResponse(CamelModel):
    success: bool = True
    transcription_text: str = Field(alias="transcriptionText")
    provider: str
    used_fallback: bool = Field(alias="usedFallback")
    audio_file_id: str = Field(alias="audioFileId")
    file_name: str = Field(alias="fileName")
    feedback: SalesFeedbackModel
    model: str


class FeedbackRecord(CamelModel):
    id: str
    audio_file_id: Optional[str] = Field(default=None, alias="audioFileId")
    file_name: Optional[str] = Field(default=None, alias="fileName")
    model: Optional[str] = None
    created_at: float = Field(alias="createdAt")
    feedback: SalesFeedbackModel


class FeedbackHistory(BaseModel):
    items: List[FeedbackRecord]


class SettingsModel(CamelModel):
    custom_prompt: Optional[str] = Field(default=None, alias="customPrompt")
    default_prompt: Optional[str] = Field(default=None, alias="defaultPrompt")


class ProviderInfo(CamelModel):
    id: str
    max_file_size: int = Field(alias="maxFileSize")
    supported_formats: List[str] = Field(alias="supportedFormats")
    supports_diarization: bool = Field(alias="supportsDiarization")
    configured: bool


class ProviderList(BaseModel):
    object: str = "list"
    data: List[ProviderInfo]


class ErrorResponse(BaseModel):
    success: bool = False
    error: str


class HealthResponse(BaseModel):
    status: str = "ok"
    providers: Dict[str, bool]
    feedback_model: str
