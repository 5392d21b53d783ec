"""Framework-agnostic domain models for the Sales Call Coach backend.

Every transcription adapter returns a TranscriptionResult, regardless of the
provider's native response shape. Pydantic DTOs live in models.py and are
produced by the mappers at the API boundary.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class TranscriptSegment:
    """An utterance with timing (seconds) and optional speaker label."""
    start: float
    end: float
    text: str
    speaker: Optional[str] = None


@dataclass
class TranscriptWord:
    """A single recognized word with timing (seconds)."""
    word: str
    start: float
    end: float
    confidence: Optional[float] = None
    speaker: Optional[str] = None


@dataclass
class TranscriptionResult:
    """Canonical transcription output shared by all providers."""
    text: str
    segments: Optional[list[TranscriptSegment]] = None
    words: Optional[list[TranscriptWord]] = None


@dataclass(frozen=True)
class ProviderConfig:
    """Static capabilities of a transcription provider."""
    max_file_size: int
    supported_formats: frozenset
    supports_diarization: bool


@dataclass
class DistributionResult:
    """Outcome of a round-robin transcription with fallback."""
    result: TranscriptionResult
    provider: str
    used_fallback: bool


@dataclass(frozen=True)
class KeyMoment:
    observation: str
    speaker: str = "Unknown"
    timestamp: Optional[str] = None


@dataclass(frozen=True)
class FeedbackMetrics:
    tone_professionalism: int = 5
    active_listening: int = 5
    objection_handling: int = 5
    closing_technique: int = 5
    product_knowledge: int = 5


@dataclass(frozen=True)
class SalesFeedback:
    """Validated coaching feedback for a single call."""
    overall_score: int
    summary: str
    strengths: tuple[str, ...]
    improvements: tuple[str, ...]
    key_moments: tuple[KeyMoment, ...] = ()
    metrics: FeedbackMetrics = field(default_factory=FeedbackMetrics)
