"""Domain <-> DTO mappers.

Converts dataclass domain objects into the Pydantic models returned by the
API and into the plain dicts kept in the record store.
"""

from typing import Any, Optional

from domain.models import (
    FeedbackMetrics, KeyMoment, ProviderConfig, SalesFeedback, TranscriptionResult,
)
from models import (
    KeyMomentModel, MetricsModel, ProviderInfo, SalesFeedbackModel, Segment, Word,
)


def segments_to_dtos(result: TranscriptionResult) -> Optional[list[Segment]]:
    if result.segments is None:
        return None
    return [
        Segment(start=s.start, end=s.end, text=s.text, speaker=s.speaker)
        for s in result.segments
    ]


def words_to_dtos(result: TranscriptionResult) -> Optional[list[Word]]:
    if result.words is None:
        return None
    return [
        Word(word=w.word, start=w.start, end=w.end, confidence=w.confidence, speaker=w.speaker)
        for w in result.words
    ]


def feedback_to_dto(feedback: SalesFeedback) -> SalesFeedbackModel:
    m = feedback.metrics
    return SalesFeedbackModel(
        overall_score=feedback.overall_score,
        summary=feedback.summary,
        strengths=list(feedback.strengths),
        improvements=list(feedback.improvements),
        key_moments=[
            KeyMomentModel(timestamp=k.timestamp, speaker=k.speaker, observation=k.observation)
            for k in feedback.key_moments
        ],
        metrics=MetricsModel(
            tone_professionalism=m.tone_professionalism,
            active_listening=m.active_listening,
            objection_handling=m.objection_handling,
            closing_technique=m.closing_technique,
            product_knowledge=m.product_knowledge,
        ),
    )


def dto_to_feedback(dto: SalesFeedbackModel) -> SalesFeedback:
    m = dto.metrics
    return SalesFeedback(
        overall_score=dto.overall_score,
        summary=dto.summary,
        strengths=tuple(dto.strengths),
        improvements=tuple(dto.improvements),
        key_moments=tuple(
            KeyMoment(observation=k.observation, speaker=k.speaker, timestamp=k.timestamp)
            for k in dto.key_moments
        ),
        metrics=FeedbackMetrics(
            tone_professionalism=m.tone_professionalism,
            active_listening=m.active_listening,
            objection_handling=m.objection_handling,
            closing_technique=m.closing_technique,
            product_knowledge=m.product_knowledge,
        ),
    )


def feedback_to_record(feedback: SalesFeedback) -> dict[str, Any]:
    """camelCase dict as persisted by the record store."""
    return {"feedback": feedback_to_dto(feedback).model_dump(by_alias=True)}


def record_to_feedback(record: dict[str, Any]) -> SalesFeedback:
    return dto_to_feedback(SalesFeedbackModel.model_validate(record["feedback"]))


def provider_to_dto(provider: str, config: ProviderConfig, configured: bool) -> ProviderInfo:
    return ProviderInfo(
        id=provider,
        max_file_size=config.max_file_size,
        supported_formats=sorted(config.supported_formats),
        supports_diarization=config.supports_diarization,
        configured=configured,
    )
