"""FeedbackGenerator — asks the feedback backend for coaching and validates it."""

import logging
from typing import Optional

from domain.errors import ValidationError
from domain.models import SalesFeedback
from feedback import parse_feedback
from ports.feedback import FeedbackPort

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = """You are an expert sales coach analyzing a sales call transcript. Provide actionable feedback on the salesperson's performance.

Analyze the conversation and respond with a JSON object containing:
- overallScore: A score from 1-10
- summary: A 2-3 sentence overview of the call
- strengths: An array of 3-5 things the salesperson did well
- improvements: An array of 3-5 areas for improvement
- keyMoments: An array of notable moments with { timestamp (optional), speaker, observation }
- metrics: An object with scores (1-10) for:
  - toneProfessionalism
  - activeListening
  - objectionHandling
  - closingTechnique
  - productKnowledge

Focus on specific, actionable feedback with examples from the call.
Respond ONLY with the JSON object, no additional text."""

USER_MESSAGE_TEMPLATE = (
    "Please analyze the following sales call transcript and provide structured feedback:\n\n"
    "{transcript}"
)


def resolve_system_prompt(custom_prompt: Optional[str]) -> str:
    if custom_prompt and custom_prompt.strip():
        return custom_prompt.strip()
    return DEFAULT_SYSTEM_PROMPT


class FeedbackGenerator:
    def __init__(self, backend: FeedbackPort):
        self._backend = backend

    def model_name(self) -> str:
        return self._backend.model_name()

    async def generate(self, transcript: str, custom_prompt: Optional[str] = None) -> SalesFeedback:
        if not transcript or not transcript.strip():
            raise ValidationError("Transcript cannot be empty")

        system_prompt = resolve_system_prompt(custom_prompt)
        if system_prompt is not DEFAULT_SYSTEM_PROMPT:
            logger.info("Using custom feedback prompt")

        content = await self._backend.complete(
            system_prompt, USER_MESSAGE_TEMPLATE.format(transcript=transcript),
        )
        feedback = parse_feedback(content)
        logger.info(f"Generated feedback: overall score {feedback.overall_score}")
        return feedback
