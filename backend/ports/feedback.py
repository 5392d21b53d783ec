"""FeedbackPort — abstract interface for the generative feedback backend."""

from abc import ABC, abstractmethod


class FeedbackPort(ABC):
    @abstractmethod
    async def complete(self, system_prompt: str, user_message: str) -> str:
        """Return the model's raw text completion."""

    @abstractmethod
    def model_name(self) -> str:
        """Return the model identifier for API responses."""
