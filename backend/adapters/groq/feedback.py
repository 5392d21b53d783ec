"""GroqFeedbackAdapter — chat completion via Groq's OpenAI-compatible API."""

import logging
from typing import Optional

import httpx

from domain.errors import MissingCredentialError, ProviderError
from ports.feedback import FeedbackPort

logger = logging.getLogger(__name__)

PROVIDER = "groq"
DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_MODEL = "llama-3.3-70b-versatile"

# Low temperature keeps the JSON output consistent between calls.
TEMPERATURE = 0.3
MAX_TOKENS = 2048


class GroqFeedbackAdapter(FeedbackPort):
    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def complete(self, system_prompt: str, user_message: str) -> str:
        if not self._api_key:
            raise MissingCredentialError(PROVIDER, "GROQ_API_KEY")

        body = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_message},
            ],
            "temperature": TEMPERATURE,
            "max_tokens": MAX_TOKENS,
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self._base_url}/chat/completions",
                    json=body,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
        except httpx.TimeoutException as e:
            raise ProviderError(PROVIDER, f"Groq API request timed out: {e}") from e
        except httpx.RequestError as e:
            raise ProviderError(PROVIDER, f"Failed to generate sales feedback: {e}") from e

        if response.status_code == 401:
            raise ProviderError(PROVIDER, "Invalid Groq API key. Please check GROQ_API_KEY")
        if response.status_code == 429:
            raise ProviderError(
                PROVIDER, "Groq API rate limit exceeded. Please wait a moment and try again."
            )
        if response.status_code == 404:
            raise ProviderError(
                PROVIDER, f"The Groq model {self._model} is not available. Please check model availability."
            )
        if response.status_code >= 400:
            raise ProviderError(
                PROVIDER,
                f"Failed to generate sales feedback: HTTP {response.status_code} {response.text}",
            )

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            content = None
        if not content:
            raise ProviderError(PROVIDER, "Groq API returned an empty response. Please try again.")

        logger.debug(f"Groq completion: {len(content)} characters")
        return content

    def model_name(self) -> str:
        return self._model
