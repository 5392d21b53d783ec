"""Error taxonomy for transcription and feedback generation.

The HTTP layer maps these to status codes; nothing below it should need to
know about HTTP.
"""

from typing import Mapping, Optional


class SalesCoachError(Exception):
    """Base class for all errors raised by the backend core."""


class TranscriptionError(SalesCoachError):
    """Failure specific to dispatching or distributing a transcription."""


class ValidationError(SalesCoachError):
    """Input rejected before any network call was made."""


class FileTooLargeError(ValidationError, TranscriptionError):
    def __init__(self, provider: str, max_file_size: int):
        self.provider = provider
        self.max_file_size = max_file_size
        limit_mb = max_file_size / 1024 / 1024
        super().__init__(f"File size exceeds maximum for {provider}: {limit_mb:.0f}MB")


class UnsupportedFormatError(ValidationError, TranscriptionError):
    def __init__(self, provider: str, extension: str, supported: list[str]):
        self.provider = provider
        self.extension = extension
        super().__init__(
            f"File format .{extension} not supported by {provider}. "
            f"Supported: {', '.join(supported)}"
        )


class UnsupportedProviderError(TranscriptionError):
    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"Unknown provider: {provider}")


class ProviderError(SalesCoachError):
    """A provider rejected or failed the request."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(message)


class MissingCredentialError(SalesCoachError):
    """Configuration problem: the provider's API key is not set. Not transient."""

    def __init__(self, provider: str, env_var: str):
        self.provider = provider
        self.env_var = env_var
        super().__init__(f"{env_var} environment variable is not set ({provider})")


class AllProvidersFailedError(TranscriptionError):
    """Primary and fallback providers both failed."""

    def __init__(self, errors: Mapping[str, Exception], primary: Optional[str] = None):
        self.errors = dict(errors)
        providers = list(self.errors)
        primary = primary or providers[0]
        parts = []
        for provider, error in self.errors.items():
            role = "Primary" if provider == primary else "Fallback"
            parts.append(f"{role} ({provider}): {str(error) or 'Unknown error'}.")
        super().__init__("All transcription providers failed. " + " ".join(parts))


class UnparsableResponseError(SalesCoachError):
    """No JSON object could be extracted from the model response."""
