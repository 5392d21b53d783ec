"""AssemblyAI adapter for upload-then-poll transcription with speaker labels."""

from .transcription import AssemblyAITranscriptionAdapter

__all__ = ["AssemblyAITranscriptionAdapter"]
