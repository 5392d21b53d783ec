"""Deepgram adapter for prerecorded transcription with diarization."""

from .transcription import DeepgramTranscriptionAdapter

__all__ = ["DeepgramTranscriptionAdapter"]
