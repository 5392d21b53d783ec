"""Post-processing for transcription results.

Renders a canonical TranscriptionResult into the single display string that is
stored and handed to the feedback generator.
"""

from domain.models import TranscriptionResult

UNKNOWN_SPEAKER = "Unknown"


def has_speaker_labels(result: TranscriptionResult) -> bool:
    return any(seg.speaker for seg in result.segments or [])


def format_transcription_text(result: TranscriptionResult) -> str:
    """Speaker-attributed transcript when any segment is labeled, else plain text.

    Labeled output is one "[Speaker]: text" block per segment in provider
    order, separated by blank lines. Unlabeled segments in a labeled
    transcript are attributed to "Unknown".
    """
    if not has_speaker_labels(result):
        return result.text

    return "\n\n".join(
        f"[{seg.speaker or UNKNOWN_SPEAKER}]: {seg.text}"
        for seg in result.segments
    )
