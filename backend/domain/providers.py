"""Static provider capability table."""

from domain.models import ProviderConfig

DEEPGRAM = "deepgram"
ASSEMBLYAI = "assemblyai"

# Order defines the round-robin rotation.
PROVIDERS: tuple[str, ...] = (DEEPGRAM, ASSEMBLYAI)

MAX_FILE_SIZE = 50 * 1024 * 1024  # 50MB
AUDIO_FORMATS = frozenset({"mp3", "mp4", "wav", "flac", "ogg", "webm", "m4a"})

PROVIDER_CONFIG: dict[str, ProviderConfig] = {
    DEEPGRAM: ProviderConfig(
        max_file_size=MAX_FILE_SIZE,
        supported_formats=AUDIO_FORMATS,
        supports_diarization=True,
    ),
    ASSEMBLYAI: ProviderConfig(
        max_file_size=MAX_FILE_SIZE,
        supported_formats=AUDIO_FORMATS,
        supports_diarization=True,
    ),
}


def config_for(provider: str) -> ProviderConfig:
    return PROVIDER_CONFIG[provider]
