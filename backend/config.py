import os
import logging
from typing import Dict, Optional, Any

logger = logging.getLogger(__name__)

try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8001
DEFAULT_DEEPGRAM_MODEL = "nova-3"
DEFAULT_GROQ_MODEL = "llama-3.3-70b-versatile"
DEFAULT_PROVIDER_TIMEOUT = 120.0
DEFAULT_FEEDBACK_TIMEOUT = 60.0
DEFAULT_POLL_INTERVAL = 3.0
DEFAULT_STORAGE_HOST_SUFFIXES = ".convex.cloud"
DEFAULT_KEYS_FILE = "/data/api-keys.json"


def _optional_float(name: str) -> Optional[float]:
    value = os.environ.get(name, "").strip()
    return float(value) if value else None


class Config:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        self.host = os.environ.get("HOST", DEFAULT_HOST)
        self.port = int(os.environ.get("PORT", DEFAULT_PORT))
        self.debug = os.environ.get("DEBUG", "0") == "1"
        self.infra = os.environ.get("INFRA", "local").lower()
        self.keys_file = os.environ.get("KEYS_FILE", DEFAULT_KEYS_FILE)

        # Provider credentials. A missing key is reported when the provider is used.
        self.deepgram_api_key = os.environ.get("DEEPGRAM_API_KEY") or None
        self.assemblyai_api_key = os.environ.get("ASSEMBLYAI_API_KEY") or None
        self.groq_api_key = os.environ.get("GROQ_API_KEY") or None

        self.deepgram_model = os.environ.get("DEEPGRAM_MODEL", DEFAULT_DEEPGRAM_MODEL)
        self.groq_model = os.environ.get("GROQ_MODEL", DEFAULT_GROQ_MODEL)
        self.provider_timeout = float(os.environ.get("PROVIDER_TIMEOUT", DEFAULT_PROVIDER_TIMEOUT))
        self.feedback_timeout = float(os.environ.get("FEEDBACK_TIMEOUT", DEFAULT_FEEDBACK_TIMEOUT))
        # Upper bound for one provider attempt, polling included. Unset means no bound.
        self.attempt_timeout = _optional_float("ATTEMPT_TIMEOUT")
        self.assemblyai_poll_interval = float(
            os.environ.get("ASSEMBLYAI_POLL_INTERVAL", DEFAULT_POLL_INTERVAL)
        )
        self.default_language = os.environ.get("DEFAULT_LANGUAGE", "en")
        self.storage_host_suffixes = [
            s.strip()
            for s in os.environ.get("STORAGE_HOST_SUFFIXES", DEFAULT_STORAGE_HOST_SUFFIXES).split(",")
            if s.strip()
        ]

    def provider_credentials(self) -> Dict[str, bool]:
        return {
            "deepgram": self.deepgram_api_key is not None,
            "assemblyai": self.assemblyai_api_key is not None,
        }

    def as_dict(self) -> Dict[str, Any]:
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "infra": self.infra,
            "deepgram_model": self.deepgram_model,
            "groq_model": self.groq_model,
            "provider_timeout": self.provider_timeout,
            "attempt_timeout": self.attempt_timeout,
            "default_language": self.default_language,
            "storage_host_suffixes": self.storage_host_suffixes,
            "has_deepgram_key": self.deepgram_api_key is not None,
            "has_assemblyai_key": self.assemblyai_api_key is not None,
            "has_groq_key": self.groq_api_key is not None,
        }


config = Config()


def get_config() -> Config:
    return config


def create_transcription_adapters(cfg: Config):
    """Create one adapter per provider, keyed by provider id.

    Insertion order follows PROVIDERS so it also defines the rotation.
    """
    from adapters.deepgram.transcription import DeepgramTranscriptionAdapter
    from adapters.assemblyai.transcription import AssemblyAITranscriptionAdapter
    from domain.providers import PROVIDERS

    available = {
        "deepgram": DeepgramTranscriptionAdapter(
            api_key=cfg.deepgram_api_key,
            model=cfg.deepgram_model,
            timeout=cfg.provider_timeout,
        ),
        "assemblyai": AssemblyAITranscriptionAdapter(
            api_key=cfg.assemblyai_api_key,
            timeout=cfg.provider_timeout,
            poll_interval=cfg.assemblyai_poll_interval,
        ),
    }
    adapters = {name: available[name] for name in PROVIDERS}

    missing = [name for name, ok in cfg.provider_credentials().items() if not ok]
    if missing:
        logger.warning(f"No API key configured for: {', '.join(missing)}")
    logger.info(f"Transcription adapters: {', '.join(type(a).__name__ for a in adapters.values())}")
    return adapters


def create_feedback_adapter(cfg: Config):
    from adapters.groq.feedback import GroqFeedbackAdapter

    if not cfg.groq_api_key:
        logger.warning("GROQ_API_KEY is not set; feedback generation will fail")
    return GroqFeedbackAdapter(
        api_key=cfg.groq_api_key,
        model=cfg.groq_model,
        timeout=cfg.feedback_timeout,
    )


def create_audio_source(cfg: Config):
    from adapters.http.audio_source import HttpAudioSource
    return HttpAudioSource(cfg.storage_host_suffixes, timeout=cfg.provider_timeout)


def create_infra_adapters(cfg: Config):
    """Create infrastructure adapters based on INFRA env var."""
    from adapters.local.log_progress import LogProgressAdapter
    from adapters.local.json_key_store import JsonFileKeyStore
    from adapters.local.memory_record_store import InMemoryRecordStore

    infra = cfg.infra

    if infra == "local":
        adapters = {
            "records": InMemoryRecordStore(),
            "progress": LogProgressAdapter(),
            "key_store": JsonFileKeyStore(cfg.keys_file),
        }
    else:
        raise ValueError(f"Unknown INFRA: {infra!r}. Valid options: local")

    logger.info(f"Infra adapters: {infra} -> {', '.join(type(v).__name__ for v in adapters.values())}")
    return adapters
