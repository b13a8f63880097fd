"""
hindivoice/config.py
=====================
Runtime Settings — HindiVoice

Reads configuration from the environment (and a local .env file) into an
immutable Settings object. Only ``load_settings`` touches os.environ; every
other module receives the values it needs explicitly.
"""

import os
import tempfile
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from hindivoice.errors import ConfigurationError

load_dotenv()


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

ASSEMBLYAI_API_URL = "https://api.assemblyai.com/v2"
PRIMARY_TRANSLATE_URL = "https://translate.googleapis.com/translate_a/single"
FALLBACK_TRANSLATE_URL = "https://translate.argosopentech.com/translate"

SOURCE_LANGUAGE = "en"
TARGET_LANGUAGE = "hi"


@dataclass(frozen=True)
class Settings:
    assemblyai_api_key: Optional[str] = None
    assemblyai_api_url: str = ASSEMBLYAI_API_URL
    primary_translate_url: str = PRIMARY_TRANSLATE_URL
    fallback_translate_url: str = FALLBACK_TRANSLATE_URL
    poll_interval_seconds: float = 3.0
    poll_backoff_factor: float = 1.0
    poll_max_interval_seconds: float = 30.0
    poll_max_attempts: int = 200
    poll_timeout_seconds: float = 900.0
    http_timeout_seconds: float = 60.0
    max_upload_mb: int = 50
    speech_rate: float = 0.8
    speech_volume: float = 1.0
    speech_voice: Optional[str] = None
    recording_sample_rate: int = 16000
    media_dir: str = tempfile.gettempdir()
    log_level: str = "INFO"

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    def require_api_key(self) -> str:
        if not self.assemblyai_api_key:
            raise ConfigurationError(
                "ASSEMBLYAI_API_KEY environment variable is not set."
            )
        return self.assemblyai_api_key


def load_settings() -> Settings:
    """Build Settings from environment variables, falling back to defaults."""
    defaults = Settings()
    return Settings(
        assemblyai_api_key=os.getenv("ASSEMBLYAI_API_KEY") or None,
        assemblyai_api_url=os.getenv("ASSEMBLYAI_API_URL", defaults.assemblyai_api_url).rstrip("/"),
        primary_translate_url=os.getenv("PRIMARY_TRANSLATE_URL", defaults.primary_translate_url),
        fallback_translate_url=os.getenv("FALLBACK_TRANSLATE_URL", defaults.fallback_translate_url),
        poll_interval_seconds=_env_float("POLL_INTERVAL_SECONDS", defaults.poll_interval_seconds),
        poll_backoff_factor=_env_float("POLL_BACKOFF_FACTOR", defaults.poll_backoff_factor),
        poll_max_interval_seconds=_env_float("POLL_MAX_INTERVAL_SECONDS", defaults.poll_max_interval_seconds),
        poll_max_attempts=_env_int("POLL_MAX_ATTEMPTS", defaults.poll_max_attempts),
        poll_timeout_seconds=_env_float("POLL_TIMEOUT_SECONDS", defaults.poll_timeout_seconds),
        http_timeout_seconds=_env_float("HTTP_TIMEOUT_SECONDS", defaults.http_timeout_seconds),
        max_upload_mb=_env_int("MAX_UPLOAD_MB", defaults.max_upload_mb),
        speech_rate=_env_float("SPEECH_RATE", defaults.speech_rate),
        speech_volume=_env_float("SPEECH_VOLUME", defaults.speech_volume),
        speech_voice=os.getenv("SPEECH_VOICE") or None,
        recording_sample_rate=_env_int("RECORDING_SAMPLE_RATE", defaults.recording_sample_rate),
        media_dir=os.getenv("MEDIA_DIR", defaults.media_dir),
        log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}.")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}.")
