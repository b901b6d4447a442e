"""Configuration management for voicegate.

Loads configuration from ~/.config/voicegate/config.toml.
Priority chain: explicit values > env vars > config file > defaults.
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .tts.errors import ConfigurationError
from .tts.models import DEFAULT_PROFILE, VoiceProfile

CONFIG_DIR = Path.home() / ".config" / "voicegate"
CONFIG_PATH = CONFIG_DIR / "config.toml"

DEFAULT_CONFIG = """\
# voicegate configuration

[api]
# The API key is read from the ELEVENLABS_API_KEY environment variable.
voice_id = "EXAVITQu4vr4xnSDxMaL"
base_url = "https://api.elevenlabs.io"
api_version = "v1"
model_id = "eleven_multilingual_v2"
output_format = "mp3_44100_128"
timeout_seconds = 30
# Kept for tuning; failed calls go straight to the fallback today
max_retry_attempts = 3
# How often to refresh subscription quota before synthesis (0 disables)
quota_check_minutes = 5

[cache]
enabled = true
max_size_mb = 100
ttl_hours = 24

[streaming]
enabled = true
chunk_size = 4096
chunk_delay_seconds = 0.0

[rate_limit]
enabled = true
max_requests_per_minute = 100
max_characters_per_minute = 50000

[fallback]
enabled = true
# Engines tried in order: "system", "silent", "kokoro"
providers = ["system", "silent"]
max_failures = 3
cooldown_seconds = 300

[voice]
# Profile used when no emotion is detected in the text
stability = 0.75
similarity_boost = 0.85
style = 0.0
speaking_rate = 0.9
"""


@dataclass(frozen=True)
class ApiConfig:
    """Remote synthesis API configuration."""

    api_key: str | None = None
    voice_id: str = "EXAVITQu4vr4xnSDxMaL"
    base_url: str = "https://api.elevenlabs.io"
    api_version: str = "v1"
    model_id: str = "eleven_multilingual_v2"
    output_format: str = "mp3_44100_128"
    timeout_seconds: float = 30.0
    max_retry_attempts: int = 3
    quota_check_minutes: float = 5.0

    def endpoint(self, path: str) -> str:
        """Build an absolute URL for an API path such as ``voices``."""
        return f"{self.base_url.rstrip('/')}/{self.api_version}/{path.lstrip('/')}"

    def text_to_speech_url(self, voice_id: str | None = None) -> str:
        return self.endpoint(f"text-to-speech/{voice_id or self.voice_id}")

    def streaming_url(self, voice_id: str | None = None) -> str:
        return self.text_to_speech_url(voice_id) + "/stream"


@dataclass(frozen=True)
class CacheConfig:
    """Audio cache configuration."""

    enabled: bool = True
    max_size_mb: float = 100
    ttl_hours: float = 24

    @property
    def max_size_bytes(self) -> int:
        return int(self.max_size_mb * 1024 * 1024)

    @property
    def ttl_seconds(self) -> float:
        return self.ttl_hours * 3600


@dataclass(frozen=True)
class StreamingConfig:
    """Streaming synthesis configuration."""

    enabled: bool = True
    chunk_size: int = 4096
    chunk_delay_seconds: float = 0.0


@dataclass(frozen=True)
class RateLimitConfig:
    """Client-side rate limiting configuration."""

    enabled: bool = True
    max_requests_per_minute: int = 100
    max_characters_per_minute: int = 50000


@dataclass(frozen=True)
class FallbackConfig:
    """Fallback engine configuration."""

    enabled: bool = True
    providers: tuple[str, ...] = ("system", "silent")
    max_failures: int = 3
    cooldown_seconds: float = 300.0


@dataclass(frozen=True)
class VoiceGateConfig:
    """Top-level voicegate configuration."""

    api: ApiConfig = field(default_factory=ApiConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    streaming: StreamingConfig = field(default_factory=StreamingConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    fallback: FallbackConfig = field(default_factory=FallbackConfig)
    default_profile: VoiceProfile = DEFAULT_PROFILE

    def validate(self) -> list[str]:
        """Return a description of every invalid setting (empty if valid)."""
        problems = []
        for name in ("api_key", "voice_id", "base_url", "api_version", "model_id"):
            value = getattr(self.api, name)
            if not value or not str(value).strip():
                problems.append(f"api.{name} is required")
        if self.api.timeout_seconds <= 0:
            problems.append("api.timeout_seconds must be positive")
        if self.api.max_retry_attempts < 0:
            problems.append("api.max_retry_attempts cannot be negative")
        if self.cache.max_size_mb <= 0:
            problems.append("cache.max_size_mb must be positive")
        if self.cache.ttl_hours <= 0:
            problems.append("cache.ttl_hours must be positive")
        if self.streaming.chunk_size <= 0:
            problems.append("streaming.chunk_size must be positive")
        if self.streaming.chunk_delay_seconds < 0:
            problems.append("streaming.chunk_delay_seconds cannot be negative")
        if self.rate_limit.max_requests_per_minute <= 0:
            problems.append("rate_limit.max_requests_per_minute must be positive")
        if self.rate_limit.max_characters_per_minute <= 0:
            problems.append("rate_limit.max_characters_per_minute must be positive")
        return problems

    def ensure_valid(self) -> None:
        """Raise ConfigurationError if any setting is invalid."""
        problems = self.validate()
        if problems:
            raise ConfigurationError(problems)


def generate_config(path: Path | None = None) -> Path:
    """Write the default config file and return its path."""
    path = path or CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_CONFIG)
    return path


def load_config(path: Path | None = None, api_key: str | None = None) -> VoiceGateConfig:
    """Load configuration from a TOML file with env var overrides.

    A missing file is not an error: built-in defaults are used. The result
    is not validated here; the pipeline validates it on construction.

    Args:
        path: Config file to read (defaults to ~/.config/voicegate/config.toml)
        api_key: Explicit credential, overriding ELEVENLABS_API_KEY

    Returns:
        Loaded VoiceGateConfig

    Raises:
        ConfigurationError: If the file is not valid TOML or holds bad values
    """
    path = path or CONFIG_PATH
    data: dict = {}
    if path.exists():
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError([f"{path}: {e}"]) from e

    api = data.get("api", {})
    cache = data.get("cache", {})
    streaming = data.get("streaming", {})
    rate_limit = data.get("rate_limit", {})
    fallback = data.get("fallback", {})
    voice = data.get("voice", {})

    defaults = ApiConfig()
    fallback_env = os.getenv("VOICEGATE_FALLBACK")
    providers = (
        [p.strip() for p in fallback_env.split(",") if p.strip()]
        if fallback_env
        else fallback.get("providers", list(FallbackConfig.providers))
    )

    try:
        return VoiceGateConfig(
            api=ApiConfig(
                api_key=api_key or os.getenv("ELEVENLABS_API_KEY"),
                voice_id=os.getenv(
                    "VOICEGATE_VOICE_ID", api.get("voice_id", defaults.voice_id)
                ),
                base_url=os.getenv(
                    "VOICEGATE_BASE_URL", api.get("base_url", defaults.base_url)
                ),
                api_version=api.get("api_version", defaults.api_version),
                model_id=os.getenv(
                    "VOICEGATE_MODEL_ID", api.get("model_id", defaults.model_id)
                ),
                output_format=api.get("output_format", defaults.output_format),
                timeout_seconds=float(
                    api.get("timeout_seconds", defaults.timeout_seconds)
                ),
                max_retry_attempts=int(
                    api.get("max_retry_attempts", defaults.max_retry_attempts)
                ),
                quota_check_minutes=float(
                    api.get("quota_check_minutes", defaults.quota_check_minutes)
                ),
            ),
            cache=CacheConfig(
                enabled=bool(cache.get("enabled", True)),
                max_size_mb=float(cache.get("max_size_mb", 100)),
                ttl_hours=float(cache.get("ttl_hours", 24)),
            ),
            streaming=StreamingConfig(
                enabled=bool(streaming.get("enabled", True)),
                chunk_size=int(streaming.get("chunk_size", 4096)),
                chunk_delay_seconds=float(streaming.get("chunk_delay_seconds", 0.0)),
            ),
            rate_limit=RateLimitConfig(
                enabled=bool(rate_limit.get("enabled", True)),
                max_requests_per_minute=int(
                    rate_limit.get("max_requests_per_minute", 100)
                ),
                max_characters_per_minute=int(
                    rate_limit.get("max_characters_per_minute", 50000)
                ),
            ),
            fallback=FallbackConfig(
                enabled=bool(fallback.get("enabled", True)),
                providers=tuple(providers),
                max_failures=int(fallback.get("max_failures", 3)),
                cooldown_seconds=float(fallback.get("cooldown_seconds", 300.0)),
            ),
            default_profile=VoiceProfile.from_dict(voice) if voice else DEFAULT_PROFILE,
        )
    except (TypeError, ValueError) as e:
        raise ConfigurationError([f"{path}: {e}"]) from e
