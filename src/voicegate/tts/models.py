"""TTS data models with validation."""

from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import Enum


class EmotionTag(str, Enum):
    """Emotional context detected in a piece of text."""

    DEFAULT = "default"
    EXCITED = "excited"
    CONCERNED = "concerned"
    CALM = "calm"


@dataclass(frozen=True)
class VoiceProfile:
    """Voice generation settings sent with every synthesis request.

    Args:
        stability: Voice stability (0.0-1.0)
        similarity_boost: Voice similarity boost (0.0-1.0)
        style: Voice style exaggeration (0.0-1.0)
        speaking_rate: Speaking rate (0.5-1.5)
    """

    stability: float = 0.75
    similarity_boost: float = 0.85
    style: float = 0.0
    speaking_rate: float = 0.9

    def __post_init__(self) -> None:
        """Validate voice settings."""
        if not 0.0 <= self.stability <= 1.0:
            raise ValueError("stability must be between 0.0 and 1.0")
        if not 0.0 <= self.similarity_boost <= 1.0:
            raise ValueError("similarity_boost must be between 0.0 and 1.0")
        if not 0.0 <= self.style <= 1.0:
            raise ValueError("style must be between 0.0 and 1.0")
        if not 0.5 <= self.speaking_rate <= 1.5:
            raise ValueError("speaking_rate must be between 0.5 and 1.5")

    def to_dict(self) -> dict[str, float]:
        """Return the wire representation used in ``voice_settings``."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "VoiceProfile":
        """Build a profile from a mapping, ignoring unknown keys."""
        known = {k: float(v) for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


# Measured, professional delivery used when no emotion is detected
DEFAULT_PROFILE = VoiceProfile()

PROFILE_PRESETS: dict[EmotionTag, VoiceProfile] = {
    EmotionTag.DEFAULT: DEFAULT_PROFILE,
    EmotionTag.EXCITED: VoiceProfile(
        stability=0.6, similarity_boost=0.8, style=0.3, speaking_rate=1.1
    ),
    EmotionTag.CONCERNED: VoiceProfile(
        stability=0.8, similarity_boost=0.9, style=0.1, speaking_rate=0.8
    ),
    EmotionTag.CALM: VoiceProfile(
        stability=0.85, similarity_boost=0.9, style=0.0, speaking_rate=0.85
    ),
}


@dataclass(frozen=True)
class SynthesisRequest:
    """A single text-to-speech request.

    The cache identity of a request is derived from text, voice and
    profile; see ``voicegate.cache.keys.make_cache_key``.
    """

    text: str
    voice_id: str
    voice_settings: VoiceProfile = field(default_factory=VoiceProfile)
    model_id: str = "eleven_multilingual_v2"

    def to_payload(self) -> dict:
        """Return the JSON request body for the synthesis endpoints."""
        return {
            "text": self.text,
            "model_id": self.model_id,
            "voice_settings": self.voice_settings.to_dict(),
        }


@dataclass
class VoiceInfo:
    """Information about an available voice.

    Args:
        voice_id: Unique identifier for the voice
        name: Human-readable name of the voice
        category: Optional voice category (e.g., "premade", "cloned")
        description: Optional voice description
    """

    voice_id: str
    name: str
    category: str | None = None
    description: str | None = None

    def __post_init__(self) -> None:
        """Validate voice information."""
        if not self.voice_id or not self.voice_id.strip():
            raise ValueError("voice_id cannot be empty")
        if not self.name or not self.name.strip():
            raise ValueError("name cannot be empty")


@dataclass(frozen=True)
class QuotaInfo:
    """Character quota reported by the subscription endpoint."""

    character_count: int
    character_limit: int
    next_reset_unix: int | None = None

    @property
    def characters_remaining(self) -> int:
        return max(0, self.character_limit - self.character_count)

    @property
    def used_percentage(self) -> float:
        if self.character_limit <= 0:
            return 0.0
        return self.character_count / self.character_limit * 100

    @property
    def next_reset(self) -> datetime | None:
        if self.next_reset_unix is None:
            return None
        return datetime.fromtimestamp(self.next_reset_unix, tz=UTC)

    def to_dict(self) -> dict:
        return {
            "character_count": self.character_count,
            "character_limit": self.character_limit,
            "characters_remaining": self.characters_remaining,
            "next_reset": self.next_reset_unix,
        }
