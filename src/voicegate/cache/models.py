"""Data models for cache storage."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CacheEntry:
    """Cached audio for a single request fingerprint.

    Attributes:
        key: Request fingerprint from make_cache_key
        audio_bytes: Synthesized audio (immutable copy)
        size_bytes: Length of audio_bytes
        stored_at: Clock reading when the entry was written
        expires_at: Clock reading after which the entry is stale
    """

    key: str
    audio_bytes: bytes
    size_bytes: int
    stored_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at
