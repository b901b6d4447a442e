"""In-memory audio cache for synthesized speech."""

from .keys import make_cache_key, normalize_text
from .models import CacheEntry
from .storage import AudioCacheStore

__all__ = ["AudioCacheStore", "CacheEntry", "make_cache_key", "normalize_text"]
