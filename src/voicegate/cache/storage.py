"""Thread-safe in-memory audio cache with size and TTL based eviction."""

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable

from .models import CacheEntry

logger = logging.getLogger(__name__)

MB = 1024 * 1024


class AudioCacheStore:
    """Content-addressed store mapping request fingerprints to audio bytes.

    Entries are kept in insertion order so eviction can drop the
    least-recently-stored entries first. Expired entries are purged lazily
    on read and before any capacity eviction. A single lock guards the map
    and the running size total, so callers from the event loop and from
    worker threads never observe a torn entry.

    Example:
        store = AudioCacheStore(max_size_bytes=50 * MB, ttl_seconds=3600)
        key = make_cache_key("Deploy complete", "voice-1", VoiceProfile())
        if store.get(key) is None:
            store.put(key, audio_bytes)
    """

    def __init__(
        self,
        max_size_bytes: int = 100 * MB,
        ttl_seconds: float = 24 * 3600,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize an empty cache.

        Args:
            max_size_bytes: Upper bound on the sum of stored audio sizes
            ttl_seconds: Lifetime of each entry
            clock: Time source in seconds (injectable for tests)

        Raises:
            ValueError: If size or TTL is not positive
        """
        if max_size_bytes <= 0:
            raise ValueError(f"max_size_bytes must be positive, got {max_size_bytes}")
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")

        self.max_size_bytes = max_size_bytes
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._size_bytes = 0
        self._hits = 0
        self._misses = 0
        self._lock = threading.Lock()

        logger.info(
            f"Audio cache initialized with max size {max_size_bytes / MB:.1f}MB, "
            f"ttl {ttl_seconds / 3600:.1f}h"
        )

    def get(self, key: str) -> bytes | None:
        """Return cached audio for key, or None if missing or expired.

        Never raises; an expired entry is removed as a side effect.
        """
        try:
            with self._lock:
                entry = self._entries.get(key)
                if entry is None:
                    self._misses += 1
                    return None
                if entry.is_expired(self._clock()):
                    self._remove(key)
                    self._misses += 1
                    logger.debug(f"Cache entry expired for key {key[:16]}")
                    return None
                self._hits += 1
        except Exception as e:
            logger.error(f"Error retrieving cached audio: {e}")
            return None

        logger.debug(f"Cache hit for key {key[:16]}, size {entry.size_bytes} bytes")
        return entry.audio_bytes

    def put(self, key: str, audio: bytes) -> bool:
        """Store audio under key, evicting older entries when needed.

        Args:
            key: Request fingerprint
            audio: Audio payload; copied into an immutable bytes object

        Returns:
            True if stored; False for empty payloads or payloads larger
            than the whole cache (the store is left unchanged)
        """
        if not audio:
            return False

        data = bytes(audio)
        size = len(data)
        if size > self.max_size_bytes:
            logger.warning(
                f"Cannot cache audio of {size} bytes: exceeds max cache size "
                f"{self.max_size_bytes} bytes"
            )
            return False

        with self._lock:
            now = self._clock()
            # Last write wins; the old payload no longer counts toward size
            if key in self._entries:
                self._remove(key)

            if self._size_bytes + size > self.max_size_bytes:
                self._make_room(size, now)

            self._entries[key] = CacheEntry(
                key=key,
                audio_bytes=data,
                size_bytes=size,
                stored_at=now,
                expires_at=now + self.ttl_seconds,
            )
            self._size_bytes += size
            total = self._size_bytes

        logger.debug(
            f"Cached audio for key {key[:16]}, size {size} bytes, "
            f"total cache size {total} bytes"
        )
        return True

    def clear_expired(self) -> int:
        """Remove every expired entry and return how many were removed."""
        with self._lock:
            removed = self._purge_expired(self._clock())
        if removed:
            logger.info(f"Removed {removed} expired cache entries")
        return removed

    def clear_all(self) -> int:
        """Remove every entry and return how many were removed."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._size_bytes = 0
        logger.info(f"Cleared all {count} cache entries")
        return count

    def stats(self) -> dict:
        """Return a snapshot of cache occupancy and hit counters."""
        with self._lock:
            entry_count = len(self._entries)
            total = self._size_bytes
            hits, misses = self._hits, self._misses

        return {
            "entry_count": entry_count,
            "total_size_bytes": total,
            "total_size_mb": total / MB,
            "max_size_bytes": self.max_size_bytes,
            "max_size_mb": self.max_size_bytes / MB,
            "usage_percent": total * 100.0 / self.max_size_bytes,
            "ttl_hours": self.ttl_seconds / 3600,
            "hits": hits,
            "misses": misses,
        }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not entry.is_expired(self._clock())

    # Helpers below expect self._lock to be held

    def _remove(self, key: str) -> None:
        entry = self._entries.pop(key)
        self._size_bytes -= entry.size_bytes

    def _purge_expired(self, now: float) -> int:
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for key in expired:
            self._remove(key)
        return len(expired)

    def _make_room(self, required: int, now: float) -> None:
        purged = self._purge_expired(now)
        evicted = 0
        freed = 0
        while self._entries and self._size_bytes + required > self.max_size_bytes:
            _, entry = self._entries.popitem(last=False)
            self._size_bytes -= entry.size_bytes
            freed += entry.size_bytes
            evicted += 1

        if purged or evicted:
            logger.info(
                f"Made room for {required} bytes: purged {purged} expired, "
                f"evicted {evicted} oldest entries ({freed} bytes)"
            )
