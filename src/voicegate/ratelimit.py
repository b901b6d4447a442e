"""Sliding-window rate accounting per API credential."""

import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60.0


@dataclass(frozen=True)
class RequestSample:
    """One recorded request inside a credential's window."""

    timestamp: float
    character_count: int


@dataclass
class _CredentialWindow:
    samples: deque[RequestSample] = field(default_factory=deque)
    total_requests: int = 0
    total_characters: int = 0
    last_request_at: float | None = None
    lock: threading.Lock = field(default_factory=threading.Lock)

    def prune(self, now: float, window: float) -> None:
        while self.samples and now - self.samples[0].timestamp >= window:
            self.samples.popleft()

    @property
    def characters(self) -> int:
        return sum(s.character_count for s in self.samples)


class RateTracker:
    """Trailing-window request and character counters keyed by credential.

    Checking and recording are separate so the caller decides policy: a
    request is only recorded once the remote call actually succeeded.
    Samples older than the window are pruned lazily on every query.
    """

    def __init__(
        self,
        max_requests_per_minute: int = 100,
        max_characters_per_minute: int = 50000,
        window_seconds: float = WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize rate tracker.

        Args:
            max_requests_per_minute: Request limit inside one window
            max_characters_per_minute: Character limit inside one window
            window_seconds: Window length (60 seconds by default)
            clock: Time source in seconds (injectable for tests)

        Raises:
            ValueError: If a limit or the window is not positive
        """
        if max_requests_per_minute <= 0:
            raise ValueError("max_requests_per_minute must be positive")
        if max_characters_per_minute <= 0:
            raise ValueError("max_characters_per_minute must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_requests = max_requests_per_minute
        self.max_characters = max_characters_per_minute
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, _CredentialWindow] = {}
        self._registry_lock = threading.Lock()

        logger.info(
            f"Rate tracker initialized with {max_requests_per_minute} requests/min, "
            f"{max_characters_per_minute} chars/min"
        )

    def can_make_request(self, credential: str | None, character_count: int = 0) -> bool:
        """Check whether one more request fits in the current window.

        Args:
            credential: API key the request is billed to
            character_count: Size of the pending request, if known

        Returns:
            False for a blank credential, or when either the request count
            or the character volume would exceed its limit
        """
        if not credential or not credential.strip():
            return False

        window = self._get_window(credential)
        with window.lock:
            window.prune(self._clock(), self.window_seconds)
            requests = len(window.samples)
            characters = window.characters

        if requests + 1 > self.max_requests:
            logger.warning(
                f"Rate limit exceeded: too many requests ({requests}/{self.max_requests})"
            )
            return False

        if characters >= self.max_characters or (
            characters + character_count > self.max_characters
        ):
            logger.warning(
                f"Rate limit exceeded: too many characters "
                f"({characters}+{character_count}/{self.max_characters})"
            )
            return False

        return True

    def record_request(self, credential: str | None, character_count: int) -> None:
        """Append a sample for credential; limits are not enforced here."""
        if not credential or not credential.strip():
            return

        window = self._get_window(credential)
        with window.lock:
            # Read under the lock so samples stay in timestamp order
            now = self._clock()
            window.samples.append(RequestSample(now, character_count))
            window.total_requests += 1
            window.total_characters += character_count
            window.last_request_at = now

        logger.debug(f"Recorded request of {character_count} characters")

    def get_wait_time(self, credential: str | None) -> float | None:
        """Seconds until the credential is back within limits.

        Returns:
            None when currently within limits, otherwise the time until
            enough of the oldest samples leave the window
        """
        if not credential or not credential.strip():
            return None

        with self._registry_lock:
            window = self._windows.get(credential)
        if window is None:
            return None

        now = self._clock()
        with window.lock:
            window.prune(now, self.window_seconds)
            samples = list(window.samples)

        release_at: float | None = None

        # Oldest samples that must leave before one more request fits
        excess = len(samples) + 1 - self.max_requests
        if excess > 0:
            release_at = samples[excess - 1].timestamp

        characters = sum(s.character_count for s in samples)
        if characters >= self.max_characters:
            for sample in samples:
                characters -= sample.character_count
                if characters < self.max_characters:
                    if release_at is None or sample.timestamp > release_at:
                        release_at = sample.timestamp
                    break

        if release_at is None:
            return None

        wait = release_at + self.window_seconds - now
        return wait if wait > 0 else None

    def get_statistics(self, credential: str | None) -> dict:
        """Return lifetime totals and current-window usage for credential."""
        stats = {
            "total_requests": 0,
            "total_characters": 0,
            "requests_last_minute": 0,
            "characters_last_minute": 0,
            "last_request_time": None,
            "max_requests_per_minute": self.max_requests,
            "max_characters_per_minute": self.max_characters,
            "requests_remaining": self.max_requests,
            "characters_remaining": self.max_characters,
            "rate_limited": False,
        }
        if not credential or not credential.strip():
            return stats

        with self._registry_lock:
            window = self._windows.get(credential)
        if window is None:
            return stats

        now = self._clock()
        with window.lock:
            window.prune(now, self.window_seconds)
            requests = len(window.samples)
            characters = window.characters
            stats["total_requests"] = window.total_requests
            stats["total_characters"] = window.total_characters
            last = window.last_request_at

        if last is not None:
            # Convert the monotonic reading into wall-clock time
            stats["last_request_time"] = datetime.fromtimestamp(
                time.time() - (now - last), tz=UTC
            )

        stats["requests_last_minute"] = requests
        stats["characters_last_minute"] = characters
        stats["requests_remaining"] = max(0, self.max_requests - requests)
        stats["characters_remaining"] = max(0, self.max_characters - characters)
        stats["rate_limited"] = (
            requests >= self.max_requests or characters >= self.max_characters
        )
        return stats

    def reset(self, credential: str | None) -> None:
        """Forget every sample and total recorded for credential."""
        if not credential:
            return
        with self._registry_lock:
            removed = self._windows.pop(credential, None)
        if removed is not None:
            logger.info("Reset rate limiting data for credential")

    def _get_window(self, credential: str) -> _CredentialWindow:
        with self._registry_lock:
            window = self._windows.get(credential)
            if window is None:
                window = self._windows[credential] = _CredentialWindow()
            return window
