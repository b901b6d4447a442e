"""Synthesis orchestrator for voicegate.

Coordinates the audio cache, rate tracker, text enhancer, remote client
and fallback engine behind a single speech API, so callers never see the
remote service's outages, quota or rate limits.
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable

from ..cache import AudioCacheStore, make_cache_key
from ..config import VoiceGateConfig
from ..providers import VoiceService, build_fallback
from ..ratelimit import RateTracker
from .client import RemoteSynthesisClient
from .enhancer import enhance
from .errors import RecognitionUnsupportedError, ServiceDisposedError
from .models import QuotaInfo, SynthesisRequest, VoiceInfo, VoiceProfile
from .streaming import AudioChunkStream, iter_chunks

logger = logging.getLogger(__name__)

QUOTA_WARNING_PERCENT = 90.0


def _preview(text: str) -> str:
    return f"{text[:50]}{'...' if len(text) > 50 else ''}"


async def _empty() -> AsyncIterator[bytes]:
    return
    yield


class VoicePipeline:
    """Resilient text-to-speech over the ElevenLabs API.

    Each request goes through: cache lookup, rate check, quota check,
    remote synthesis, cache write. Whenever a gate refuses or the remote
    call fails, the request is handed to the fallback engine instead.
    Fallback audio is never cached.

    Collaborators are injected; anything not supplied is built from the
    configuration. The configuration is validated here, so an unusable
    pipeline can never be constructed.

    Example:
        config = load_config()
        async with VoicePipeline(config) as pipeline:
            audio = await pipeline.generate_speech("System status is normal, Sir")

            async for chunk in pipeline.stream_speech("Diagnostics complete"):
                player.feed(chunk)
    """

    def __init__(
        self,
        config: VoiceGateConfig,
        client: RemoteSynthesisClient | None = None,
        cache_store: AudioCacheStore | None = None,
        rate_tracker: RateTracker | None = None,
        fallback: VoiceService | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize pipeline.

        Args:
            config: Validated eagerly; see VoiceGateConfig.validate()
            client: Remote client (built from config.api if omitted)
            cache_store: Audio cache (built from config.cache if omitted)
            rate_tracker: Rate tracker (built from config.rate_limit if omitted)
            fallback: Fallback engine (built from config.fallback if omitted)
            clock: Monotonic time source for the quota refresh interval

        Raises:
            ConfigurationError: If the configuration is invalid
            TTSAuthError: If the remote client cannot be created
        """
        config.ensure_valid()
        self.config = config
        self._clock = clock

        self._client = client or RemoteSynthesisClient(config.api)

        if not config.cache.enabled:
            self._cache = None
        elif cache_store is not None:
            self._cache = cache_store
        else:
            self._cache = AudioCacheStore(
                max_size_bytes=config.cache.max_size_bytes,
                ttl_seconds=config.cache.ttl_seconds,
            )

        if not config.rate_limit.enabled:
            self._rate_tracker = None
        elif rate_tracker is not None:
            self._rate_tracker = rate_tracker
        else:
            self._rate_tracker = RateTracker(
                max_requests_per_minute=config.rate_limit.max_requests_per_minute,
                max_characters_per_minute=config.rate_limit.max_characters_per_minute,
            )

        if fallback is None and config.fallback.enabled:
            fallback = build_fallback(config.fallback)
        self._fallback = fallback

        self._quota: QuotaInfo | None = None
        self._quota_checked_at: float | None = None
        self._closed = False

        logger.info(
            f"VoicePipeline initialized with voice {config.api.voice_id}, "
            f"cache={'on' if self._cache else 'off'}, "
            f"rate limiting={'on' if self._rate_tracker else 'off'}, "
            f"fallback={self._fallback.name if self._fallback else 'off'}"
        )

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def cache_store(self) -> AudioCacheStore | None:
        return self._cache

    @property
    def rate_tracker(self) -> RateTracker | None:
        return self._rate_tracker

    @property
    def fallback(self) -> VoiceService | None:
        return self._fallback

    async def generate_speech(self, text: str, voice_id: str | None = None) -> bytes:
        """Convert text to audio bytes.

        Args:
            text: Text to speak; blank text yields b"" without any calls
            voice_id: Remote voice (defaults to the configured voice)

        Returns:
            Audio bytes from cache, the remote API or the fallback engine;
            b"" only when both the remote and fallback paths are unusable

        Raises:
            ServiceDisposedError: If the pipeline has been closed
            asyncio.CancelledError: If the calling task is cancelled
        """
        self._ensure_open()
        if not text or not text.strip():
            return b""

        annotated, profile = enhance(text, self.config.default_profile)
        key = self._cache_key(text, voice_id, profile)
        cached = self._cached(key, text)
        if cached is not None:
            return cached

        if not self._rate_allows(len(annotated)):
            logger.warning(f"Rate limit reached, using fallback for '{_preview(text)}'")
            return await self._use_fallback(text, voice_id)

        return await self._synthesize(text, voice_id, annotated, profile, key)

    def stream_speech(
        self,
        text: str,
        voice_id: str | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> AudioChunkStream:
        """Return a lazy chunk stream for text.

        When rate limited, the fallback engine's own stream is passed
        through unchanged. Otherwise the complete audio is obtained the
        same way as generate_speech and handed out in fixed-size chunks,
        so joining the chunks gives the generate_speech result.

        Args:
            text: Text to speak; blank text yields an empty stream
            voice_id: Remote voice (defaults to the configured voice)
            cancel_event: Stops production before the next chunk once set

        Raises:
            ServiceDisposedError: If the pipeline has been closed, either
                now or before a chunk is pulled from the returned stream
        """
        self._ensure_open()
        if not text or not text.strip():
            return AudioChunkStream(_empty(), cancel_event, guard=self._ensure_open)

        annotated, profile = enhance(text, self.config.default_profile)

        if not self._rate_allows(len(annotated)):
            logger.warning(
                f"Rate limit reached, streaming fallback for '{_preview(text)}'"
            )
            if not self._fallback_usable():
                return AudioChunkStream(_empty(), cancel_event, guard=self._ensure_open)
            return AudioChunkStream(
                self._fallback.stream_speech(text, voice_id),
                cancel_event,
                guard=self._ensure_open,
            )

        return AudioChunkStream(
            self._chunked(text, voice_id, annotated, profile),
            cancel_event,
            chunk_delay=self.config.streaming.chunk_delay_seconds,
            guard=self._ensure_open,
        )

    async def recognize_speech(self, audio: bytes, language: str | None = None) -> str:
        """Transcribe audio by delegating to the fallback engine.

        Raises:
            ServiceDisposedError: If the pipeline has been closed
            RecognitionUnsupportedError: If no fallback engine is configured
        """
        self._ensure_open()
        if self._fallback is None:
            raise RecognitionUnsupportedError("No fallback engine available for recognition")
        return await self._fallback.recognize_speech(audio, language)

    async def get_quota_info(self) -> QuotaInfo | None:
        """Fetch current character usage; None if the lookup fails."""
        self._ensure_open()
        try:
            quota = await self._client.get_quota()
        except Exception as e:
            logger.error(f"Failed to get quota info: {e}")
            return None
        self._remember_quota(quota)
        return quota

    async def get_available_voices(self) -> list[VoiceInfo]:
        """List remote voices; empty if the catalogue cannot be fetched."""
        self._ensure_open()
        try:
            return await self._client.list_voices()
        except Exception as e:
            logger.error(f"Failed to get available voices: {e}")
            return []

    def get_cache_statistics(self) -> dict:
        self._ensure_open()
        if self._cache is None:
            return {"enabled": False}
        return {"enabled": True, **self._cache.stats()}

    def get_rate_statistics(self) -> dict:
        self._ensure_open()
        if self._rate_tracker is None:
            return {"enabled": False}
        return {
            "enabled": True,
            **self._rate_tracker.get_statistics(self.config.api.api_key),
        }

    async def is_healthy(self) -> bool:
        """Check configuration and a subscription round-trip."""
        self._ensure_open()
        if self.config.validate():
            return False
        try:
            self._remember_quota(await self._client.get_quota())
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return False
        return True

    def close(self) -> None:
        """Dispose the pipeline; every later call raises ServiceDisposedError."""
        if self._closed:
            return
        self._closed = True
        logger.debug("VoicePipeline closed")

    async def __aenter__(self) -> "VoicePipeline":
        self._ensure_open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    def _ensure_open(self) -> None:
        if self._closed:
            raise ServiceDisposedError(type(self).__name__)

    def _rate_allows(self, character_count: int) -> bool:
        if self._rate_tracker is None:
            return True
        return self._rate_tracker.can_make_request(
            self.config.api.api_key, character_count
        )

    def _fallback_usable(self) -> bool:
        if not self.config.fallback.enabled or self._fallback is None:
            logger.error("Fallback is disabled; no audio produced")
            return False
        return True

    async def _synthesize(
        self,
        text: str,
        voice_id: str | None,
        annotated: str,
        profile: VoiceProfile,
        key: str,
        use_stream_endpoint: bool = False,
    ) -> bytes:
        """Quota and remote legs of a cache miss that passed the rate check."""
        voice = voice_id or self.config.api.voice_id
        if not await self._quota_allows(len(annotated)):
            logger.warning(
                f"Insufficient quota, using fallback for '{_preview(text)}'"
            )
            return await self._use_fallback(text, voice_id)

        request = SynthesisRequest(
            text=annotated,
            voice_id=voice,
            voice_settings=profile,
            model_id=self.config.api.model_id,
        )
        try:
            audio = await asyncio.wait_for(
                self._call_remote(request, use_stream_endpoint),
                timeout=self.config.api.timeout_seconds,
            )
        except Exception as e:
            logger.error(f"Remote synthesis failed: {e}")
            return await self._use_fallback(text, voice_id)

        if not audio:
            logger.error("Remote synthesis returned no audio")
            return await self._use_fallback(text, voice_id)

        if self._cache is not None:
            try:
                self._cache.put(key, audio)
            except Exception as e:
                logger.error(f"Failed to cache audio: {e}")

        if self._rate_tracker is not None:
            self._rate_tracker.record_request(self.config.api.api_key, len(annotated))

        logger.debug(f"Generated {len(audio)} bytes for '{_preview(text)}'")
        return audio

    def _cache_key(self, text: str, voice_id: str | None, profile: VoiceProfile) -> str:
        return make_cache_key(text, voice_id or self.config.api.voice_id, profile)

    def _cached(self, key: str, text: str) -> bytes | None:
        if self._cache is None:
            return None
        audio = self._cache.get(key)
        if audio is not None:
            logger.debug(f"Cache hit for '{_preview(text)}'")
        return audio

    async def _call_remote(self, request: SynthesisRequest, use_stream_endpoint: bool) -> bytes:
        if use_stream_endpoint:
            return b"".join([chunk async for chunk in self._client.stream(request)])
        return await self._client.synthesize(request)

    async def _chunked(
        self, text: str, voice_id: str | None, annotated: str, profile: VoiceProfile
    ) -> AsyncIterator[bytes]:
        key = self._cache_key(text, voice_id, profile)
        audio = self._cached(key, text)
        if audio is None:
            audio = await self._synthesize(
                text, voice_id, annotated, profile, key, self.config.streaming.enabled
            )
        for chunk in iter_chunks(audio, self.config.streaming.chunk_size):
            yield chunk

    async def _quota_allows(self, character_count: int) -> bool:
        interval = self.config.api.quota_check_minutes * 60
        if interval <= 0:
            return True

        now = self._clock()
        if self._quota_checked_at is None or now - self._quota_checked_at >= interval:
            self._quota_checked_at = now
            try:
                self._remember_quota(await self._client.get_quota())
            except Exception as e:
                # Unknown quota never blocks the request
                logger.warning(f"Quota check failed: {e}")
                return True

        if self._quota is None:
            return True
        return self._quota.characters_remaining >= character_count

    def _remember_quota(self, quota: QuotaInfo) -> None:
        self._quota = quota
        self._quota_checked_at = self._clock()
        if quota.used_percentage > QUOTA_WARNING_PERCENT:
            logger.warning(f"ElevenLabs quota usage high: {quota.used_percentage:.1f}%")

    async def _use_fallback(self, text: str, voice_id: str | None) -> bytes:
        if not self._fallback_usable():
            return b""
        try:
            logger.info(f"Using fallback engine {self._fallback.name}")
            return await self._fallback.generate_speech(text, voice_id)
        except Exception as e:
            logger.error(f"Fallback synthesis failed: {e}")
            return b""
