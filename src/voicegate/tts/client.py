"""Remote synthesis client for the ElevenLabs API."""

import asyncio
import logging
from collections.abc import AsyncIterator, Iterator

import httpx
from elevenlabs.client import ElevenLabs
from elevenlabs.core import ApiError

from ..config import ApiConfig
from .errors import TTSAPIError, TTSAuthError, TTSError, TTSTimeoutError
from .models import QuotaInfo, SynthesisRequest, VoiceInfo

logger = logging.getLogger(__name__)

_END = object()


def _translate_error(e: Exception, action: str) -> TTSError:
    """Map SDK and transport exceptions onto the TTSError hierarchy."""
    if isinstance(e, ApiError):
        status = e.status_code
        if status == 401:
            return TTSAuthError(f"Authentication failed: {e.body}", e)
        if status == 429:
            return TTSAPIError(f"Rate limit exceeded: {e.body}", 429, e)
        if status is not None and status >= 500:
            return TTSAPIError(f"Server error {status}: {e.body}", status, e)
        return TTSAPIError(f"{action} failed with status {status}: {e.body}", status, e)
    if isinstance(e, httpx.TimeoutException):
        return TTSTimeoutError(f"{action} timed out: {e}", None, e)
    if isinstance(e, httpx.HTTPError):
        return TTSAPIError(f"{action} transport error: {e}", None, e)
    return TTSAPIError(f"{action} failed: {e}", None, e)


class RemoteSynthesisClient:
    """Thin async adapter over the ElevenLabs SDK.

    Serializes SynthesisRequest objects into the SDK call shape and maps
    every failure onto TTSAuthError / TTSAPIError / TTSTimeoutError. The
    SDK is synchronous, so each call runs in a worker thread to keep the
    event loop free.
    """

    def __init__(self, config: ApiConfig, client: ElevenLabs | None = None) -> None:
        """Initialize remote client.

        Args:
            config: API settings (credential, endpoint, timeout, output format)
            client: Pre-built SDK client (mainly for tests)

        Raises:
            TTSAuthError: If no API key is configured or the SDK rejects it
        """
        if not config.api_key:
            raise TTSAuthError(
                "ElevenLabs API key not found. Set ELEVENLABS_API_KEY environment "
                "variable or provide api.api_key."
            )
        self._config = config

        if client is not None:
            self._client = client
        else:
            try:
                self._client = ElevenLabs(
                    api_key=config.api_key,
                    base_url=config.base_url,
                    timeout=config.timeout_seconds,
                )
            except Exception as e:
                raise TTSAuthError(f"Failed to initialize ElevenLabs client: {e}") from e

        self._voices_cache: list[VoiceInfo] | None = None

    async def synthesize(self, request: SynthesisRequest) -> bytes:
        """Convert a request to audio bytes via the non-streaming endpoint.

        Raises:
            TTSAPIError: If the API answers with a non-2xx status or no audio
            TTSAuthError: If authentication fails
            TTSTimeoutError: If the call times out
        """

        def _sync_convert() -> bytes:
            audio = self._client.text_to_speech.convert(
                request.voice_id,
                text=request.text,
                model_id=request.model_id,
                voice_settings=request.voice_settings.to_dict(),
                output_format=self._config.output_format,
            )
            return b"".join(audio)

        logger.debug(f"POST {self._config.text_to_speech_url(request.voice_id)}")
        try:
            audio_bytes = await asyncio.to_thread(_sync_convert)
        except Exception as e:
            raise _translate_error(e, "Speech synthesis") from e

        if not audio_bytes:
            raise TTSAPIError("No audio data received from API")

        logger.debug(
            f"Synthesized {len(audio_bytes)} bytes for {len(request.text)} characters"
        )
        return audio_bytes

    async def stream(self, request: SynthesisRequest) -> AsyncIterator[bytes]:
        """Yield audio chunks from the streaming endpoint as they arrive.

        Raises:
            TTSAPIError: If the stream cannot be opened or breaks mid-way
        """

        def _open() -> Iterator[bytes]:
            return iter(
                self._client.text_to_speech.stream(
                    request.voice_id,
                    text=request.text,
                    model_id=request.model_id,
                    voice_settings=request.voice_settings.to_dict(),
                    output_format=self._config.output_format,
                )
            )

        logger.debug(f"POST {self._config.streaming_url(request.voice_id)}")
        chunks: Iterator[bytes] | None = None
        try:
            chunks = await asyncio.to_thread(_open)
            while True:
                chunk = await asyncio.to_thread(next, chunks, _END)
                if chunk is _END:
                    break
                if chunk:
                    yield chunk
        except Exception as e:
            raise _translate_error(e, "Streaming synthesis") from e
        finally:
            # Releases the HTTP response when the consumer stops early
            close = getattr(chunks, "close", None)
            if close is not None:
                try:
                    await asyncio.to_thread(close)
                except Exception as e:
                    logger.debug(f"Failed to close synthesis stream: {e}")

    async def list_voices(self) -> list[VoiceInfo]:
        """Get list of available voices.

        Results are cached after first call to avoid repeated API requests.
        """
        if self._voices_cache is not None:
            return self._voices_cache

        def _sync_get_voices() -> list[VoiceInfo]:
            response = self._client.voices.get_all()
            return [
                VoiceInfo(
                    voice_id=voice.voice_id,
                    name=voice.name,
                    category=getattr(voice, "category", None),
                    description=getattr(voice, "description", None),
                )
                for voice in response.voices
            ]

        logger.debug(f"GET {self._config.endpoint('voices')}")
        try:
            voices = await asyncio.to_thread(_sync_get_voices)
        except Exception as e:
            raise _translate_error(e, "Voice listing") from e

        self._voices_cache = voices
        return voices

    async def get_quota(self) -> QuotaInfo:
        """Fetch character usage for the current billing period."""

        def _sync_subscription() -> QuotaInfo:
            subscription = self._client.user.subscription.get()
            return QuotaInfo(
                character_count=subscription.character_count,
                character_limit=subscription.character_limit,
                next_reset_unix=getattr(
                    subscription, "next_character_count_reset_unix", None
                ),
            )

        logger.debug(f"GET {self._config.endpoint('user/subscription')}")
        try:
            return await asyncio.to_thread(_sync_subscription)
        except Exception as e:
            raise _translate_error(e, "Quota lookup") from e
