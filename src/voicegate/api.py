"""High-level API for voicegate library usage."""

from pathlib import Path

from .cache import AudioCacheStore
from .config import VoiceGateConfig, load_config
from .providers import VoiceService
from .ratelimit import RateTracker
from .tts.pipeline import VoicePipeline


def create_pipeline(
    config: VoiceGateConfig | None = None,
    fallback: VoiceService | None = None,
) -> VoicePipeline:
    """Build a pipeline with its own cache store and rate tracker.

    Args:
        config: Configuration (loaded from the config file if omitted)
        fallback: Fallback engine (built from config.fallback if omitted)

    Raises:
        ConfigurationError: If the configuration is invalid
        TTSAuthError: If the remote client cannot be created
    """
    config = config or load_config()
    config.ensure_valid()

    cache_store = (
        AudioCacheStore(
            max_size_bytes=config.cache.max_size_bytes,
            ttl_seconds=config.cache.ttl_seconds,
        )
        if config.cache.enabled
        else None
    )
    rate_tracker = (
        RateTracker(
            max_requests_per_minute=config.rate_limit.max_requests_per_minute,
            max_characters_per_minute=config.rate_limit.max_characters_per_minute,
        )
        if config.rate_limit.enabled
        else None
    )
    return VoicePipeline(
        config,
        cache_store=cache_store,
        rate_tracker=rate_tracker,
        fallback=fallback,
    )


async def speak(
    text: str,
    voice: str | None = None,
    output: str | Path | None = None,
    stream: bool = False,
    config: VoiceGateConfig | None = None,
) -> bytes | None:
    """Synthesize speech from text.

    Args:
        text: Text to speak
        voice: Remote voice ID (defaults to the configured voice)
        output: File path to save audio (if None, plays audio)
        stream: Use the chunked streaming path
        config: Configuration (loaded from the config file if omitted)

    Returns:
        Audio bytes if output specified, None if played

    Raises:
        ValueError: If text is empty
        ConfigurationError: If the configuration is invalid
        RuntimeError: If audio playback fails
        OSError: If file save fails
    """
    if not text or not text.strip():
        raise ValueError("Text cannot be empty")

    # pygame is imported lazily
    from .audio.player import AudioPlayer

    async with create_pipeline(config) as pipeline:
        if stream:
            chunks = pipeline.stream_speech(text, voice)
            if output is not None:
                await AudioPlayer.save_stream(chunks, output)
                return Path(output).read_bytes()
            await AudioPlayer().play_stream(chunks)
            return None

        audio = await pipeline.generate_speech(text, voice)

    if not audio:
        raise RuntimeError("No audio produced by either the remote or fallback path")

    if output is not None:
        AudioPlayer.save_to_file(audio, output)
        return audio

    await AudioPlayer().play_bytes_async(audio)
    return None
