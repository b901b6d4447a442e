"""Pytest configuration and fixtures for voicegate tests."""

import sys
from collections.abc import AsyncIterator, Callable
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from voicegate.cache import AudioCacheStore
from voicegate.config import ApiConfig, FallbackConfig, VoiceGateConfig
from voicegate.providers import VoiceService
from voicegate.ratelimit import RateTracker
from voicegate.tts.models import QuotaInfo, VoiceInfo
from voicegate.tts.pipeline import VoicePipeline
from voicegate.tts.streaming import iter_chunks

REMOTE_AUDIO = bytes(range(256)) * 40  # 10240 bytes
FALLBACK_AUDIO = b"RIFF-fallback-audio"
FALLBACK_CHUNKS = (b"fb-one", b"fb-two", b"fb-three")


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeFallback(VoiceService):
    """Fallback engine that records every call."""

    name = "fake"

    def __init__(
        self,
        audio: bytes = FALLBACK_AUDIO,
        chunks: tuple[bytes, ...] = FALLBACK_CHUNKS,
        transcript: str = "hello there",
    ) -> None:
        self.audio = audio
        self.chunks = chunks
        self.transcript = transcript
        self.generate_calls: list[tuple[str, str | None]] = []
        self.stream_calls: list[tuple[str, str | None]] = []
        self.recognize_calls: list[bytes] = []

    async def generate_speech(self, text: str, voice_id: str | None = None) -> bytes:
        self.generate_calls.append((text, voice_id))
        return self.audio

    def stream_speech(
        self, text: str, voice_id: str | None = None
    ) -> AsyncIterator[bytes]:
        self.stream_calls.append((text, voice_id))
        return self._emit()

    async def _emit(self) -> AsyncIterator[bytes]:
        for chunk in self.chunks:
            yield chunk

    async def recognize_speech(self, audio: bytes, language: str | None = None) -> str:
        self.recognize_calls.append(audio)
        return self.transcript


async def _async_chunks(chunks: list[bytes]) -> AsyncIterator[bytes]:
    for chunk in chunks:
        yield chunk


def make_remote_client(
    audio: bytes = REMOTE_AUDIO,
    quota: QuotaInfo | None = None,
) -> MagicMock:
    """Mock RemoteSynthesisClient answering every endpoint successfully."""
    client = MagicMock()
    client.synthesize = AsyncMock(return_value=audio)
    client.stream = MagicMock(
        side_effect=lambda request: _async_chunks(list(iter_chunks(audio, 1000)))
    )
    client.get_quota = AsyncMock(
        return_value=quota or QuotaInfo(character_count=1000, character_limit=100000)
    )
    client.list_voices = AsyncMock(
        return_value=[VoiceInfo(voice_id="voice-1", name="Bella", category="premade")]
    )
    return client


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config() -> VoiceGateConfig:
    return VoiceGateConfig(
        api=ApiConfig(api_key="test-key"),
        fallback=FallbackConfig(providers=("silent",)),
    )


@pytest.fixture
def remote_client() -> MagicMock:
    return make_remote_client()


@pytest.fixture
def fallback() -> FakeFallback:
    return FakeFallback()


@pytest.fixture
def make_pipeline(
    config: VoiceGateConfig, remote_client: MagicMock, fallback: FakeFallback
) -> Callable[..., VoicePipeline]:
    """Factory building a pipeline from real cache/tracker and fake edges."""

    def _make(cfg: VoiceGateConfig | None = None, **overrides) -> VoicePipeline:
        kwargs = {
            "client": remote_client,
            "cache_store": AudioCacheStore(),
            "rate_tracker": RateTracker(),
            "fallback": fallback,
        }
        kwargs.update(overrides)
        return VoicePipeline(cfg or config, **kwargs)

    return _make
