"""Unit tests for RemoteSynthesisClient error mapping and SDK calls."""

import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import httpx
import pytest
from elevenlabs.core import ApiError

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from voicegate.config import ApiConfig
from voicegate.tts.client import RemoteSynthesisClient
from voicegate.tts.errors import TTSAPIError, TTSAuthError, TTSTimeoutError
from voicegate.tts.models import SynthesisRequest, VoiceProfile


@pytest.fixture
def api_config() -> ApiConfig:
    return ApiConfig(api_key="test_key", timeout_seconds=12.0)


@pytest.fixture
def sdk() -> MagicMock:
    return MagicMock()


@pytest.fixture
def request_() -> SynthesisRequest:
    return SynthesisRequest(
        text="Hello", voice_id="voice-1", voice_settings=VoiceProfile(style=0.3)
    )


class TestRemoteSynthesisClientInitialization:
    """Test client construction and authentication errors."""

    def test_builds_sdk_client_from_config(self, api_config: ApiConfig) -> None:
        """Test the SDK client gets key, endpoint and timeout."""
        with patch("voicegate.tts.client.ElevenLabs") as mock_elevenlabs:
            RemoteSynthesisClient(api_config)

        mock_elevenlabs.assert_called_once_with(
            api_key="test_key", base_url="https://api.elevenlabs.io", timeout=12.0
        )

    def test_missing_key_raises_auth_error(self) -> None:
        """Test construction fails without a credential."""
        with pytest.raises(TTSAuthError, match="ElevenLabs API key not found"):
            RemoteSynthesisClient(ApiConfig())

    def test_sdk_failure_raises_auth_error(self, api_config: ApiConfig) -> None:
        """Test SDK construction errors become TTSAuthError."""
        with patch("voicegate.tts.client.ElevenLabs") as mock_elevenlabs:
            mock_elevenlabs.side_effect = Exception("Invalid API key")

            with pytest.raises(
                TTSAuthError, match="Failed to initialize ElevenLabs client"
            ):
                RemoteSynthesisClient(api_config)


class TestSynthesize:
    """Test non-streaming synthesis."""

    @pytest.mark.asyncio
    async def test_sends_request_fields(
        self, api_config: ApiConfig, sdk: MagicMock, request_: SynthesisRequest
    ) -> None:
        """Test text, model, settings and format reach the SDK."""
        sdk.text_to_speech.convert.return_value = iter([b"chunk1", b"chunk2"])
        client = RemoteSynthesisClient(api_config, client=sdk)

        audio = await client.synthesize(request_)

        assert audio == b"chunk1chunk2"
        sdk.text_to_speech.convert.assert_called_once_with(
            "voice-1",
            text="Hello",
            model_id="eleven_multilingual_v2",
            voice_settings=VoiceProfile(style=0.3).to_dict(),
            output_format="mp3_44100_128",
        )

    @pytest.mark.asyncio
    async def test_empty_audio_raises(
        self, api_config: ApiConfig, sdk: MagicMock, request_: SynthesisRequest
    ) -> None:
        """Test an empty response counts as a failure."""
        sdk.text_to_speech.convert.return_value = iter([])
        client = RemoteSynthesisClient(api_config, client=sdk)

        with pytest.raises(TTSAPIError, match="No audio data"):
            await client.synthesize(request_)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("error", "expected_type", "status", "message"),
        [
            (ApiError(status_code=401, body="bad key"), TTSAuthError, None, "Authentication failed"),
            (ApiError(status_code=429, body="slow down"), TTSAPIError, 429, "Rate limit exceeded"),
            (ApiError(status_code=500, body="oops"), TTSAPIError, 500, "Server error 500"),
            (ApiError(status_code=422, body="bad text"), TTSAPIError, 422, "status 422"),
            (httpx.ReadTimeout("slow"), TTSTimeoutError, None, "timed out"),
            (httpx.ConnectError("down"), TTSAPIError, None, "transport error"),
            (Exception("Network error"), TTSAPIError, None, "Network error"),
        ],
    )
    async def test_error_mapping(
        self,
        api_config: ApiConfig,
        sdk: MagicMock,
        request_: SynthesisRequest,
        error: Exception,
        expected_type: type,
        status: int | None,
        message: str,
    ) -> None:
        """Test SDK and transport failures map onto the TTSError family."""
        sdk.text_to_speech.convert.side_effect = error
        client = RemoteSynthesisClient(api_config, client=sdk)

        with pytest.raises(expected_type, match=message) as exc_info:
            await client.synthesize(request_)

        assert exc_info.value.original_error is error
        if status is not None:
            assert exc_info.value.status_code == status


class TestStream:
    """Test the streaming endpoint."""

    @pytest.mark.asyncio
    async def test_yields_chunks_in_order(
        self, api_config: ApiConfig, sdk: MagicMock, request_: SynthesisRequest
    ) -> None:
        """Test chunks arrive in order and empty chunks are skipped."""
        sdk.text_to_speech.stream.return_value = iter([b"a", b"", b"b", b"c"])
        client = RemoteSynthesisClient(api_config, client=sdk)

        chunks = [chunk async for chunk in client.stream(request_)]

        assert chunks == [b"a", b"b", b"c"]

    @pytest.mark.asyncio
    async def test_stream_error_mapped(
        self, api_config: ApiConfig, sdk: MagicMock, request_: SynthesisRequest
    ) -> None:
        """Test failures opening the stream are translated."""
        sdk.text_to_speech.stream.side_effect = ApiError(status_code=503, body="busy")
        client = RemoteSynthesisClient(api_config, client=sdk)

        with pytest.raises(TTSAPIError, match="Server error 503"):
            async for _ in client.stream(request_):
                pass

    @pytest.mark.asyncio
    async def test_early_stop_closes_sdk_iterator(
        self, api_config: ApiConfig, sdk: MagicMock, request_: SynthesisRequest
    ) -> None:
        """Test the SDK response is released when the consumer stops early."""
        released: list[bool] = []

        def response():
            try:
                yield b"a"
                yield b"b"
            finally:
                released.append(True)

        sdk.text_to_speech.stream.return_value = response()
        client = RemoteSynthesisClient(api_config, client=sdk)
        stream = client.stream(request_)

        assert await anext(stream) == b"a"
        await stream.aclose()

        assert released == [True]


class TestCatalogueAndQuota:
    """Test voice listing and quota lookup."""

    @pytest.mark.asyncio
    async def test_list_voices_cached(self, api_config: ApiConfig, sdk: MagicMock) -> None:
        """Test voices are converted and fetched only once."""
        sdk.voices.get_all.return_value = SimpleNamespace(
            voices=[
                SimpleNamespace(voice_id="v1", name="Bella", category="premade", description=None)
            ]
        )
        client = RemoteSynthesisClient(api_config, client=sdk)

        first = await client.list_voices()
        second = await client.list_voices()

        assert first[0].voice_id == "v1"
        assert first[0].category == "premade"
        assert second is first
        sdk.voices.get_all.assert_called_once()

    @pytest.mark.asyncio
    async def test_get_quota(self, api_config: ApiConfig, sdk: MagicMock) -> None:
        """Test subscription fields map onto QuotaInfo."""
        sdk.user.subscription.get.return_value = SimpleNamespace(
            character_count=2500,
            character_limit=10000,
            next_character_count_reset_unix=1700000000,
        )
        client = RemoteSynthesisClient(api_config, client=sdk)

        quota = await client.get_quota()

        assert quota.characters_remaining == 7500
        assert quota.next_reset_unix == 1700000000

    @pytest.mark.asyncio
    async def test_get_quota_auth_failure(self, api_config: ApiConfig, sdk: MagicMock) -> None:
        """Test a rejected key surfaces as TTSAuthError."""
        sdk.user.subscription.get.side_effect = ApiError(status_code=401, body="no")
        client = RemoteSynthesisClient(api_config, client=sdk)

        with pytest.raises(TTSAuthError):
            await client.get_quota()
