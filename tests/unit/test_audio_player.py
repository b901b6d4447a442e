"""Unit tests for AudioPlayer validation and file output."""

import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

# Add src to path for testing
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from voicegate.audio.player import AudioPlayer


async def _chunks(*parts: bytes):
    for part in parts:
        yield part


class TestAudioPlayerValidation:
    """Test AudioPlayer validation logic."""

    def test_mixer_failure_raises_runtime_error(self) -> None:
        """Test a pygame init failure is reported as RuntimeError."""
        import pygame

        with patch(
            "voicegate.audio.player.pygame.mixer.init",
            side_effect=pygame.error("no audio device"),
        ):
            with pytest.raises(RuntimeError, match="Failed to initialize"):
                AudioPlayer()

    def test_play_bytes_with_empty_data_raises_value_error(self) -> None:
        """Test play_bytes rejects empty audio."""
        with patch("voicegate.audio.player.pygame.mixer.init"):
            player = AudioPlayer()

        with pytest.raises(ValueError, match="No audio data provided"):
            player.play_bytes(b"")

    def test_play_bytes_loads_and_waits(self) -> None:
        """Test playback loads the buffer and polls until idle."""
        with (
            patch("voicegate.audio.player.pygame.mixer.init"),
            patch("voicegate.audio.player.pygame.mixer.music") as mock_music,
            patch("voicegate.audio.player.pygame.time.Clock") as mock_clock,
        ):
            mock_music.get_busy.side_effect = [True, False]
            AudioPlayer().play_bytes(b"mp3-data")

        mock_music.load.assert_called_once()
        mock_music.play.assert_called_once()
        mock_clock.return_value.tick.assert_called_once_with(10)

    def test_save_to_file_with_empty_data_raises_value_error(self) -> None:
        """Test save_to_file rejects empty audio."""
        with pytest.raises(ValueError, match="No audio data provided"):
            AudioPlayer.save_to_file(b"", "output.mp3")

    def test_save_to_file_creates_parents(self, tmp_path: Path) -> None:
        """Test saving creates missing directories."""
        target = tmp_path / "a" / "b" / "out.mp3"

        AudioPlayer.save_to_file(b"audio", str(target))

        assert target.read_bytes() == b"audio"


class TestAudioPlayerStreams:
    """Test chunk stream output."""

    @pytest.mark.asyncio
    async def test_save_stream_writes_chunks(self, tmp_path: Path) -> None:
        """Test chunks are written in order and counted."""
        target = tmp_path / "stream.mp3"

        written = await AudioPlayer.save_stream(_chunks(b"ab", b"cd", b"e"), target)

        assert written == 5
        assert target.read_bytes() == b"abcde"

    @pytest.mark.asyncio
    async def test_play_stream_buffers_then_plays(self) -> None:
        """Test the stream is gathered into one playback call."""
        with patch("voicegate.audio.player.pygame.mixer.init"):
            player = AudioPlayer()
        player.play_bytes = MagicMock()

        played = await player.play_stream(_chunks(b"ab", b"cd"))

        assert played == 4
        player.play_bytes.assert_called_once_with(b"abcd")

    @pytest.mark.asyncio
    async def test_play_stream_empty_plays_nothing(self) -> None:
        """Test an empty stream does not touch the mixer."""
        with patch("voicegate.audio.player.pygame.mixer.init"):
            player = AudioPlayer()
        player.play_bytes = MagicMock()

        assert await player.play_stream(_chunks()) == 0
        player.play_bytes.assert_not_called()
