"""Unit tests for CLI logic and option handling."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

# Add src to path for testing
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from voicegate.cli import app, process_text_input
from voicegate.tts.errors import TTSAPIError

runner = CliRunner()


def test_process_text_input_with_valid_text() -> None:
    """Test that process_text_input returns text unchanged."""
    assert process_text_input("  Hello   world  ") == "  Hello   world  "


def test_process_text_input_with_none_raises_value_error() -> None:
    """Test that process_text_input raises ValueError when text is None."""
    with pytest.raises(ValueError, match="No text provided"):
        process_text_input(None)


def test_process_text_input_with_blank_raises_value_error() -> None:
    """Test that blank text is rejected."""
    with pytest.raises(ValueError, match="Text cannot be empty"):
        process_text_input("   \n")


class TestCliCommand:
    """Test the typer command with the pipeline mocked out."""

    @pytest.fixture(autouse=True)
    def env(self, monkeypatch, tmp_path: Path) -> Path:
        monkeypatch.setenv("ELEVENLABS_API_KEY", "test-key")
        monkeypatch.setattr("voicegate.cli.CONFIG_PATH", tmp_path / "config.toml")
        monkeypatch.setattr("voicegate.config.CONFIG_PATH", tmp_path / "config.toml")
        return tmp_path

    def test_speaks_argument_text(self) -> None:
        """Test the argument text is passed to speak."""
        with patch("voicegate.cli.speak", new_callable=AsyncMock) as mock_speak:
            result = runner.invoke(app, ["Hello world", "--voice", "v9"])

        assert result.exit_code == 0
        args, kwargs = mock_speak.call_args
        assert args == ("Hello world",)
        assert kwargs["voice"] == "v9"
        assert kwargs["stream"] is False
        assert kwargs["config"].api.api_key == "test-key"

    def test_output_and_stream_flags(self, tmp_path: Path) -> None:
        """Test --output and --stream reach speak and saving is confirmed."""
        target = tmp_path / "out.mp3"
        with patch("voicegate.cli.speak", new_callable=AsyncMock) as mock_speak:
            result = runner.invoke(app, ["Hi", "-o", str(target), "--stream"])

        assert result.exit_code == 0
        assert f"Audio saved to {target}" in result.output
        assert mock_speak.call_args.kwargs["stream"] is True
        assert mock_speak.call_args.kwargs["output"] == target

    def test_model_override(self) -> None:
        """Test --model replaces the configured model id."""
        with patch("voicegate.cli.speak", new_callable=AsyncMock) as mock_speak:
            runner.invoke(app, ["Hi", "--model", "eleven_turbo_v2_5"])

        assert mock_speak.call_args.kwargs["config"].api.model_id == "eleven_turbo_v2_5"

    def test_reads_text_from_file(self, tmp_path: Path) -> None:
        """Test -f reads the text to speak."""
        source = tmp_path / "msg.txt"
        source.write_text("From a file")
        with patch("voicegate.cli.speak", new_callable=AsyncMock) as mock_speak:
            result = runner.invoke(app, ["-f", str(source)])

        assert result.exit_code == 0
        assert mock_speak.call_args.args == ("From a file",)

    def test_missing_file_reports_error(self, tmp_path: Path) -> None:
        """Test a missing input file exits with an error."""
        result = runner.invoke(app, ["-f", str(tmp_path / "nope.txt")])

        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_api_error_reported(self) -> None:
        """Test TTS errors exit with their message."""
        with patch(
            "voicegate.cli.speak",
            new_callable=AsyncMock,
            side_effect=TTSAPIError("Server error 500"),
        ):
            result = runner.invoke(app, ["Hi"])

        assert result.exit_code == 1
        assert "Error: Server error 500" in result.output

    def test_init_config_writes_file(self, tmp_path: Path) -> None:
        """Test --init-config writes the default config once."""
        target = tmp_path / "voicegate.toml"

        first = runner.invoke(app, ["--init-config", "--config", str(target)])
        second = runner.invoke(app, ["--init-config", "--config", str(target)])

        assert first.exit_code == 0
        assert target.exists()
        assert second.exit_code == 1
        assert "already exists" in second.output

    def test_invalid_config_reported(self, tmp_path: Path) -> None:
        """Test a broken config file exits with an error."""
        target = tmp_path / "bad.toml"
        target.write_text("[api\n")

        result = runner.invoke(app, ["Hi", "--config", str(target)])

        assert result.exit_code == 1
        assert "Invalid voicegate configuration" in result.output

    def test_quota_flag(self) -> None:
        """Test --quota prints usage from the pipeline."""
        with patch("voicegate.cli.show_quota", new_callable=AsyncMock, return_value=True):
            result = runner.invoke(app, ["--quota"])

        assert result.exit_code == 0

    def test_quota_failure(self) -> None:
        """Test a failed quota lookup exits non-zero."""
        with patch("voicegate.cli.show_quota", new_callable=AsyncMock, return_value=False):
            result = runner.invoke(app, ["--quota"])

        assert result.exit_code == 1
