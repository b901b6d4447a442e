"""Typer CLI definition for voicegate."""

import asyncio
import dataclasses
import logging
import sys
from pathlib import Path

import typer

from .api import create_pipeline, speak
from .config import CONFIG_PATH, VoiceGateConfig, generate_config, load_config
from .tts.errors import ConfigurationError, TTSAPIError, TTSAuthError

app = typer.Typer(help="Speak text through ElevenLabs with caching and offline fallback")


def process_text_input(text: str | None) -> str:
    """Validate text input and return the text to speak.

    Raises:
        ValueError: If no text is provided or it is blank
    """
    if text is None:
        raise ValueError("No text provided")
    if not text.strip():
        raise ValueError("Text cannot be empty")
    return text


def _report(debug: bool, label: str, message: str, error: Exception) -> None:
    if debug:
        typer.echo(f"Debug - {label}: {error!r}", err=True)
    else:
        typer.echo(f"Error: {message}", err=True)


async def list_available_voices(config: VoiceGateConfig) -> None:
    """Print remote voices, then the voices of the fallback engine."""
    async with create_pipeline(config) as pipeline:
        voices = await pipeline.get_available_voices()
        if voices:
            typer.echo("ElevenLabs voices:")
            for voice in voices:
                category = f" [{voice.category}]" if voice.category else ""
                typer.echo(f"  {voice.voice_id}  {voice.name}{category}")
        else:
            typer.echo("No ElevenLabs voices available")

        if pipeline.fallback is not None:
            fallback_voices = await pipeline.fallback.list_voices()
            typer.echo(f"\nFallback voices ({pipeline.fallback.name}):")
            for voice in fallback_voices:
                typer.echo(f"  {voice['id']}  {voice['name']} ({voice['provider']})")


async def show_quota(config: VoiceGateConfig) -> bool:
    """Print character usage; returns False if it could not be fetched."""
    async with create_pipeline(config) as pipeline:
        quota = await pipeline.get_quota_info()
    if quota is None:
        return False

    typer.echo("=== ElevenLabs Quota ===")
    typer.echo(f"Used: {quota.character_count:,} / {quota.character_limit:,}")
    typer.echo(f"Remaining: {quota.characters_remaining:,}")
    typer.echo(f"Usage: {quota.used_percentage:.1f}%")
    if quota.next_reset:
        typer.echo(f"Resets: {quota.next_reset:%Y-%m-%d %H:%M UTC}")
    return True


@app.command()
def main(
    text: str | None = typer.Argument(None, help="Text to convert to speech"),
    file: Path | None = typer.Option(None, "-f", "--file", help="Read text from file"),
    output: Path | None = typer.Option(
        None, "-o", "--output", help="Save output to file instead of playing"
    ),
    voice: str | None = typer.Option(
        None, "-v", "--voice", help="Voice ID (from config if omitted)"
    ),
    model: str | None = typer.Option(
        None, "-m", "--model", help="Model ID (e.g., eleven_turbo_v2_5)"
    ),
    stream: bool = typer.Option(
        False, "--stream", help="Use chunked streaming synthesis"
    ),
    config_path: Path | None = typer.Option(
        None, "--config", help=f"Config file (default: {CONFIG_PATH})"
    ),
    debug: bool = typer.Option(
        False, "--debug", help="Show verbose error messages and pipeline activity"
    ),
    list_voices: bool = typer.Option(
        False, "--list-voices", help="List available voices and exit"
    ),
    quota: bool = typer.Option(False, "--quota", help="Show character quota and exit"),
    init_config: bool = typer.Option(
        False, "--init-config", help="Write a default config file and exit"
    ),
) -> None:
    """Convert text to speech, falling back to local engines when needed."""
    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )

    if init_config:
        target = config_path or CONFIG_PATH
        if target.exists():
            typer.echo(f"Config already exists: {target}")
            raise typer.Exit(1)
        typer.echo(f"Config written to {generate_config(target)}")
        raise typer.Exit(0)

    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        _report(debug, "Config error", str(e), e)
        raise typer.Exit(1) from None
    if model:
        config = dataclasses.replace(
            config, api=dataclasses.replace(config.api, model_id=model)
        )

    if list_voices:
        try:
            asyncio.run(list_available_voices(config))
        except Exception as e:
            _report(debug, "Failed to list voices", f"Failed to list voices: {e}", e)
            raise typer.Exit(1) from None
        raise typer.Exit(0)

    if quota:
        try:
            ok = asyncio.run(show_quota(config))
        except Exception as e:
            _report(debug, "Quota lookup failed", f"Failed to get quota: {e}", e)
            raise typer.Exit(1) from None
        if not ok:
            typer.echo("Error: Failed to get quota information", err=True)
            raise typer.Exit(1)
        raise typer.Exit(0)

    # Text comes from argument, file, or stdin (in priority order)
    if text is None:
        if file:
            try:
                text = file.read_text()
            except FileNotFoundError as e:
                _report(debug, f"File not found: {file}", f"File not found: {file}", e)
                raise typer.Exit(1) from None
            except PermissionError as e:
                _report(
                    debug,
                    f"Permission denied: {file}",
                    f"Permission denied reading file: {file}",
                    e,
                )
                raise typer.Exit(1) from None
            except UnicodeDecodeError as e:
                _report(
                    debug,
                    f"Decode error: {file}",
                    f"Unable to decode file as text: {file}",
                    e,
                )
                raise typer.Exit(1) from None
        elif not sys.stdin.isatty():
            text = sys.stdin.read().strip()

    try:
        output_text = process_text_input(text)
    except ValueError as e:
        _report(debug, "Text processing error", str(e), e)
        raise typer.Exit(1) from None

    try:
        asyncio.run(
            speak(output_text, voice=voice, output=output, stream=stream, config=config)
        )
        if output:
            typer.echo(f"Audio saved to {output}")

    except ConfigurationError as e:
        _report(debug, "Config error", str(e), e)
        raise typer.Exit(1) from None
    except (TTSAuthError, TTSAPIError) as e:
        _report(debug, "TTS error", str(e), e)
        raise typer.Exit(1) from None
    except OSError as e:
        _report(debug, "File system error", f"Failed to save audio file: {e}", e)
        raise typer.Exit(1) from None
    except RuntimeError as e:
        _report(debug, "Audio error", f"Failed to produce audio: {e}", e)
        raise typer.Exit(1) from None
    except ValueError as e:
        _report(debug, "Text processing error", str(e), e)
        raise typer.Exit(1) from None
    except Exception as e:
        _report(debug, "Unexpected error", "An unexpected error occurred", e)
        raise typer.Exit(1) from None
