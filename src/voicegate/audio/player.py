"""Audio output for synthesized speech using pygame."""

# ruff: noqa: E402
import os

# Must be set before pygame is imported
os.environ["PYGAME_HIDE_SUPPORT_PROMPT"] = "1"

import warnings

warnings.filterwarnings("ignore", category=UserWarning, module="pygame.pkgdata")

import asyncio
import io
import logging
from collections.abc import AsyncIterable
from pathlib import Path

import pygame

logger = logging.getLogger(__name__)


class AudioPlayer:
    """Plays or saves audio produced by the pipeline.

    Playback blocks until the clip finishes; the async variants run it in
    a worker thread so the event loop stays responsive.
    """

    def __init__(self) -> None:
        """Initialize the pygame mixer.

        Raises:
            RuntimeError: If pygame mixer fails to initialize.
        """
        try:
            pygame.mixer.init()
        except pygame.error as e:
            raise RuntimeError(f"Failed to initialize pygame audio mixer: {e}") from e

    def play_bytes(self, audio_data: bytes) -> None:
        """Play MP3 or WAV bytes through the speakers (blocking).

        Raises:
            ValueError: If no audio data provided.
            RuntimeError: If audio playback fails.
        """
        if not audio_data:
            raise ValueError("No audio data provided")

        try:
            pygame.mixer.music.load(io.BytesIO(audio_data))
            pygame.mixer.music.play()
            while pygame.mixer.music.get_busy():
                pygame.time.Clock().tick(10)
        except pygame.error as e:
            raise RuntimeError(f"Failed to play audio: {e}") from e

    async def play_bytes_async(self, audio_data: bytes) -> None:
        """Play audio without blocking the event loop."""
        await asyncio.to_thread(self.play_bytes, audio_data)

    async def play_stream(self, chunks: AsyncIterable[bytes]) -> int:
        """Buffer a chunk stream and play it once complete.

        The mixer needs a complete container, so chunks are gathered
        first. Returns the number of bytes played (0 plays nothing).
        """
        audio_data = b"".join([chunk async for chunk in chunks])
        if audio_data:
            await self.play_bytes_async(audio_data)
        return len(audio_data)

    @staticmethod
    def save_to_file(audio_data: bytes, filepath: str | Path) -> None:
        """Save audio bytes to a file, creating parent directories.

        Raises:
            ValueError: If no audio data provided.
            OSError: If file cannot be written.
        """
        if not audio_data:
            raise ValueError("No audio data provided")

        filepath = Path(filepath)
        try:
            filepath.parent.mkdir(parents=True, exist_ok=True)
            filepath.write_bytes(audio_data)
        except OSError as e:
            raise OSError(f"Failed to save audio to {filepath}: {e}") from e

    @staticmethod
    async def save_stream(chunks: AsyncIterable[bytes], filepath: str | Path) -> int:
        """Write chunks to a file as they arrive.

        Returns:
            Number of bytes written

        Raises:
            OSError: If file cannot be written.
        """
        filepath = Path(filepath)
        written = 0
        try:
            filepath.parent.mkdir(parents=True, exist_ok=True)
            with open(filepath, "wb") as f:
                async for chunk in chunks:
                    f.write(chunk)
                    written += len(chunk)
        except OSError as e:
            raise OSError(f"Failed to save audio to {filepath}: {e}") from e

        logger.debug(f"Streamed {written} bytes to {filepath}")
        return written
