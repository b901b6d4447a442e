"""Placeholder voice service producing silent audio.

Used as the last link of a fallback chain: it never fails, so callers
always receive well-formed audio even when every real engine is down.
"""

import asyncio
import io
import logging

import numpy as np
import soundfile as sf

from .base import VoiceService

logger = logging.getLogger(__name__)

SAMPLE_RATE = 16000


class SilentVoiceService(VoiceService):
    """Deterministic silent-WAV engine.

    Duration scales with the text (roughly reading speed) so downstream
    playback timing stays plausible. Recognition returns an empty
    transcript.
    """

    name = "silent"

    def __init__(
        self,
        seconds_per_character: float = 0.06,
        min_seconds: float = 0.25,
        max_seconds: float = 30.0,
    ) -> None:
        self.seconds_per_character = seconds_per_character
        self.min_seconds = min_seconds
        self.max_seconds = max_seconds

    def duration_for(self, text: str) -> float:
        seconds = len(text.strip()) * self.seconds_per_character
        return min(self.max_seconds, max(self.min_seconds, seconds))

    async def generate_speech(self, text: str, voice_id: str | None = None) -> bytes:
        if not text or not text.strip():
            return b""

        frames = int(self.duration_for(text) * SAMPLE_RATE)

        def _render() -> bytes:
            buf = io.BytesIO()
            sf.write(
                buf,
                np.zeros(frames, dtype=np.int16),
                SAMPLE_RATE,
                format="WAV",
                subtype="PCM_16",
            )
            return buf.getvalue()

        audio = await asyncio.to_thread(_render)
        logger.debug(f"Rendered {frames} silent frames for {len(text)} characters")
        return audio

    async def recognize_speech(self, audio: bytes, language: str | None = None) -> str:
        return ""

    async def list_voices(self) -> list[dict]:
        return [{"id": "silent", "name": "Silence", "provider": self.name}]
