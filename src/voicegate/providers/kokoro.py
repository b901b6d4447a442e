"""Kokoro local neural voice service.

Requires the ``local`` extra (kokoro, torch). The registry imports this
module only when "kokoro" is requested.
"""

import asyncio
import io
import logging

import numpy as np
import soundfile as sf
import torch
from kokoro import KPipeline

from ..tts.errors import RecognitionUnsupportedError
from .base import VoiceService

logger = logging.getLogger(__name__)

SAMPLE_RATE = 24000

# Voice prefix -> lang_code mapping
LANG_CODES = {"a": "a", "b": "b"}

VOICES = [
    "af_heart",
    "af_alloy",
    "af_bella",
    "af_nova",
    "af_sarah",
    "am_adam",
    "am_echo",
    "am_michael",
    "bf_alice",
    "bf_emma",
    "bf_isabella",
    "bm_daniel",
    "bm_george",
    "bm_lewis",
]


class KokoroVoiceService(VoiceService):
    """Kokoro-82M synthesis running entirely on this machine.

    Uses CUDA or Apple MPS when available, otherwise CPU. Pipelines are
    created lazily per language so switching between American and British
    voices does not reload the model.
    """

    name = "kokoro"

    def __init__(self, default_voice: str = "bm_george", device: str = "auto") -> None:
        self.default_voice = default_voice
        self._device = self._resolve_device(device)
        self._pipelines: dict[str, KPipeline] = {}
        logger.info(f"Kokoro using device: {self._device}")

    @staticmethod
    def _resolve_device(device: str) -> str:
        if device != "auto":
            return device
        if torch.cuda.is_available():
            return "cuda"
        if torch.backends.mps.is_available():
            return "mps"
        return "cpu"

    def _get_pipeline(self, voice: str) -> KPipeline:
        lang_code = LANG_CODES.get(voice[0], "a") if voice else "a"
        if lang_code not in self._pipelines:
            logger.info(f"Creating Kokoro pipeline for lang_code='{lang_code}'")
            self._pipelines[lang_code] = KPipeline(
                lang_code=lang_code, device=self._device
            )
        return self._pipelines[lang_code]

    async def generate_speech(self, text: str, voice_id: str | None = None) -> bytes:
        """Synthesize text to a 24kHz WAV."""
        if not text or not text.strip():
            return b""

        # Remote voice ids mean nothing here; only accept Kokoro voice names
        voice = voice_id if voice_id in VOICES else self.default_voice
        pipeline = self._get_pipeline(voice)

        def _generate() -> bytes:
            segments = [
                np.asarray(audio)
                for _, _, audio in pipeline(text, voice=voice)
                if audio is not None
            ]
            if not segments:
                return b""
            buf = io.BytesIO()
            sf.write(buf, np.concatenate(segments), SAMPLE_RATE, format="WAV")
            return buf.getvalue()

        return await asyncio.to_thread(_generate)

    async def recognize_speech(self, audio: bytes, language: str | None = None) -> str:
        raise RecognitionUnsupportedError("Kokoro does not provide speech recognition")

    async def list_voices(self) -> list[dict]:
        return [{"id": v, "name": v, "provider": self.name} for v in VOICES]
