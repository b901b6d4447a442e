"""Abstract base class for voice services.

This module defines the interface that every synthesis engine implements,
so the pipeline can route to any of them as a fallback without knowing
the concrete type.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from ..tts.streaming import iter_chunks

DEFAULT_STREAM_CHUNK_SIZE = 4096


class VoiceService(ABC):
    """Abstract base class for speech synthesis and recognition engines.

    Subclasses implement generate_speech and recognize_speech. The default
    stream_speech synthesizes the whole utterance and hands it out in
    fixed-size chunks; engines with native streaming override it.

    Voice Dictionary Structure:
        Each voice returned by list_voices() should follow this structure:
        {
            "id": str,       # Unique identifier for the voice
            "name": str,     # Human-readable name for the voice
            "provider": str  # Name of the provider (e.g., "system", "silent")
        }
    """

    name: str = "voice"
    stream_chunk_size: int = DEFAULT_STREAM_CHUNK_SIZE

    @abstractmethod
    async def generate_speech(self, text: str, voice_id: str | None = None) -> bytes:
        """Convert text to audio bytes.

        Args:
            text: The text to convert to speech
            voice_id: Optional engine-specific voice

        Returns:
            Audio data as bytes (empty for blank text)

        Raises:
            Exception: If synthesis fails
        """
        pass

    def stream_speech(
        self, text: str, voice_id: str | None = None
    ) -> AsyncIterator[bytes]:
        """Return a lazy async sequence of audio chunks for text."""
        return self._chunked(text, voice_id)

    @abstractmethod
    async def recognize_speech(self, audio: bytes, language: str | None = None) -> str:
        """Transcribe audio to text.

        Raises:
            RecognitionUnsupportedError: If the engine cannot transcribe
        """
        pass

    async def list_voices(self) -> list[dict]:
        """Return available voices for this engine."""
        return [{"id": "default", "name": "Default", "provider": self.name}]

    async def _chunked(self, text: str, voice_id: str | None) -> AsyncIterator[bytes]:
        audio = await self.generate_speech(text, voice_id)
        for chunk in iter_chunks(audio, self.stream_chunk_size):
            yield chunk
