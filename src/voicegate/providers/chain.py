"""Ordered multi-engine fallback with failure cooldown."""

import logging
import time
from collections.abc import AsyncIterator, Callable, Sequence
from dataclasses import dataclass

from .base import VoiceService

logger = logging.getLogger(__name__)


@dataclass
class _Health:
    failures: int = 0
    last_failure: float | None = None
    last_error: str | None = None


class FallbackChain(VoiceService):
    """Try each engine in preference order until one produces output.

    An engine that fails ``max_failures`` times in a row is skipped until
    ``cooldown_seconds`` have passed since its last failure. Any success
    resets its failure count. An empty result counts as "try the next
    engine" but not as a failure.

    Example:
        chain = FallbackChain([SystemVoiceService(), SilentVoiceService()])
        audio = await chain.generate_speech("Backup systems online")
    """

    name = "chain"

    def __init__(
        self,
        services: Sequence[VoiceService],
        max_failures: int = 3,
        cooldown_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not services:
            raise ValueError("FallbackChain needs at least one service")
        self.services = list(services)
        self.max_failures = max_failures
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._health: dict[int, _Health] = {id(s): _Health() for s in self.services}

        logger.info(
            "Fallback chain: " + " -> ".join(s.name for s in self.services)
        )

    def available_services(self) -> list[VoiceService]:
        """Services not currently in cooldown, in preference order."""
        now = self._clock()
        available = []
        for service in self.services:
            health = self._health[id(service)]
            if (
                health.failures >= self.max_failures
                and health.last_failure is not None
                and now - health.last_failure < self.cooldown_seconds
            ):
                logger.debug(f"Service {service.name} is in cooldown")
                continue
            available.append(service)
        return available

    async def generate_speech(self, text: str, voice_id: str | None = None) -> bytes:
        if not text or not text.strip():
            return b""

        for service in self.available_services():
            try:
                logger.debug(f"Attempting speech generation with {service.name}")
                audio = await service.generate_speech(text, voice_id)
            except Exception as e:
                self._record_failure(service, e)
                continue
            if audio:
                self._record_success(service)
                return audio
            logger.warning(f"{service.name} returned empty audio data")

        logger.error("All fallback services failed to generate speech")
        return b""

    def stream_speech(
        self, text: str, voice_id: str | None = None
    ) -> AsyncIterator[bytes]:
        return self._stream(text, voice_id)

    async def _stream(self, text: str, voice_id: str | None) -> AsyncIterator[bytes]:
        if not text or not text.strip():
            return

        for service in self.available_services():
            produced = False
            try:
                logger.debug(f"Attempting streaming speech with {service.name}")
                async for chunk in service.stream_speech(text, voice_id):
                    if chunk:
                        produced = True
                        yield chunk
            except Exception as e:
                self._record_failure(service, e)
                if produced:
                    # Chunks already went out; switching engines would splice audio
                    return
                continue
            if produced:
                self._record_success(service)
                return
            logger.warning(f"{service.name} completed streaming but yielded no data")

        logger.error("All fallback services failed to stream speech")

    async def recognize_speech(self, audio: bytes, language: str | None = None) -> str:
        for service in self.available_services():
            try:
                text = await service.recognize_speech(audio, language)
            except Exception as e:
                self._record_failure(service, e)
                continue
            if text:
                self._record_success(service)
                return text

        logger.error("All fallback services failed to recognize speech")
        return ""

    async def list_voices(self) -> list[dict]:
        voices = []
        for service in self.services:
            try:
                voices.extend(await service.list_voices())
            except Exception as e:
                logger.warning(f"Could not list voices from {service.name}: {e}")
        return voices

    def get_service_status(self) -> dict[str, dict]:
        """Report failure counts and cooldown state for every engine."""
        available = {id(s) for s in self.available_services()}
        return {
            service.name: {
                "available": id(service) in available,
                "failure_count": self._health[id(service)].failures,
                "last_error": self._health[id(service)].last_error,
            }
            for service in self.services
        }

    def _record_success(self, service: VoiceService) -> None:
        self._health[id(service)] = _Health()
        logger.info(f"Successfully used fallback service {service.name}")

    def _record_failure(self, service: VoiceService, error: Exception) -> None:
        health = self._health[id(service)]
        health.failures += 1
        health.last_failure = self._clock()
        health.last_error = str(error)
        logger.warning(
            f"Service {service.name} failure #{health.failures}: {error}"
        )
        if health.failures >= self.max_failures:
            logger.warning(
                f"Service {service.name} reached {self.max_failures} failures, "
                f"cooling down for {self.cooldown_seconds:.0f}s"
            )
