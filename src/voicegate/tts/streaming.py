"""Pull-based audio chunk streams with cooperative cancellation."""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Iterator

logger = logging.getLogger(__name__)


def iter_chunks(data: bytes, chunk_size: int) -> Iterator[bytes]:
    """Split data into chunk_size pieces; only the last may be shorter."""
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    for start in range(0, len(data), chunk_size):
        yield data[start : start + chunk_size]


class AudioChunkStream:
    """Finite, ordered, non-restartable sequence of audio chunks.

    Nothing is produced until the first ``__anext__``. Cancellation is
    checked before every chunk, either through ``cancel()`` or through an
    ``asyncio.Event`` handed in by the caller; once cancelled or exhausted
    the stream stays finished and the underlying source is closed.
    An optional guard also runs before every chunk; anything it raises
    finishes the stream and propagates to the consumer. Chunks already
    handed out remain valid.

    Example:
        stream = pipeline.stream_speech("Diagnostics complete", cancel_event=stop)
        async for chunk in stream:
            player.feed(chunk)
    """

    def __init__(
        self,
        source: AsyncIterator[bytes],
        cancel_event: asyncio.Event | None = None,
        chunk_delay: float = 0.0,
        guard: Callable[[], None] | None = None,
    ) -> None:
        """Wrap an async chunk source.

        Args:
            source: Async iterator (usually an async generator) of chunks
            cancel_event: Optional event that stops production when set
            chunk_delay: Pause inserted between consecutive chunks
            guard: Called before each chunk, e.g. the owner's open-state check
        """
        self._source = source
        self._cancel_event = cancel_event
        self._chunk_delay = chunk_delay
        self._guard = guard
        self._cancelled = False
        self._finished = False
        self._produced = 0

    @property
    def cancelled(self) -> bool:
        return self._cancelled or (
            self._cancel_event is not None and self._cancel_event.is_set()
        )

    @property
    def chunks_produced(self) -> int:
        return self._produced

    def cancel(self) -> None:
        """Stop producing chunks; takes effect before the next chunk."""
        self._cancelled = True

    def __aiter__(self) -> "AudioChunkStream":
        return self

    async def __anext__(self) -> bytes:
        await self._check_guard()
        if self._finished:
            raise StopAsyncIteration
        if self.cancelled:
            await self._stop("cancelled")
            raise StopAsyncIteration

        try:
            chunk = await anext(self._source)
        except StopAsyncIteration:
            await self._stop("exhausted")
            raise

        if self._produced and self._chunk_delay > 0:
            await asyncio.sleep(self._chunk_delay)
            await self._check_guard()
            if self.cancelled:
                await self._stop("cancelled")
                raise StopAsyncIteration

        self._produced += 1
        return chunk

    async def aclose(self) -> None:
        """Release the source without producing further chunks."""
        await self._stop("closed")

    async def collect(self) -> bytes:
        """Drain the remaining chunks into a single buffer."""
        return b"".join([chunk async for chunk in self])

    async def _check_guard(self) -> None:
        if self._guard is None:
            return
        try:
            self._guard()
        except Exception:
            await self._stop("guard failed")
            raise

    async def _stop(self, reason: str) -> None:
        if self._finished:
            return
        self._finished = True
        close = getattr(self._source, "aclose", None)
        if close is not None:
            await close()
        logger.debug(f"Chunk stream {reason} after {self._produced} chunks")
