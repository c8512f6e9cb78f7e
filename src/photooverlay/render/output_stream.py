"""Bounded byte stream handed to the HTTP layer."""

from __future__ import annotations

import asyncio
from enum import StrEnum


class StreamState(StrEnum):
    OPEN = "open"
    ENDED = "ended"
    FAILED = "failed"
    CANCELLED = "cancelled"


class OutputStream:
    """Single-producer, single-consumer sequence of byte chunks.

    The producer calls :meth:`emit` zero or more times followed by at most one
    of :meth:`end` or :meth:`fail`. The consumer iterates with ``async for``;
    a failed stream re-raises its error after the already queued chunks.
    Only chunks go through the bounded queue, so a slow consumer suspends the
    producer in :meth:`emit` while :meth:`end` and :meth:`fail` never wait.
    :meth:`cancel` is the consumer side "I am gone" signal and releases a
    producer blocked on a full queue.
    """

    def __init__(self, max_pending_chunks: int = 8) -> None:
        if max_pending_chunks < 1:
            raise ValueError("max_pending_chunks must be at least 1")
        self._queue: asyncio.Queue[bytes] = asyncio.Queue(maxsize=max_pending_chunks)
        self._changed = asyncio.Event()
        self._state = StreamState.OPEN
        self._error: BaseException | None = None
        self._exhausted = False
        self.chunks_emitted = 0
        self.bytes_emitted = 0
        self.chunks_dropped = 0

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def error(self) -> BaseException | None:
        return self._error

    @property
    def closed(self) -> bool:
        return self._state is not StreamState.OPEN

    async def emit(self, chunk: bytes) -> bool:
        """Queue ``chunk``; returns ``False`` when the stream no longer accepts data."""
        if self._state is not StreamState.OPEN:
            self.chunks_dropped += 1
            return False
        await self._queue.put(bytes(chunk))
        self.chunks_emitted += 1
        self.bytes_emitted += len(chunk)
        self._changed.set()
        return True

    def end(self) -> bool:
        if self._state is not StreamState.OPEN:
            return False
        self._state = StreamState.ENDED
        self._changed.set()
        return True

    def fail(self, error: BaseException) -> bool:
        if self._state is not StreamState.OPEN:
            return False
        self._state = StreamState.FAILED
        self._error = error
        self._changed.set()
        return True

    def cancel(self) -> bool:
        """Mark the consumer as gone and discard pending chunks."""
        changed = self._state is StreamState.OPEN
        if changed:
            self._state = StreamState.CANCELLED
        while True:
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
        self._changed.set()
        return changed

    def __aiter__(self) -> "OutputStream":
        return self

    async def __anext__(self) -> bytes:
        while True:
            if self._exhausted or self._state is StreamState.CANCELLED:
                raise StopAsyncIteration
            if not self._queue.empty():
                return self._queue.get_nowait()
            if self._state is not StreamState.OPEN:
                # Terminal state is only reported once every queued chunk is out.
                self._exhausted = True
                if self._state is StreamState.FAILED and self._error is not None:
                    raise self._error
                raise StopAsyncIteration
            self._changed.clear()
            await self._changed.wait()


__all__ = ["OutputStream", "StreamState"]
