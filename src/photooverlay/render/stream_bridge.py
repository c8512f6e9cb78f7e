"""Bridge between a renderer process and the outbound HTTP body stream."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator

from ..assets.cleanup import CleanupCoordinator
from ..compose.compose_errors import RendererSpawnError, RendererTimeoutError
from .latch import TerminalLatch
from .output_stream import OutputStream, StreamState
from .session import ProcessSession

logger = logging.getLogger(__name__)


class StreamBridge:
    """Relays renderer stdout into an :class:`OutputStream`.

    The bridge is the only caller of ``emit``, ``end`` and ``fail`` on its
    stream. Every terminal decision (clean exit, renderer failure, spawn
    failure, timeout, consumer cancellation) goes through one latch, so the
    stream is terminated at most once and cleanup runs before the terminal
    call reaches the consumer.

    ``timeout_seconds`` bounds the renderer process lifetime only. Time the
    relay spends waiting for a slow consumer after the renderer exited does
    not count against it.
    """

    def __init__(
        self,
        session: ProcessSession,
        stream: OutputStream,
        cleanup: CleanupCoordinator,
        *,
        timeout_seconds: float | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.session = session
        self.stream = stream
        self.cleanup = cleanup
        self.timeout_seconds = timeout_seconds
        self.log = log or logger
        self._latch: TerminalLatch[StreamState] = TerminalLatch(StreamState.OPEN)
        self._relay_task: asyncio.Task[None] | None = None
        self._deadline_task: asyncio.Task[None] | None = None

    @property
    def terminal_state(self) -> StreamState:
        return self._latch.state

    @property
    def finished(self) -> bool:
        return self._latch.is_set

    async def open(self) -> None:
        """Spawn the renderer and start relaying its output.

        Raises :class:`RendererSpawnError` after terminating the stream and
        releasing temporary assets.
        """
        try:
            await self.session.start()
        except RendererSpawnError as exc:
            self._terminate(exc)
            raise
        self._relay_task = asyncio.create_task(
            self._relay(), name=f"renderer-relay-{self.session.pid}"
        )
        if self.timeout_seconds:
            self._deadline_task = asyncio.create_task(
                self._enforce_deadline(self.timeout_seconds),
                name=f"renderer-deadline-{self.session.pid}",
            )

    async def body(self) -> AsyncIterator[bytes]:
        """Async iterator consumed by the HTTP response."""
        try:
            async for chunk in self.stream:
                yield chunk
        finally:
            # Runs inside a possibly cancelled scope, so nothing here awaits.
            self.stream.cancel()
            if not self._latch.is_set:
                self.abort()

    def abort(self) -> None:
        """Consumer went away before the renderer finished."""
        if self._latch.trip(StreamState.CANCELLED):
            self.stream.cancel()
            self.session.kill()
            self.cleanup.release()
            self.log.warning(
                "render.bridge.cancelled",
                extra={"pid": self.session.pid, "chunks_emitted": self.stream.chunks_emitted},
            )
        self._stop_relay()

    async def wait_closed(self) -> None:
        """Wait until the relay and deadline tasks have finished (used by shutdown and tests)."""
        tasks = [task for task in (self._relay_task, self._deadline_task) if task is not None]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _relay(self) -> None:
        try:
            await self._pump()
        except asyncio.CancelledError:
            # Reap the killed renderer; this task is not cancelled twice.
            await self.session.terminate()
            raise
        except Exception as exc:
            self.log.exception("render.bridge.relay_failed", extra={"pid": self.session.pid})
            self.session.kill()
            self._terminate(exc)
            await self.session.terminate()
        finally:
            if self._deadline_task is not None:
                self._deadline_task.cancel()

    async def _pump(self) -> None:
        async for chunk in self.session.iter_stdout():
            if self._latch.is_set:
                break
            await self.stream.emit(chunk)
        outcome = await self.session.wait()
        self._terminate(outcome.to_exception())

    async def _enforce_deadline(self, timeout_seconds: float) -> None:
        await asyncio.sleep(timeout_seconds)
        if self.session.exit_code is not None:
            return
        self.session.kill()
        if self._terminate(
            RendererTimeoutError(f"renderer did not finish within {timeout_seconds} seconds")
        ):
            self._stop_relay()

    def _stop_relay(self) -> None:
        current = asyncio.current_task()
        for task in (self._relay_task, self._deadline_task):
            if task is not None and task is not current and not task.done():
                task.cancel()

    def _terminate(self, error: BaseException | None) -> bool:
        state = StreamState.ENDED if error is None else StreamState.FAILED
        if not self._latch.trip(state):
            return False
        self.cleanup.release()
        if error is None:
            self.stream.end()
            self.log.info(
                "render.bridge.completed",
                extra={
                    "pid": self.session.pid,
                    "chunks_emitted": self.stream.chunks_emitted,
                    "bytes_emitted": self.stream.bytes_emitted,
                },
            )
        else:
            self.stream.fail(error)
            self.log.warning(
                "render.bridge.failed",
                extra={"pid": self.session.pid, "error": str(error)},
            )
        return True


__all__ = ["StreamBridge"]
