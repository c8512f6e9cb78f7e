"""Lifecycle of a single renderer process."""

from __future__ import annotations

import asyncio
import codecs
import logging
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass
from enum import StrEnum

from ..compose.compose_errors import (
    CompositionError,
    RendererFailedError,
    RendererSpawnError,
)
from .latch import TerminalLatch

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024
STDERR_READ_SIZE = 4096


class SessionState(StrEnum):
    RUNNING = "running"
    EXITED_OK = "exited_ok"
    EXITED_ERROR = "exited_error"
    SPAWN_FAILED = "spawn_failed"


@dataclass(frozen=True, slots=True)
class SessionOutcome:
    """Unified completion signal of a :class:`ProcessSession`."""

    state: SessionState
    exit_code: int | None = None
    stderr_text: str = ""
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.state is SessionState.EXITED_OK

    def to_exception(self) -> CompositionError | None:
        """Return the error the outbound stream must terminate with, if any."""
        if self.state is SessionState.EXITED_ERROR:
            return RendererFailedError(self.exit_code, self.stderr_text)
        if self.state is SessionState.SPAWN_FAILED:
            error = RendererSpawnError(f"renderer could not be started: {self.error}")
            error.__cause__ = self.error
            return error
        return None


class ProcessSession:
    """Spawns one renderer process and exposes its stdout and exit outcome.

    stdout is read on demand through :meth:`iter_stdout`; stderr is drained by a
    background task into a text buffer. The terminal state is latched once, by
    :meth:`start` on spawn failure or by :meth:`wait` on exit.
    """

    def __init__(
        self,
        binary: str,
        args: Sequence[str],
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        log: logging.Logger | None = None,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.binary = binary
        self.args = list(args)
        self.chunk_size = chunk_size
        self.log = log or logger
        self._latch: TerminalLatch[SessionState] = TerminalLatch(SessionState.RUNNING)
        self._process: asyncio.subprocess.Process | None = None
        self._stderr_parts: list[str] = []
        self._stderr_task: asyncio.Task[None] | None = None
        self._spawn_error: OSError | None = None
        self._outcome: SessionOutcome | None = None

    @property
    def argv(self) -> list[str]:
        return [self.binary, *self.args]

    @property
    def state(self) -> SessionState:
        return self._latch.state

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    @property
    def exit_code(self) -> int | None:
        return self._process.returncode if self._process is not None else None

    @property
    def stderr_text(self) -> str:
        return "".join(self._stderr_parts)

    @property
    def outcome(self) -> SessionOutcome | None:
        return self._outcome

    async def start(self) -> None:
        """Launch the renderer; raises :class:`RendererSpawnError` if the OS refuses."""
        if self._process is not None or self._latch.is_set:
            raise RuntimeError("ProcessSession can only be started once")
        try:
            self._process = await asyncio.create_subprocess_exec(
                self.binary,
                *self.args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            self._spawn_error = exc
            self._settle(SessionState.SPAWN_FAILED)
            self.log.error(
                "render.session.spawn_failed",
                extra={"binary": self.binary, "error": str(exc)},
            )
            raise RendererSpawnError(f"renderer could not be started: {exc}") from exc

        self._stderr_task = asyncio.create_task(
            self._drain_stderr(), name=f"renderer-stderr-{self._process.pid}"
        )
        self.log.info(
            "render.session.spawned",
            extra={"binary": self.binary, "pid": self._process.pid},
        )

    async def iter_stdout(self) -> AsyncIterator[bytes]:
        """Yield stdout chunks in order until EOF.

        Output still buffered after :meth:`wait` latched the exit state (a
        caller that waits before reading) is discarded, not yielded.
        """
        process = self._require_process()
        assert process.stdout is not None
        while True:
            chunk = await process.stdout.read(self.chunk_size)
            if not chunk:
                return
            if self._latch.is_set:
                self.log.debug(
                    "render.session.late_stdout_ignored",
                    extra={"pid": process.pid, "size_bytes": len(chunk)},
                )
                return
            yield chunk

    async def wait(self) -> SessionOutcome:
        """Wait for the process to exit and latch the terminal state."""
        if self._outcome is not None and self._process is None:
            return self._outcome
        process = self._require_process()
        exit_code = await process.wait()
        if self._stderr_task is not None:
            await self._stderr_task
        state = SessionState.EXITED_OK if exit_code == 0 else SessionState.EXITED_ERROR
        return self._settle(state)

    def kill(self) -> bool:
        """Kill the renderer if it is still running."""
        process = self._process
        if process is None or process.returncode is not None:
            return False
        try:
            process.kill()
        except ProcessLookupError:
            return False
        self.log.warning("render.session.killed", extra={"pid": process.pid})
        return True

    async def terminate(self) -> SessionOutcome:
        """Kill the renderer, discard unread stdout and reap the process.

        Must not run while another coroutine is reading stdout.
        """
        if self._outcome is not None and self._process is None:
            return self._outcome
        process = self._require_process()
        self.kill()
        assert process.stdout is not None
        # A paused pipe never reports EOF, and wait() needs the pipes closed.
        while await process.stdout.read(self.chunk_size):
            pass
        return await self.wait()

    def _settle(self, state: SessionState) -> SessionOutcome:
        if self._latch.trip(state):
            self._outcome = SessionOutcome(
                state=state,
                exit_code=self.exit_code,
                stderr_text=self.stderr_text,
                error=self._spawn_error,
            )
            self.log.info(
                "render.session.finished",
                extra={"pid": self.pid, "state": state.value, "exit_code": self.exit_code},
            )
        assert self._outcome is not None
        return self._outcome

    async def _drain_stderr(self) -> None:
        process = self._require_process()
        assert process.stderr is not None
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            chunk = await process.stderr.read(STDERR_READ_SIZE)
            if not chunk:
                break
            self._stderr_parts.append(decoder.decode(chunk))
        self._stderr_parts.append(decoder.decode(b"", final=True))

    def _require_process(self) -> asyncio.subprocess.Process:
        if self._process is None:
            raise RuntimeError("ProcessSession has not been started")
        return self._process


__all__ = ["ProcessSession", "SessionOutcome", "SessionState"]
