"""Python stand-ins for the renderer executable.

Each stub is a script run as ``python <script> <renderer argv...>``, so tests
never need ffmpeg or an executable bit on the temp directory.
"""

from __future__ import annotations

import base64
import sys
import textwrap
from collections.abc import Callable, Sequence
from pathlib import Path

from photooverlay.render.session import ProcessSession

PNG_1X1 = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)
PNG_DATA_URL = "data:image/png;base64," + base64.b64encode(PNG_1X1).decode("ascii")


def write_stub(directory: Path, name: str, source: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    script = directory / f"{name}.py"
    script.write_text("import sys, time\n" + textwrap.dedent(source), encoding="utf-8")
    return script


def emitting_stub(directory: Path, chunks: Sequence[bytes], *, name: str = "emit") -> Path:
    """Writes ``chunks`` to stdout one by one, then exits 0."""
    return write_stub(
        directory,
        name,
        f"""
        for chunk in {list(chunks)!r}:
            sys.stdout.buffer.write(chunk)
            sys.stdout.buffer.flush()
            time.sleep(0.01)
        """,
    )


def failing_stub(
    directory: Path,
    *,
    code: int = 1,
    stderr: str = "boom",
    stdout: bytes = b"",
    name: str = "fail",
) -> Path:
    return write_stub(
        directory,
        name,
        f"""
        sys.stdout.buffer.write({stdout!r})
        sys.stdout.buffer.flush()
        sys.stderr.write({stderr!r})
        sys.stderr.flush()
        sys.exit({code})
        """,
    )


def hanging_stub(directory: Path, *, first_chunk: bytes = b"partial", name: str = "hang") -> Path:
    """Emits one chunk and then sleeps far longer than any test waits."""
    return write_stub(
        directory,
        name,
        f"""
        sys.stdout.buffer.write({first_chunk!r})
        sys.stdout.buffer.flush()
        time.sleep(60)
        """,
    )


def argv_recording_stub(directory: Path, record: Path, *, name: str = "record") -> Path:
    """Stores its argv as JSON in ``record`` and emits a 1x1 PNG."""
    return write_stub(
        directory,
        name,
        f"""
        import json
        with open({str(record)!r}, "w", encoding="utf-8") as sink:
            json.dump(sys.argv[1:], sink)
        sys.stdout.buffer.write({PNG_1X1!r})
        """,
    )


def python_session_factory(
    script: Path,
    *,
    chunk_size: int = 4096,
    spawned: list[ProcessSession] | None = None,
) -> Callable[[str, Sequence[str]], ProcessSession]:
    """Session factory running ``script`` with the configured renderer argv."""

    def factory(binary: str, args: Sequence[str]) -> ProcessSession:
        session = ProcessSession(sys.executable, [str(script), *args], chunk_size=chunk_size)
        if spawned is not None:
            spawned.append(session)
        return session

    return factory
