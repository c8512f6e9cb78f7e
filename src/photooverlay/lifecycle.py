"""Lifecycle helpers wiring background tasks for FastAPI startup."""

from __future__ import annotations

import asyncio
import logging
import shutil
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager, suppress
from pathlib import Path

from fastapi import FastAPI

from .assets.cleanup import sweep_stale_assets
from .config import AppConfig

logger = logging.getLogger(__name__)


def asset_sweep_once(
    *,
    temp_dir: Path,
    ttl_seconds: float,
    now: float | None = None,
) -> list[Path]:
    """Run a single temp-asset sweep iteration and return removed paths."""
    return sweep_stale_assets(temp_dir, ttl_seconds=ttl_seconds, now=now)


async def run_periodic_asset_sweep(
    *,
    temp_dir: Path,
    ttl_seconds: float,
    shutdown_event: asyncio.Event,
    interval_seconds: float = 900.0,
    clock: Callable[[], float] | None = None,
) -> None:
    """Execute the temp-asset sweep until ``shutdown_event`` is signalled."""
    interval = max(0.01, float(interval_seconds))
    tick = clock or time.time
    while not shutdown_event.is_set():
        try:
            await asyncio.to_thread(
                asset_sweep_once,
                temp_dir=temp_dir,
                ttl_seconds=ttl_seconds,
                now=tick(),
            )
        except Exception:  # pragma: no cover
            logger.exception("Temp asset sweep iteration failed")
        try:
            await asyncio.wait_for(shutdown_event.wait(), timeout=interval)
        except asyncio.TimeoutError:
            continue


def check_renderer(binary: str) -> bool:
    """Log whether the renderer executable can be resolved."""
    resolved = shutil.which(binary)
    if resolved is None:
        logger.warning("render.binary.missing", extra={"binary": binary})
        return False
    logger.info("render.binary.resolved", extra={"binary": resolved})
    return True


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Preload the inline payload and run the temp-asset sweep while serving."""
    config: AppConfig = app.state.config
    app.state.composition_service.payload_source.load()
    check_renderer(config.renderer.binary)

    task: asyncio.Task[None] | None = None
    shutdown_event = asyncio.Event()
    if getattr(app.state, "disable_asset_sweep", False):
        logger.info("Temp asset sweep skipped: disabled via app state")
    else:
        task = asyncio.create_task(
            run_periodic_asset_sweep(
                temp_dir=config.asset_paths.temp_dir,
                ttl_seconds=config.temp_asset_ttl_seconds,
                shutdown_event=shutdown_event,
                interval_seconds=config.temp_sweep_interval_seconds,
            ),
            name="photooverlay-asset-sweep",
        )
    app.state.asset_sweep_task = task
    try:
        yield
    finally:
        shutdown_event.set()
        if task is not None:
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
        app.state.asset_sweep_task = None


__all__ = [
    "asset_sweep_once",
    "check_renderer",
    "lifespan",
    "run_periodic_asset_sweep",
]
