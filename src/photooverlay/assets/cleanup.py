"""Removal of temporary request assets."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

from ..compose.compose_models import TemporaryAsset

logger = logging.getLogger(__name__)

TEMP_ASSET_PREFIX = "bg-"


def remove_temporary_asset(asset: TemporaryAsset, *, log: logging.Logger | None = None) -> bool:
    """Delete ``asset`` once; failures are logged and never raised."""
    log = log or logger
    if asset.removed:
        return False
    asset.removed = True
    try:
        asset.path.unlink(missing_ok=True)
    except OSError as exc:
        log.warning(
            "assets.cleanup.failed",
            extra={"path": str(asset.path), "error": str(exc)},
        )
        return False
    log.info("assets.temp.removed", extra={"path": str(asset.path)})
    return True


@dataclass(slots=True)
class CleanupCoordinator:
    """Tracks the temporary assets of one request and removes them exactly once."""

    assets: list[TemporaryAsset] = field(default_factory=list)
    released: bool = False
    log: logging.Logger = field(default_factory=lambda: logger)

    def track(self, asset: TemporaryAsset) -> TemporaryAsset:
        self.assets.append(asset)
        if self.released:
            # Request already finished; do not leave a late asset behind.
            remove_temporary_asset(asset, log=self.log)
        return asset

    def release(self) -> int:
        """Remove tracked assets; later calls are no-ops."""
        if self.released:
            return 0
        self.released = True
        removed = 0
        for asset in self.assets:
            if remove_temporary_asset(asset, log=self.log):
                removed += 1
        return removed


def sweep_stale_assets(
    temp_dir: Path,
    *,
    ttl_seconds: float,
    now: float | None = None,
    dry_run: bool = False,
) -> list[Path]:
    """Remove ``bg-*`` files older than ``ttl_seconds`` (leftovers of crashed workers)."""
    reference = time.time() if now is None else now
    if not temp_dir.is_dir():
        return []
    stale: list[Path] = []
    for path in sorted(temp_dir.glob(f"{TEMP_ASSET_PREFIX}*")):
        try:
            if not path.is_file() or reference - path.stat().st_mtime < ttl_seconds:
                continue
        except FileNotFoundError:
            continue
        if not dry_run:
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning(
                    "assets.sweep.failed",
                    extra={"path": str(path), "error": str(exc)},
                )
                continue
        stale.append(path)
    if stale:
        logger.info(
            "assets.sweep.removed",
            extra={"count": len(stale), "dry_run": dry_run, "temp_dir": str(temp_dir)},
        )
    return stale


__all__ = [
    "CleanupCoordinator",
    "TEMP_ASSET_PREFIX",
    "remove_temporary_asset",
    "sweep_stale_assets",
]
