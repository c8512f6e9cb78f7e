"""Cron entry point for removing stale temporary background files."""

from __future__ import annotations

import argparse
import sys
import time
from dataclasses import dataclass

from photooverlay.assets.cleanup import sweep_stale_assets
from photooverlay.config import load_config


@dataclass(slots=True)
class CleanupSummary:
    temp_removed: int
    dry_run: bool


def perform_cleanup(
    *,
    dry_run: bool,
    ttl_seconds: float | None = None,
    reference_time: float | None = None,
) -> CleanupSummary:
    """Execute cleanup logic and return summary counters."""
    config = load_config()
    ttl = config.temp_asset_ttl_seconds if ttl_seconds is None else ttl_seconds
    now = reference_time if reference_time is not None else time.time()
    stale = sweep_stale_assets(
        config.asset_paths.temp_dir,
        ttl_seconds=ttl,
        now=now,
        dry_run=dry_run,
    )
    return CleanupSummary(temp_removed=len(stale), dry_run=dry_run)


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Cleanup stale temporary background files.")
    parser.add_argument("--dry-run", action="store_true", help="Only report counts without deleting files.")
    parser.add_argument(
        "--ttl-seconds",
        type=float,
        default=None,
        help="Override TEMP_ASSET_TTL_SECONDS for this run.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or [])
    try:
        summary = perform_cleanup(dry_run=args.dry_run, ttl_seconds=args.ttl_seconds)
    except Exception as exc:
        print(f"cleanup failed: {exc}", file=sys.stderr)
        return 2

    if summary.dry_run:
        print(f"cleanup dry-run, temp_expired={summary.temp_removed}", file=sys.stdout)
    else:
        print(f"cleanup done, temp_removed={summary.temp_removed}", file=sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
