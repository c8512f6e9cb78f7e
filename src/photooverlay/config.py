"""Application configuration builder."""

from __future__ import annotations

import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from .render.filter_graph import CoverCropGeometry, FixedOffsetGeometry


@dataclass(slots=True)
class RendererSettings:
    binary: str
    timeout_seconds: float
    chunk_size_bytes: int
    max_pending_chunks: int


@dataclass(slots=True)
class AssetPaths:
    static_root: Path
    overlay: Path
    static_background: Path
    inline_payload: Path
    temp_dir: Path


@dataclass(slots=True)
class CompositionGeometry:
    cover_crop: CoverCropGeometry = field(default_factory=CoverCropGeometry)
    fixed_offset: FixedOffsetGeometry = field(default_factory=FixedOffsetGeometry)


@dataclass(slots=True)
class AppConfig:
    renderer: RendererSettings
    asset_paths: AssetPaths
    geometry: CompositionGeometry
    max_inline_payload_bytes: int
    temp_asset_ttl_seconds: int
    temp_sweep_interval_seconds: float
    log_level: str = "INFO"


def _default_renderer_binary() -> str:
    return shutil.which("ffmpeg") or "ffmpeg"


def _resolve_under(root: Path, value: str) -> Path:
    path = Path(value)
    return path if path.is_absolute() else root / path


def load_config() -> AppConfig:
    """Load configuration from environment (ffmpeg из PATH по умолчанию)."""
    renderer = RendererSettings(
        binary=os.getenv("RENDERER_BINARY") or _default_renderer_binary(),
        timeout_seconds=float(os.getenv("RENDER_TIMEOUT_SECONDS", 30)),
        chunk_size_bytes=int(os.getenv("RENDER_CHUNK_SIZE_BYTES", 64 * 1024)),
        max_pending_chunks=int(os.getenv("RENDER_MAX_PENDING_CHUNKS", 8)),
    )

    static_root = Path(os.getenv("STATIC_ROOT", "public"))
    asset_paths = AssetPaths(
        static_root=static_root,
        overlay=_resolve_under(
            static_root, os.getenv("OVERLAY_ASSET", "images/passe_trans.png")
        ),
        static_background=_resolve_under(
            static_root, os.getenv("STATIC_BACKGROUND_ASSET", "images/background.png")
        ),
        inline_payload=_resolve_under(
            static_root, os.getenv("INLINE_PAYLOAD_PATH", "base64.json")
        ),
        temp_dir=Path(os.getenv("TEMP_DIR") or tempfile.gettempdir()),
    )

    geometry = CompositionGeometry(
        cover_crop=CoverCropGeometry(
            target_width=int(os.getenv("COVER_TARGET_WIDTH", 1020)),
            target_height=int(os.getenv("COVER_TARGET_HEIGHT", 1280)),
        ),
        fixed_offset=FixedOffsetGeometry(
            overlay_width=int(os.getenv("FIXED_OVERLAY_WIDTH", 1020)),
            overlay_height=int(os.getenv("FIXED_OVERLAY_HEIGHT", 1280)),
            bottom_crop=int(os.getenv("FIXED_BOTTOM_CROP", 60)),
            top_offset=int(os.getenv("FIXED_TOP_OFFSET", 120)),
        ),
    )

    return AppConfig(
        renderer=renderer,
        asset_paths=asset_paths,
        geometry=geometry,
        max_inline_payload_bytes=int(
            os.getenv("MAX_INLINE_PAYLOAD_BYTES", 20 * 1024 * 1024)
        ),
        temp_asset_ttl_seconds=int(os.getenv("TEMP_ASSET_TTL_SECONDS", 3600)),
        temp_sweep_interval_seconds=float(
            os.getenv("TEMP_SWEEP_INTERVAL_SECONDS", 15 * 60)
        ),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
