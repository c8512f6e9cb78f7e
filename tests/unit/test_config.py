from __future__ import annotations

from pathlib import Path

import pytest

from photooverlay.config import load_config

pytestmark = pytest.mark.unit

_ENV_VARS = (
    "RENDERER_BINARY",
    "RENDER_TIMEOUT_SECONDS",
    "RENDER_CHUNK_SIZE_BYTES",
    "RENDER_MAX_PENDING_CHUNKS",
    "STATIC_ROOT",
    "OVERLAY_ASSET",
    "STATIC_BACKGROUND_ASSET",
    "INLINE_PAYLOAD_PATH",
    "TEMP_DIR",
    "MAX_INLINE_PAYLOAD_BYTES",
    "TEMP_ASSET_TTL_SECONDS",
    "TEMP_SWEEP_INTERVAL_SECONDS",
    "COVER_TARGET_WIDTH",
    "COVER_TARGET_HEIGHT",
    "FIXED_OVERLAY_WIDTH",
    "FIXED_OVERLAY_HEIGHT",
    "FIXED_BOTTOM_CROP",
    "FIXED_TOP_OFFSET",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    config = load_config()

    assert config.renderer.timeout_seconds == 30
    assert config.renderer.chunk_size_bytes == 64 * 1024
    assert config.renderer.max_pending_chunks == 8
    assert config.asset_paths.overlay == Path("public/images/passe_trans.png")
    assert config.asset_paths.static_background == Path("public/images/background.png")
    assert config.asset_paths.inline_payload == Path("public/base64.json")
    assert config.max_inline_payload_bytes == 20 * 1024 * 1024
    assert config.temp_asset_ttl_seconds == 3600
    assert config.temp_sweep_interval_seconds == 900
    assert config.geometry.cover_crop.target_width == 1020
    assert config.geometry.fixed_offset.bottom_crop == 60
    assert config.geometry.fixed_offset.top_offset == 120
    assert config.log_level == "INFO"


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("RENDERER_BINARY", "/opt/ffmpeg/bin/ffmpeg")
    monkeypatch.setenv("RENDER_TIMEOUT_SECONDS", "5.5")
    monkeypatch.setenv("STATIC_ROOT", str(tmp_path))
    monkeypatch.setenv("OVERLAY_ASSET", "frames/frame.png")
    monkeypatch.setenv("STATIC_BACKGROUND_ASSET", "/srv/bg.png")
    monkeypatch.setenv("TEMP_DIR", str(tmp_path / "tmp"))
    monkeypatch.setenv("FIXED_TOP_OFFSET", "40")

    config = load_config()

    assert config.renderer.binary == "/opt/ffmpeg/bin/ffmpeg"
    assert config.renderer.timeout_seconds == 5.5
    assert config.asset_paths.overlay == tmp_path / "frames/frame.png"
    assert config.asset_paths.static_background == Path("/srv/bg.png")
    assert config.asset_paths.temp_dir == tmp_path / "tmp"
    assert config.geometry.fixed_offset.top_offset == 40


def test_invalid_geometry_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FIXED_BOTTOM_CROP", "5000")

    with pytest.raises(ValueError):
        load_config()
