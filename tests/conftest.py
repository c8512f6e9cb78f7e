from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

from photooverlay.config import (
    AppConfig,
    AssetPaths,
    CompositionGeometry,
    RendererSettings,
)
from tests.helpers.renderer_stubs import PNG_1X1, PNG_DATA_URL


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "tmp"
    directory.mkdir()
    return directory


@pytest.fixture
def stub_dir(tmp_path: Path) -> Path:
    return tmp_path / "stubs"


@pytest.fixture
def app_config(tmp_path: Path, temp_dir: Path) -> AppConfig:
    """Configuration with real assets under ``tmp_path``."""
    static_root = tmp_path / "public"
    images = static_root / "images"
    images.mkdir(parents=True)
    (images / "passe_trans.png").write_bytes(PNG_1X1)
    (images / "background.png").write_bytes(PNG_1X1)
    payload = static_root / "base64.json"
    payload.write_text(json.dumps({"image": PNG_DATA_URL}), encoding="utf-8")

    return AppConfig(
        renderer=RendererSettings(
            binary=sys.executable,
            timeout_seconds=10.0,
            chunk_size_bytes=4096,
            max_pending_chunks=4,
        ),
        asset_paths=AssetPaths(
            static_root=static_root,
            overlay=images / "passe_trans.png",
            static_background=images / "background.png",
            inline_payload=payload,
            temp_dir=temp_dir,
        ),
        geometry=CompositionGeometry(),
        max_inline_payload_bytes=1024 * 1024,
        temp_asset_ttl_seconds=3600,
        temp_sweep_interval_seconds=900.0,
    )
