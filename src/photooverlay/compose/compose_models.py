"""Data structures for the composition pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from pathlib import Path


class CompositionMode(StrEnum):
    """Named filter graph presets."""

    COVER_CROP = "cover_crop"
    FIXED_OFFSET = "fixed_offset"


@dataclass(frozen=True, slots=True)
class InlineBackground:
    """Background supplied as base64 text, optionally a ``data:`` URL."""

    data: str


@dataclass(frozen=True, slots=True)
class FileBackground:
    """Background that already exists on disk and is not owned by the request."""

    path: Path


BackgroundSource = InlineBackground | FileBackground


@dataclass(frozen=True, slots=True)
class CompositionRequest:
    """Immutable description of a single composition."""

    background: BackgroundSource
    overlay_path: Path
    mode: CompositionMode
    filter_graph: str


@dataclass(slots=True)
class TemporaryAsset:
    """File materialized for one request; removed when the request ends."""

    path: Path
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    removed: bool = False


@dataclass(frozen=True, slots=True)
class ProvisionedBackground:
    """Background location handed to the renderer."""

    path: Path
    asset: TemporaryAsset | None = None

    @property
    def owned(self) -> bool:
        return self.asset is not None
