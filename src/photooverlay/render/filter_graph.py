"""Renderer argument construction for the supported composition presets.

Input ``0`` is always the background and input ``1`` the overlay. Both
presets produce a single still frame encoded as PNG on the renderer's
standard output.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ..compose.compose_errors import UnknownCompositionModeError
from ..compose.compose_models import CompositionMode


@dataclass(frozen=True, slots=True)
class CoverCropGeometry:
    """Overlay scaled to ``target_width``; background covers and is center-cropped."""

    target_width: int = 1020
    target_height: int = 1280

    def __post_init__(self) -> None:
        if self.target_width <= 0 or self.target_height <= 0:
            raise ValueError("cover crop target size must be positive")


@dataclass(frozen=True, slots=True)
class FixedOffsetGeometry:
    """Overlay stretched to a fixed box, trimmed at the bottom, centered at ``top_offset``."""

    overlay_width: int = 1020
    overlay_height: int = 1280
    bottom_crop: int = 60
    top_offset: int = 120

    def __post_init__(self) -> None:
        if self.overlay_width <= 0 or self.overlay_height <= 0:
            raise ValueError("fixed offset overlay size must be positive")
        if not 0 <= self.bottom_crop < self.overlay_height:
            raise ValueError("bottom_crop must be within the overlay height")
        if self.top_offset < 0:
            raise ValueError("top_offset must not be negative")


def cover_crop_expression(geometry: CoverCropGeometry) -> str:
    width = geometry.target_width
    height = geometry.target_height
    return (
        f"[1:v]scale={width}:-1[ov];"
        f"[0:v]scale=-1:{height},crop={width}:{height}:(iw-{width})/2:(ih-{height})/2[bg];"
        "[bg][ov]overlay=0:0"
    )


def fixed_offset_expression(geometry: FixedOffsetGeometry) -> str:
    return (
        f"[1:v]scale={geometry.overlay_width}:{geometry.overlay_height},"
        f"crop=iw:ih-{geometry.bottom_crop}:0:0[ov];"
        f"[0:v][ov]overlay=(main_w-overlay_w)/2:{geometry.top_offset}"
    )


def build_filter_graph(
    mode: CompositionMode | str,
    *,
    cover_crop: CoverCropGeometry | None = None,
    fixed_offset: FixedOffsetGeometry | None = None,
) -> str:
    """Return the filter graph expression for ``mode``."""
    try:
        resolved = CompositionMode(mode)
    except ValueError:
        raise UnknownCompositionModeError(f"unknown composition mode '{mode}'") from None
    if resolved is CompositionMode.COVER_CROP:
        return cover_crop_expression(cover_crop or CoverCropGeometry())
    return fixed_offset_expression(fixed_offset or FixedOffsetGeometry())


def build_renderer_args(
    background_path: Path | str,
    overlay_path: Path | str,
    filter_graph: str,
) -> list[str]:
    """Build renderer argv (without the executable) writing one PNG frame to stdout."""
    return [
        "-i",
        str(background_path),
        "-i",
        str(overlay_path),
        "-filter_complex",
        filter_graph,
        "-frames:v",
        "1",
        "-f",
        "image2pipe",
        "-vcodec",
        "png",
        "-",
    ]


__all__ = [
    "CoverCropGeometry",
    "FixedOffsetGeometry",
    "build_filter_graph",
    "build_renderer_args",
    "cover_crop_expression",
    "fixed_offset_expression",
]
