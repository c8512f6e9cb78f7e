from __future__ import annotations

from pathlib import Path

import pytest

from photooverlay.compose.compose_errors import UnknownCompositionModeError
from photooverlay.compose.compose_models import CompositionMode
from photooverlay.render.filter_graph import (
    CoverCropGeometry,
    FixedOffsetGeometry,
    build_filter_graph,
    build_renderer_args,
)

pytestmark = pytest.mark.unit


def test_cover_crop_default_expression_matches_reference_geometry() -> None:
    expression = build_filter_graph(CompositionMode.COVER_CROP)

    assert expression == (
        "[1:v]scale=1020:-1[ov];"
        "[0:v]scale=-1:1280,crop=1020:1280:(iw-1020)/2:(ih-1280)/2[bg];"
        "[bg][ov]overlay=0:0"
    )


def test_cover_crop_uses_configured_target() -> None:
    expression = build_filter_graph(
        "cover_crop", cover_crop=CoverCropGeometry(target_width=640, target_height=800)
    )

    assert "[1:v]scale=640:-1[ov]" in expression
    assert "crop=640:800:(iw-640)/2:(ih-800)/2" in expression


def test_fixed_offset_expression_centers_overlay_at_top_offset() -> None:
    expression = build_filter_graph(
        CompositionMode.FIXED_OFFSET,
        fixed_offset=FixedOffsetGeometry(
            overlay_width=900, overlay_height=1000, bottom_crop=40, top_offset=75
        ),
    )

    assert expression == (
        "[1:v]scale=900:1000,crop=iw:ih-40:0:0[ov];"
        "[0:v][ov]overlay=(main_w-overlay_w)/2:75"
    )


def test_unknown_mode_is_rejected() -> None:
    with pytest.raises(UnknownCompositionModeError, match="sepia"):
        build_filter_graph("sepia")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"overlay_width": 0},
        {"overlay_height": -1},
        {"bottom_crop": 1280},
        {"bottom_crop": -5},
        {"top_offset": -1},
    ],
)
def test_fixed_offset_geometry_validation(kwargs: dict[str, int]) -> None:
    with pytest.raises(ValueError):
        FixedOffsetGeometry(**kwargs)


def test_cover_crop_geometry_validation() -> None:
    with pytest.raises(ValueError):
        CoverCropGeometry(target_width=0)


def test_renderer_args_write_single_png_frame_to_stdout() -> None:
    args = build_renderer_args(Path("/tmp/bg.png"), Path("/srv/overlay.png"), "EXPR")

    assert args == [
        "-i",
        "/tmp/bg.png",
        "-i",
        "/srv/overlay.png",
        "-filter_complex",
        "EXPR",
        "-frames:v",
        "1",
        "-f",
        "image2pipe",
        "-vcodec",
        "png",
        "-",
    ]
