from __future__ import annotations

import json
from pathlib import Path

import pytest

from photooverlay.assets.payload_source import InlinePayloadSource
from photooverlay.compose.compose_errors import InputMissingError
from tests.helpers.renderer_stubs import PNG_DATA_URL

pytestmark = pytest.mark.unit


def test_background_reads_image_field(tmp_path: Path) -> None:
    path = tmp_path / "base64.json"
    path.write_text(json.dumps({"image": PNG_DATA_URL}), encoding="utf-8")
    source = InlinePayloadSource(path=path)

    assert source.background().data == PNG_DATA_URL
    assert source.loaded


def test_document_is_read_once(tmp_path: Path) -> None:
    path = tmp_path / "base64.json"
    path.write_text(json.dumps({"image": PNG_DATA_URL}), encoding="utf-8")
    source = InlinePayloadSource(path=path)
    source.load()

    path.write_text(json.dumps({"image": "changed"}), encoding="utf-8")

    assert source.background().data == PNG_DATA_URL
    assert source.load().image == "changed"


def test_missing_document_means_missing_input(tmp_path: Path) -> None:
    source = InlinePayloadSource(path=tmp_path / "absent.json")

    with pytest.raises(InputMissingError, match="missing 'image' field"):
        source.background()


@pytest.mark.parametrize("content", ["{}", '{"image": ""}', "not json", '{"image": 5}'])
def test_unusable_document_means_missing_input(tmp_path: Path, content: str) -> None:
    path = tmp_path / "base64.json"
    path.write_text(content, encoding="utf-8")
    source = InlinePayloadSource(path=path)

    with pytest.raises(InputMissingError):
        source.background()
