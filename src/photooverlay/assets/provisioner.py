"""Resolution and materialization of composition inputs."""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import mimetypes
import re
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path

from ..compose.compose_errors import (
    AssetNotFoundError,
    InputMissingError,
    InvalidImagePayloadError,
    PayloadTooLargeError,
)
from ..compose.compose_models import (
    BackgroundSource,
    FileBackground,
    ProvisionedBackground,
    TemporaryAsset,
)
from .cleanup import TEMP_ASSET_PREFIX, CleanupCoordinator

logger = logging.getLogger(__name__)

DATA_URL_PREFIX = re.compile(r"^data:(?P<media_type>image/[\w.+-]+);base64,", re.IGNORECASE)
DEFAULT_SUFFIX = ".png"
DEFAULT_MAX_INLINE_BYTES = 20 * 1024 * 1024


def split_data_url(data: str) -> tuple[str | None, str]:
    """Strip a ``data:image/...;base64,`` prefix, returning (media type, payload)."""
    match = DATA_URL_PREFIX.match(data)
    if match is None:
        return None, data
    return match.group("media_type").lower(), data[match.end():]


def decode_inline_image(
    data: str, *, max_bytes: int = DEFAULT_MAX_INLINE_BYTES
) -> tuple[bytes, str | None]:
    """Decode base64 (or data URL) image text into bytes and its declared media type."""
    media_type, encoded = split_data_url(data.strip())
    compact = "".join(encoded.split())
    if not compact:
        raise InputMissingError("missing 'image' data")
    try:
        payload = base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidImagePayloadError("'image' is not valid base64 data") from exc
    if len(payload) > max_bytes:
        raise PayloadTooLargeError(
            f"decoded image is {len(payload)} bytes, limit is {max_bytes}"
        )
    return payload, media_type


def suffix_for_media_type(media_type: str | None) -> str:
    if media_type is None:
        return DEFAULT_SUFFIX
    return mimetypes.guess_extension(media_type) or DEFAULT_SUFFIX


def unique_temp_name(suffix: str = DEFAULT_SUFFIX) -> str:
    """Per-request file name: nanosecond clock plus a random token."""
    return f"{TEMP_ASSET_PREFIX}{time.time_ns()}-{uuid.uuid4().hex}{suffix}"


def _write_new_file(path: Path, payload: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("xb") as sink:
        sink.write(payload)


@dataclass(slots=True)
class AssetProvisioner:
    """Turns request inputs into file paths the renderer can read."""

    temp_dir: Path
    max_inline_payload_bytes: int = DEFAULT_MAX_INLINE_BYTES
    log: logging.Logger = field(default_factory=lambda: logger)

    async def provision_background(
        self,
        source: BackgroundSource,
        cleanup: CleanupCoordinator,
    ) -> ProvisionedBackground:
        """Return the background path; inline data is written to an owned temp file."""
        if isinstance(source, FileBackground):
            path = await self.require_asset(source.path, asset="background")
            return ProvisionedBackground(path=path)

        if not source.data or not source.data.strip():
            raise InputMissingError("missing 'image' data")
        payload, media_type = decode_inline_image(
            source.data, max_bytes=self.max_inline_payload_bytes
        )
        target = self.temp_dir / unique_temp_name(suffix_for_media_type(media_type))
        asset = cleanup.track(TemporaryAsset(path=target))
        await asyncio.to_thread(_write_new_file, target, payload)
        self.log.info(
            "assets.temp.created",
            extra={
                "path": str(target),
                "size_bytes": len(payload),
                "media_type": media_type or "unspecified",
            },
        )
        return ProvisionedBackground(path=target, asset=asset)

    async def require_asset(self, path: Path, *, asset: str) -> Path:
        """Ensure a fixed asset exists on disk."""
        exists = await asyncio.to_thread(path.is_file)
        if not exists:
            self.log.warning(
                "assets.not_found",
                extra={"asset": asset, "path": str(path)},
            )
            raise AssetNotFoundError(asset, path)
        return path


__all__ = [
    "AssetProvisioner",
    "decode_inline_image",
    "split_data_url",
    "suffix_for_media_type",
    "unique_temp_name",
]
