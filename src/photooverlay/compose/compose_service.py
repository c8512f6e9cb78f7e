"""Domain service wiring provisioning, filter graphs and renderer sessions."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from ..assets.cleanup import CleanupCoordinator
from ..assets.payload_source import InlinePayloadSource
from ..assets.provisioner import AssetProvisioner
from ..config import AppConfig, CompositionGeometry, RendererSettings
from ..render.filter_graph import build_filter_graph, build_renderer_args
from ..render.output_stream import OutputStream
from ..render.session import ProcessSession
from ..render.stream_bridge import StreamBridge
from .compose_errors import InputMissingError
from .compose_models import (
    BackgroundSource,
    CompositionMode,
    CompositionRequest,
    FileBackground,
    InlineBackground,
)

logger = logging.getLogger(__name__)

SessionFactory = Callable[[str, Sequence[str]], ProcessSession]


@dataclass(slots=True)
class CompositionService:
    """Coordinates one composition from request inputs to a live stream bridge."""

    provisioner: AssetProvisioner
    payload_source: InlinePayloadSource
    renderer: RendererSettings
    overlay_path: Path
    static_background_path: Path
    geometry: CompositionGeometry = field(default_factory=CompositionGeometry)
    session_factory: SessionFactory | None = None
    log: logging.Logger = field(default_factory=lambda: logger)

    @classmethod
    def from_config(cls, config: AppConfig) -> "CompositionService":
        paths = config.asset_paths
        return cls(
            provisioner=AssetProvisioner(
                temp_dir=paths.temp_dir,
                max_inline_payload_bytes=config.max_inline_payload_bytes,
            ),
            payload_source=InlinePayloadSource(path=paths.inline_payload),
            renderer=config.renderer,
            overlay_path=paths.overlay,
            static_background_path=paths.static_background,
            geometry=config.geometry,
        )

    def build_request(
        self,
        background: BackgroundSource,
        mode: CompositionMode | str,
    ) -> CompositionRequest:
        filter_graph = build_filter_graph(
            mode,
            cover_crop=self.geometry.cover_crop,
            fixed_offset=self.geometry.fixed_offset,
        )
        return CompositionRequest(
            background=background,
            overlay_path=self.overlay_path,
            mode=CompositionMode(mode),
            filter_graph=filter_graph,
        )

    def preloaded_request(self, mode: CompositionMode | str | None = None) -> CompositionRequest:
        """Request for the pre-loaded inline payload document."""
        return self.build_request(
            self.payload_source.background(),
            mode or CompositionMode.COVER_CROP,
        )

    def inline_request(
        self,
        image: str | None,
        mode: CompositionMode | str | None = None,
    ) -> CompositionRequest:
        """Request for inline image text supplied by the caller."""
        if not image:
            raise InputMissingError("missing 'image' field in request body")
        return self.build_request(
            InlineBackground(data=image),
            mode or CompositionMode.COVER_CROP,
        )

    def static_request(self, mode: CompositionMode | str | None = None) -> CompositionRequest:
        """Request for the fixed on-disk background asset."""
        return self.build_request(
            FileBackground(path=self.static_background_path),
            mode or CompositionMode.FIXED_OFFSET,
        )

    async def start(self, request: CompositionRequest) -> StreamBridge:
        """Provision inputs, spawn the renderer and return the running bridge.

        Any failure before the bridge takes ownership releases temporary
        assets before the exception propagates.
        """
        cleanup = CleanupCoordinator(log=self.log)
        try:
            background = await self.provisioner.provision_background(
                request.background, cleanup
            )
            overlay = await self.provisioner.require_asset(
                request.overlay_path, asset="overlay"
            )
            args = build_renderer_args(background.path, overlay, request.filter_graph)
            bridge = StreamBridge(
                self._new_session(args),
                OutputStream(max_pending_chunks=self.renderer.max_pending_chunks),
                cleanup,
                timeout_seconds=self.renderer.timeout_seconds,
            )
            await bridge.open()
        except BaseException:
            cleanup.release()
            raise
        self.log.info(
            "compose.started",
            extra={
                "mode": request.mode.value,
                "pid": bridge.session.pid,
                "owned_background": background.owned,
            },
        )
        return bridge

    def _new_session(self, args: Sequence[str]) -> ProcessSession:
        if self.session_factory is not None:
            return self.session_factory(self.renderer.binary, args)
        return ProcessSession(
            self.renderer.binary,
            args,
            chunk_size=self.renderer.chunk_size_bytes,
        )


__all__ = ["CompositionService"]
