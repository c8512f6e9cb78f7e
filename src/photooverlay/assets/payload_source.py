"""Pre-loaded inline background payload used by the GET variant."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, ValidationError

from ..compose.compose_errors import InputMissingError
from ..compose.compose_models import InlineBackground

logger = logging.getLogger(__name__)


class InlineImagePayload(BaseModel):
    """JSON document shaped like ``{"image": "data:image/png;base64,..."}``."""

    image: str | None = None


@dataclass(slots=True)
class InlinePayloadSource:
    """Reads the payload document once and serves it to every request."""

    path: Path
    log: logging.Logger = field(default_factory=lambda: logger)
    _payload: InlineImagePayload | None = field(default=None, init=False, repr=False)

    @property
    def loaded(self) -> bool:
        return self._payload is not None

    def load(self) -> InlineImagePayload:
        """(Re)read the document; unreadable or invalid files count as empty."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            self.log.warning(
                "assets.payload.unavailable",
                extra={"path": str(self.path), "error": str(exc)},
            )
            payload = InlineImagePayload()
        else:
            try:
                payload = InlineImagePayload.model_validate_json(raw)
            except ValidationError as exc:
                self.log.warning(
                    "assets.payload.invalid",
                    extra={"path": str(self.path), "errors": exc.error_count()},
                )
                payload = InlineImagePayload()
        self._payload = payload
        return payload

    def background(self) -> InlineBackground:
        payload = self._payload if self._payload is not None else self.load()
        if not payload.image:
            raise InputMissingError("missing 'image' field in payload")
        return InlineBackground(data=payload.image)


__all__ = ["InlineImagePayload", "InlinePayloadSource"]
