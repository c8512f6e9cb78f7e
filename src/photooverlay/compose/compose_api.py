"""HTTP routes for image composition."""

from __future__ import annotations

from collections.abc import Callable

import structlog
from fastapi import APIRouter, Body, Depends, Query, Request, status
from fastapi.responses import JSONResponse, Response, StreamingResponse

from .compose_errors import (
    AssetNotFoundError,
    CompositionError,
    InputMissingError,
    InvalidImagePayloadError,
    PayloadTooLargeError,
    RendererSpawnError,
    UnknownCompositionModeError,
)
from .compose_models import CompositionRequest
from .compose_schemas import CompositionErrorSchema, ConvertRequestSchema
from .compose_service import CompositionService

router = APIRouter(prefix="/api/convert", tags=["convert"])
logger = structlog.get_logger(__name__)

PNG_MEDIA_TYPE = "image/png"

_ERROR_STATUS: tuple[tuple[type[CompositionError], int], ...] = (
    (InputMissingError, status.HTTP_400_BAD_REQUEST),
    (InvalidImagePayloadError, status.HTTP_400_BAD_REQUEST),
    (UnknownCompositionModeError, status.HTTP_400_BAD_REQUEST),
    (PayloadTooLargeError, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE),
    (AssetNotFoundError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (RendererSpawnError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)

_ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    status.HTTP_400_BAD_REQUEST: {"model": CompositionErrorSchema},
    status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: {"model": CompositionErrorSchema},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": CompositionErrorSchema},
    status.HTTP_200_OK: {"content": {PNG_MEDIA_TYPE: {}}},
}


def get_composition_service(request: Request) -> CompositionService:
    """Fetch composition service from application state."""
    try:
        return request.app.state.composition_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover
        raise RuntimeError("CompositionService is not configured") from exc


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def status_for(exc: CompositionError) -> int:
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def stream_composition(
    service: CompositionService,
    build_request: Callable[[], CompositionRequest],
    *,
    route: str,
) -> Response:
    """Start the renderer and return a streaming PNG response.

    Errors raised before the stream exists become JSON responses; errors after
    that point can only abort the already started body.
    """
    log = logger.bind(route=route)
    try:
        composition = build_request()
        bridge = await service.start(composition)
    except CompositionError as exc:
        status_code = status_for(exc)
        log.warning("convert.rejected", status_code=status_code, error=str(exc))
        return error_response(status_code, str(exc))
    except Exception as exc:
        log.exception("convert.unexpected_error")
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc) or "Unknown error"
        )
    log.info("convert.streaming", mode=composition.mode.value, pid=bridge.session.pid)
    return StreamingResponse(bridge.body(), media_type=PNG_MEDIA_TYPE)


@router.get("", response_class=StreamingResponse, responses=_ERROR_RESPONSES)
async def convert_preloaded(
    mode: str | None = Query(None),
    service: CompositionService = Depends(get_composition_service),
) -> Response:
    """Composite the pre-loaded inline background with the overlay."""
    return await stream_composition(
        service, lambda: service.preloaded_request(mode), route="preloaded"
    )


@router.post("", response_class=StreamingResponse, responses=_ERROR_RESPONSES)
async def convert_inline(
    payload: ConvertRequestSchema | None = Body(None),
    service: CompositionService = Depends(get_composition_service),
) -> Response:
    """Composite an inline background supplied in the request body."""
    body = payload or ConvertRequestSchema()
    return await stream_composition(
        service,
        lambda: service.inline_request(body.image, body.mode),
        route="inline",
    )


@router.get("/static", response_class=StreamingResponse, responses=_ERROR_RESPONSES)
async def convert_static(
    mode: str | None = Query(None),
    service: CompositionService = Depends(get_composition_service),
) -> Response:
    """Composite the fixed on-disk background asset with the overlay."""
    return await stream_composition(
        service, lambda: service.static_request(mode), route="static"
    )
