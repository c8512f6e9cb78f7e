"""Dependency wiring helpers."""

from fastapi import FastAPI

from .compose.compose_api import router as compose_router
from .compose.compose_service import CompositionService
from .config import AppConfig


def include_routers(app: FastAPI, config: AppConfig) -> None:
    """Mount module routers and attach services."""
    composition_service = CompositionService.from_config(config)

    app.state.config = config
    app.state.composition_service = composition_service

    app.include_router(compose_router)
