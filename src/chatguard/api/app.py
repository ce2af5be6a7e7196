"""Fábrica da aplicação FastAPI."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator

from fastapi import FastAPI

from chatguard.api.routes import router
from chatguard.application.factory import build_components
from chatguard.config.settings import Settings, get_settings
from chatguard.infra.store_factory import create_session_store_from_settings
from chatguard.observability.logging import configure_logging, get_logger
from chatguard.observability.middleware import CorrelationIdMiddleware

logger = get_logger(__name__)


@contextlib.asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Inicia o sweeper periódico quando configurado."""
    settings: Settings = app.state.settings
    interval = settings.sweep_interval_seconds
    if interval <= 0:
        yield
        return

    stop = asyncio.Event()
    task = asyncio.create_task(app.state.sweeper.run_periodically(interval, stop))
    try:
        yield
    finally:
        stop.set()
        await task


def create_app(settings: Settings | None = None) -> FastAPI:
    """Cria a aplicação FastAPI."""
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.service_name, settings.log_format)

    validation_errors: list[str] = []
    validation_errors.extend(settings.validate_session_store_config())
    validation_errors.extend(settings.validate_guard_thresholds())
    validation_errors.extend(settings.validate_admin_config())

    if validation_errors:
        error_msg = "; ".join(validation_errors)
        raise ValueError(f"Configuração inválida: {error_msg}")

    app = FastAPI(title=settings.service_name, version=settings.version, lifespan=_lifespan)
    app.add_middleware(CorrelationIdMiddleware, header_name=settings.correlation_id_header)
    app.include_router(router)

    store = create_session_store_from_settings(settings)
    components = build_components(settings, store)

    app.state.settings = settings
    app.state.session_store = components.store
    app.state.guard = components.guard
    app.state.sweeper = components.sweeper
    app.state.admin = components.admin

    logger.info(
        "chatguard app created",
        extra={
            "environment": settings.environment,
            "session_store_backend": settings.session_store_backend,
            "sweep_interval_seconds": settings.sweep_interval_seconds,
        },
    )
    return app


app = create_app()
