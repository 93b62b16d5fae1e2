"""
FastAPI application entrypoint for the pharma forecast client.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from pharma_forecast.api.routes import router as api_router
from pharma_forecast.core.config import get_settings
from pharma_forecast.core.logging import configure_logging
from pharma_forecast.dependencies import get_forecast_session


@asynccontextmanager
async def _lifespan(app: FastAPI):
    yield
    if get_forecast_session.cache_info().currsize:
        await get_forecast_session().aclose()


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Pharma Sales Forecast Client",
        version="0.1.0",
        description="Report bundle and report-aware chat over the forecasting service.",
        lifespan=_lifespan,
    )
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
