"""
Factory functions to provide the shared forecast session as a FastAPI dependency.
"""

from functools import lru_cache

from pharma_forecast.core.config import get_settings
from pharma_forecast.services import ForecastSession


@lru_cache()
def get_forecast_session() -> ForecastSession:
    """Provide the process-wide forecast session."""
    settings = get_settings()
    return ForecastSession.from_settings(settings.api)


__all__ = ["get_forecast_session"]
