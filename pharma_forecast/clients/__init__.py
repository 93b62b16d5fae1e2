"""Expose constructed client wrappers."""

from .forecast_api import ForecastApiClient

__all__ = ["ForecastApiClient"]
