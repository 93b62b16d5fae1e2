"""Expose dependency helpers for FastAPI routers."""

from .clients import get_forecast_session
from .config import SettingsDependency, get_app_settings

__all__ = [
    "SettingsDependency",
    "get_app_settings",
    "get_forecast_session",
]
