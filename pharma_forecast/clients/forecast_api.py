"""Client wrapper for the remote pharma sales forecasting service."""

from __future__ import annotations

import logging
from typing import Mapping

from pydantic import ValidationError as PydanticValidationError

from pharma_forecast.core.errors import ApiError
from pharma_forecast.schemas import AskResponse, DateBounds, ReportRequest
from pharma_forecast.utils.http import RequestDispatcher

logger = logging.getLogger(__name__)


class ForecastApiClient:
    """One method per remote endpoint; every call goes through the dispatcher."""

    PRODUCTS_PATH = "/products/"
    AVAILABLE_DATES_PATH = "/available-dates/"
    FORECAST_PATH = "/forecast/"
    ASK_PATH = "/ask-ai/"

    def __init__(self, dispatcher: RequestDispatcher) -> None:
        self._dispatcher = dispatcher

    async def list_products(self) -> list[str]:
        """Return the product identifiers known to the service."""
        payload = await self._dispatcher.get_json(self.PRODUCTS_PATH)
        if not isinstance(payload, list):
            raise ApiError("Unexpected product list format.")
        return [str(item) for item in payload]

    async def get_available_dates(self) -> DateBounds:
        payload = await self._dispatcher.get_json(self.AVAILABLE_DATES_PATH)
        try:
            return DateBounds.model_validate(payload)
        except PydanticValidationError as exc:
            raise ApiError(f"Unexpected date bounds format: {exc.errors()}") from exc

    async def generate_report(self, request: ReportRequest) -> bytes:
        """Request a report and return the raw archive bytes."""
        form = request.to_form()
        logger.info("Requesting report for product '%s'", request.product_name)
        return await self._dispatcher.post_bytes(self.FORECAST_PATH, data=form)

    async def ask(self, prompt: str, context: Mapping[str, str]) -> str:
        """Send one question together with the report context."""
        form = {"user_prompt": prompt, **context}
        payload = await self._dispatcher.post_json(self.ASK_PATH, data=form)
        try:
            return AskResponse.model_validate(payload).gemini_answer
        except PydanticValidationError as exc:
            raise ApiError(f"Unexpected answer format: {exc.errors()}") from exc


__all__ = ["ForecastApiClient"]
