"""Single entry point for a rendering surface: read-only state plus actions."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import httpx

from pharma_forecast.clients import ForecastApiClient
from pharma_forecast.core.config import ForecastApiSettings
from pharma_forecast.core.errors import (
    ApiError,
    ForecastClientError,
    GenerationSuperseded,
    ValidationError,
)
from pharma_forecast.schemas import DateBounds, DateRange
from pharma_forecast.services.archive_extractor import (
    CUSTOM_FORECAST_TEXT_KEY,
    ArchiveExtractor,
)
from pharma_forecast.services.artifacts import (
    AnalysisBundle,
    ChatMessage,
    ReportSnapshot,
)
from pharma_forecast.services.chat_orchestrator import ChatOrchestrator, ChatState
from pharma_forecast.services.report_assembler import ReportAssembler
from pharma_forecast.utils.http import RequestDispatcher, RetryConfig

logger = logging.getLogger(__name__)


class ForecastSession:
    """Own the report pipeline and the conversation for one user session.

    Consumers read ``snapshot``, ``transcript`` and ``banner`` and act through
    ``load_catalog``, ``generate`` and ``ask``. Failures of an action land on
    the banner; the banner is cleared when the next action starts.
    """

    def __init__(
        self,
        api: ForecastApiClient,
        *,
        extractor: Optional[ArchiveExtractor] = None,
        dispatcher: Optional[RequestDispatcher] = None,
    ) -> None:
        self._api = api
        self._dispatcher = dispatcher
        self._assembler = ReportAssembler(api, extractor)
        self._chat = ChatOrchestrator(api, self._assembler)
        self._banner: Optional[str] = None
        self._products: list[str] = []
        self._selected_product: Optional[str] = None
        self._available_dates: Optional[DateBounds] = None

    @classmethod
    def from_settings(
        cls,
        settings: ForecastApiSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ForecastSession":
        """Build a session with its own HTTP client."""
        client = httpx.AsyncClient(
            base_url=settings.root_url,
            timeout=settings.timeout_seconds,
            transport=transport,
        )
        dispatcher = RequestDispatcher(
            client,
            retry_config=RetryConfig(
                attempts=settings.retry_attempts,
                backoff_seconds=settings.retry_backoff_seconds,
            ),
        )
        return cls(ForecastApiClient(dispatcher), dispatcher=dispatcher)

    async def __aenter__(self) -> "ForecastSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        self._assembler.snapshot.bundle.release()
        if self._dispatcher is not None:
            await self._dispatcher.aclose()

    @property
    def snapshot(self) -> ReportSnapshot:
        return self._assembler.snapshot

    @property
    def bundle(self) -> AnalysisBundle:
        return self._assembler.snapshot.bundle

    @property
    def transcript(self) -> tuple[ChatMessage, ...]:
        return self._chat.transcript

    @property
    def chat_state(self) -> ChatState:
        return self._chat.state

    @property
    def banner(self) -> Optional[str]:
        return self._banner

    @property
    def products(self) -> tuple[str, ...]:
        return tuple(self._products)

    @property
    def selected_product(self) -> Optional[str]:
        return self._selected_product

    @property
    def available_dates(self) -> Optional[DateBounds]:
        return self._available_dates

    def select_product(self, product_name: str) -> None:
        self._selected_product = product_name

    async def load_catalog(self) -> None:
        """Fetch the product list and the available date bounds."""
        self._banner = None
        try:
            self._products = await self._api.list_products()
        except ForecastClientError as exc:
            self._fail("Failed to fetch product list.", exc)
            return
        if self._products and self._selected_product is None:
            self._selected_product = self._products[0]

        try:
            self._available_dates = await self._api.get_available_dates()
        except ForecastClientError as exc:
            self._fail("Failed to fetch available dates.", exc)

    async def generate(
        self,
        product_name: Optional[str] = None,
        summary_range: Optional[DateRange] = None,
        forecast_range: Optional[DateRange] = None,
    ) -> Optional[AnalysisBundle]:
        """Generate a report; returns ``None`` when the banner holds a failure."""
        self._banner = None
        if product_name is not None:
            self._selected_product = product_name
        try:
            return await self._assembler.generate(
                self._selected_product or "",
                summary_range=summary_range,
                forecast_range=forecast_range,
            )
        except GenerationSuperseded:
            return None
        except ValidationError as exc:
            self._banner = exc.message
        except ForecastClientError as exc:
            self._fail("Failed to generate forecast.", exc)
        return None

    async def ask(self, question: str) -> Optional[ChatMessage]:
        """Ask about the current report; gate failures land on the banner."""
        self._banner = None
        try:
            return await self._chat.ask(question)
        except ForecastClientError as exc:
            self._banner = exc.message
        return None

    def export_archive(self, directory: Path | str) -> Optional[Path]:
        """Write the full report archive as ``analysis_report_<product>.zip``."""
        snapshot = self.snapshot
        if snapshot.archive is None or not snapshot.product_name:
            return None
        target = Path(directory) / f"analysis_report_{snapshot.product_name}.zip"
        target.write_bytes(snapshot.archive)
        return target

    def export_custom_forecast(self, directory: Path | str) -> Optional[Path]:
        """Write the custom-range forecast CSV verbatim."""
        snapshot = self.snapshot
        text = snapshot.bundle.text(CUSTOM_FORECAST_TEXT_KEY)
        if text is None or not snapshot.product_name:
            return None
        target = Path(directory) / f"custom_forecast_{snapshot.product_name}.csv"
        target.write_text(text, encoding="utf-8")
        return target

    def _fail(self, prefix: str, exc: ForecastClientError) -> None:
        level = logging.WARNING if isinstance(exc, ApiError) else logging.ERROR
        logger.log(level, "%s %s", prefix, exc.message)
        self._banner = f"{prefix} {exc.message}"


__all__ = ["ForecastSession"]
