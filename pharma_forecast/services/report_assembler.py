"""Turn one report request into a generation-tagged snapshot."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from pharma_forecast.clients import ForecastApiClient
from pharma_forecast.core.errors import (
    ForecastClientError,
    GenerationSuperseded,
    ValidationError,
)
from pharma_forecast.schemas import DateRange, ReportRequest
from pharma_forecast.services.archive_extractor import ArchiveExtractor
from pharma_forecast.services.artifacts import AnalysisBundle, ReportSnapshot

logger = logging.getLogger(__name__)

ResetListener = Callable[[int], None]


class ReportAssembler:
    """Own the report snapshot and replace it once per generation.

    Every call to ``generate`` bumps the generation token and clears the
    previous snapshot before the network request is issued. Results that come
    back for an older token are dropped.
    """

    def __init__(
        self,
        api: ForecastApiClient,
        extractor: Optional[ArchiveExtractor] = None,
    ) -> None:
        self._api = api
        self._extractor = extractor or ArchiveExtractor()
        self._generation = 0
        self._snapshot = ReportSnapshot()
        self._reset_listeners: list[ResetListener] = []

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def snapshot(self) -> ReportSnapshot:
        return self._snapshot

    def add_reset_listener(self, listener: ResetListener) -> None:
        """Register a callback run synchronously whenever state is reset."""
        self._reset_listeners.append(listener)

    def reset(self) -> int:
        """Start a new generation with empty state and return its token."""
        self._generation += 1
        previous = self._snapshot
        self._snapshot = ReportSnapshot(generation=self._generation)
        previous.bundle.release()
        for listener in self._reset_listeners:
            listener(self._generation)
        return self._generation

    async def generate(
        self,
        product_name: str,
        summary_range: Optional[DateRange] = None,
        forecast_range: Optional[DateRange] = None,
    ) -> AnalysisBundle:
        product = (product_name or "").strip()
        if not product:
            raise ValidationError("Please select a product.")
        for label, window in (("summary", summary_range), ("forecast", forecast_range)):
            if window is not None and window.is_reversed:
                raise ValidationError(
                    f"The {label} start date must not be after its end date."
                )

        token = self.reset()
        logger.info("Generation %d started for product '%s'", token, product)
        request = ReportRequest(
            product_name=product,
            summary_range=summary_range,
            forecast_range=forecast_range,
        )

        try:
            archive = await self._api.generate_report(request)
            self._ensure_current(token)
            result = await self._extractor.extract(archive)
        except GenerationSuperseded:
            raise
        except ForecastClientError:
            self._ensure_current(token)
            raise

        bundle = AnalysisBundle(result.artifacts)
        if token != self._generation:
            bundle.release()
            self._ensure_current(token)

        self._snapshot = ReportSnapshot(
            generation=token,
            product_name=product,
            bundle=bundle,
            context=result.context,
            archive=archive,
        )
        logger.info(
            "Generation %d finished with %d artifacts (context ready: %s)",
            token,
            len(bundle),
            result.context.ready(),
        )
        return bundle

    def _ensure_current(self, token: int) -> None:
        if token != self._generation:
            logger.info(
                "Discarding results of generation %d; generation %d is current",
                token,
                self._generation,
            )
            raise GenerationSuperseded(
                f"Report generation {token} was superseded by generation "
                f"{self._generation}."
            )


__all__ = ["ReportAssembler"]
