try:
    from . import _bootstrap  # noqa: F401
    from ._archives import PNG_BYTES, build_archive, full_report_entries
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401
    from _archives import PNG_BYTES, build_archive, full_report_entries  # type: ignore

import asyncio
from datetime import date

import pytest

from pharma_forecast.core.errors import (
    ApiError,
    ArchiveError,
    GenerationSuperseded,
    ValidationError,
)
from pharma_forecast.schemas import DateRange, ReportRequest
from pharma_forecast.services.artifacts import ReportSnapshot, SessionContext
from pharma_forecast.services.report_assembler import ReportAssembler


class StubForecastApi:
    def __init__(self, *archives: bytes | Exception) -> None:
        self.archives = list(archives)
        self.requests: list[ReportRequest] = []
        self.observed: list[ReportSnapshot] = []
        self.assembler: ReportAssembler | None = None

    async def generate_report(self, request: ReportRequest) -> bytes:
        self.requests.append(request)
        if self.assembler is not None:
            self.observed.append(self.assembler.snapshot)
        outcome = self.archives.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class GatedForecastApi:
    """Holds each request until the test releases it."""

    def __init__(self) -> None:
        self.pending: list[tuple[asyncio.Event, bytes]] = []

    async def generate_report(self, request: ReportRequest) -> bytes:
        gate = asyncio.Event()
        archive = build_archive(full_report_entries(request.product_name))
        self.pending.append((gate, archive))
        await gate.wait()
        return archive


def _assembler(api) -> ReportAssembler:
    assembler = ReportAssembler(api)
    if isinstance(api, StubForecastApi):
        api.assembler = assembler
    return assembler


@pytest.mark.asyncio
async def test_missing_product_fails_before_any_request():
    api = StubForecastApi()
    assembler = _assembler(api)

    with pytest.raises(ValidationError) as excinfo:
        await assembler.generate("   ")

    assert excinfo.value.message == "Please select a product."
    assert api.requests == []
    assert assembler.generation == 0


@pytest.mark.asyncio
async def test_reversed_range_fails_before_any_request():
    api = StubForecastApi()
    assembler = _assembler(api)

    with pytest.raises(ValidationError):
        await assembler.generate(
            "AMOXIL",
            summary_range=DateRange(start=date(2019, 1, 1), end=date(2018, 1, 1)),
        )

    assert api.requests == []


@pytest.mark.asyncio
async def test_generate_populates_bundle_and_context():
    archive = build_archive(full_report_entries("AMOXIL"))
    api = StubForecastApi(archive)
    assembler = _assembler(api)

    bundle = await assembler.generate(
        "AMOXIL",
        summary_range=DateRange(start=date(2018, 1, 1)),
        forecast_range=DateRange(start=date(2027, 1, 1), end=date(2027, 6, 30)),
    )

    snapshot = assembler.snapshot
    assert snapshot.bundle is bundle
    assert snapshot.generation == 1
    assert snapshot.product_name == "AMOXIL"
    assert snapshot.archive == archive
    assert snapshot.context.ready()
    assert bundle.image("forecast_chart_AMOXIL.png") is not None
    assert api.requests[0].to_form() == {
        "product_name": "AMOXIL",
        "forecast_from_date": "2027-01-01",
        "forecast_to_date": "2027-06-30",
    }


@pytest.mark.asyncio
async def test_state_is_cleared_before_the_request_is_sent():
    first = build_archive(full_report_entries("AMOXIL"))
    second = build_archive({"detailed_summary_report.txt": "only history"})
    api = StubForecastApi(first, second)
    assembler = _assembler(api)

    await assembler.generate("AMOXIL")
    await assembler.generate("AMOXIL")

    observed = api.observed[1]
    assert observed.generation == 2
    assert len(observed.bundle) == 0
    assert observed.context == SessionContext()
    assert observed.archive is None


@pytest.mark.asyncio
async def test_regeneration_keeps_only_the_latest_artifacts():
    first = build_archive(full_report_entries("AMOXIL"))
    second = build_archive(
        {"forecast_chart_PANADOL.png": PNG_BYTES, "forecast_summary_report.txt": "new"}
    )
    api = StubForecastApi(first, second)
    assembler = _assembler(api)

    first_bundle = await assembler.generate("AMOXIL")
    chart = first_bundle.image("forecast_chart_AMOXIL")
    await assembler.generate("PANADOL")

    snapshot = assembler.snapshot
    assert list(snapshot.bundle) == ["forecast_chart_PANADOL"]
    assert snapshot.context == SessionContext(forecast_summary="new")
    assert chart.released


@pytest.mark.asyncio
async def test_failure_leaves_state_empty():
    first = build_archive(full_report_entries("AMOXIL"))
    api = StubForecastApi(first, ApiError("Product not found", status_code=404))
    assembler = _assembler(api)

    await assembler.generate("AMOXIL")
    with pytest.raises(ApiError):
        await assembler.generate("MISSING")

    snapshot = assembler.snapshot
    assert snapshot.generation == 2
    assert len(snapshot.bundle) == 0
    assert snapshot.context == SessionContext()
    assert snapshot.archive is None


@pytest.mark.asyncio
async def test_corrupt_archive_raises_archive_error_and_stays_empty():
    api = StubForecastApi(b"garbage")
    assembler = _assembler(api)

    with pytest.raises(ArchiveError):
        await assembler.generate("AMOXIL")

    assert assembler.snapshot.is_empty


@pytest.mark.asyncio
async def test_reset_notifies_listeners_synchronously():
    assembler = _assembler(StubForecastApi())
    seen: list[int] = []
    assembler.add_reset_listener(seen.append)

    token = assembler.reset()

    assert token == 1
    assert seen == [1]


@pytest.mark.asyncio
async def test_stale_generation_results_are_discarded():
    api = GatedForecastApi()
    assembler = ReportAssembler(api)

    stale = asyncio.create_task(assembler.generate("AMOXIL"))
    await asyncio.sleep(0)
    current = asyncio.create_task(assembler.generate("PANADOL"))
    await asyncio.sleep(0)
    assert len(api.pending) == 2

    api.pending[1][0].set()
    await current
    api.pending[0][0].set()
    with pytest.raises(GenerationSuperseded):
        await stale

    snapshot = assembler.snapshot
    assert snapshot.generation == 2
    assert snapshot.product_name == "PANADOL"
    assert "forecast_chart_PANADOL" in snapshot.bundle
    assert "forecast_chart_AMOXIL" not in snapshot.bundle
