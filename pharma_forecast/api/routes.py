"""
FastAPI routes exposing the current report and conversation to a front-end.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response

from pharma_forecast.core.config import AppSettings
from pharma_forecast.dependencies import SettingsDependency, get_forecast_session
from pharma_forecast.schemas import (
    ArtifactSummary,
    CatalogResponse,
    ChatMessageOut,
    QuestionRequest,
    ReportRequest,
    ReportSummary,
    TranscriptResponse,
)
from pharma_forecast.services import ForecastSession
from pharma_forecast.services.archive_extractor import CUSTOM_FORECAST_TEXT_KEY

router = APIRouter()
logger = logging.getLogger(__name__)

SessionDependency = Annotated[ForecastSession, Depends(get_forecast_session)]


def _report_summary(session: ForecastSession) -> ReportSummary:
    snapshot = session.snapshot
    return ReportSummary(
        generation=snapshot.generation,
        product_name=snapshot.product_name,
        artifacts=[
            ArtifactSummary(key=key, kind=artifact.kind.value)
            for key, artifact in snapshot.bundle.items()
        ],
        context_ready=snapshot.context.ready(),
        historical_summary=snapshot.context.historical_summary,
        forecast_summary=snapshot.context.forecast_summary,
        has_archive=snapshot.archive is not None,
        banner=session.banner,
    )


def _transcript(session: ForecastSession) -> TranscriptResponse:
    return TranscriptResponse(
        state=session.chat_state.value,
        messages=[
            ChatMessageOut(sender=message.sender.value, text=message.text)
            for message in session.transcript
        ],
        banner=session.banner,
    )


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck(settings: AppSettings = SettingsDependency) -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok", "environment": settings.environment}


@router.get("/catalog", response_model=CatalogResponse)
async def get_catalog(session: SessionDependency) -> CatalogResponse:
    """Return the product list and available dates, loading them on first use."""
    if not session.products:
        await session.load_catalog()
    return CatalogResponse(
        products=list(session.products),
        selected_product=session.selected_product,
        available_dates=session.available_dates,
        banner=session.banner,
    )


@router.post("/reports", response_model=ReportSummary)
async def generate_report(
    payload: ReportRequest, session: SessionDependency
) -> ReportSummary:
    """Generate a new report, replacing the current one."""
    await session.generate(
        payload.product_name,
        summary_range=payload.summary_range,
        forecast_range=payload.forecast_range,
    )
    return _report_summary(session)


@router.get("/reports/current", response_model=ReportSummary)
async def get_current_report(session: SessionDependency) -> ReportSummary:
    return _report_summary(session)


@router.get("/reports/current/images/{key:path}")
async def get_report_image(key: str, session: SessionDependency) -> Response:
    image = session.bundle.image(key)
    if image is None:
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail="Image not found.")
    return Response(content=image.data, media_type=image.media_type)


@router.get("/reports/current/tables/{key}")
async def get_report_table(key: str, session: SessionDependency) -> list[dict[str, str]]:
    table = session.bundle.table(key)
    if table is None:
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail="Table not found.")
    return [dict(row) for row in table.rows]


@router.get("/reports/current/archive")
async def download_archive(session: SessionDependency) -> Response:
    snapshot = session.snapshot
    if snapshot.archive is None:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND, detail="No report has been generated."
        )
    filename = f"analysis_report_{snapshot.product_name}.zip"
    return Response(
        content=snapshot.archive,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/reports/current/custom-forecast.csv")
async def download_custom_forecast(session: SessionDependency) -> Response:
    snapshot = session.snapshot
    text = snapshot.bundle.text(CUSTOM_FORECAST_TEXT_KEY)
    if text is None:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail="The current report has no custom forecast.",
        )
    filename = f"custom_forecast_{snapshot.product_name}.csv"
    return Response(
        content=text,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/chat", response_model=TranscriptResponse)
async def get_transcript(session: SessionDependency) -> TranscriptResponse:
    return _transcript(session)


@router.post("/chat", response_model=TranscriptResponse)
async def ask_question(
    payload: QuestionRequest, session: SessionDependency
) -> TranscriptResponse:
    """Ask a question about the current report."""
    await session.ask(payload.question)
    return _transcript(session)


__all__ = ["router"]
