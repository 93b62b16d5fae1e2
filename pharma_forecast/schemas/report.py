"""
Pydantic models for report requests and remote service payloads.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


API_DATE_FORMAT = "%Y-%m-%d"


def format_api_date(value: date) -> str:
    """Format a date the way the forecasting service expects (YYYY-MM-DD)."""
    return value.strftime(API_DATE_FORMAT)


class DateRange(BaseModel):
    """Optional date window; only sent when both endpoints are set."""

    start: Optional[date] = Field(None, description="Inclusive window start.")
    end: Optional[date] = Field(None, description="Inclusive window end.")

    @property
    def is_complete(self) -> bool:
        return self.start is not None and self.end is not None

    @property
    def is_reversed(self) -> bool:
        return self.is_complete and self.start > self.end


class ReportRequest(BaseModel):
    """Inputs for one report generation."""

    product_name: str = Field(..., description="Product identifier, or 'ALL'.")
    summary_range: Optional[DateRange] = Field(
        None, description="Window for the historical sales summary."
    )
    forecast_range: Optional[DateRange] = Field(
        None, description="Window for the custom-date forecast table."
    )

    def to_form(self) -> dict[str, str]:
        """Build the form fields for ``POST /forecast/`` (sent URL-encoded)."""
        form = {"product_name": self.product_name}
        if self.summary_range and self.summary_range.is_complete:
            form["from_date"] = format_api_date(self.summary_range.start)
            form["to_date"] = format_api_date(self.summary_range.end)
        if self.forecast_range and self.forecast_range.is_complete:
            form["forecast_from_date"] = format_api_date(self.forecast_range.start)
            form["forecast_to_date"] = format_api_date(self.forecast_range.end)
        return form


class DateBounds(BaseModel):
    """Range of dates for which historical sales data exists."""

    min_available_date: date
    max_available_date: date


class AskResponse(BaseModel):
    """Successful answer from ``POST /ask-ai/``."""

    gemini_answer: str = ""


class QuestionRequest(BaseModel):
    """Question submitted through the local HTTP surface."""

    question: str = Field(..., description="Free-form question about the report.")


class ArtifactSummary(BaseModel):
    key: str
    kind: str


class ReportSummary(BaseModel):
    """Read-only description of the current report snapshot."""

    generation: int
    product_name: Optional[str] = None
    artifacts: list[ArtifactSummary] = Field(default_factory=list)
    context_ready: bool = False
    historical_summary: str = ""
    forecast_summary: str = ""
    has_archive: bool = False
    banner: Optional[str] = None


class ChatMessageOut(BaseModel):
    sender: str
    text: str


class TranscriptResponse(BaseModel):
    state: str
    messages: list[ChatMessageOut] = Field(default_factory=list)
    banner: Optional[str] = None


class CatalogResponse(BaseModel):
    products: list[str] = Field(default_factory=list)
    selected_product: Optional[str] = None
    available_dates: Optional[DateBounds] = None
    banner: Optional[str] = None


__all__ = [
    "API_DATE_FORMAT",
    "ArtifactSummary",
    "AskResponse",
    "CatalogResponse",
    "ChatMessageOut",
    "DateBounds",
    "DateRange",
    "QuestionRequest",
    "ReportRequest",
    "ReportSummary",
    "TranscriptResponse",
    "format_api_date",
]
