"""Public schema exports."""

from .report import (
    ArtifactSummary,
    AskResponse,
    CatalogResponse,
    ChatMessageOut,
    DateBounds,
    DateRange,
    QuestionRequest,
    ReportRequest,
    ReportSummary,
    TranscriptResponse,
    format_api_date,
)

__all__ = [
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
