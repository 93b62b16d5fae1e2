"""Service layer exports."""

from .archive_extractor import ArchiveExtractor, EntryRule, ExtractionResult
from .artifacts import (
    AnalysisBundle,
    ChatMessage,
    ImageArtifact,
    ReportSnapshot,
    Sender,
    SessionContext,
    TableArtifact,
    TextArtifact,
)
from .chat_orchestrator import ChatOrchestrator, ChatState
from .forecast_session import ForecastSession
from .report_assembler import ReportAssembler

__all__ = [
    "AnalysisBundle",
    "ArchiveExtractor",
    "ChatMessage",
    "ChatOrchestrator",
    "ChatState",
    "EntryRule",
    "ExtractionResult",
    "ForecastSession",
    "ImageArtifact",
    "ReportAssembler",
    "ReportSnapshot",
    "Sender",
    "SessionContext",
    "TableArtifact",
    "TextArtifact",
]
