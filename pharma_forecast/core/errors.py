"""Error taxonomy shared by the report pipeline and the chat exchange."""

from __future__ import annotations


class ForecastClientError(RuntimeError):
    """Base class for failures that are shown to the user as a single message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ForecastClientError):
    """Raised when required input is missing before any remote call is made."""


class ApiError(ForecastClientError):
    """Raised when the remote service answers with a non-success response."""

    def __init__(self, detail: str, *, status_code: int | None = None) -> None:
        super().__init__(f"API Error: {detail}")
        self.detail = detail
        self.status_code = status_code


class ArchiveError(ForecastClientError):
    """Raised when the report archive cannot be opened at all."""


class GenerationSuperseded(ForecastClientError):
    """Raised to a generation whose results arrived after a newer one started."""


class ContextNotReady(ForecastClientError):
    """Raised when a question is asked before every context field is populated."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or (
                "The AI context is not ready yet. Please wait a moment after "
                "generating the report and try again."
            )
        )


__all__ = [
    "ApiError",
    "ArchiveError",
    "ContextNotReady",
    "ForecastClientError",
    "GenerationSuperseded",
    "ValidationError",
]
