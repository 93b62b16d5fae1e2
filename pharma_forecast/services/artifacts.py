"""Generation-scoped data model: artifacts, bundle, context and snapshot."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from pathlib import PurePosixPath
from types import MappingProxyType
from typing import Optional, Union


class ArtifactKind(str, Enum):
    IMAGE = "image"
    TABLE = "table"
    TEXT = "text"


class ImageArtifact:
    """Handle to image bytes owned by one bundle.

    ``release`` drops the payload; a released handle raises on access so a
    stale handle from a replaced bundle cannot be rendered by mistake.
    """

    kind = ArtifactKind.IMAGE

    __slots__ = ("name", "media_type", "_data")

    def __init__(self, name: str, data: bytes, media_type: str = "image/png") -> None:
        self.name = name
        self.media_type = media_type
        self._data: Optional[bytes] = data

    @property
    def released(self) -> bool:
        return self._data is None

    @property
    def data(self) -> bytes:
        if self._data is None:
            raise RuntimeError(f"Image handle '{self.name}' has been released.")
        return self._data

    def release(self) -> None:
        self._data = None

    def __repr__(self) -> str:
        size = "released" if self._data is None else f"{len(self._data)} bytes"
        return f"ImageArtifact({self.name!r}, {size})"


@dataclass(frozen=True, slots=True)
class TableArtifact:
    """Parsed table; rows are exposed as read-only mappings."""

    rows: tuple[Mapping[str, str], ...]
    kind = ArtifactKind.TABLE

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "rows", tuple(MappingProxyType(dict(row)) for row in self.rows)
        )

    @property
    def columns(self) -> list[str]:
        return list(self.rows[0].keys()) if self.rows else []


@dataclass(frozen=True, slots=True)
class TextArtifact:
    text: str
    kind = ArtifactKind.TEXT


Artifact = Union[ImageArtifact, TableArtifact, TextArtifact]


class AnalysisBundle(Mapping[str, Artifact]):
    """Read-only mapping of artifact key to artifact for one generation."""

    def __init__(self, artifacts: Optional[Mapping[str, Artifact]] = None) -> None:
        self._artifacts = MappingProxyType(dict(artifacts or {}))

    def __getitem__(self, key: str) -> Artifact:
        return self._artifacts[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._artifacts)

    def __len__(self) -> int:
        return len(self._artifacts)

    def __repr__(self) -> str:
        return f"AnalysisBundle({sorted(self._artifacts)})"

    def image(self, name: str) -> Optional[ImageArtifact]:
        """Look up an image by entry name, with or without its extension."""
        for key in (name, image_key(name)):
            artifact = self._artifacts.get(key)
            if isinstance(artifact, ImageArtifact):
                return artifact
        return None

    def images(self) -> dict[str, ImageArtifact]:
        return {
            key: value
            for key, value in self._artifacts.items()
            if isinstance(value, ImageArtifact)
        }

    def table(self, key: str) -> Optional[TableArtifact]:
        artifact = self._artifacts.get(key)
        return artifact if isinstance(artifact, TableArtifact) else None

    def text(self, key: str) -> Optional[str]:
        artifact = self._artifacts.get(key)
        return artifact.text if isinstance(artifact, TextArtifact) else None

    def release(self) -> None:
        """Release every image handle held by this bundle."""
        for artifact in self._artifacts.values():
            if isinstance(artifact, ImageArtifact):
                artifact.release()


def image_key(name: str) -> str:
    """Strip the final extension from an entry name, keeping its directory."""
    path = PurePosixPath(name)
    if not path.suffix:
        return name
    return str(path.with_suffix(""))


@dataclass(frozen=True, slots=True)
class SessionContext:
    """The four text fields a conversational query needs."""

    historical_summary: str = ""
    forecast_summary: str = ""
    forecast_data_text: str = ""
    historical_data_text: str = ""

    def ready(self) -> bool:
        return all(getattr(self, item.name) for item in fields(self))

    def with_field(self, name: str, value: str) -> "SessionContext":
        return replace(self, **{name: value})

    def to_form(self) -> dict[str, str]:
        """Form fields for ``POST /ask-ai/``."""
        return {
            "historical_summary": self.historical_summary,
            "forecast_summary": self.forecast_summary,
            "forecast_data_csv": self.forecast_data_text,
            "historical_data_csv": self.historical_data_text,
        }


CONTEXT_FIELDS: tuple[str, ...] = tuple(item.name for item in fields(SessionContext))


class Sender(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True, slots=True)
class ChatMessage:
    sender: Sender
    text: str


@dataclass(frozen=True, slots=True)
class ReportSnapshot:
    """Immutable view of one generation's state handed to consumers."""

    generation: int = 0
    product_name: Optional[str] = None
    bundle: AnalysisBundle = field(default_factory=AnalysisBundle)
    context: SessionContext = field(default_factory=SessionContext)
    archive: Optional[bytes] = None

    @property
    def is_empty(self) -> bool:
        return (
            not self.bundle
            and self.context == SessionContext()
            and self.archive is None
        )


__all__ = [
    "AnalysisBundle",
    "Artifact",
    "ArtifactKind",
    "CONTEXT_FIELDS",
    "ChatMessage",
    "ImageArtifact",
    "ReportSnapshot",
    "Sender",
    "SessionContext",
    "TableArtifact",
    "TextArtifact",
    "image_key",
]
