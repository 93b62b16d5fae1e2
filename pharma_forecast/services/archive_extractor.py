"""Decompress a report archive and route each entry to its artifact or context slot."""

from __future__ import annotations

import asyncio
import io
import logging
import mimetypes
import zipfile
import zlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Sequence

from pharma_forecast.core.errors import ArchiveError
from pharma_forecast.services.artifacts import (
    Artifact,
    CONTEXT_FIELDS,
    ImageArtifact,
    SessionContext,
    TableArtifact,
    TextArtifact,
    image_key,
)
from pharma_forecast.utils.tabular import parse_table

logger = logging.getLogger(__name__)


IMAGE_EXTENSIONS: tuple[str, ...] = (".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp")
TABULAR_EXTENSIONS: tuple[str, ...] = (".csv",)

CUSTOM_FORECAST_MARKER = "forecast_custom_date"
HISTORICAL_DETAIL_MARKER = "detailed_summary_report.txt"
FORECAST_DETAIL_MARKER = "forecast_summary_report.txt"
FULL_FORECAST_MARKER = "full_forecast_data.csv"
HISTORICAL_RAW_MARKER = "historical_raw_data.csv"

CUSTOM_FORECAST_TABLE_KEY = "custom_forecast_data"
CUSTOM_FORECAST_TEXT_KEY = "custom_forecast_csv_text"


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    name: str
    data: bytes


class SlotKind(str, Enum):
    ARTIFACT = "artifact"
    CONTEXT = "context"


@dataclass(frozen=True, slots=True)
class ExtractedItem:
    """Tagged output of one decode task, folded into the result after the join."""

    kind: SlotKind
    key: str
    value: Any


Decoder = Callable[[ArchiveEntry], Awaitable[list[ExtractedItem]]]


@dataclass(frozen=True, slots=True)
class EntryRule:
    """Pairs a name predicate with the decoder that handles matching entries."""

    name: str
    matches: Callable[[str], bool]
    decode: Decoder


@dataclass(slots=True)
class ExtractionResult:
    artifacts: dict[str, Artifact] = field(default_factory=dict)
    context: SessionContext = field(default_factory=SessionContext)
    failures: dict[str, str] = field(default_factory=dict)
    ignored: list[str] = field(default_factory=list)


def _decode_text(data: bytes) -> str:
    return data.decode("utf-8")


async def decode_image(entry: ArchiveEntry) -> list[ExtractedItem]:
    media_type = mimetypes.guess_type(entry.name)[0] or "application/octet-stream"
    image = ImageArtifact(entry.name, entry.data, media_type=media_type)
    return [ExtractedItem(SlotKind.ARTIFACT, image_key(entry.name), image)]


async def decode_custom_forecast(entry: ArchiveEntry) -> list[ExtractedItem]:
    text = _decode_text(entry.data)
    return [
        ExtractedItem(
            SlotKind.ARTIFACT,
            CUSTOM_FORECAST_TABLE_KEY,
            TableArtifact(tuple(parse_table(text))),
        ),
        ExtractedItem(SlotKind.ARTIFACT, CUSTOM_FORECAST_TEXT_KEY, TextArtifact(text)),
    ]


def context_decoder(field_name: str) -> Decoder:
    """Build a decoder that assigns the entry text to one context field."""
    if field_name not in CONTEXT_FIELDS:
        raise ValueError(f"Unknown context field: {field_name}")

    async def _decode(entry: ArchiveEntry) -> list[ExtractedItem]:
        return [ExtractedItem(SlotKind.CONTEXT, field_name, _decode_text(entry.data))]

    return _decode


def _has_suffix(*suffixes: str) -> Callable[[str], bool]:
    return lambda name: name.lower().endswith(suffixes)


def _contains(marker: str, *, suffixes: Sequence[str] = ()) -> Callable[[str], bool]:
    def _match(name: str) -> bool:
        if marker not in name:
            return False
        return not suffixes or name.lower().endswith(tuple(suffixes))

    return _match


# Evaluated in order; the first matching rule handles the entry.
DEFAULT_RULES: tuple[EntryRule, ...] = (
    EntryRule("image", _has_suffix(*IMAGE_EXTENSIONS), decode_image),
    EntryRule(
        "custom_forecast",
        _contains(CUSTOM_FORECAST_MARKER, suffixes=TABULAR_EXTENSIONS),
        decode_custom_forecast,
    ),
    EntryRule(
        "historical_summary",
        _contains(HISTORICAL_DETAIL_MARKER),
        context_decoder("historical_summary"),
    ),
    EntryRule(
        "forecast_summary",
        _contains(FORECAST_DETAIL_MARKER),
        context_decoder("forecast_summary"),
    ),
    EntryRule(
        "forecast_data",
        _contains(FULL_FORECAST_MARKER),
        context_decoder("forecast_data_text"),
    ),
    EntryRule(
        "historical_data",
        _contains(HISTORICAL_RAW_MARKER),
        context_decoder("historical_data_text"),
    ),
)


def read_archive(data: bytes) -> tuple[list[ArchiveEntry], dict[str, str]]:
    """Decompress every file entry of a zip archive.

    Raises ``ArchiveError`` when the container itself cannot be opened. A member
    that fails to decompress is reported in the returned failure mapping.
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError) as exc:
        raise ArchiveError(f"The report archive could not be opened: {exc}") from exc

    entries: list[ArchiveEntry] = []
    failures: dict[str, str] = {}
    with archive:
        for info in archive.infolist():
            if info.is_dir():
                continue
            try:
                entries.append(ArchiveEntry(info.filename, archive.read(info)))
            except (zipfile.BadZipFile, zlib.error, NotImplementedError, RuntimeError) as exc:
                failures[info.filename] = str(exc)
    return entries, failures


class ArchiveExtractor:
    """Classify archive entries and decode them concurrently.

    Every decode task runs to completion before the result is assembled; a
    failing entry is recorded and never cancels its siblings.
    """

    def __init__(self, rules: Iterable[EntryRule] = DEFAULT_RULES) -> None:
        self._rules = tuple(rules)

    def classify(self, name: str) -> EntryRule | None:
        for rule in self._rules:
            if rule.matches(name):
                return rule
        return None

    async def extract(self, data: bytes) -> ExtractionResult:
        entries, read_failures = await asyncio.to_thread(read_archive, data)
        result = ExtractionResult(failures=dict(read_failures))
        for name, reason in read_failures.items():
            logger.warning("Archive entry '%s' could not be decompressed: %s", name, reason)

        scheduled: list[tuple[ArchiveEntry, EntryRule]] = []
        for entry in entries:
            rule = self.classify(entry.name)
            if rule is None:
                logger.debug("Ignoring unrecognized archive entry '%s'", entry.name)
                result.ignored.append(entry.name)
                continue
            scheduled.append((entry, rule))

        outcomes = await asyncio.gather(
            *(rule.decode(entry) for entry, rule in scheduled),
            return_exceptions=True,
        )

        context_values: dict[str, str] = {}
        for (entry, rule), outcome in zip(scheduled, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.warning(
                    "Failed to decode archive entry '%s' as %s: %s",
                    entry.name,
                    rule.name,
                    outcome,
                )
                result.failures[entry.name] = str(outcome)
                continue
            for item in outcome:
                target = (
                    result.artifacts if item.kind is SlotKind.ARTIFACT else context_values
                )
                if item.key in target:
                    logger.warning(
                        "Archive entry '%s' replaces an earlier value for '%s'",
                        entry.name,
                        item.key,
                    )
                target[item.key] = item.value

        result.context = SessionContext(**context_values)
        logger.info(
            "Extracted %d artifacts from %d entries (%d ignored, %d failed)",
            len(result.artifacts),
            len(entries) + len(read_failures),
            len(result.ignored),
            len(result.failures),
        )
        return result


__all__ = [
    "ArchiveEntry",
    "ArchiveExtractor",
    "CUSTOM_FORECAST_MARKER",
    "CUSTOM_FORECAST_TABLE_KEY",
    "CUSTOM_FORECAST_TEXT_KEY",
    "DEFAULT_RULES",
    "EntryRule",
    "ExtractedItem",
    "ExtractionResult",
    "FORECAST_DETAIL_MARKER",
    "FULL_FORECAST_MARKER",
    "HISTORICAL_DETAIL_MARKER",
    "HISTORICAL_RAW_MARKER",
    "IMAGE_EXTENSIONS",
    "SlotKind",
    "context_decoder",
    "decode_custom_forecast",
    "decode_image",
    "read_archive",
]
