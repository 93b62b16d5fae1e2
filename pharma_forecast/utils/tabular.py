"""Comma-delimited table parsing for the CSV entries of a report archive.

Quoting is not supported: a cell value that contains a comma is split into
separate cells. Downstream consumers rely on the resulting column count, so
this limitation is kept as-is.
"""

from __future__ import annotations

from typing import Iterable, Mapping

DELIMITER = ","

Row = dict[str, str]


def parse_table(text: str | None) -> list[Row]:
    """Parse delimited text into rows keyed by the header line.

    Missing trailing values yield empty strings; extra values are dropped.
    Blank lines inside the table are rows whose cells are all empty.
    """
    if not text or not isinstance(text, str):
        return []
    lines = text.strip().splitlines()
    if sum(1 for line in lines if line.strip()) < 2:
        return []

    headers = [header.strip() for header in lines[0].split(DELIMITER)]
    rows: list[Row] = []
    for line in lines[1:]:
        values = line.split(DELIMITER)
        row: Row = {}
        for index, header in enumerate(headers):
            row[header] = values[index].strip() if index < len(values) else ""
        rows.append(row)
    return rows


def serialize_table(rows: Iterable[Mapping[str, str]]) -> str:
    """Render rows back to delimited text using the first row's column order."""
    rows = list(rows)
    if not rows:
        return ""
    headers = list(rows[0].keys())
    lines = [DELIMITER.join(headers)]
    for row in rows:
        lines.append(DELIMITER.join(str(row.get(header, "")) for header in headers))
    return "\n".join(lines) + "\n"


__all__ = ["DELIMITER", "Row", "parse_table", "serialize_table"]
