from __future__ import annotations

import csv
import io
from typing import Any, Iterable, List, Mapping, Sequence

DEFAULT_EXPORT_COLUMNS: tuple[str, ...] = (
    "id",
    "title",
    "organism",
    "expType",
    "platform",
    "year",
    "samples",
)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return "; ".join(_cell(v) for v in value)
    if isinstance(value, Mapping):
        return str(value.get("id") or "")
    return str(value)


def select_columns(rows: Iterable[Mapping[str, Any]], columns: Sequence[str]) -> List[dict]:
    """Project each row onto ``columns``; missing fields become None."""
    return [{column: row.get(column) for column in columns} for row in rows]


def to_csv(rows: Iterable[Mapping[str, Any]], columns: Sequence[str]) -> str:
    """
    Render rows as CSV with a header line.

    Cells containing a comma, quote or newline are quoted with inner quotes
    doubled; list values are joined with ``"; "``.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(columns)
    for row in rows:
        writer.writerow([_cell(row.get(column)) for column in columns])
    return buffer.getvalue()
