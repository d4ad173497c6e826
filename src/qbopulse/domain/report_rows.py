"""Typed view of QuickBooks report row trees.

QBO reports nest rows as loosely shaped JSON::

    {"Rows": {"Row": [
        {"Header": {"ColData": [...]},
         "Rows": {"Row": [...]},
         "Summary": {"ColData": [...]},
         "type": "Section", "group": "Income"},
        {"ColData": [...], "type": "Data"},
    ]}}

Any of ``Rows``, ``Row``, ``ColData`` or ``value`` may be missing. This module
turns that into a small set of frozen row variants so parsers can walk the
tree without repeated ``.get()`` chains.
"""

from dataclasses import dataclass
from typing import Any, Optional, Union


@dataclass(frozen=True)
class HeaderRow:
    """Section banner, e.g. ``["Income", ""]``."""

    columns: tuple[str, ...]

    @property
    def label(self) -> str:
        return self.columns[0] if self.columns else ""


@dataclass(frozen=True)
class SummaryRow:
    """Section total, e.g. ``["Total Income", "12,345.67"]``."""

    columns: tuple[str, ...]

    @property
    def label(self) -> str:
        return self.columns[0] if self.columns else ""


@dataclass(frozen=True)
class DataRow:
    """Leaf line, columnar values in report column order."""

    columns: tuple[str, ...]

    def column(self, index: int) -> str:
        if -len(self.columns) <= index < len(self.columns):
            return self.columns[index]
        return ""


@dataclass(frozen=True)
class GroupRow:
    """Section with optional header, nested rows and summary."""

    header: Optional[HeaderRow]
    rows: tuple["ReportRow", ...]
    summary: Optional[SummaryRow]
    group: Optional[str] = None


ReportRow = Union[GroupRow, DataRow]


def _column_values(container: Any) -> tuple[str, ...]:
    if not isinstance(container, dict):
        return ()
    col_data = container.get("ColData") or []
    values = []
    for col in col_data:
        value = col.get("value", "") if isinstance(col, dict) else ""
        values.append("" if value is None else str(value))
    return tuple(values)


def _child_rows(container: Any) -> list:
    if not isinstance(container, dict):
        return []
    rows = container.get("Rows") or {}
    if not isinstance(rows, dict):
        return []
    return rows.get("Row") or []


def build_row(raw: dict) -> Optional[ReportRow]:
    """Convert one raw QBO row into a typed row, or None if it is unusable."""
    if not isinstance(raw, dict):
        return None

    if raw.get("type") == "Data" and "ColData" in raw:
        return DataRow(columns=_column_values(raw))

    header = HeaderRow(_column_values(raw["Header"])) if raw.get("Header") else None
    summary = SummaryRow(_column_values(raw["Summary"])) if raw.get("Summary") else None
    return GroupRow(
        header=header,
        rows=build_rows(_child_rows(raw)),
        summary=summary,
        group=raw.get("group"),
    )


def build_rows(raw_rows: list) -> tuple[ReportRow, ...]:
    """Convert a list of raw rows, dropping entries that are not objects."""
    rows = []
    for raw in raw_rows or []:
        row = build_row(raw)
        if row is not None:
            rows.append(row)
    return tuple(rows)


def build_report_tree(report: Optional[dict]) -> tuple[ReportRow, ...]:
    """Return the top-level typed rows of a QBO report payload."""
    return build_rows(_child_rows(report or {}))
