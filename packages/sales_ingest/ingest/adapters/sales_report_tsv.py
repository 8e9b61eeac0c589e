"""Adapter for the App Store Connect SALES/SUMMARY report text.

The report is tab-delimited with a header row (comma-delimited exports are
accepted too). Columns of interest, by exact header name:

- ``Begin Date`` / ``End Date``: ``MM/DD/YYYY``
- ``Developer Proceeds``: decimal string, possibly with thousands separators

Output rows are plain ``dict[str, str]`` keyed by header name with surrounding
whitespace stripped from values.
"""

from __future__ import annotations

import csv
import io
from datetime import datetime
from decimal import Decimal, InvalidOperation

from ...errors import ParseError
from ...models import ReportRow

_DATE_FORMATS = ("%m/%d/%Y", "%Y-%m-%d")


def _sniff_delimiter(header_line: str) -> str:
    return "\t" if "\t" in header_line else ","


def parse_report(text: str) -> list[dict[str, str]]:
    """Parse report text into rows keyed by header name.

    Blank lines are skipped. Raises :class:`ParseError` when there is no
    header, no data rows, or the text is not valid delimited data.
    """

    stripped = text.lstrip("\r\n")
    if not stripped.strip():
        raise ParseError("report is empty")
    header_line = stripped.splitlines()[0]
    reader = csv.DictReader(
        io.StringIO(stripped, newline=""),
        delimiter=_sniff_delimiter(header_line),
    )

    rows: list[dict[str, str]] = []
    try:
        headers = [h.strip() for h in (reader.fieldnames or []) if h and h.strip()]
        if not headers:
            raise ParseError("report has no header row")
        for raw in reader:
            row = {
                (k or "").strip(): (v.strip() if isinstance(v, str) else "")
                for k, v in raw.items()
                if k is not None
            }
            if not any(row.values()):
                continue
            rows.append(row)
    except csv.Error as e:
        raise ParseError(f"malformed report at line {reader.line_num}: {e}") from e

    if not rows:
        raise ParseError("report has a header but no data rows")
    return rows


def normalize_report_date(value: str | None) -> str | None:
    """Return ``YYYY-MM-DD`` for a ``MM/DD/YYYY`` value, else ``None``."""

    if value is None:
        return None
    s = value.strip()
    if not s:
        return None
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date().isoformat()
        except ValueError:
            continue
    return None


def parse_proceeds(value: str | None) -> Decimal | None:
    """Parse a proceeds cell; ``None`` when missing or not a finite number."""

    if value is None:
        return None
    s = value.strip().replace(",", "")
    if not s:
        return None
    try:
        d = Decimal(s)
    except InvalidOperation:
        return None
    return d if d.is_finite() else None


def row_date(row: ReportRow, column: str) -> str | None:
    return normalize_report_date(row.get(column))


__all__ = ["parse_report", "normalize_report_date", "parse_proceeds", "row_date"]
