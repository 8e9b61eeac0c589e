"""Per-day aggregation of report proceeds."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from .ingest.adapters.sales_report_tsv import parse_proceeds, row_date
from .logging_setup import get_logger
from .models import ReportRow

_logger = get_logger("sales_ingest.aggregate")


@dataclass(slots=True)
class AggregationSummary:
    """Totals keyed by ISO date plus bookkeeping about skipped input."""

    totals: dict[str, Decimal] = field(default_factory=dict)
    dropped_rows: int = 0
    zero_rows: int = 0


def aggregate_proceeds(
    rows: Iterable[ReportRow],
    *,
    date_column: str = "Begin Date",
    proceeds_column: str = "Developer Proceeds",
) -> AggregationSummary:
    """Sum ``proceeds_column`` per normalized ``date_column``.

    Rows without a parseable date are dropped: attributing them to any day
    would corrupt that day's total. Rows with a missing or non-numeric
    proceeds value still count toward their day, contributing zero.
    """

    sums: defaultdict[str, Decimal] = defaultdict(Decimal)
    summary = AggregationSummary()

    for idx, row in enumerate(rows):
        day = row_date(row, date_column)
        if day is None:
            summary.dropped_rows += 1
            _logger.debug("Dropping row %d: unparseable %r=%r", idx, date_column, row.get(date_column))
            continue
        amount = parse_proceeds(row.get(proceeds_column))
        if amount is None:
            summary.zero_rows += 1
            amount = Decimal(0)
        sums[day] += amount

    summary.totals = dict(sorted(sums.items()))
    return summary


__all__ = ["AggregationSummary", "aggregate_proceeds"]
