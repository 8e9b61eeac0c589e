"""Data models and type aliases for ``sales_ingest``.

The persisted record lives in ``db.models.sales``; everything here is
transient: the period being ingested, raw report rows, and per-date outcomes.
"""

from __future__ import annotations

import calendar
from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from enum import StrEnum

from .errors import SalesIngestError

# One line of a fetched report keyed by header name. Values are raw text.
type ReportRow = Mapping[str, str]


# ---------------------------------------------------------------------------
# Reporting period
# ---------------------------------------------------------------------------


class PeriodKind(StrEnum):
    DAY = "day"
    MONTH = "month"


@dataclass(frozen=True, slots=True)
class ReportPeriod:
    """A single calendar day or a whole calendar month.

    Month periods are always anchored on the first day of the month; use
    :meth:`month` to build one from any date inside it.
    """

    start: date
    kind: PeriodKind = PeriodKind.DAY

    def __post_init__(self) -> None:
        if self.kind is PeriodKind.MONTH and self.start.day != 1:
            raise ValueError("ReportPeriod.start must be the first day of the month")

    @classmethod
    def day(cls, d: date) -> ReportPeriod:
        return cls(start=d, kind=PeriodKind.DAY)

    @classmethod
    def month(cls, d: date) -> ReportPeriod:
        return cls(start=d.replace(day=1), kind=PeriodKind.MONTH)

    @property
    def end(self) -> date:
        if self.kind is PeriodKind.DAY:
            return self.start
        last = calendar.monthrange(self.start.year, self.start.month)[1]
        return self.start.replace(day=last)

    def candidate_dates(self) -> list[date]:
        n = (self.end - self.start).days + 1
        return [self.start + timedelta(days=i) for i in range(n)]

    def report_date_param(self) -> str:
        """Value for ``filter[reportDate]``: always the ISO start date.

        Reports are always requested at DAILY frequency; a month period asks
        for the report dated on its first day and buckets rows per day.
        """

        return self.start.isoformat()

    def __str__(self) -> str:
        if self.kind is PeriodKind.DAY:
            return self.start.isoformat()
        return f"{self.start.year:04d}-{self.start.month:02d}"


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


class OutcomeKind(StrEnum):
    INSERTED = "inserted"
    SKIPPED_EXISTING = "skipped_existing"
    SKIPPED_NO_DATA = "skipped_no_data"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class DateOutcome:
    """What happened to one candidate date during a run."""

    kind: OutcomeKind
    amount: Decimal | None = None
    reason: str | None = None

    @classmethod
    def inserted(cls, amount: Decimal) -> DateOutcome:
        return cls(OutcomeKind.INSERTED, amount=amount)

    @classmethod
    def skipped_existing(cls) -> DateOutcome:
        return cls(OutcomeKind.SKIPPED_EXISTING)

    @classmethod
    def skipped_no_data(cls, reason: str | None = None) -> DateOutcome:
        return cls(OutcomeKind.SKIPPED_NO_DATA, reason=reason)

    @classmethod
    def failed(cls, reason: str) -> DateOutcome:
        return cls(OutcomeKind.FAILED, reason=reason)


@dataclass(slots=True)
class IngestResult:
    """Per-date outcomes for one :func:`~sales_ingest.pipeline.ingest_period` call.

    ``error`` carries the period-level failure when the whole period degraded
    (upstream error, unparseable report, or an unexpected exception).
    """

    period: ReportPeriod
    outcomes: dict[date, DateOutcome] = field(default_factory=dict)
    error: SalesIngestError | None = None

    @property
    def inserted_dates(self) -> list[date]:
        return sorted(d for d, o in self.outcomes.items() if o.kind is OutcomeKind.INSERTED)

    @property
    def total_inserted(self) -> Decimal:
        amounts = [
            o.amount
            for o in self.outcomes.values()
            if o.kind is OutcomeKind.INSERTED and o.amount is not None
        ]
        return sum(amounts, Decimal("0.00"))

    @property
    def ok(self) -> bool:
        return all(o.kind is not OutcomeKind.FAILED for o in self.outcomes.values())

    def counts(self) -> dict[OutcomeKind, int]:
        c = Counter(o.kind for o in self.outcomes.values())
        return {kind: c.get(kind, 0) for kind in OutcomeKind}

    def fill_missing(self, dates: list[date], outcome: DateOutcome) -> None:
        """Assign ``outcome`` to every date that has no outcome yet."""

        for d in dates:
            self.outcomes.setdefault(d, outcome)


__all__ = [
    "ReportRow",
    "PeriodKind",
    "ReportPeriod",
    "OutcomeKind",
    "DateOutcome",
    "IngestResult",
]
