"""Report ingestion pipeline: fetch, aggregate and append daily proceeds.

One parameterized flow serves both a single day and a whole month:

1. validate credentials (the only failure that raises);
2. skip dates already stored;
3. mint a fresh token and download the period's report;
4. decompress, parse and aggregate proceeds per day;
5. append one row per new day, re-checking for a row right before inserting.

Upstream, parse and per-date persistence failures degrade into per-date
outcomes on the returned :class:`~sales_ingest.models.IngestResult`. The flow
is single-writer: run periods sequentially, never concurrently for the same
dates. The store's unique key on ``report_date`` is the backstop if that is
violated.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager
from datetime import date, timedelta
from decimal import Decimal
from functools import partial

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.client import session_scope

from .aggregate import aggregate_proceeds
from .auth import mint_token
from .config import AppStoreCredentials, IngestSettings
from .errors import (
    ConfigurationError,
    ParseError,
    PersistenceError,
    SalesIngestError,
    UpstreamError,
)
from .ingest.adapters.sales_report_tsv import parse_report
from .logging_setup import get_logger
from .models import DateOutcome, IngestResult, ReportPeriod
from .persistence import (
    MAX_PROCEEDS,
    existing_report_dates,
    insert_daily_revenue,
    record_exists,
    to_cents,
)
from .report_client import SalesReportClient, decompress_report

type SessionFactory = Callable[[], AbstractContextManager[Session]]

_logger = get_logger("sales_ingest.pipeline")


def _resolve_sessions(
    session_factory: SessionFactory | None, database_url: str | None
) -> SessionFactory:
    if session_factory is not None:
        return session_factory
    return partial(session_scope, database_url=database_url)


def ingest_period(
    period: ReportPeriod,
    *,
    credentials: AppStoreCredentials | None = None,
    settings: IngestSettings | None = None,
    session_factory: SessionFactory | None = None,
    database_url: str | None = None,
    http_client: httpx.Client | None = None,
    clock: Callable[[], float] = time.time,
) -> IngestResult:
    """Ingest one reporting period and return an outcome for each of its days.

    Raises :class:`ConfigurationError` (before touching the store or the
    network) when any credential is missing. Every other failure is recorded
    on the result.
    """

    creds = credentials if credentials is not None else AppStoreCredentials.from_env()
    creds.require()
    cfg = settings or IngestSettings()
    sessions = _resolve_sessions(session_factory, database_url)

    result = IngestResult(period=period)
    candidates = period.candidate_dates()
    try:
        _ingest(
            period,
            result,
            candidates=candidates,
            credentials=creds,
            settings=cfg,
            sessions=sessions,
            http_client=http_client,
            clock=clock,
        )
    except ConfigurationError:
        raise
    except Exception as e:
        _logger.exception("Unexpected error while ingesting %s", period)
        result.error = e if isinstance(e, SalesIngestError) else SalesIngestError(str(e))
        result.fill_missing(candidates, DateOutcome.failed(f"unexpected error: {e}"))

    counts = result.counts()
    _logger.info(
        "Ingested %s: %s",
        period,
        ", ".join(f"{kind}={n}" for kind, n in counts.items() if n),
    )
    return result


def _ingest(
    period: ReportPeriod,
    result: IngestResult,
    *,
    candidates: list[date],
    credentials: AppStoreCredentials,
    settings: IngestSettings,
    sessions: SessionFactory,
    http_client: httpx.Client | None,
    clock: Callable[[], float],
) -> None:
    with sessions() as session:
        existing = existing_report_dates(session, candidates)
    for d in sorted(existing):
        _logger.info("Already have data for %s, skipping.", d)
        result.outcomes[d] = DateOutcome.skipped_existing()

    pending = [d for d in candidates if d not in existing]
    if not pending:
        return

    vendor_number = credentials.get_required("vendor_number")
    token = mint_token(
        credentials,
        now=int(clock()),
        lifetime_seconds=settings.token_lifetime_seconds,
    )
    try:
        with SalesReportClient(
            vendor_number=vendor_number,
            settings=settings,
            http_client=http_client,
        ) as client:
            body = client.fetch_report(period, token)
        rows = parse_report(decompress_report(body))
    except (UpstreamError, ParseError) as e:
        if isinstance(e, ParseError):
            _logger.warning("Could not parse sales report for %s: %s", period, e)
        result.error = e
        result.fill_missing(pending, DateOutcome.skipped_no_data(str(e)))
        return

    summary = aggregate_proceeds(
        rows,
        date_column=settings.date_column,
        proceeds_column=settings.proceeds_column,
    )
    if summary.dropped_rows:
        _logger.warning(
            "Dropped %d row(s) of %s with an unparseable %r",
            summary.dropped_rows,
            period,
            settings.date_column,
        )

    totals: dict[date, Decimal] = {}
    wanted = set(candidates)
    for iso, total in summary.totals.items():
        d = date.fromisoformat(iso)
        if d not in wanted:
            _logger.warning("Ignoring proceeds for %s outside period %s", d, period)
            continue
        totals[d] = total

    for d in pending:
        total = totals.get(d)
        if total is None:
            result.outcomes[d] = DateOutcome.skipped_no_data("no report rows for date")
            continue
        result.outcomes[d] = _persist_day(sessions, d, total)


def _persist_day(sessions: SessionFactory, report_date: date, total: Decimal) -> DateOutcome:
    if total < 0:
        _logger.error("Refusing to store negative proceeds %s for %s", total, report_date)
        return DateOutcome.failed(f"negative total {total}")

    try:
        amount = to_cents(total)
    except ArithmeticError as e:
        _logger.error("Cannot round proceeds %s for %s: %r", total, report_date, e)
        return DateOutcome.failed(f"total {total} is not representable in cents")
    if amount > MAX_PROCEEDS:
        _logger.error("Proceeds %s for %s exceed %s", amount, report_date, MAX_PROCEEDS)
        return DateOutcome.failed(f"total {amount} exceeds {MAX_PROCEEDS}")

    try:
        with sessions() as session:
            # Re-check: another writer may have stored this date since the
            # fast-path check at the start of the run.
            if record_exists(session, report_date):
                _logger.info("Data for %s appeared during the run, skipping.", report_date)
                return DateOutcome.skipped_existing()
            inserted = insert_daily_revenue(session, report_date=report_date, proceeds=amount)
    except SQLAlchemyError as e:
        err = PersistenceError(f"insert failed for {report_date}: {e}", report_date=report_date)
        _logger.error("%s", err)
        return DateOutcome.failed(str(err))

    if not inserted:
        return DateOutcome.skipped_existing()
    _logger.info("Inserted proceeds %s for %s", amount, report_date)
    return DateOutcome.inserted(amount)


# ---------------------------------------------------------------------------
# Date helpers and batch entrypoints
# ---------------------------------------------------------------------------


def default_report_date(today: date | None = None, *, lag_days: int = 2) -> date:
    """Most recent day whose report is reliably available (reports lag)."""

    return (today or date.today()) - timedelta(days=lag_days)


def date_range(start: date, end: date) -> Iterator[date]:
    """Yield every date from ``start`` to ``end`` inclusive."""

    if start > end:
        raise ValueError(f"start {start} is after end {end}")
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def backfill(
    start: date,
    end: date,
    *,
    credentials: AppStoreCredentials | None = None,
    **kwargs,
) -> list[IngestResult]:
    """Ingest each day in ``[start, end]`` sequentially.

    Credentials are checked once up front so a misconfigured run stops before
    the first request. Days that are already stored cost one lookup each.
    """

    days = list(date_range(start, end))
    creds = credentials if credentials is not None else AppStoreCredentials.from_env()
    creds.require()

    _logger.info("Backfilling sales data for %s..%s (%d days)", start, end, len(days))
    results = [ingest_period(ReportPeriod.day(d), credentials=creds, **kwargs) for d in days]
    _logger.info("Backfill complete.")
    return results


__all__ = [
    "SessionFactory",
    "ingest_period",
    "default_report_date",
    "date_range",
    "backfill",
]
