# ruff: noqa: I001
"""CLI for the ``sales_ingest`` package.

Command handlers (``cmd_*``) hold the logic and return process exit codes;
the Typer commands below only parse options and delegate. Environment
variables (App Store credentials, ``DATABASE_URL``, ``STRIPE_SECRET_KEY``) are
loaded from a local ``.env`` with ``python-dotenv`` before any command runs.

Exit codes: 0 success, 1 at least one date failed, 2 configuration error.
"""

from __future__ import annotations

import sys
from datetime import date, datetime
from pathlib import Path

import typer
from dotenv import load_dotenv

from .config import IngestSettings
from .errors import ConfigurationError, SalesIngestError
from .logging_setup import configure_logging
from .models import IngestResult, OutcomeKind, ReportPeriod

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def _print_result(result: IngestResult) -> None:
    for d, outcome in sorted(result.outcomes.items()):
        detail = outcome.amount if outcome.kind is OutcomeKind.INSERTED else (outcome.reason or "")
        print(f"{d.isoformat()}\t{outcome.kind}\t{detail}")


def _exit_code(results: list[IngestResult]) -> int:
    return EXIT_OK if all(r.ok for r in results) else EXIT_FAILED


def _parse_month(value: str) -> date:
    try:
        return datetime.strptime(value.strip(), "%Y-%m").date()
    except ValueError as e:
        raise typer.BadParameter(f"expected YYYY-MM, got {value!r}") from e


def cmd_ingest(
    *,
    report_date: date | None = None,
    month: date | None = None,
    database_url: str | None = None,
) -> int:
    from .pipeline import default_report_date, ingest_period

    try:
        settings = IngestSettings.from_env()
        if month is not None:
            period = ReportPeriod.month(month)
        else:
            period = ReportPeriod.day(
                report_date or default_report_date(lag_days=settings.report_lag_days)
            )
        result = ingest_period(period, settings=settings, database_url=database_url)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG

    _print_result(result)
    return _exit_code([result])


def cmd_backfill(start: date, end: date, *, database_url: str | None = None) -> int:
    from .pipeline import backfill

    if start > end:
        print(f"Error: --start {start} is after --end {end}", file=sys.stderr)
        return EXIT_CONFIG
    try:
        results = backfill(
            start,
            end,
            settings=IngestSettings.from_env(),
            database_url=database_url,
        )
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG

    for r in results:
        _print_result(r)
    return _exit_code(results)


def cmd_history(*, database_url: str | None = None) -> int:
    from .api import get_revenue_history

    try:
        series = get_revenue_history(database_url=database_url)
    except Exception as e:
        print(f"Error: failed to read revenue history: {e}", file=sys.stderr)
        return EXIT_FAILED
    for point in series:
        print(f"{point['date']}\t{point['amount']:.2f}")
    return EXIT_OK


def cmd_charges(start: date, end: date | None = None) -> int:
    from .charges import daily_charge_revenue

    try:
        series = daily_charge_revenue(start, end)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG
    except (SalesIngestError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILED
    for point in series:
        print(f"{point['date']}\t{point['amount']:.2f}")
    return EXIT_OK


# ---- Typer app ---------------------------------------------------------------

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Ingest App Store sales reports and inspect stored daily proceeds.",
)

_DATABASE_URL_HELP = "Override DATABASE_URL (falls back to env var)."


@app.callback()
def _root(
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="DEBUG, INFO, WARNING or ERROR (default: $SALES_INGEST_LOG_LEVEL or INFO).",
    ),
) -> None:
    """Load ``.env`` from the CWD (without overriding) and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    try:
        configure_logging(log_level)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--log-level") from e


@app.command("ingest")
def ingest_cmd(
    report_date: datetime | None = typer.Option(
        None, "--date", formats=["%Y-%m-%d"], help="Day to ingest (default: today minus lag)."
    ),
    month: str | None = typer.Option(None, "--month", help="Whole month to ingest (YYYY-MM)."),
    database_url: str | None = typer.Option(None, help=_DATABASE_URL_HELP),
) -> None:
    if report_date is not None and month is not None:
        raise typer.BadParameter("use either --date or --month, not both")
    code = cmd_ingest(
        report_date=report_date.date() if report_date else None,
        month=_parse_month(month) if month else None,
        database_url=database_url,
    )
    raise typer.Exit(code)


@app.command("backfill")
def backfill_cmd(
    start: datetime = typer.Option(..., "--start", formats=["%Y-%m-%d"]),
    end: datetime = typer.Option(..., "--end", formats=["%Y-%m-%d"]),
    database_url: str | None = typer.Option(None, help=_DATABASE_URL_HELP),
) -> None:
    raise typer.Exit(cmd_backfill(start.date(), end.date(), database_url=database_url))


@app.command("history")
def history_cmd(
    database_url: str | None = typer.Option(None, help=_DATABASE_URL_HELP),
) -> None:
    raise typer.Exit(cmd_history(database_url=database_url))


@app.command("charges")
def charges_cmd(
    start: datetime = typer.Option(..., "--start", formats=["%Y-%m-%d"]),
    end: datetime | None = typer.Option(None, "--end", formats=["%Y-%m-%d"]),
) -> None:
    raise typer.Exit(cmd_charges(start.date(), end.date() if end else None))


if __name__ == "__main__":  # pragma: no cover
    app()
