"""Persistence integration for sales_ingest.

Functions here read and append rows of ``apple_sales_history`` through the
SQLAlchemy models owned by ``libs/db``. The table is append-only from this
package's point of view: there are deliberately no update or delete helpers.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db.models.sales import AppleSalesHistory

_CENT = Decimal("0.01")
# Largest value a numeric(10,2) column holds.
MAX_PROCEEDS = Decimal("99999999.99")


def to_cents(amount: Decimal) -> Decimal:
    return amount.quantize(_CENT, rounding=ROUND_HALF_UP)


def existing_report_dates(session: Session, dates: Iterable[date]) -> set[date]:
    """Return the subset of ``dates`` that already have a stored row."""

    wanted = sorted(set(dates))
    if not wanted:
        return set()
    stmt = select(AppleSalesHistory.report_date).where(AppleSalesHistory.report_date.in_(wanted))
    return set(session.scalars(stmt))


def record_exists(session: Session, report_date: date) -> bool:
    stmt = select(AppleSalesHistory.id).where(AppleSalesHistory.report_date == report_date).limit(1)
    return session.scalar(stmt) is not None


def insert_daily_revenue(session: Session, *, report_date: date, proceeds: Decimal) -> bool:
    """Insert one day's total; return ``False`` when a row already existed.

    On Postgres and SQLite the insert is ``ON CONFLICT (report_date) DO
    NOTHING`` so a concurrent writer that got there first turns this call into
    a no-op. Other dialects fall back to a savepoint-guarded plain insert.
    The caller commits.
    """

    if proceeds < 0 or proceeds > MAX_PROCEEDS:
        raise ValueError(f"proceeds must be within [0, {MAX_PROCEEDS}], got {proceeds}")
    values = {"report_date": report_date, "proceeds": to_cents(proceeds)}

    dialect = session.get_bind().dialect.name
    if dialect in ("postgresql", "sqlite"):
        make_insert = pg_insert if dialect == "postgresql" else sqlite_insert
        stmt = (
            make_insert(AppleSalesHistory)
            .values(**values)
            .on_conflict_do_nothing(index_elements=[AppleSalesHistory.report_date])
        )
        result = session.execute(stmt)
        return bool(result.rowcount)

    try:
        with session.begin_nested():
            session.execute(insert(AppleSalesHistory).values(**values))
    except IntegrityError:
        if record_exists(session, report_date):
            return False
        raise
    return True


def list_daily_revenue(session: Session) -> list[AppleSalesHistory]:
    """All stored rows ordered by ``report_date`` ascending."""

    stmt = select(AppleSalesHistory).order_by(AppleSalesHistory.report_date.asc())
    return list(session.scalars(stmt))


__all__ = [
    "MAX_PROCEEDS",
    "to_cents",
    "existing_report_dates",
    "record_exists",
    "insert_daily_revenue",
    "list_daily_revenue",
]
