"""Read API consumed by the presentation layer (charts and lists).

Series are returned as ``[{"date": "YYYY-MM-DD", "amount": float}, ...]``
sorted by date, the shape the revenue chart expects.
"""

from __future__ import annotations

from functools import partial
from typing import Any

from db.client import session_scope

from .cache import RevenueCache
from .persistence import list_daily_revenue
from .pipeline import SessionFactory

type RevenuePoint = dict[str, Any]

# Placeholder series served outside production, where live credentials are
# normally absent. Values are illustrative, not real sales.
_PLACEHOLDER: tuple[tuple[str, float], ...] = (
    ("2024-08-17", 6.44),
    ("2024-08-18", 4.11),
    ("2024-08-19", 0.99),
    ("2024-08-20", 1.07),
    ("2024-08-22", 2.82),
    ("2024-08-23", 2.34),
    ("2024-08-27", 0.99),
    ("2024-08-28", 2.34),
    ("2024-12-01", 0.99),
    ("2024-12-02", 1.04),
    ("2024-12-03", 1.90),
    ("2024-12-05", 2.33),
)


def placeholder_revenue() -> list[RevenuePoint]:
    return [{"date": d, "amount": a} for d, a in _PLACEHOLDER]


def load_revenue_history(sessions: SessionFactory) -> list[RevenuePoint]:
    with sessions() as session:
        rows = list_daily_revenue(session)
        return [{"date": r.report_date.isoformat(), "amount": float(r.proceeds)} for r in rows]


def get_revenue_history(
    *,
    session_factory: SessionFactory | None = None,
    database_url: str | None = None,
    cache: RevenueCache[list[RevenuePoint]] | None = None,
) -> list[RevenuePoint]:
    """Return the stored daily proceeds, ascending by date.

    With a ``cache``, a fresh cached series is returned without touching the
    store and a failed store read falls back to the last cached series.
    """

    sessions = session_factory or partial(session_scope, database_url=database_url)
    if cache is None:
        return load_revenue_history(sessions)
    return cache.get_or_refresh(lambda: load_revenue_history(sessions))


__all__ = [
    "RevenuePoint",
    "placeholder_revenue",
    "load_revenue_history",
    "get_revenue_history",
]
