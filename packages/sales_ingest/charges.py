"""Daily revenue from the payment processor's charge history (Stripe).

Charges are grouped by the UTC calendar day they were created on. Amounts are
integer cents in the charge currency; refunds are netted out and unpaid
charges are ignored.
"""

from __future__ import annotations

import os
from collections import defaultdict
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, date, datetime, time, timedelta
from decimal import Decimal
from typing import Any

import stripe

from .errors import ConfigurationError, UpstreamError
from .logging_setup import get_logger

type ChargeLister = Callable[[int, int], Iterable[Mapping[str, Any]]]

_logger = get_logger("sales_ingest.charges")

_PAGE_SIZE = 100


def _stripe_lister(api_key: str) -> ChargeLister:
    def _list(gte: int, lte: int) -> Iterable[Mapping[str, Any]]:
        page = stripe.Charge.list(
            created={"gte": gte, "lte": lte},
            limit=_PAGE_SIZE,
            api_key=api_key,
        )
        return page.auto_paging_iter()

    return _list


def _field(charge: Mapping[str, Any], name: str, default: Any = None) -> Any:
    try:
        value = charge[name]
    except KeyError:
        return default
    return default if value is None else value


def _day_bounds(start: date, end: date) -> tuple[int, int]:
    lo = datetime.combine(start, time.min, tzinfo=UTC)
    hi = datetime.combine(end + timedelta(days=1), time.min, tzinfo=UTC) - timedelta(seconds=1)
    return int(lo.timestamp()), int(hi.timestamp())


def daily_charge_revenue(
    start: date,
    end: date | None = None,
    *,
    list_charges: ChargeLister | None = None,
    api_key: str | None = None,
) -> list[dict[str, Any]]:
    """Return ``[{"date", "amount"}]`` net charge revenue per day, sorted.

    ``end`` defaults to today (UTC). Without ``list_charges`` the Stripe SDK
    is used with ``api_key`` or ``STRIPE_SECRET_KEY``.
    """

    end = end or datetime.now(UTC).date()
    if start > end:
        raise ValueError(f"start {start} is after end {end}")

    if list_charges is None:
        key = api_key or os.getenv("STRIPE_SECRET_KEY")
        if not key or not key.strip():
            raise ConfigurationError("STRIPE_SECRET_KEY is not set")
        list_charges = _stripe_lister(key.strip())

    gte, lte = _day_bounds(start, end)
    cents: defaultdict[str, int] = defaultdict(int)
    seen = 0
    try:
        for charge in list_charges(gte, lte):
            seen += 1
            if not _field(charge, "paid", True):
                continue
            net = int(_field(charge, "amount", 0)) - int(_field(charge, "amount_refunded", 0))
            day = datetime.fromtimestamp(int(charge["created"]), UTC).date().isoformat()
            cents[day] += net
    except stripe.StripeError as e:
        _logger.error("Stripe charge listing failed: %s", e)
        raise UpstreamError(f"stripe error: {e}", status_code=e.http_status) from e

    _logger.info("Aggregated %d charge(s) into %d day(s)", seen, len(cents))
    return [
        {"date": day, "amount": Decimal(total) / 100}
        for day, total in sorted(cents.items())
    ]


__all__ = ["ChargeLister", "daily_charge_revenue"]
