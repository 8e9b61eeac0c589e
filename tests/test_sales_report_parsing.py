from __future__ import annotations

from decimal import Decimal

import pytest

from sales_ingest.aggregate import aggregate_proceeds
from sales_ingest.errors import ParseError
from sales_ingest.ingest.adapters.sales_report_tsv import (
    normalize_report_date,
    parse_proceeds,
    parse_report,
)
from tests.helpers.report_stub import make_report_tsv


def _rows(*pairs: tuple[str, str]) -> list[dict[str, str]]:
    return [{"Begin Date": d, "Developer Proceeds": p} for d, p in pairs]


# ---- Date normalization ------------------------------------------------------


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("08/01/2024", "2024-08-01"),
        (" 12/31/2024 ", "2024-12-31"),
        ("2024-08-02", "2024-08-02"),
        ("", None),
        ("   ", None),
        (None, None),
        ("13/01/2024", None),
        ("02/30/2024", None),
        ("Aug 1 2024", None),
    ],
)
def test_normalize_report_date(raw: str | None, expected: str | None) -> None:
    assert normalize_report_date(raw) == expected


def test_parse_proceeds_handles_separators_and_garbage() -> None:
    assert parse_proceeds("1,234.50") == Decimal("1234.50")
    assert parse_proceeds(" 0.99 ") == Decimal("0.99")
    assert parse_proceeds("N/A") is None
    assert parse_proceeds("NaN") is None
    assert parse_proceeds("") is None
    assert parse_proceeds(None) is None


# ---- Report parsing ----------------------------------------------------------


def test_parse_report_tab_delimited() -> None:
    text = make_report_tsv([("08/01/2024", "1.00"), ("08/02/2024", "0.99")])
    rows = parse_report(text)
    assert len(rows) == 2
    assert rows[0]["Begin Date"] == "08/01/2024"
    assert rows[1]["Developer Proceeds"] == "0.99"


def test_parse_report_comma_delimited_and_blank_lines() -> None:
    text = make_report_tsv([("08/01/2024", "1.00")], delimiter=",") + "\n\n"
    rows = parse_report(text)
    assert rows == [
        {
            "Provider": "APPLE",
            "SKU": "rtc",
            "Title": "Race Time Calculator",
            "Units": "1",
            "Developer Proceeds": "1.00",
            "Begin Date": "08/01/2024",
            "End Date": "08/01/2024",
            "Currency of Proceeds": "USD",
        }
    ]


@pytest.mark.parametrize("text", ["", "\n\n", "Begin Date\tDeveloper Proceeds\n"])
def test_parse_report_rejects_empty_reports(text: str) -> None:
    with pytest.raises(ParseError):
        parse_report(text)


# ---- Aggregation -------------------------------------------------------------


def test_aggregation_sums_per_day() -> None:
    summary = aggregate_proceeds(
        _rows(("08/01/2024", "1.00"), ("08/01/2024", "2.50"), ("08/02/2024", "0.99"))
    )
    assert summary.totals == {"2024-08-01": Decimal("3.50"), "2024-08-02": Decimal("0.99")}
    assert summary.dropped_rows == 0


def test_malformed_proceeds_contribute_zero() -> None:
    summary = aggregate_proceeds(_rows(("08/01/2024", "1.25"), ("08/01/2024", "N/A")))
    assert summary.totals == {"2024-08-01": Decimal("1.25")}
    assert summary.zero_rows == 1


def test_missing_proceeds_column_still_buckets_the_day() -> None:
    summary = aggregate_proceeds([{"Begin Date": "08/03/2024"}])
    assert summary.totals == {"2024-08-03": Decimal("0")}


@pytest.mark.parametrize("bad_date", ["", "not-a-date", "31/08/2024"])
def test_unparseable_dates_are_dropped(bad_date: str) -> None:
    summary = aggregate_proceeds(_rows(("08/01/2024", "1.00"), (bad_date, "5.00")))
    assert summary.totals == {"2024-08-01": Decimal("1.00")}
    assert summary.dropped_rows == 1


def test_row_without_date_key_is_dropped() -> None:
    summary = aggregate_proceeds([{"Developer Proceeds": "9.99"}])
    assert summary.totals == {}
    assert summary.dropped_rows == 1


def test_aggregation_honors_configured_columns() -> None:
    rows = [
        {"Begin Date": "08/01/2024", "End Date": "08/31/2024", "Developer Proceeds": "4.00"},
    ]
    summary = aggregate_proceeds(rows, date_column="End Date")
    assert summary.totals == {"2024-08-31": Decimal("4.00")}
