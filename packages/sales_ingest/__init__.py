"""Public interface for the ``sales_ingest`` package.

Re-exports the ingestion entrypoints, read helpers and the error/result types.
There is no runtime logic here, only symbol re-exports.
"""

from .api import get_revenue_history, placeholder_revenue
from .cache import RevenueCache
from .charges import daily_charge_revenue
from .config import AppStoreCredentials, IngestSettings
from .errors import (
    ConfigurationError,
    ParseError,
    PersistenceError,
    SalesIngestError,
    UpstreamError,
)
from .models import DateOutcome, IngestResult, OutcomeKind, PeriodKind, ReportPeriod
from .pipeline import backfill, default_report_date, ingest_period

__all__ = [
    # Pipeline
    "ingest_period",
    "backfill",
    "default_report_date",
    # Read path
    "get_revenue_history",
    "placeholder_revenue",
    "daily_charge_revenue",
    "RevenueCache",
    # Config
    "AppStoreCredentials",
    "IngestSettings",
    # Models / types
    "ReportPeriod",
    "PeriodKind",
    "IngestResult",
    "DateOutcome",
    "OutcomeKind",
    # Errors
    "SalesIngestError",
    "ConfigurationError",
    "UpstreamError",
    "ParseError",
    "PersistenceError",
]
