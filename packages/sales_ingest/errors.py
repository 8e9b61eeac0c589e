"""Error taxonomy for report ingestion.

Only :class:`ConfigurationError` escapes :func:`sales_ingest.pipeline.ingest_period`;
the recoverable errors are recorded on the returned ``IngestResult`` instead.
"""

from __future__ import annotations

from datetime import date


class SalesIngestError(Exception):
    """Base class for all ingestion errors."""


class ConfigurationError(SalesIngestError):
    """Credentials or settings are missing or unusable. Not retryable."""


class UpstreamError(SalesIngestError):
    """The reporting API answered with a non-success status or was unreachable."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ParseError(SalesIngestError):
    """The report body could not be decompressed or parsed into rows."""


class PersistenceError(SalesIngestError):
    """Writing a single date's total to the store failed."""

    def __init__(self, message: str, *, report_date: date) -> None:
        super().__init__(message)
        self.report_date = report_date


__all__ = [
    "SalesIngestError",
    "ConfigurationError",
    "UpstreamError",
    "ParseError",
    "PersistenceError",
]
