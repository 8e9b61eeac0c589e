"""HTTP access to the App Store Connect sales-report endpoint.

The endpoint answers with a gzip-compressed, tab-delimited report. This module
owns the request shape and the decompression step; parsing lives in
``sales_ingest.ingest.adapters.sales_report_tsv``.
"""

from __future__ import annotations

import gzip
import zlib

import httpx

from .config import IngestSettings
from .errors import ParseError, UpstreamError
from .logging_setup import get_logger
from .models import ReportPeriod

_logger = get_logger("sales_ingest.report_client")

# Monthly summaries span a whole month in one row and cannot be split per day.
REPORT_FREQUENCY = "DAILY"

# Longest error body kept on the exception/log line.
_MAX_ERROR_BODY = 2000


def build_query(period: ReportPeriod, *, vendor_number: str) -> dict[str, str]:
    return {
        "filter[frequency]": REPORT_FREQUENCY,
        "filter[reportSubType]": "SUMMARY",
        "filter[reportType]": "SALES",
        "filter[vendorNumber]": vendor_number,
        "filter[reportDate]": period.report_date_param(),
    }


class SalesReportClient:
    """Thin wrapper over an ``httpx.Client`` for sales-report downloads.

    Pass ``http_client`` to reuse a configured client (or a
    ``httpx.MockTransport``-backed one in tests). A client created here is
    closed by :meth:`close` / the context manager.
    """

    def __init__(
        self,
        *,
        vendor_number: str,
        settings: IngestSettings | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._settings = settings or IngestSettings()
        self._vendor_number = vendor_number
        self._owns_client = http_client is None
        if http_client is None:
            http_client = httpx.Client(timeout=self._settings.request_timeout_seconds)
        self._client = http_client

    def __enter__(self) -> SalesReportClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def fetch_report(self, period: ReportPeriod, token: str) -> bytes:
        """Download the raw (still compressed) report for ``period``.

        Raises :class:`UpstreamError` for transport failures and non-2xx
        responses; the response body is logged with the status code.
        """

        params = build_query(period, vendor_number=self._vendor_number)
        _logger.info("Fetching daily sales report for %s", period.report_date_param())
        try:
            response = self._client.get(
                self._settings.base_url,
                params=params,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Accept": "application/a-gzip",
                },
                timeout=self._settings.request_timeout_seconds,
            )
        except httpx.HTTPError as e:
            _logger.error("Sales report request for %s failed: %s", period, e)
            raise UpstreamError(f"request failed: {e}") from e

        if not response.is_success:
            body = response.text[:_MAX_ERROR_BODY]
            _logger.error(
                "Sales report API error for %s: status=%s body=%s",
                period,
                response.status_code,
                body,
            )
            raise UpstreamError(
                f"sales report API returned HTTP {response.status_code}",
                status_code=response.status_code,
                body=body,
            )
        return response.content


def decompress_report(data: bytes) -> str:
    """Gunzip ``data`` and decode it as UTF-8 text."""

    if not data:
        raise ParseError("empty report body")
    try:
        raw = gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        raise ParseError(f"report body is not valid gzip: {e}") from e
    try:
        # utf-8-sig drops a leading BOM so the first header name stays clean.
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError(f"report body is not UTF-8: {e}") from e


__all__ = ["SalesReportClient", "build_query", "decompress_report"]
