"""Runtime configuration: App Store credentials and ingestion settings.

Values come from the process environment. The CLI loads a local ``.env`` with
``python-dotenv`` (without overriding already-set variables) before any of
these helpers run; library callers may also construct the objects directly.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import ConfigurationError

# Upper bound accepted by the reporting API for token lifetimes.
MAX_TOKEN_LIFETIME_SECONDS = 20 * 60

_CREDENTIAL_ENV = {
    "key_id": "APP_STORE_KEY_ID",
    "issuer_id": "APP_STORE_ISSUER_ID",
    "private_key": "APP_STORE_PRIVATE_KEY",
    "vendor_number": "APP_STORE_VENDOR_NUMBER",
}


@dataclass(frozen=True, slots=True)
class AppStoreCredentials:
    """The four secrets required to query the sales-report API.

    ``private_key`` is the PEM-encoded EC (P-256) key downloaded from App
    Store Connect. Empty strings are treated the same as missing values.
    """

    key_id: str | None
    issuer_id: str | None
    private_key: str | None
    vendor_number: str | None

    def __repr__(self) -> str:
        # Never render the private key.
        return (
            f"AppStoreCredentials(key_id={self.key_id!r}, issuer_id={self.issuer_id!r}, "
            f"private_key={'<set>' if self.private_key else None}, "
            f"vendor_number={self.vendor_number!r})"
        )

    @classmethod
    def from_env(cls) -> AppStoreCredentials:
        return cls(**{name: os.getenv(var) for name, var in _CREDENTIAL_ENV.items()})

    def missing(self) -> list[str]:
        """Return the environment variable names of absent or blank values."""

        out: list[str] = []
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None or not str(value).strip():
                out.append(_CREDENTIAL_ENV[f.name])
        return out

    def get_required(self, name: str) -> str:
        """Return the stripped value of ``name`` or raise :class:`ConfigurationError`."""

        value = getattr(self, name)
        if value is None or not value.strip():
            raise ConfigurationError(f"Missing App Store credential: {_CREDENTIAL_ENV[name]}")
        return value.strip()

    def require(self) -> None:
        """Raise :class:`ConfigurationError` unless every value is present."""

        missing = self.missing()
        if missing:
            raise ConfigurationError(
                "Missing App Store credentials: " + ", ".join(missing)
            )


class IngestSettings(BaseModel):
    """Tunable, non-secret knobs for the ingestion pipeline.

    ``date_column`` decides which report column attributes a row to a day.
    Daily reports carry identical begin/end dates; monthly reports do not, so
    operators pick the column that matches how they want month rows bucketed.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, str_strip_whitespace=True)

    base_url: str = "https://api.appstoreconnect.apple.com/v1/salesReports"
    date_column: Literal["Begin Date", "End Date"] = "Begin Date"
    proceeds_column: str = "Developer Proceeds"
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    report_lag_days: int = Field(default=2, ge=0)
    token_lifetime_seconds: int = Field(default=MAX_TOKEN_LIFETIME_SECONDS, gt=0)
    cache_ttl_seconds: float = Field(default=300.0, ge=0)

    @field_validator("token_lifetime_seconds")
    @classmethod
    def _lifetime_within_api_limit(cls, v: int) -> int:
        if v > MAX_TOKEN_LIFETIME_SECONDS:
            raise ValueError(
                f"token_lifetime_seconds must be <= {MAX_TOKEN_LIFETIME_SECONDS}"
            )
        return v

    @field_validator("proceeds_column", "base_url")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("must be non-empty")
        return v

    @classmethod
    def from_env(cls) -> IngestSettings:
        """Build settings from ``SALES_INGEST_*`` variables (unset keeps defaults)."""

        overrides: dict[str, str] = {}
        for name in cls.model_fields:
            raw = os.getenv(f"SALES_INGEST_{name.upper()}")
            if raw is not None and raw.strip():
                overrides[name] = raw
        try:
            return cls(**overrides)
        except ValueError as e:
            raise ConfigurationError(f"Invalid SALES_INGEST_* setting: {e}") from e


__all__ = [
    "AppStoreCredentials",
    "IngestSettings",
    "MAX_TOKEN_LIFETIME_SECONDS",
]
