"""Signed, short-lived bearer tokens for the App Store Connect API."""

from __future__ import annotations

import time

import jwt

from .config import MAX_TOKEN_LIFETIME_SECONDS, AppStoreCredentials
from .errors import ConfigurationError

AUDIENCE = "appstoreconnect-v1"
ALGORITHM = "ES256"


def normalize_private_key(raw: str) -> str:
    """Restore PEM newlines for keys stored in single-line env vars."""

    key = raw.strip()
    if "\\n" in key and "\n" not in key:
        key = key.replace("\\n", "\n")
    return key


def mint_token(
    credentials: AppStoreCredentials,
    *,
    now: int | None = None,
    lifetime_seconds: int = MAX_TOKEN_LIFETIME_SECONDS,
) -> str:
    """Return a freshly signed ES256 JWT.

    Tokens are valid for at most 20 minutes, so callers mint one per request
    rather than caching it across periods.
    """

    if lifetime_seconds <= 0 or lifetime_seconds > MAX_TOKEN_LIFETIME_SECONDS:
        raise ValueError(
            f"lifetime_seconds must be in (0, {MAX_TOKEN_LIFETIME_SECONDS}], got {lifetime_seconds}"
        )
    credentials.require()
    private_key = credentials.get_required("private_key")

    issued_at = int(time.time()) if now is None else int(now)
    claims = {
        "iss": credentials.issuer_id,
        "iat": issued_at,
        "exp": issued_at + lifetime_seconds,
        "aud": AUDIENCE,
    }
    try:
        return jwt.encode(
            claims,
            normalize_private_key(private_key),
            algorithm=ALGORITHM,
            headers={"kid": credentials.key_id, "typ": "JWT"},
        )
    except (ValueError, TypeError, jwt.PyJWTError) as e:
        # Malformed PEM or a non-EC key surfaces here.
        raise ConfigurationError(f"Could not sign App Store token: {e}") from e


__all__ = ["AUDIENCE", "ALGORITHM", "mint_token", "normalize_private_key"]
