from __future__ import annotations

import time

import jwt
import pytest

from sales_ingest.auth import AUDIENCE, mint_token, normalize_private_key
from sales_ingest.config import AppStoreCredentials
from sales_ingest.errors import ConfigurationError
from tests.helpers.report_stub import make_ec_private_key_pem


def _creds(pem: str) -> AppStoreCredentials:
    return AppStoreCredentials(
        key_id="KEY123", issuer_id="issuer-uuid", private_key=pem, vendor_number="85000000"
    )


def test_token_claims_and_header() -> None:
    pem, key = make_ec_private_key_pem()
    now = int(time.time())

    token = mint_token(_creds(pem), now=now)

    header = jwt.get_unverified_header(token)
    assert header["alg"] == "ES256"
    assert header["kid"] == "KEY123"
    assert header["typ"] == "JWT"

    claims = jwt.decode(token, key.public_key(), algorithms=["ES256"], audience=AUDIENCE)
    assert claims["iss"] == "issuer-uuid"
    assert claims["iat"] == now
    assert claims["exp"] - claims["iat"] == 1200


def test_tokens_are_minted_fresh_each_call() -> None:
    pem, _ = make_ec_private_key_pem()
    creds = _creds(pem)
    a = mint_token(creds, now=1_700_000_000)
    b = mint_token(creds, now=1_700_000_060)
    assert a != b


@pytest.mark.parametrize("lifetime", [0, 1201])
def test_lifetime_limits(lifetime: int) -> None:
    pem, _ = make_ec_private_key_pem()
    with pytest.raises(ValueError):
        mint_token(_creds(pem), lifetime_seconds=lifetime)


def test_escaped_newlines_in_env_key_are_restored() -> None:
    pem, key = make_ec_private_key_pem()
    escaped = pem.strip().replace("\n", "\\n")
    assert normalize_private_key(escaped) == pem.strip()

    token = mint_token(_creds(escaped), now=int(time.time()))
    jwt.decode(token, key.public_key(), algorithms=["ES256"], audience=AUDIENCE)


def test_invalid_key_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        mint_token(_creds("not a pem key"))


def test_missing_credentials_are_rejected() -> None:
    pem, _ = make_ec_private_key_pem()
    creds = AppStoreCredentials(
        key_id="KEY123", issuer_id="", private_key=pem, vendor_number="85000000"
    )
    with pytest.raises(ConfigurationError, match="APP_STORE_ISSUER_ID"):
        mint_token(creds)
