"""Pytest configuration for test isolation.

Credentials and settings are read from the environment, and ``db.client`` caches
one engine per database URL for the whole process. Each test therefore starts
with the relevant variables cleared and ends with every cached engine
disposed, so a test's database or credentials never leak into the next one.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest
from db.client import reset_engine

from tests.helpers.db import bootstrap_sqlite_db

_ISOLATED_PREFIXES = ("APP_STORE_", "SALES_INGEST_")
_ISOLATED_VARS = ("DATABASE_URL", "STRIPE_SECRET_KEY")


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in list(os.environ):
        if name.startswith(_ISOLATED_PREFIXES) or name in _ISOLATED_VARS:
            monkeypatch.delenv(name, raising=False)
    reset_engine()
    yield
    reset_engine()


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    return bootstrap_sqlite_db(tmp_path / "sales.db")
