"""SQLAlchemy engine/session helpers for the sales database.

Usage
-----
from db.client import session_scope

with session_scope() as s:
    s.execute(...)

Engines are cached per normalized URL, so code paths that pass an explicit
``database_url`` and ones that rely on ``DATABASE_URL`` can coexist in one
process.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session

# The installed Postgres driver is psycopg 3; bare postgres URLs (as handed
# out by hosted Postgres providers) would otherwise select psycopg2.
_POSTGRES_ALIASES = {"postgres", "postgresql"}
_PG_DRIVER = "postgresql+psycopg"

_ENGINES: dict[str, Engine] = {}


def normalize_database_url(url: str) -> str:
    parsed = make_url(url)
    if parsed.drivername in _POSTGRES_ALIASES:
        parsed = parsed.set(drivername=_PG_DRIVER)
    return parsed.render_as_string(hide_password=False)


def resolve_database_url(override: str | None = None) -> str:
    url = override or os.getenv("DATABASE_URL")
    if not url or not url.strip():
        raise RuntimeError("DATABASE_URL is not set; cannot initialize database client")
    return normalize_database_url(url.strip())


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return the cached engine for ``database_url`` (or ``DATABASE_URL``)."""

    url = resolve_database_url(database_url)
    engine = _ENGINES.get(url)
    if engine is None:
        engine = create_engine(url, pool_pre_ping=True)
        _ENGINES[url] = engine
    return engine


def reset_engine() -> None:
    """Dispose every cached engine; the next call creates fresh ones."""

    for engine in _ENGINES.values():
        engine.dispose()
    _ENGINES.clear()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Yield a session that commits on success and rolls back on error."""

    session = Session(bind=get_engine(database_url=database_url), expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = [
    "get_engine",
    "normalize_database_url",
    "reset_engine",
    "resolve_database_url",
    "session_scope",
]
