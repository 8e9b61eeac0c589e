"""Logging for the ``sales_ingest`` package.

Library modules only call ``get_logger(__name__)``; handlers are attached by
the CLI through :func:`configure_logging`. Until then the package root logger
carries a ``NullHandler`` so embedding applications see nothing unless they
configure logging themselves.

The ingestion run talks to two chatty libraries: httpx logs every request at
INFO and SQLAlchemy can echo statements. Both are pinned to WARNING unless the
package itself runs at DEBUG, so a normal run prints one line per date.
"""

from __future__ import annotations

import logging
import os
import sys

PACKAGE = "sales_ingest"
LEVEL_ENV = "SALES_INGEST_LOG_LEVEL"
_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
_NOISY = ("httpx", "httpcore", "sqlalchemy.engine")

_handler: logging.Handler | None = None


class _StderrHandler(logging.StreamHandler):
    """Writes to whatever ``sys.stderr`` is when a record is emitted."""

    @property
    def stream(self):
        return sys.stderr

    @stream.setter
    def stream(self, _value) -> None:
        pass


def resolve_level(level: int | str | None) -> int:
    """Map ``level`` (or ``$SALES_INGEST_LOG_LEVEL`` when ``None``) to a number.

    Unknown names raise ``ValueError`` so a typo on the command line is not
    silently treated as INFO.
    """

    if level is None:
        level = os.getenv(LEVEL_ENV) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelNamesMapping().get(name)
    if numeric is None:
        raise ValueError(f"unknown log level {level!r}")
    return numeric


def configure_logging(level: int | str | None = None) -> int:
    """Send package logs to stderr at ``level`` and return the level used.

    Calling again replaces the handler instead of stacking a second one, so
    repeated CLI invocations in one process (tests) stay single-line.
    """

    global _handler
    resolved = resolve_level(level)
    pkg_logger = logging.getLogger(PACKAGE)

    for h in list(pkg_logger.handlers):
        if isinstance(h, logging.NullHandler) or h is _handler:
            pkg_logger.removeHandler(h)

    _handler = _StderrHandler()
    _handler.setFormatter(logging.Formatter(_FORMAT))
    pkg_logger.addHandler(_handler)
    pkg_logger.setLevel(resolved)
    pkg_logger.propagate = False

    third_party = logging.DEBUG if resolved <= logging.DEBUG else logging.WARNING
    for name in _NOISY:
        logging.getLogger(name).setLevel(third_party)
    return resolved


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(PACKAGE)
    if _handler is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
