from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

import sales_ingest.logging_setup as logging_setup
from sales_ingest.logging_setup import configure_logging, get_logger, resolve_level


@pytest.fixture(autouse=True)
def _restore_loggers() -> Iterator[None]:
    pkg = logging.getLogger(logging_setup.PACKAGE)
    saved = (list(pkg.handlers), pkg.level, pkg.propagate)
    noisy = {name: logging.getLogger(name).level for name in ("httpx", "sqlalchemy.engine")}
    yield
    pkg.handlers[:] = saved[0]
    pkg.setLevel(saved[1])
    pkg.propagate = saved[2]
    for name, level in noisy.items():
        logging.getLogger(name).setLevel(level)
    logging_setup._handler = None


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("debug", logging.DEBUG), (" Warning ", logging.WARNING), ("40", 40), (logging.INFO, logging.INFO)],
)
def test_resolve_level_accepts_names_and_numbers(raw: int | str, expected: int) -> None:
    assert resolve_level(raw) == expected


def test_resolve_level_falls_back_to_env_then_info(monkeypatch: pytest.MonkeyPatch) -> None:
    assert resolve_level(None) == logging.INFO
    monkeypatch.setenv("SALES_INGEST_LOG_LEVEL", "error")
    assert resolve_level(None) == logging.ERROR


def test_unknown_level_is_rejected() -> None:
    with pytest.raises(ValueError, match="verbose"):
        resolve_level("verbose")


def test_reconfiguring_keeps_a_single_handler() -> None:
    configure_logging("INFO")
    configure_logging("WARNING")

    pkg = logging.getLogger("sales_ingest")
    assert len(pkg.handlers) == 1
    assert not isinstance(pkg.handlers[0], logging.NullHandler)
    assert pkg.level == logging.WARNING
    assert get_logger("sales_ingest.pipeline").getEffectiveLevel() == logging.WARNING


def test_http_client_noise_follows_package_debug() -> None:
    configure_logging("INFO")
    assert logging.getLogger("httpx").level == logging.WARNING

    configure_logging("DEBUG")
    assert logging.getLogger("httpx").level == logging.DEBUG
    assert logging.getLogger("sqlalchemy.engine").level == logging.DEBUG


def test_records_follow_the_current_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging("INFO")

    get_logger("sales_ingest.pipeline").info("Inserted %s for %s", "3.50", "2024-08-01")

    err = capsys.readouterr().err
    assert "INFO" in err
    assert "sales_ingest.pipeline: Inserted 3.50 for 2024-08-01" in err
