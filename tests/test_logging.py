"""Tests for dssnap.logging."""

from __future__ import annotations

import logging

import pytest

from dssnap.logging import configure_logging, get_logger


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    logger = logging.getLogger("dssnap")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def test_get_logger_is_namespaced() -> None:
    assert get_logger().name == "dssnap"
    assert get_logger("watch").name == "dssnap.watch"


def test_configure_logging_sets_level_and_replaces_handlers(tmp_path) -> None:
    log_file = tmp_path / "run.log"

    configure_logging(verbose=True, log_file=log_file)
    logger = configure_logging(verbose=True, log_file=log_file)

    assert logger.level == logging.DEBUG
    assert logger.propagate is False
    assert len(logger.handlers) == 2

    get_logger("snapshot").debug("extracted %d components", 3)
    for handler in logger.handlers:
        handler.flush()

    text = log_file.read_text(encoding="utf-8")
    assert "extracted 3 components" in text
    assert "dssnap.snapshot" in text


def test_configure_logging_defaults_to_info() -> None:
    logger = configure_logging()

    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
