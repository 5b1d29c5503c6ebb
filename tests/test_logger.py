# File: tests/test_logger.py
"""Project logger: handler replacement and the optional log file."""
import logging

import pytest

from doc_scout.logger import configure, init_logging, logger


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    init_logging(level="WARNING")


def test_init_logging_replaces_handlers():
    init_logging(level="DEBUG")
    init_logging(level="INFO")
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert not logger.propagate


def test_log_file_receives_records(tmp_path):
    log_file = tmp_path / "crawl.log"
    configure(level="DEBUG", log_file=log_file, log_format="%(levelname)s %(message)s")
    logger.debug("Dropped %s (%s)", "http://example.com/x", "duplicate")
    logger.warning("Error visiting %s: %s", "http://example.com/y", "HTTP 500")
    for handler in logger.handlers:
        handler.flush()

    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert lines == [
        "DEBUG Dropped http://example.com/x (duplicate)",
        "WARNING Error visiting http://example.com/y: HTTP 500",
    ]


def test_append_handlers():
    init_logging(level="INFO")
    configure(level="INFO", replace_handlers=False)
    assert len(logger.handlers) == 2
