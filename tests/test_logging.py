"""Tests for structured log formatting."""

import logging
import sys

from copilot.core.logging import (
    PACKAGE_LOGGER,
    StructuredFormatter,
    get_logger,
    log_with_context,
)


def _record(msg, **extra):
    record = logging.LogRecord(
        name="copilot.core.retrieval",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_format_key_value_with_request_id_and_fields():
    line = StructuredFormatter().format(
        _record("Retrieved", request_id="req-1", extra_data={"stage": "vector", "count": 3})
    )

    assert "level=INFO" in line
    assert "logger=copilot.core.retrieval" in line
    assert "message=Retrieved" in line
    assert line.endswith("request_id=req-1 stage=vector count=3")


def test_format_quotes_values_with_spaces_and_drops_none():
    line = StructuredFormatter().format(
        _record("Chat request: climate companies", request_id=None, extra_data={"slug": None})
    )

    assert 'message="Chat request: climate companies"' in line
    assert "request_id" not in line
    assert "slug" not in line


def test_format_appends_traceback():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = _record("failed")
        record.exc_info = sys.exc_info()

    line = StructuredFormatter().format(record)

    assert line.startswith("timestamp=")
    assert "RuntimeError: boom" in line


def test_get_logger_lives_under_package_namespace():
    assert get_logger("copilot.api.chat").name == "copilot.api.chat"
    assert get_logger("scratch").name == f"{PACKAGE_LOGGER}.scratch"
    handlers = logging.getLogger(PACKAGE_LOGGER).handlers
    assert sum(isinstance(h.formatter, StructuredFormatter) for h in handlers) == 1


def test_log_with_context_moves_request_id(caplog):
    logger = get_logger("copilot.tests")
    with caplog.at_level(logging.INFO, logger=PACKAGE_LOGGER):
        log_with_context(logger, logging.INFO, "hello", request_id="req-9", top_k=5)

    record = caplog.records[-1]
    assert record.request_id == "req-9"
    assert record.extra_data == {"top_k": 5}
