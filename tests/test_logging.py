"""
Tests for structured logging configuration.
"""

import json
import logging
import sys

import pytest

from listing_filters.logging import (
    HumanReadableFormatter,
    StructuredJSONFormatter,
    clear_log_context,
    get_log_context,
    logger,
    set_correlation_id,
    set_log_context,
)


def make_record(level=logging.INFO, msg="Resolving filter", **extra):
    record = logging.LogRecord(
        name="listing_filters",
        level=level,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def reset_context():
    clear_log_context()
    set_correlation_id("")
    yield
    clear_log_context()
    set_correlation_id("")


class TestLogContext:
    """Tests for the contextual log fields."""

    def test_set_log_context_merges(self):
        set_log_context(controller="posts")
        set_log_context(action="index")

        assert get_log_context() == {"controller": "posts", "action": "index"}

    def test_clear_log_context(self):
        set_log_context(controller="posts")

        clear_log_context()

        assert get_log_context() == {}


class TestStructuredJSONFormatter:
    """Tests for StructuredJSONFormatter."""

    def test_standard_fields(self):
        output = json.loads(StructuredJSONFormatter().format(make_record()))

        assert output["level"] == "INFO"
        assert output["logger"] == "listing_filters"
        assert output["message"] == "Resolving filter"
        assert output["line"] == 10
        assert "timestamp" in output
        assert "environment" in output
        assert "request_id" not in output

    def test_correlation_id_and_context(self):
        """Test that request context ends up in every record."""
        set_correlation_id("abc12345")
        set_log_context(controller="posts", slug="abcdefghikmnop")

        output = json.loads(StructuredJSONFormatter().format(make_record()))

        assert output["request_id"] == "abc12345"
        assert output["controller"] == "posts"
        assert output["slug"] == "abcdefghikmnop"

    def test_extra_fields(self):
        record = make_record(attempts=3)

        output = json.loads(StructuredJSONFormatter().format(record))

        assert output["attempts"] == 3

    def test_exception_is_included(self):
        try:
            raise ValueError("broken")
        except ValueError:
            record = make_record(level=logging.ERROR)
            record.exc_info = sys.exc_info()

        output = json.loads(StructuredJSONFormatter().format(record))

        assert "ValueError: broken" in output["exception"]


class TestHumanReadableFormatter:
    """Tests for HumanReadableFormatter."""

    def test_info_format(self):
        set_correlation_id("abc12345")

        line = HumanReadableFormatter().format(make_record())

        assert "[abc12345] INFO: Resolving filter" in line

    def test_error_format_has_location(self):
        line = HumanReadableFormatter().format(
            make_record(level=logging.ERROR, msg="Ignoring slug")
        )

        assert "[-] ERROR:" in line
        assert ":10 - Ignoring slug" in line


class TestLogger:
    """Tests for the package logger."""

    def test_logger_does_not_propagate(self):
        assert logger.name == "listing_filters"
        assert logger.propagate is False
        assert logger.handlers
