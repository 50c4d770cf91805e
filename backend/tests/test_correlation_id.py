# tests/test_correlation_id.py
"""
Tests for correlation ID middleware, context management and log stamping.
"""

import json
import logging

import pytest

from app.utils.context import clear_correlation_id, get_correlation_id, set_correlation_id
from app.utils.logging import (
    NO_CORRELATION_ID,
    CorrelationIdFilter,
    JsonFormatter,
    _get_log_level,
)


class TestCorrelationIdContext:
    """Tests for correlation ID context functions."""

    def test_get_returns_none_when_not_set(self):
        """Should return None when correlation ID is not set."""
        clear_correlation_id()
        assert get_correlation_id() is None

    def test_set_and_get_correlation_id(self):
        """Should set and retrieve correlation ID."""
        set_correlation_id("test-correlation-123")
        assert get_correlation_id() == "test-correlation-123"
        clear_correlation_id()


class TestCorrelationIdMiddleware:
    """Tests for correlation ID middleware."""

    def test_generates_correlation_id_when_not_provided(self, client):
        """Should generate a UUID when the request carries none."""
        response = client.get("/health/live")

        assert response.status_code == 200
        correlation_id = response.headers["X-Correlation-ID"]
        assert len(correlation_id) == 36
        assert correlation_id.count("-") == 4

    def test_uses_provided_correlation_id(self, client):
        response = client.get("/health/live", headers={"X-Correlation-ID": "trace-123"})

        assert response.headers["X-Correlation-ID"] == "trace-123"

    def test_uses_request_id_header_as_fallback(self, client):
        """Should use X-Request-ID if X-Correlation-ID is not provided."""
        response = client.get("/health/live", headers={"X-Request-ID": "request-456"})

        assert response.headers["X-Correlation-ID"] == "request-456"

    def test_prefers_correlation_id_over_request_id(self, client):
        response = client.get(
            "/health/live",
            headers={"X-Correlation-ID": "correlation-123", "X-Request-ID": "request-456"},
        )

        assert response.headers["X-Correlation-ID"] == "correlation-123"

    def test_present_on_error_responses(self, client):
        """Should tag handled errors too."""
        response = client.get("/api/v1/portfolios/999", headers={"X-Correlation-ID": "err-1"})

        assert response.status_code == 404
        assert response.headers["X-Correlation-ID"] == "err-1"

    def test_different_requests_get_different_ids(self, client):
        id1 = client.get("/health/live").headers["X-Correlation-ID"]
        id2 = client.get("/health/live").headers["X-Correlation-ID"]

        assert id1 != id2


class TestLogStamping:
    """Tests for the logging filter and JSON formatter."""

    def make_record(self, msg: str = "hello") -> logging.LogRecord:
        return logging.LogRecord("app.test", logging.INFO, __file__, 1, msg, None, None)

    def test_filter_stamps_current_id(self):
        set_correlation_id("abc")
        record = self.make_record()

        CorrelationIdFilter().filter(record)
        clear_correlation_id()

        assert record.correlation_id == "abc"

    def test_filter_without_id(self):
        clear_correlation_id()
        record = self.make_record()

        CorrelationIdFilter().filter(record)

        assert record.correlation_id == NO_CORRELATION_ID

    def test_json_formatter(self):
        record = self.make_record("priced 3 tokens")
        record.correlation_id = "abc"
        record.provider = "coingecko"

        entry = json.loads(JsonFormatter().format(record))

        assert entry["message"] == "priced 3 tokens"
        assert entry["correlation_id"] == "abc"
        assert entry["level"] == "INFO"
        assert entry["extra"] == {"provider": "coingecko"}

    @pytest.mark.parametrize("name,level", [("debug", logging.DEBUG), ("WARN", logging.WARNING)])
    def test_level_names(self, name, level):
        assert _get_log_level(name) == level

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            _get_log_level("chatty")
