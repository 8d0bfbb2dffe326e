"""Tests for structured logging and metrics."""

import json
import logging

from securemail.utils.logging_config import (
    JSONFormatter,
    MetricsCollector,
    StructuredLogger,
    request_id_var,
)


def _record(**fields):
    record = logging.LogRecord("securemail.test", logging.INFO, __file__, 1, "Message analyzed", None, None)
    if fields:
        record.fields = fields
    return record


class TestJSONFormatter:
    """Tests for the production log format."""

    def test_fields_under_data(self):
        payload = json.loads(JSONFormatter().format(_record(channel="sms", result="spam")))
        assert payload["message"] == "Message analyzed"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "securemail.test"
        assert payload["data"] == {"channel": "sms", "result": "spam"}
        assert "request_id" not in payload

    def test_request_id_included(self):
        token = request_id_var.set("req-42")
        try:
            payload = json.loads(JSONFormatter().format(_record()))
        finally:
            request_id_var.reset(token)
        assert payload["request_id"] == "req-42"
        assert "data" not in payload


class TestStructuredLogger:
    """Tests for keyword-field logging."""

    def test_error_carries_fields(self, caplog):
        caplog.set_level(logging.DEBUG, logger="securemail.test")
        StructuredLogger("securemail.test").error("Database rejected record", operation="insert")

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.getMessage() == "Database rejected record"
        assert record.fields == {"operation": "insert"}

    def test_disabled_level_skipped(self, caplog):
        caplog.set_level(logging.WARNING, logger="securemail.test")
        StructuredLogger("securemail.test").debug("Not shown", channel="email")
        assert caplog.records == []


class TestMetricsCollector:
    """Tests for counters and latency samples."""

    def test_counters(self):
        collector = MetricsCollector()
        collector.increment("analysis.total")
        collector.increment("analysis.total", 2)
        assert collector.get_stats()["counters"] == {"analysis.total": 3}

    def test_timing_samples_are_bounded(self):
        collector = MetricsCollector()
        for i in range(MetricsCollector.MAX_SAMPLES + 500):
            collector.timing("analysis.latency", float(i))

        stats = collector.get_stats()["timings"]["analysis.latency"]
        assert stats["count"] == MetricsCollector.MAX_SAMPLES
        assert stats["min"] == 500.0
        assert stats["max"] == float(MetricsCollector.MAX_SAMPLES + 499)

    def test_reset(self):
        collector = MetricsCollector()
        collector.increment("analysis.total")
        collector.timing("analysis.latency", 0.1)
        collector.reset()
        stats = collector.get_stats()
        assert stats["counters"] == {}
        assert stats["timings"] == {}
