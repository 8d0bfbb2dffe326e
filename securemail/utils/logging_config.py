"""
Structured logging and in-process metrics for SecureMail.

Production writes one JSON object per line (stdout and logs/securemail.log);
development writes a readable single-line format to stdout.
"""

import json
import logging
import sys
import time
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from securemail.config import settings


# Set per request by the HTTP middleware
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

DEV_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s%(fields_text)s"

QUIET_LOGGERS = ("httpx", "sqlalchemy.engine")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with structured fields under "data"."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "environment": settings.environment,
        }

        request_id = request_id_var.get()
        if request_id:
            payload["request_id"] = request_id

        fields = getattr(record, "fields", None)
        if fields:
            payload["data"] = fields

        return json.dumps(payload, default=str)


class _FieldsFilter(logging.Filter):
    """Renders structured fields as " key=value ..." for the dev format."""

    def filter(self, record: logging.LogRecord) -> bool:
        fields = getattr(record, "fields", None) or {}
        record.fields_text = "".join(f" {k}={v}" for k, v in fields.items())
        return True


class StructuredLogger:
    """
    Logger that takes structured fields as keyword arguments.

    Usage:
        logger = StructuredLogger(__name__)
        logger.info("Message analyzed", channel="sms", result="spam")
    """

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, message: str, fields: Dict[str, Any]):
        if self._logger.isEnabledFor(level):
            self._logger.log(level, message, extra={"fields": fields}, stacklevel=3)

    def debug(self, message: str, **fields):
        self._log(logging.DEBUG, message, fields)

    def info(self, message: str, **fields):
        self._log(logging.INFO, message, fields)

    def warning(self, message: str, **fields):
        self._log(logging.WARNING, message, fields)

    def error(self, message: str, **fields):
        self._log(logging.ERROR, message, fields)


def setup_logging(level: str = "INFO", json_format: bool = True, log_file: Optional[str] = None):
    """Replace root handlers with a console handler and an optional JSON file handler."""
    numeric_level = getattr(logging, level.upper())

    console = logging.StreamHandler(sys.stdout)
    if json_format:
        console.setFormatter(JSONFormatter())
    else:
        console.addFilter(_FieldsFilter())
        console.setFormatter(logging.Formatter(DEV_FORMAT))
    handlers: List[logging.Handler] = [console]

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        handlers.append(file_handler)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(numeric_level)
    for handler in handlers:
        handler.setLevel(numeric_level)
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


# ============== METRICS ==============


class MetricsCollector:
    """
    Counters and latency samples, reported by GET /status.

    Usage:
        metrics.increment("analysis.sms.spam")
        metrics.timing("analysis.latency", 0.0004)
    """

    MAX_SAMPLES = 1000

    def __init__(self):
        self._counters: Dict[str, int] = {}
        self._timings: Dict[str, List[float]] = {}
        self._start_time = time.time()

    def increment(self, name: str, value: int = 1):
        self._counters[name] = self._counters.get(name, 0) + value

    def timing(self, name: str, value: float):
        samples = self._timings.setdefault(name, [])
        samples.append(value)
        del samples[:-self.MAX_SAMPLES]

    def get_stats(self) -> Dict[str, Any]:
        timings = {}
        for name, samples in self._timings.items():
            if not samples:
                continue
            ordered = sorted(samples)
            timings[name] = {
                "count": len(ordered),
                "min": ordered[0],
                "max": ordered[-1],
                "avg": sum(ordered) / len(ordered),
                "p50": ordered[len(ordered) // 2],
            }
        return {
            "uptime_seconds": time.time() - self._start_time,
            "counters": dict(self._counters),
            "timings": timings,
        }

    def reset(self):
        self._counters.clear()
        self._timings.clear()


metrics = MetricsCollector()


def init_logging():
    """Configure logging from settings: JSON plus a log file in prod."""
    setup_logging(
        level="INFO" if settings.is_production else "DEBUG",
        json_format=settings.is_production,
        log_file="logs/securemail.log" if settings.is_production else None,
    )
