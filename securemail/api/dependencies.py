"""
Shared FastAPI dependencies.
"""

from datetime import datetime, timezone
from typing import Optional

from securemail.config import settings
from securemail.services.evaluator import RiskEvaluator, build_evaluator
from securemail.services.record_store import ResilientRecordStore, build_record_store

_store: Optional[ResilientRecordStore] = None
_evaluator: Optional[RiskEvaluator] = None


def get_store() -> ResilientRecordStore:
    global _store
    if _store is None:
        _store = build_record_store()
    return _store


def get_evaluator() -> RiskEvaluator:
    global _evaluator
    if _evaluator is None:
        _evaluator = build_evaluator()
    return _evaluator


def database_status(store: ResilientRecordStore) -> str:
    """Mock when no database is configured, else whether the database answers."""
    if settings.mock_mode:
        return "mock"
    return "connected" if store.ping() else "disconnected"


def health_payload(store: ResilientRecordStore) -> dict:
    return {
        "status": "ok",
        "database": database_status(store),
        "timestamp": datetime.now(timezone.utc),
    }
