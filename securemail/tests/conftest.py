import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from securemail.api.dependencies import get_evaluator, get_store
from securemail.api.server import app
from securemail.database import Base
from securemail.services.evaluator import RiskEvaluator
from securemail.services.record_store import (
    MockRecordStore,
    ResilientRecordStore,
    SqlRecordStore,
)


@pytest.fixture
def store():
    """Fresh in-memory store, seeded with no fixture data."""
    return ResilientRecordStore(fallback=MockRecordStore(records=[]))


@pytest.fixture
def evaluator():
    """Jitter-free evaluator with default thresholds."""
    return RiskEvaluator(spam_threshold=50.0, suspicious_threshold=20.0, jitter=0.0)


@pytest.fixture
def client(store, evaluator):
    """FastAPI test client fixture."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_evaluator] = lambda: evaluator
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def session_factory():
    """SQLite in-memory database shared across sessions."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def sql_store(session_factory):
    return SqlRecordStore(session_factory=session_factory)


@pytest.fixture
def sample_scam_text():
    """Sample scam message for testing."""
    return "URGENT: Claim your $1000 prize NOW!"


@pytest.fixture
def sample_safe_text():
    """Sample safe message for testing."""
    return "Hi, just wanted to check in about our meeting tomorrow at 3pm."


@pytest.fixture
def sample_phishing_text():
    """Sample phishing message for testing."""
    return "Your account needs verification. Click link: http://bit.ly/x"
