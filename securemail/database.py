"""
SQLAlchemy engine and session plumbing.

The engine is created lazily so importing the package never needs a
reachable database; mock mode simply never calls these helpers.
"""

from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from securemail.config import settings

Base = declarative_base()

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def make_engine(url: str) -> Engine:
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


def get_engine() -> Engine:
    """Lazy engine creation from settings.database_url."""
    global _engine
    if _engine is None:
        _engine = make_engine(settings.database_url)
    return _engine


def get_session_factory() -> sessionmaker:
    """Lazy sessionmaker creation."""
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(bind=get_engine(), expire_on_commit=False)
    return _session_factory
