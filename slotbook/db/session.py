"""
SQLAlchemy engine and session factory.

Works with Postgres in production and SQLite for local use and tests.
"""

import logging
from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from .base import Base

logger = logging.getLogger(__name__)


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the given database URL.

    SQLite needs check_same_thread disabled because requests are served from a
    thread pool; in-memory SQLite also needs a single shared connection.
    """
    kwargs = {"echo": echo, "pool_pre_ping": True}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        else:
            db_path = url.split("///", 1)[-1]
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url, **kwargs)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(engine: Optional[Engine] = None, url: Optional[str] = None) -> Engine:
    """Create all tables. Returns the engine used."""
    # Register models on the metadata
    from . import models  # noqa: F401

    if engine is None:
        engine = create_db_engine(url)
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured")
    return engine
