"""Persistence layer: SQLAlchemy models and session factory."""

from .base import Base
from .models import User, Event, Role
from .session import create_db_engine, create_session_factory, init_db

__all__ = [
    "Base",
    "User",
    "Event",
    "Role",
    "create_db_engine",
    "create_session_factory",
    "init_db",
]
