"""
Database models: users, events and roles.

User.phone_number holds the canonical E.164 form and is the only login key.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Column, String, Boolean, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship

from .base import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Role(str, enum.Enum):
    CLIENT = "CLIENT"
    PROFESSIONAL = "PROFESSIONAL"
    ADMIN = "ADMIN"


class Event(Base):
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String, nullable=False)
    # Shared secret handed to professionals working this event
    professional_password = Column(String, nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    professionals = relationship("User", back_populates="event")


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    phone_number = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=True)
    role = Column(Enum(Role), nullable=False, default=Role.CLIENT)
    setup_complete = Column(Boolean, nullable=False, default=False)
    event_id = Column(String(36), ForeignKey("events.id"), nullable=True)

    theme = Column(String, nullable=False, default="system")
    time_format = Column(String, nullable=False, default="12h")
    date_format = Column(String, nullable=False, default="MM/DD/YYYY")
    timezone = Column(String, nullable=False, default="America/Chicago")

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    event = relationship("Event", back_populates="professionals")
