# Shared declarative base. Models import Base from here; this module imports no models.

from sqlalchemy.orm import declarative_base

Base = declarative_base()
