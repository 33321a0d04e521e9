"""
SQLAlchemy declarative base for models exposed through controllers.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass
