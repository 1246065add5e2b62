"""
Declarative base.

All ORM models inherit from Base so Alembic sees one metadata.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all models."""
    pass
