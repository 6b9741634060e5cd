"""
Base ORM Model and Mixins.

============================================================
PURPOSE
============================================================
Provides the declarative base and common mixins used by all
ORM models in the leaderboard service.

============================================================
COMPONENTS
============================================================
- Base: SQLAlchemy declarative base for all models
- TimestampMixin: created_at / updated_at columns

Timestamps are written by the service from the injectable
clock rather than by the database, so ranking tie-breaks are
reproducible in tests.

============================================================
"""

from datetime import datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""

    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }


class TimestampMixin:
    """
    Mixin providing standard timestamp columns.

    Usage:
        class MyModel(Base, TimestampMixin):
            __tablename__ = "my_table"
            ...
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="Record creation timestamp (UTC)"
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="Last update timestamp (UTC)"
    )
