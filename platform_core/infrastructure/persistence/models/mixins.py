"""SQLAlchemy mixins for common model patterns (DRY).

Provides: IntegerIdMixin, TimestampMixin and deferrable_fk(). Every
foreign key in the schema is deferrable so identity rewrites can move a
primary key and its dependents inside one unit of work.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func


def deferrable_fk(target: str, ondelete: str | None = None) -> ForeignKey:
    """Foreign key that is checked immediately but may be deferred per transaction."""
    return ForeignKey(target, ondelete=ondelete, deferrable=True, initially="IMMEDIATE")


class IntegerIdMixin:
    """Mixin for models with a store-assigned integer primary key."""

    @declared_attr
    def id(cls) -> Mapped[int]:
        return mapped_column(Integer, primary_key=True, autoincrement=True)


class TimestampMixin:
    """Mixin for created_at and updated_at (server defaults, timezone-aware)."""

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        )

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
            nullable=False,
        )
