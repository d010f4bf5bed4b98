"""Base SQLAlchemy models and mixins."""
from datetime import datetime, UTC
from typing import Optional
from sqlalchemy import DateTime, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


# Position value held by an item while it is being moved.
# Never visible after a transaction commits.
UNPOSITIONED = 0

# Smallest position a committed item may hold
FIRST_POSITION = UNPOSITIONED + 1


class TZDateTime(TypeDecorator):
    """Timezone-aware datetime type."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect):
        """Convert datetime to UTC for storage."""
        if value is not None:
            if value.tzinfo is None:
                value = value.replace(tzinfo=UTC)
            else:
                value = value.astimezone(UTC)
        return value

    def process_result_value(self, value: Optional[datetime], dialect):
        """Ensure retrieved datetime has UTC timezone."""
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class TimestampMixin:
    """Mixin that adds created/updated timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        TZDateTime,
        default=utc_now,
        nullable=False
    )

    updated_at: Mapped[datetime] = mapped_column(
        TZDateTime,
        default=utc_now,
        onupdate=utc_now,
        nullable=False
    )


class PositionMixin:
    """Mixin for rows that hold a slot in an ordered list."""

    position: Mapped[int] = mapped_column(Integer, nullable=False)

    @property
    def is_positioned(self) -> bool:
        return self.position != UNPOSITIONED
