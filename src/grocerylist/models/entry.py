"""GroceryEntry model for grocerylist."""
from typing import Optional
from datetime import datetime
from sqlalchemy import String, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, PositionMixin, TZDateTime


class GroceryEntry(Base, TimestampMixin, PositionMixin):
    """Model representing an entry in the grocery list."""

    __tablename__ = "grocery_list_entries"

    # Positions are unique within a category
    __table_args__ = (
        UniqueConstraint(
            'category_id',
            'position',
            name='uq_entry_category_position'
        ),
        CheckConstraint('position >= 0', name='ck_entry_position'),
    )

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True)

    # Fields
    description: Mapped[str] = mapped_column(String(200), nullable=False)
    quantity: Mapped[str] = mapped_column(String(50), default="", nullable=False)
    notes: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(TZDateTime)

    # Foreign keys
    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id"),
        nullable=False,
        index=True
    )

    # Relationships
    category = relationship(
        "Category",
        back_populates="entries"
    )

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    def __repr__(self) -> str:
        return (
            f"<GroceryEntry(id={self.id}, description='{self.description}', "
            f"category_id={self.category_id}, position={self.position})>"
        )
