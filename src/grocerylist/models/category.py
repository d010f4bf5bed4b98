"""Category model for grocerylist."""
from sqlalchemy import String, Boolean, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, PositionMixin


class Category(Base, TimestampMixin, PositionMixin):
    """Model representing a category of grocery entries."""

    __tablename__ = "categories"

    # Positions are unique across all categories
    __table_args__ = (
        UniqueConstraint('position', name='uq_category_position'),
        CheckConstraint('position >= 0', name='ck_category_position'),
    )

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True)

    # Fields
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Relationships
    entries = relationship(
        "GroceryEntry",
        back_populates="category",
        order_by="GroceryEntry.position",
        passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name='{self.name}', position={self.position})>"
