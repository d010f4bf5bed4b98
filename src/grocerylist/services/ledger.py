"""Storage-side helpers for ordered collections.

An ordered collection is a table whose rows hold a ``position`` that is
unique within a scope. Entries are scoped by ``category_id``; categories
share one implicit global scope. The store enforces uniqueness of
(scope, position) on every row write.
"""
from dataclasses import dataclass
from typing import Optional, List, Type, Any
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from grocerylist.errors import NotFoundError
from grocerylist.models import Base, UNPOSITIONED, FIRST_POSITION


@dataclass(frozen=True)
class Location:
    """Where an item currently sits. ``scope`` is None for the global scope."""
    scope: Optional[int]
    position: int

    @property
    def is_positioned(self) -> bool:
        return self.position != UNPOSITIONED


class PositionLedger:
    """Reads and scope filters for one ordered table."""

    def __init__(self, model: Type[Base], scope_attr: Optional[str] = None):
        """
        Args:
            model: Mapped class with ``id`` and ``position`` columns
            scope_attr: Name of the scope column, or None for a single
                global scope
        """
        self.model = model
        self.scope_attr = scope_attr

    @property
    def name(self) -> str:
        return self.model.__tablename__

    @property
    def scope_column(self):
        return getattr(self.model, self.scope_attr) if self.scope_attr else None

    def in_scope(self, scope: Optional[int]) -> List[Any]:
        """WHERE clauses selecting the rows of ``scope``."""
        if self.scope_column is None:
            return []
        return [self.scope_column == scope]

    def scope_values(self, scope: Optional[int]) -> dict:
        """Column values that put a row into ``scope``."""
        if self.scope_attr is None:
            return {}
        return {self.scope_attr: scope}

    def next_position(self, session: Session, scope: Optional[int] = None) -> int:
        """Position one past the end of ``scope``; 1 when the scope is empty."""
        highest = session.execute(
            select(func.max(self.model.position)).where(*self.in_scope(scope))
        ).scalar()
        if not highest:
            return FIRST_POSITION
        return highest + 1

    def current_location(self, session: Session, item_id: int) -> Location:
        """
        Read an item's location inside the caller's transaction.

        Raises:
            NotFoundError: If no row has ``item_id``
        """
        columns = [self.model.position]
        if self.scope_column is not None:
            columns.append(self.scope_column)

        row = session.execute(
            select(*columns).where(self.model.id == item_id)
        ).first()
        if row is None:
            raise NotFoundError(
                f"{self.model.__name__} {item_id} not found",
                metadata={"table": self.name, "id": item_id}
            )

        scope = row[1] if self.scope_column is not None else None
        return Location(scope=scope, position=row[0])

    def count(self, session: Session, scope: Optional[int] = None) -> int:
        """Number of positioned rows in ``scope``."""
        return session.execute(
            select(func.count())
            .select_from(self.model)
            .where(*self.in_scope(scope), self.model.position != UNPOSITIONED)
        ).scalar_one()

    def positions(self, session: Session, scope: Optional[int] = None) -> List[int]:
        """All positions in ``scope``, ascending."""
        return list(
            session.execute(
                select(self.model.position)
                .where(*self.in_scope(scope))
                .order_by(self.model.position)
            ).scalars()
        )

    def ordered_ids(self, session: Session, scope: Optional[int] = None) -> List[int]:
        """Row ids in ``scope`` in list order."""
        return list(
            session.execute(
                select(self.model.id)
                .where(*self.in_scope(scope))
                .order_by(self.model.position)
            ).scalars()
        )

    def is_contiguous(self, session: Session, scope: Optional[int] = None) -> bool:
        """True when the positions of ``scope`` are exactly 1..N."""
        positions = self.positions(session, scope)
        return positions == list(range(FIRST_POSITION, len(positions) + FIRST_POSITION))
