"""Moving items inside ordered collections.

The store checks (scope, position) uniqueness on every row it rewrites,
so a plain ``SET position = position - 1`` over a range can collide with
a neighbour that has not been rewritten yet. Every range shift here is
done in two passes through a parking area above any real position:

    close gap (decrement):  +(K - 1) then -K
    open gap (increment):   +K       then -(K - 1)

The first pass lifts the affected rows above every untouched row while
keeping their relative order; the second pass drops them onto their
final values, all of which are free by then.
"""
from typing import Optional
from sqlalchemy import update
from sqlalchemy.orm import Session

from grocerylist.config.settings import get_settings
from grocerylist.errors import InvalidPositionError, NotFoundError
from grocerylist.models import UNPOSITIONED, FIRST_POSITION
from grocerylist.utils.logger import get_logger
from .ledger import PositionLedger, Location


class ReorderEngine:
    """Atomic moves for one ordered table.

    All methods run inside the caller's transaction and never commit. On
    any exception the caller must roll back; the partial shift is then
    discarded with it.
    """

    def __init__(self, ledger: PositionLedger, parking_offset: Optional[int] = None):
        self.ledger = ledger
        self.parking_offset = parking_offset or get_settings().PARKING_OFFSET
        self.logger = get_logger(self.__class__.__name__)

    @property
    def model(self):
        return self.ledger.model

    def move_to_position(
        self,
        session: Session,
        item_id: int,
        new_position: Optional[int],
        new_scope: Optional[int] = None
    ) -> Location:
        """
        Move an item to ``new_position`` in ``new_scope``.

        Items after the old slot move up by one; items at or after the
        new slot move down by one. Within one scope the two shifts
        compose into a single shift of the rows between the two slots.

        Args:
            session: Session with an open transaction
            item_id: ID of the item to move
            new_position: Target position, or None to append
            new_scope: Target scope (ignored for the global scope)

        Returns:
            The item's new location

        Raises:
            NotFoundError: If the item does not exist
            InvalidPositionError: If the target lies outside the scope
        """
        if self.ledger.scope_attr is None:
            new_scope = None

        # Pending ORM edits must reach the store before the bulk updates
        session.flush()

        old = self.ledger.current_location(session, item_id)
        same_scope = old.scope == new_scope

        if new_position is None:
            new_position = self.ledger.next_position(session, new_scope)
            if same_scope:
                new_position -= 1

        self._check_range(session, new_position, new_scope, growing=not same_scope)

        self.logger.debug(
            "Moving item",
            table=self.ledger.name,
            item_id=item_id,
            old_scope=old.scope,
            old_position=old.position,
            new_scope=new_scope,
            new_position=new_position
        )

        self._quarantine(session, item_id)
        self._close_gap(session, old.position, old.scope)
        self._open_gap(session, new_position, new_scope)
        self._land(session, item_id, new_position, new_scope)

        session.expire_all()
        return Location(scope=new_scope, position=new_position)

    def place_new(
        self,
        session: Session,
        item_id: int,
        position: Optional[int],
        scope: Optional[int] = None
    ) -> Location:
        """
        Give a freshly inserted, unpositioned item its slot.

        The item must have been flushed with position ``UNPOSITIONED``
        inside ``scope``.

        Args:
            session: Session with an open transaction
            item_id: ID of the new item
            position: Target position, or None to append
            scope: Scope the item was inserted into

        Returns:
            The item's location
        """
        if self.ledger.scope_attr is None:
            scope = None

        session.flush()

        current = self.ledger.current_location(session, item_id)
        if current.is_positioned:
            raise InvalidPositionError(
                f"Item {item_id} already holds position {current.position}",
                metadata={"table": self.ledger.name, "id": item_id}
            )

        if position is None:
            position = self.ledger.next_position(session, scope)

        self._check_range(session, position, scope, growing=True)

        self.logger.debug(
            "Placing new item",
            table=self.ledger.name,
            item_id=item_id,
            scope=scope,
            position=position
        )

        self._open_gap(session, position, scope)
        self._land(session, item_id, position, scope)

        session.expire_all()
        return Location(scope=scope, position=position)

    def remove(self, session: Session, item_id: int) -> Location:
        """
        Delete an item and close the gap it leaves.

        Returns:
            The location the item held before deletion

        Raises:
            NotFoundError: If the item does not exist
        """
        session.flush()

        old = self.ledger.current_location(session, item_id)
        item = session.get(self.model, item_id)
        if item is None:
            raise NotFoundError(f"{self.model.__name__} {item_id} not found")

        self.logger.debug(
            "Removing item",
            table=self.ledger.name,
            item_id=item_id,
            scope=old.scope,
            position=old.position
        )

        session.delete(item)
        session.flush()
        if old.is_positioned:
            self._close_gap(session, old.position, old.scope)

        session.expire_all()
        return old

    def append_scope(
        self,
        session: Session,
        source_scope: int,
        target_scope: int
    ) -> int:
        """
        Move every item of ``source_scope`` to the end of ``target_scope``.

        Items keep their relative order. Each lands on a slot above the
        target's current end, so no row write can collide.

        Returns:
            Number of items moved
        """
        if self.ledger.scope_attr is None:
            raise ValueError(f"{self.ledger.name} has a single scope")

        session.flush()

        item_ids = self.ledger.ordered_ids(session, source_scope)
        start = self.ledger.next_position(session, target_scope)

        for offset, item_id in enumerate(item_ids):
            session.execute(
                update(self.model)
                .where(self.model.id == item_id)
                .values(
                    position=start + offset,
                    updated_at=self.model.updated_at,
                    **self.ledger.scope_values(target_scope)
                )
                .execution_options(synchronize_session=False)
            )

        self.logger.debug(
            "Appended scope",
            table=self.ledger.name,
            source_scope=source_scope,
            target_scope=target_scope,
            moved=len(item_ids)
        )

        session.expire_all()
        return len(item_ids)

    def _check_range(
        self,
        session: Session,
        position: int,
        scope: Optional[int],
        growing: bool
    ) -> None:
        """Reject positions that would leave a hole or fall below 1.

        A scope that gains an item accepts 1..N+1, otherwise 1..N. After
        the move every position in the scope must stay below the parking
        offset, so the scope's last slot is checked as well as the target.
        """
        size = self.ledger.count(session, scope)
        highest = size + 1 if growing else size
        if position < FIRST_POSITION or position > highest:
            raise InvalidPositionError(
                f"Position {position} is out of range 1..{highest}",
                suggestions=[f"Choose a position between 1 and {highest}"],
                metadata={"table": self.ledger.name, "scope": scope, "position": position}
            )
        if highest >= self.parking_offset:
            raise InvalidPositionError(
                f"A list may hold at most {self.parking_offset - 1} items",
                metadata={
                    "table": self.ledger.name,
                    "scope": scope,
                    "parking_offset": self.parking_offset
                }
            )

    def _shift(self, session: Session, scope: Optional[int], condition, delta: int) -> int:
        """Add ``delta`` to the position of matching rows in ``scope``."""
        stmt = (
            update(self.model)
            .where(*self.ledger.in_scope(scope), condition)
            # a neighbour sliding over is not an edit of that neighbour
            .values(position=self.model.position + delta, updated_at=self.model.updated_at)
            .execution_options(synchronize_session=False)
        )
        return session.execute(stmt).rowcount

    def _quarantine(self, session: Session, item_id: int) -> None:
        """Take the moving item out of every scope's uniqueness domain."""
        session.execute(
            update(self.model)
            .where(self.model.id == item_id)
            .values(position=UNPOSITIONED)
            .execution_options(synchronize_session=False)
        )

    def _close_gap(self, session: Session, old_position: int, scope: Optional[int]) -> None:
        """Decrement every row after ``old_position`` in ``scope``."""
        k = self.parking_offset
        parked = self._shift(session, scope, self.model.position > old_position, k - 1)
        self._shift(session, scope, self.model.position >= k, -k)
        self.logger.debug("Closed gap", table=self.ledger.name, scope=scope,
                          after=old_position, shifted=parked)

    def _open_gap(self, session: Session, new_position: int, scope: Optional[int]) -> None:
        """Increment every row at or after ``new_position`` in ``scope``."""
        k = self.parking_offset
        parked = self._shift(session, scope, self.model.position >= new_position, k)
        self._shift(session, scope, self.model.position >= k, -(k - 1))
        self.logger.debug("Opened gap", table=self.ledger.name, scope=scope,
                          at=new_position, shifted=parked)

    def _land(
        self,
        session: Session,
        item_id: int,
        new_position: int,
        scope: Optional[int]
    ) -> None:
        """Put the quarantined item into its new slot."""
        session.execute(
            update(self.model)
            .where(self.model.id == item_id)
            .values(position=new_position, **self.ledger.scope_values(scope))
            .execution_options(synchronize_session=False)
        )
