"""Grocery entry management service."""
from typing import Optional, List
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from grocerylist.errors import GroceryListError, NotFoundError
from grocerylist.models import GroceryEntry, Category, UNPOSITIONED, FIRST_POSITION
from grocerylist.domain.types import (
    CreateEntryCommand,
    UpdateEntryCommand,
    ReorderEntryCommand,
)
from grocerylist.domain.parsing import parse_entry_input
from .base_service import BaseService, Result
from .ledger import PositionLedger
from .reorder import ReorderEngine


class EntryService(BaseService):
    """Service for managing grocery entries."""

    def __init__(self, session: Session):
        super().__init__(session)
        self.ledger = PositionLedger(GroceryEntry, "category_id")
        self.reorder = ReorderEngine(self.ledger)

    def create_entry(
        self,
        description: str,
        quantity: Optional[str] = None,
        notes: Optional[str] = None,
        position: Optional[int] = None,
        category_id: Optional[int] = None
    ) -> Result[GroceryEntry]:
        """
        Add an entry to the list.

        When neither quantity nor notes is given, they are parsed out of
        the description (``2kg flour - organic``).

        Args:
            description: Entry text
            quantity: Quantity text (optional)
            notes: Notes text (optional)
            position: Position inside the category (default: end of category)
            category_id: Target category (default: the category last used
                for the same description, else the default category)

        Returns:
            Result containing the created entry or error
        """
        try:
            command = self._validate(
                CreateEntryCommand,
                description=description,
                quantity=quantity,
                notes=notes,
                position=position,
                category_id=category_id
            )

            if command.quantity is None and command.notes is None:
                parsed = parse_entry_input(command.description)
                description = parsed.description or command.description
                quantity, notes = parsed.quantity, parsed.notes
            else:
                description = command.description
                quantity = command.quantity or ""
                notes = command.notes or ""

            with self.transaction.transaction() as session:
                target_category = command.category_id
                if target_category is None:
                    target_category = self._category_for_description(session, description)
                else:
                    self._require_category(session, target_category)

                entry = GroceryEntry(
                    description=description,
                    quantity=quantity,
                    notes=notes,
                    category_id=target_category,
                    position=UNPOSITIONED
                )
                session.add(entry)
                session.flush()  # Get ID before placing

                location = self.reorder.place_new(
                    session, entry.id, command.position, target_category
                )
                session.refresh(entry)

            self._log_action(
                "create_entry",
                entry_id=entry.id,
                category_id=location.scope,
                position=location.position
            )
            return Result.ok(entry)

        except (GroceryListError, SQLAlchemyError) as e:
            return self._handle_error("create_entry", e)

    def get_entry(self, entry_id: int) -> Result[GroceryEntry]:
        """
        Get a single entry.

        Args:
            entry_id: ID of the entry

        Returns:
            Result containing the entry or error
        """
        try:
            with self.transaction.transaction() as session:
                entry = self._require_entry(session, entry_id)
            return Result.ok(entry)
        except (GroceryListError, SQLAlchemyError) as e:
            return self._handle_error("get_entry", e)

    def list_entries(self, category_id: Optional[int] = None) -> Result[List[GroceryEntry]]:
        """
        Get entries in list order: by category position, then entry position.

        Args:
            category_id: Only return entries of this category (optional)

        Returns:
            Result containing the ordered entries
        """
        try:
            with self.transaction.transaction() as session:
                query = (
                    select(GroceryEntry)
                    .join(Category)
                    .order_by(Category.position, GroceryEntry.position)
                )
                if category_id is not None:
                    self._require_category(session, category_id)
                    query = query.where(GroceryEntry.category_id == category_id)

                entries = list(session.execute(query).scalars().all())
            return Result.ok(entries)
        except (GroceryListError, SQLAlchemyError) as e:
            return self._handle_error("list_entries", e)

    def update_entry(
        self,
        entry_id: int,
        description: Optional[str] = None,
        completed: Optional[bool] = None,
        quantity: Optional[str] = None,
        notes: Optional[str] = None,
        position: Optional[int] = None,
        category_id: Optional[int] = None
    ) -> Result[GroceryEntry]:
        """
        Update an entry's fields and, if asked, its place in the list.

        Field edits and the move are applied in one transaction.

        Args:
            entry_id: ID of the entry to update
            description: New description (optional)
            completed: Mark completed / not completed (optional)
            quantity: New quantity (optional)
            notes: New notes (optional)
            position: New position (optional; defaults to the front of
                the category when only the category changes)
            category_id: New category (optional)

        Returns:
            Result containing the updated entry or error
        """
        try:
            command = self._validate(
                UpdateEntryCommand,
                entry_id=entry_id,
                description=description,
                completed=completed,
                quantity=quantity,
                notes=notes,
                position=position,
                category_id=category_id
            )

            with self.transaction.transaction() as session:
                entry = self._require_entry(session, command.entry_id)

                if command.description is not None:
                    if command.quantity is None and command.notes is None:
                        parsed = parse_entry_input(command.description)
                        entry.description = parsed.description or command.description
                        if parsed.quantity:
                            entry.quantity = parsed.quantity
                        if parsed.notes:
                            entry.notes = parsed.notes
                    else:
                        entry.description = command.description

                if command.quantity is not None:
                    entry.quantity = command.quantity
                if command.notes is not None:
                    entry.notes = command.notes

                if command.completed is True and entry.completed_at is None:
                    entry.completed_at = self._get_now()
                elif command.completed is False:
                    entry.completed_at = None

                entry.updated_at = self._get_now()

                target_category = entry.category_id
                if command.category_id is not None:
                    self._require_category(session, command.category_id)
                    target_category = command.category_id

                changes_category = target_category != entry.category_id
                moved = command.position is not None or changes_category
                if moved:
                    new_position = command.position or FIRST_POSITION
                    self.reorder.move_to_position(
                        session, entry.id, new_position, target_category
                    )

                session.flush()
                session.refresh(entry)

            self._log_action(
                "update_entry",
                entry_id=entry.id,
                moved=moved,
                category_id=entry.category_id,
                position=entry.position
            )
            return Result.ok(entry)

        except (GroceryListError, SQLAlchemyError) as e:
            return self._handle_error("update_entry", e)

    def delete_entry(self, entry_id: int) -> Result[bool]:
        """
        Delete an entry and close the gap it leaves in its category.

        Args:
            entry_id: ID of the entry to delete

        Returns:
            Result containing True or error
        """
        try:
            with self.transaction.transaction() as session:
                location = self.reorder.remove(session, entry_id)

            self._log_action(
                "delete_entry",
                entry_id=entry_id,
                category_id=location.scope,
                position=location.position
            )
            return Result.ok(True)

        except (GroceryListError, SQLAlchemyError) as e:
            return self._handle_error("delete_entry", e)

    def reorder_entry(
        self,
        entry_id: int,
        new_position: Optional[int] = None,
        new_category_id: Optional[int] = None
    ) -> Result[None]:
        """
        Move an entry within its category or into another one.

        Args:
            entry_id: ID of the entry to move
            new_position: Target position (default: front of the category)
            new_category_id: Target category (default: current category)

        Returns:
            Result with the new location in its metadata, or error
        """
        try:
            command = self._validate(
                ReorderEntryCommand,
                entry_id=entry_id,
                new_position=new_position,
                new_category_id=new_category_id
            )

            with self.transaction.transaction() as session:
                current = self.ledger.current_location(session, command.entry_id)

                target_category = current.scope
                if command.new_category_id is not None:
                    self._require_category(session, command.new_category_id)
                    target_category = command.new_category_id

                location = self.reorder.move_to_position(
                    session,
                    command.entry_id,
                    command.new_position or FIRST_POSITION,
                    target_category
                )

            self._log_action(
                "reorder_entry",
                entry_id=entry_id,
                category_id=location.scope,
                position=location.position
            )
            return Result.ok(None, category_id=location.scope, position=location.position)

        except (GroceryListError, SQLAlchemyError) as e:
            return self._handle_error("reorder_entry", e)

    def _require_entry(self, session: Session, entry_id: int) -> GroceryEntry:
        entry = session.get(GroceryEntry, entry_id)
        if not entry:
            raise NotFoundError(
                f"Entry {entry_id} not found",
                metadata={"entry_id": entry_id}
            )
        return entry

    def _require_category(self, session: Session, category_id: int) -> Category:
        category = session.get(Category, category_id)
        if not category:
            raise NotFoundError(
                f"Category {category_id} not found",
                metadata={"category_id": category_id}
            )
        return category

    def _category_for_description(self, session: Session, description: str) -> int:
        """Category most recently used for this exact description, else the default."""
        last_used = session.execute(
            select(GroceryEntry.category_id)
            .where(GroceryEntry.description == description)
            .order_by(GroceryEntry.updated_at.desc(), GroceryEntry.id.desc())
            .limit(1)
        ).scalar_one_or_none()
        if last_used is not None:
            return last_used

        default_id = session.execute(
            select(Category.id).where(Category.is_default == True)
        ).scalar_one_or_none()
        if default_id is None:
            raise NotFoundError(
                "Default category not found",
                suggestions=["Initialize the database with init_db()"]
            )
        return default_id
