"""Category management service."""
from typing import Optional, List
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from grocerylist.errors import GroceryListError, NotFoundError, DefaultCategoryError
from grocerylist.models import Category, GroceryEntry, UNPOSITIONED
from grocerylist.domain.types import (
    CreateCategoryCommand,
    UpdateCategoryCommand,
    ReorderCategoryCommand,
)
from .base_service import BaseService, Result
from .ledger import PositionLedger
from .reorder import ReorderEngine


class CategoryService(BaseService):
    """Service for managing categories."""

    def __init__(self, session: Session):
        super().__init__(session)
        self.ledger = PositionLedger(Category)
        self.reorder = ReorderEngine(self.ledger)
        self.entry_reorder = ReorderEngine(PositionLedger(GroceryEntry, "category_id"))

    def create_category(self, name: str) -> Result[Category]:
        """
        Create a category at the end of the category list.

        Args:
            name: Name of the category

        Returns:
            Result containing the created category or error
        """
        try:
            command = self._validate(CreateCategoryCommand, name=name)

            with self.transaction.transaction() as session:
                category = Category(name=command.name, position=UNPOSITIONED)
                session.add(category)
                session.flush()  # Get ID before placing

                location = self.reorder.place_new(session, category.id, None)
                session.refresh(category)

            self._log_action(
                "create_category",
                category_id=category.id,
                position=location.position
            )
            return Result.ok(category)

        except (GroceryListError, SQLAlchemyError) as e:
            return self._handle_error("create_category", e)

    def get_category(self, category_id: int) -> Result[Category]:
        """
        Get a single category.

        Args:
            category_id: ID of the category

        Returns:
            Result containing the category or error
        """
        try:
            with self.transaction.transaction() as session:
                category = self._require_category(session, category_id)
            return Result.ok(category)
        except (GroceryListError, SQLAlchemyError) as e:
            return self._handle_error("get_category", e)

    def list_categories(self) -> Result[List[Category]]:
        """Get all categories ordered by position."""
        try:
            with self.transaction.transaction() as session:
                categories = list(
                    session.execute(
                        select(Category).order_by(Category.position)
                    ).scalars().all()
                )
            return Result.ok(categories)
        except (GroceryListError, SQLAlchemyError) as e:
            return self._handle_error("list_categories", e)

    def update_category(
        self,
        category_id: int,
        name: Optional[str] = None,
        position: Optional[int] = None
    ) -> Result[Category]:
        """
        Rename a category and/or move it, in one transaction.

        Args:
            category_id: ID of the category
            name: New name (optional)
            position: New position (optional)

        Returns:
            Result containing the updated category or error
        """
        try:
            command = self._validate(
                UpdateCategoryCommand,
                category_id=category_id,
                name=name,
                position=position
            )

            with self.transaction.transaction() as session:
                category = self._require_category(session, command.category_id)

                if command.name is not None:
                    category.name = command.name
                category.updated_at = self._get_now()

                if command.position is not None:
                    self.reorder.move_to_position(session, category.id, command.position)

                session.flush()
                session.refresh(category)

            self._log_action(
                "update_category",
                category_id=category.id,
                name=category.name,
                position=category.position
            )
            return Result.ok(category)

        except (GroceryListError, SQLAlchemyError) as e:
            return self._handle_error("update_category", e)

    def delete_category(self, category_id: int) -> Result[bool]:
        """
        Delete a category.

        Its entries move to the end of the default category, keeping
        their order. The default category itself cannot be deleted.

        Args:
            category_id: ID of the category to delete

        Returns:
            Result containing True or error
        """
        try:
            with self.transaction.transaction() as session:
                category = self._require_category(session, category_id)
                if category.is_default:
                    raise DefaultCategoryError(
                        "The default category cannot be deleted",
                        metadata={"category_id": category_id}
                    )

                default = self._default_category(session)
                reassigned = self.entry_reorder.append_scope(session, category_id, default.id)
                location = self.reorder.remove(session, category_id)

            self._log_action(
                "delete_category",
                category_id=category_id,
                position=location.position,
                reassigned_entries=reassigned
            )
            return Result.ok(True, reassigned_entries=reassigned)

        except (GroceryListError, SQLAlchemyError) as e:
            return self._handle_error("delete_category", e)

    def reorder_category(
        self,
        category_id: int,
        new_position: Optional[int] = None
    ) -> Result[None]:
        """
        Move a category in the category list.

        Args:
            category_id: ID of the category
            new_position: Target position (default: end of the list)

        Returns:
            Result with the new position in its metadata, or error
        """
        try:
            command = self._validate(
                ReorderCategoryCommand,
                category_id=category_id,
                new_position=new_position
            )

            with self.transaction.transaction() as session:
                location = self.reorder.move_to_position(
                    session, command.category_id, command.new_position
                )

            self._log_action(
                "reorder_category",
                category_id=category_id,
                position=location.position
            )
            return Result.ok(None, position=location.position)

        except (GroceryListError, SQLAlchemyError) as e:
            return self._handle_error("reorder_category", e)

    def _require_category(self, session: Session, category_id: int) -> Category:
        category = session.get(Category, category_id)
        if not category:
            raise NotFoundError(
                f"Category {category_id} not found",
                metadata={"category_id": category_id}
            )
        return category

    def _default_category(self, session: Session) -> Category:
        default = session.execute(
            select(Category).where(Category.is_default == True)
        ).scalar_one_or_none()
        if default is None:
            raise NotFoundError(
                "Default category not found",
                suggestions=["Initialize the database with init_db()"]
            )
        return default
