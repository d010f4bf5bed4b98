"""Prefix suggestions over past entry descriptions and category names."""
from typing import List, Tuple
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError

from grocerylist.config.settings import get_settings
from grocerylist.errors import GroceryListError
from grocerylist.models import GroceryEntry, Category
from .base_service import BaseService, Result


def split_quantity(query: str) -> Tuple[str, str]:
    """
    Split a leading quantity token off a query.

    The first whitespace-delimited token counts as a quantity when it
    starts with a digit; the rest of the tokens, joined by single
    spaces, is what gets matched. Without a quantity the query is
    matched as given.

    Returns:
        Tuple of (quantity, match text); quantity is "" when absent
    """
    tokens = query.split()
    if tokens and tokens[0][0].isdigit():
        return tokens[0], " ".join(tokens[1:])
    return "", query


class SuggestionService(BaseService):
    """Service for autocomplete suggestions."""

    def suggest(self, query: str) -> Result[List[str]]:
        """
        Suggest descriptions that start with the query (case-sensitive).

        A leading quantity such as ``2`` or ``3kg`` is stripped before
        matching. Every suggestion is the quantity, a space and the
        description, so without a quantity it starts with a space.

        Args:
            query: Text typed so far

        Returns:
            Result containing at most SUGGESTION_LIMIT suggestions
        """
        quantity, prefix = split_quantity(query)
        try:
            with self.transaction.transaction() as session:
                descriptions = session.execute(
                    select(GroceryEntry.description)
                    .where(
                        func.substr(GroceryEntry.description, 1, len(prefix)) == prefix,
                        GroceryEntry.description != ""
                    )
                    .distinct()
                    .order_by(GroceryEntry.description)
                    .limit(get_settings().SUGGESTION_LIMIT)
                ).scalars().all()

            suggestions = [f"{quantity} {description}" for description in descriptions]
            self.logger.debug("Suggestions found", query=query, count=len(suggestions))
            return Result.ok(suggestions)

        except (GroceryListError, SQLAlchemyError) as e:
            return self._handle_error("suggest", e)

    def suggest_categories(self, query: str) -> Result[List[str]]:
        """
        Suggest category names that start with the query (case-sensitive).

        Args:
            query: Text typed so far

        Returns:
            Result containing at most SUGGESTION_LIMIT category names
        """
        try:
            with self.transaction.transaction() as session:
                names = session.execute(
                    select(Category.name)
                    .where(func.substr(Category.name, 1, len(query)) == query)
                    .distinct()
                    .order_by(Category.name)
                    .limit(get_settings().SUGGESTION_LIMIT)
                ).scalars().all()
            return Result.ok(list(names))

        except (GroceryListError, SQLAlchemyError) as e:
            return self._handle_error("suggest_categories", e)
