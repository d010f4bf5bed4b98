"""Error types raised by the ledger, reorder engine and services."""
from typing import Optional, List, Dict, Any


class GroceryListError(Exception):
    """Base class for grocery list errors."""

    code = "error"

    def __init__(
        self,
        message: str,
        suggestions: Optional[List[str]] = None,
        metadata: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.suggestions = suggestions or []
        self.metadata = metadata or {}
        super().__init__(message)


class NotFoundError(GroceryListError):
    """Referenced entry or category does not exist."""
    code = "not_found"


class InvalidPositionError(GroceryListError):
    """Requested position lies outside the scope's valid range."""
    code = "invalid_position"


class DefaultCategoryError(GroceryListError):
    """Operation is not allowed on the default category."""
    code = "default_category"


class ValidationError(GroceryListError):
    """Command arguments failed validation."""
    code = "invalid_input"


class ConstraintViolationError(GroceryListError):
    """The store rejected a write because of a constraint.

    Reorders are built so that this never happens; seeing it means the
    ordering logic is broken, so the operation is not retried.
    """
    code = "constraint_violation"


class StoreUnavailableError(GroceryListError):
    """Connection or transaction failure. Safe to retry the whole operation."""
    code = "store_unavailable"

    def __init__(self, message: str, **kwargs):
        super().__init__(message, **kwargs)
        self.metadata.setdefault("retryable", True)
