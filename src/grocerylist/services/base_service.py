"""Base service class with common functionality."""
from typing import TypeVar, Generic, Optional, List
from datetime import datetime, UTC
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from grocerylist.errors import (
    GroceryListError,
    ConstraintViolationError,
    StoreUnavailableError,
    ValidationError,
)
from grocerylist.utils.logger import get_logger
from grocerylist.db.session import TransactionManager

# Generic type for service results
T = TypeVar('T')


class Result(BaseModel, Generic[T]):
    """Generic result type for service operations."""
    success: bool
    data: Optional[T] = None
    error: str = ""
    code: str = ""
    suggestions: List[str] = []
    metadata: dict = {}

    # Allow arbitrary types (like SQLAlchemy models)
    model_config = ConfigDict(arbitrary_types_allowed=True)

    @classmethod
    def ok(cls, data: T = None, **metadata) -> 'Result[T]':
        """Create a successful result."""
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def fail(
        cls,
        error: str,
        suggestions: Optional[List[str]] = None,
        code: str = "error",
        metadata: Optional[dict] = None
    ) -> 'Result[T]':
        """Create a failed result."""
        return cls(
            success=False,
            error=error or "Unknown error",
            code=code,
            suggestions=suggestions or [],
            metadata=metadata or {}
        )

    @classmethod
    def from_error(cls, error: GroceryListError) -> 'Result[T]':
        """Create a failed result from a GroceryListError."""
        return cls.fail(
            error.message,
            suggestions=error.suggestions,
            code=error.code,
            metadata=error.metadata
        )


class BaseService:
    """Base class for all services."""

    def __init__(self, session: Session):
        """
        Initialize the service.

        Args:
            session: Database session
        """
        self.session = session
        self.logger = get_logger(self.__class__.__name__)
        self.transaction = TransactionManager(session)

    def _log_action(
        self,
        action: str,
        status: str = "success",
        **kwargs
    ) -> None:
        """
        Log a service action.

        Args:
            action: Name of the action
            status: Status of the action
            **kwargs: Additional log data
        """
        self.logger.info(
            f"{action}: {status}",
            **kwargs
        )

    def _get_now(self) -> datetime:
        """Get current UTC datetime."""
        return datetime.now(UTC)

    def _validate(self, command_cls, **fields):
        """
        Build a command model, turning pydantic errors into ValidationError.

        Raises:
            ValidationError: If any field is invalid
        """
        try:
            return command_cls(**fields)
        except PydanticValidationError as e:
            messages = [
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
            raise ValidationError(
                "; ".join(messages),
                metadata={"fields": [err['loc'][0] for err in e.errors() if err['loc']]}
            ) from e

    def _handle_error(self, action: str, error: Exception) -> Result:
        """
        Convert an exception raised inside a transaction into a failed result.

        The transaction has already been rolled back by the time this runs.

        Args:
            action: Name of the failed action
            error: The exception

        Returns:
            Failed result describing the error
        """
        if isinstance(error, GroceryListError):
            self._log_action(action, status="failed", code=error.code, error=error.message)
            return Result.from_error(error)

        if isinstance(error, IntegrityError):
            self.logger.opt(exception=error).error("Constraint violated during {}", action)
            return Result.from_error(ConstraintViolationError(
                "The list could not be updated consistently",
                metadata={"action": action, "detail": str(error.orig)}
            ))

        if isinstance(error, SQLAlchemyError):
            self.logger.opt(exception=error).error("Store failure during {}", action)
            return Result.from_error(StoreUnavailableError(
                "The database is not available, try again",
                metadata={"action": action}
            ))

        raise error
