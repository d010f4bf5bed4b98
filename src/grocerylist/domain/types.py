"""Domain types for grocerylist."""
from typing import NewType, Optional, Annotated
from pydantic import BaseModel, Field, field_validator

from grocerylist.config.settings import get_settings


# Strong types for IDs
EntryId = NewType('EntryId', int)
CategoryId = NewType('CategoryId', int)

Position = Annotated[int, Field(ge=1)]
RowId = Annotated[int, Field(ge=1)]


def _clean_text(value: str, field: str) -> str:
    """Strip a required text field and check its length."""
    text = value.strip()
    if not text:
        raise ValueError(f'{field} cannot be empty')
    limit = get_settings().MAX_DESCRIPTION_LENGTH
    if len(text) > limit:
        raise ValueError(f'{field} cannot be longer than {limit} characters')
    return text


# Command Models
class CreateEntryCommand(BaseModel):
    """Command for adding an entry to the list."""
    description: str
    quantity: Optional[str] = None
    notes: Optional[str] = None
    position: Optional[Position] = None
    category_id: Optional[RowId] = None

    @field_validator('description')
    @classmethod
    def description_not_empty(cls, v: str) -> str:
        return _clean_text(v, 'Description')


class UpdateEntryCommand(BaseModel):
    """Command for editing an entry. Omitted fields are left unchanged."""
    entry_id: RowId
    description: Optional[str] = None
    completed: Optional[bool] = None
    quantity: Optional[str] = None
    notes: Optional[str] = None
    position: Optional[Position] = None
    category_id: Optional[RowId] = None

    @field_validator('description')
    @classmethod
    def description_not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _clean_text(v, 'Description')

    @property
    def moves_entry(self) -> bool:
        """Whether the command touches position or category."""
        return self.position is not None or self.category_id is not None


class ReorderEntryCommand(BaseModel):
    """Command for moving an entry within or across categories."""
    entry_id: RowId
    new_position: Optional[Position] = None
    new_category_id: Optional[RowId] = None


class CreateCategoryCommand(BaseModel):
    """Command for adding a category."""
    name: str

    @field_validator('name')
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        return _clean_text(v, 'Name')


class UpdateCategoryCommand(BaseModel):
    """Command for renaming and/or moving a category."""
    category_id: RowId
    name: Optional[str] = None
    position: Optional[Position] = None

    @field_validator('name')
    @classmethod
    def name_not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _clean_text(v, 'Name')


class ReorderCategoryCommand(BaseModel):
    """Command for moving a category. No position means the end of the list."""
    category_id: RowId
    new_position: Optional[Position] = None
