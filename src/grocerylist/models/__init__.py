"""Models package for grocerylist."""
from .base import Base, UNPOSITIONED, FIRST_POSITION
from .category import Category
from .entry import GroceryEntry

__all__ = ['Base', 'Category', 'GroceryEntry', 'UNPOSITIONED', 'FIRST_POSITION']
