"""Test configuration and fixtures for grocerylist."""
import pytest
from sqlalchemy import select
from sqlalchemy.pool import StaticPool

from grocerylist.db.init_db import seed_default_category
from grocerylist.db.session import create_store_engine, make_session_factory
from grocerylist.models import Base, Category, GroceryEntry
from grocerylist.services.ledger import PositionLedger
from grocerylist.services.entry_service import EntryService
from grocerylist.services.category_service import CategoryService
from grocerylist.services.suggestion_service import SuggestionService


@pytest.fixture
def engine():
    """Create a fresh in-memory database engine for each test."""
    # One shared connection so every session sees the same database
    test_engine = create_store_engine(
        "sqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def tables(engine):
    """Create all database tables."""
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture
def session(engine, tables):
    """Create a new database session for a test."""
    session = make_session_factory(engine)()
    yield session
    session.close()


@pytest.fixture
def default_category(session) -> Category:
    """Seed the permanent default category."""
    return seed_default_category(session)


@pytest.fixture
def entry_service(session, default_category):
    """Create an entry service instance."""
    return EntryService(session)


@pytest.fixture
def category_service(session, default_category):
    """Create a category service instance."""
    return CategoryService(session)


@pytest.fixture
def suggestion_service(session, default_category):
    """Create a suggestion service instance."""
    return SuggestionService(session)


@pytest.fixture
def make_category(category_service):
    """Factory creating a category at the end of the category list."""
    def _make(name: str) -> Category:
        result = category_service.create_category(name)
        assert result.success, result.error
        return result.data
    return _make


@pytest.fixture
def make_entry(entry_service):
    """Factory appending an entry to a category, skipping input parsing."""
    def _make(description: str, category: Category, **kwargs) -> GroceryEntry:
        kwargs.setdefault("quantity", "")
        result = entry_service.create_entry(description, category_id=category.id, **kwargs)
        assert result.success, result.error
        return result.data
    return _make


@pytest.fixture
def contents(session):
    """Read a category back as [(position, description), ...]."""
    def _contents(category_id: int):
        rows = session.execute(
            select(GroceryEntry.position, GroceryEntry.description)
            .where(GroceryEntry.category_id == category_id)
            .order_by(GroceryEntry.position)
        ).all()
        return [tuple(row) for row in rows]
    return _contents


@pytest.fixture
def category_order(session):
    """Read the category list back as [(position, name), ...]."""
    def _order():
        rows = session.execute(
            select(Category.position, Category.name).order_by(Category.position)
        ).all()
        return [tuple(row) for row in rows]
    return _order


@pytest.fixture
def assert_ledger_consistent(session):
    """Check that every scope holds exactly positions 1..N."""
    entries = PositionLedger(GroceryEntry, "category_id")
    categories = PositionLedger(Category)

    def _check():
        for category_id in session.execute(select(Category.id)).scalars().all():
            assert entries.is_contiguous(session, category_id), (
                f"category {category_id}: {entries.positions(session, category_id)}"
            )
        assert categories.is_contiguous(session), categories.positions(session)
    return _check


@pytest.fixture
def dairy(make_category, make_entry) -> Category:
    """Category holding [1: Milk, 2: Eggs, 3: Bread]."""
    category = make_category("Dairy")
    for description in ("Milk", "Eggs", "Bread"):
        make_entry(description, category)
    return category


@pytest.fixture
def cheese_shop(make_category, make_entry) -> Category:
    """Category holding [1: Cheese]."""
    category = make_category("Cheese shop")
    make_entry("Cheese", category)
    return category


@pytest.fixture
def entry_id(session):
    """Look up an entry id by description."""
    def _lookup(description: str) -> int:
        return session.execute(
            select(GroceryEntry.id).where(GroceryEntry.description == description)
        ).scalar_one()
    return _lookup
