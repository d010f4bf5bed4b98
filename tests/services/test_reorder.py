"""Tests for the reorder engine."""
import pytest
from sqlalchemy.exc import IntegrityError

from grocerylist.db.session import TransactionManager
from grocerylist.errors import InvalidPositionError, NotFoundError
from grocerylist.models import Category, GroceryEntry, UNPOSITIONED
from grocerylist.services.ledger import PositionLedger, Location
from grocerylist.services.reorder import ReorderEngine


@pytest.fixture
def entries():
    """Reorder engine over grocery entries."""
    return ReorderEngine(PositionLedger(GroceryEntry, "category_id"))


@pytest.fixture
def categories():
    """Reorder engine over categories."""
    return ReorderEngine(PositionLedger(Category))


@pytest.fixture
def transaction(session):
    """Transaction manager around the test session."""
    return TransactionManager(session)


@pytest.fixture
def long_list(make_category, make_entry) -> Category:
    """Category holding items A..F at positions 1..6."""
    category = make_category("Long")
    for description in "ABCDEF":
        make_entry(description, category)
    return category


def labels(contents, category_id):
    return "".join(description for _, description in contents(category_id))


def test_move_down_within_category(session, entries, transaction, long_list, contents, entry_id):
    """Test p < q: items between p+1 and q shift up by one slot."""
    with transaction.transaction():
        location = entries.move_to_position(session, entry_id("B"), 5, long_list.id)

    assert location == Location(scope=long_list.id, position=5)
    assert contents(long_list.id) == [
        (1, "A"), (2, "C"), (3, "D"), (4, "E"), (5, "B"), (6, "F")
    ]


def test_move_up_within_category(session, entries, transaction, long_list, contents, entry_id):
    """Test p > q: items between q and p-1 shift down by one slot."""
    with transaction.transaction():
        entries.move_to_position(session, entry_id("E"), 2, long_list.id)

    assert labels(contents, long_list.id) == "AEBCDF"
    assert [position for position, _ in contents(long_list.id)] == [1, 2, 3, 4, 5, 6]


def test_move_to_ends(session, entries, transaction, long_list, contents, entry_id):
    """Test moving the last item first and the first item last."""
    with transaction.transaction():
        entries.move_to_position(session, entry_id("F"), 1, long_list.id)
    assert labels(contents, long_list.id) == "FABCDE"

    with transaction.transaction():
        entries.move_to_position(session, entry_id("F"), 6, long_list.id)
    assert labels(contents, long_list.id) == "ABCDEF"


def test_move_to_own_location_is_noop(session, entries, transaction, long_list, contents, entry_id):
    """Test that moving an item onto its current slot changes nothing."""
    before = contents(long_list.id)

    with transaction.transaction():
        entries.move_to_position(session, entry_id("C"), 3, long_list.id)

    assert contents(long_list.id) == before


def test_move_across_categories(
    session, entries, transaction, dairy, cheese_shop, contents, entry_id,
    assert_ledger_consistent
):
    """Test that the old gap closes and exactly one new gap opens."""
    with transaction.transaction():
        entries.move_to_position(session, entry_id("Eggs"), 2, cheese_shop.id)

    assert contents(dairy.id) == [(1, "Milk"), (2, "Bread")]
    assert contents(cheese_shop.id) == [(1, "Cheese"), (2, "Eggs")]
    assert session.get(GroceryEntry, entry_id("Eggs")).category_id == cheese_shop.id
    assert_ledger_consistent()


def test_move_into_empty_category(
    session, entries, transaction, dairy, make_category, contents, entry_id
):
    """Test moving an item into a category with no entries."""
    empty = make_category("Empty")

    with transaction.transaction():
        entries.move_to_position(session, entry_id("Milk"), 1, empty.id)

    assert contents(empty.id) == [(1, "Milk")]
    assert contents(dairy.id) == [(1, "Eggs"), (2, "Bread")]


def test_append_within_category(session, entries, transaction, dairy, contents, entry_id):
    """Test that no position means the end of the current category."""
    with transaction.transaction():
        location = entries.move_to_position(session, entry_id("Milk"), None, dairy.id)

    assert location.position == 3
    assert contents(dairy.id) == [(1, "Eggs"), (2, "Bread"), (3, "Milk")]


def test_append_to_other_category(
    session, entries, transaction, dairy, cheese_shop, contents, entry_id
):
    """Test that no position means one past the end of the new category."""
    with transaction.transaction():
        location = entries.move_to_position(session, entry_id("Milk"), None, cheese_shop.id)

    assert location.position == 2
    assert contents(cheese_shop.id) == [(1, "Cheese"), (2, "Milk")]


@pytest.mark.parametrize("position", [0, 4, -1])
def test_out_of_range_within_category(
    session, entries, transaction, dairy, contents, entry_id, position
):
    """Test that a same-category move only accepts 1..N."""
    before = contents(dairy.id)

    with pytest.raises(InvalidPositionError):
        with transaction.transaction():
            entries.move_to_position(session, entry_id("Milk"), position, dairy.id)

    assert contents(dairy.id) == before


def test_out_of_range_across_categories(
    session, entries, transaction, dairy, cheese_shop, contents, entry_id
):
    """Test that a cross-category move accepts 1..N+1 of the target."""
    with pytest.raises(InvalidPositionError):
        with transaction.transaction():
            entries.move_to_position(session, entry_id("Milk"), 3, cheese_shop.id)

    with transaction.transaction():
        entries.move_to_position(session, entry_id("Milk"), 2, cheese_shop.id)
    assert contents(cheese_shop.id) == [(1, "Cheese"), (2, "Milk")]


def test_move_unknown_item(session, entries, transaction, dairy):
    """Test that an unknown id raises NotFoundError."""
    with pytest.raises(NotFoundError):
        with transaction.transaction():
            entries.move_to_position(session, 999, 1, dairy.id)


def test_place_new_item(session, entries, transaction, dairy, contents):
    """Test placing a freshly inserted item in the middle of a category."""
    with transaction.transaction():
        entry = GroceryEntry(description="Butter", category_id=dairy.id, position=UNPOSITIONED)
        session.add(entry)
        session.flush()
        entries.place_new(session, entry.id, 2, dairy.id)

    assert contents(dairy.id) == [(1, "Milk"), (2, "Butter"), (3, "Eggs"), (4, "Bread")]


def test_place_new_rejects_positioned_item(session, entries, transaction, dairy, entry_id):
    """Test that place_new only accepts unpositioned items."""
    with pytest.raises(InvalidPositionError):
        with transaction.transaction():
            entries.place_new(session, entry_id("Milk"), 1, dairy.id)


def test_remove_closes_gap(session, entries, transaction, long_list, contents, entry_id):
    """Test that removing an item shifts later items up."""
    removed_id = entry_id("C")

    with transaction.transaction():
        old = entries.remove(session, removed_id)

    assert old == Location(scope=long_list.id, position=3)
    assert session.get(GroceryEntry, removed_id) is None
    assert contents(long_list.id) == [(1, "A"), (2, "B"), (3, "D"), (4, "E"), (5, "F")]


def test_append_scope(
    session, entries, transaction, dairy, cheese_shop, contents
):
    """Test moving a whole category to the end of another."""
    with transaction.transaction():
        moved = entries.append_scope(session, dairy.id, cheese_shop.id)

    assert moved == 3
    assert contents(dairy.id) == []
    assert contents(cheese_shop.id) == [(1, "Cheese"), (2, "Milk"), (3, "Eggs"), (4, "Bread")]


def test_append_scope_needs_scoped_table(session, categories, transaction, default_category):
    """Test that the global scope cannot be appended to itself."""
    with pytest.raises(ValueError):
        with transaction.transaction():
            categories.append_scope(session, 1, 1)


def test_reorder_categories_globally(
    session, categories, transaction, make_category, category_order
):
    """Test that categories use the same algorithm over one scope."""
    produce = make_category("Produce")
    bakery = make_category("Bakery")

    with transaction.transaction():
        categories.move_to_position(session, bakery.id, 1)

    assert category_order() == [(1, "Bakery"), (2, "Uncategorized"), (3, "Produce")]

    with transaction.transaction():
        categories.move_to_position(session, produce.id, None)

    assert category_order() == [(1, "Bakery"), (2, "Uncategorized"), (3, "Produce")]


def test_shifted_neighbours_keep_updated_at(session, entries, transaction, dairy, entry_id):
    """Test that only the moved item is stamped."""
    milk_before = session.get(GroceryEntry, entry_id("Milk")).updated_at
    bread_before = session.get(GroceryEntry, entry_id("Bread")).updated_at

    with transaction.transaction():
        entries.move_to_position(session, entry_id("Bread"), 1, dairy.id)

    assert session.get(GroceryEntry, entry_id("Milk")).updated_at == milk_before
    assert session.get(GroceryEntry, entry_id("Bread")).updated_at > bread_before


def test_failure_mid_move_rolls_back(
    session, entries, transaction, dairy, contents, entry_id, monkeypatch
):
    """Test that an error after the old gap closed leaves nothing behind."""
    before = contents(dairy.id)

    def fail(*args, **kwargs):
        raise RuntimeError("lost connection")

    monkeypatch.setattr(entries, "_open_gap", fail)

    with pytest.raises(RuntimeError):
        with transaction.transaction():
            entries.move_to_position(session, entry_id("Milk"), 3, dairy.id)

    assert contents(dairy.id) == before


def test_landing_on_occupied_slot_is_rejected_by_store(
    session, entries, transaction, dairy, contents, entry_id, monkeypatch
):
    """Test that skipping the gap opening trips the unique constraint."""
    before = contents(dairy.id)
    monkeypatch.setattr(entries, "_open_gap", lambda *args, **kwargs: None)

    with pytest.raises(IntegrityError):
        with transaction.transaction():
            entries.move_to_position(session, entry_id("Bread"), 1, dairy.id)

    assert contents(dairy.id) == before


@pytest.fixture
def small_engine():
    """Entry engine whose parking area starts at 4, so a category holds at most 3."""
    return ReorderEngine(PositionLedger(GroceryEntry, "category_id"), parking_offset=4)


def test_small_parking_offset_allows_moves_in_full_list(
    session, small_engine, transaction, dairy, contents, entry_id
):
    """Test that a full category can still be reordered."""
    with transaction.transaction():
        small_engine.move_to_position(session, entry_id("Bread"), 1, dairy.id)

    assert contents(dairy.id) == [(1, "Bread"), (2, "Milk"), (3, "Eggs")]


def test_small_parking_offset_limits_list_size(
    session, small_engine, transaction, dairy, cheese_shop, contents, entry_id
):
    """Test that a full category rejects new items at any position."""
    before = contents(dairy.id)

    with pytest.raises(InvalidPositionError):
        with transaction.transaction():
            small_engine.move_to_position(session, entry_id("Cheese"), 1, dairy.id)

    with pytest.raises(InvalidPositionError):
        with transaction.transaction():
            entry = GroceryEntry(description="Butter", category_id=dairy.id, position=UNPOSITIONED)
            session.add(entry)
            session.flush()
            small_engine.place_new(session, entry.id, 1, dairy.id)

    assert contents(dairy.id) == before
    assert contents(cheese_shop.id) == [(1, "Cheese")]


def test_inserting_at_front_until_full(
    session, small_engine, transaction, make_category, make_entry, contents,
    assert_ledger_consistent
):
    """Test front inserts up to the limit never reach the parking area."""
    category = make_category("Small")
    for description in "AB":
        make_entry(description, category)

    def insert_front(description):
        with transaction.transaction():
            entry = GroceryEntry(description=description, category_id=category.id,
                                 position=UNPOSITIONED)
            session.add(entry)
            session.flush()
            small_engine.place_new(session, entry.id, 1, category.id)

    insert_front("C")
    assert contents(category.id) == [(1, "C"), (2, "A"), (3, "B")]

    with pytest.raises(InvalidPositionError):
        insert_front("D")

    assert contents(category.id) == [(1, "C"), (2, "A"), (3, "B")]
    assert_ledger_consistent()
