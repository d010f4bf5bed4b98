"""Tests for entry input parsing."""
import pytest

from grocerylist.domain.parsing import parse_entry_input, ParsedEntry


@pytest.mark.parametrize("text,expected", [
    ("Milk", ParsedEntry("", "Milk", "")),
    ("2 Milk", ParsedEntry("2", "Milk", "")),
    ("2kg flour - organic", ParsedEntry("2kg", "flour", "organic")),
    ("12oz coffee (dark roast)", ParsedEntry("12oz", "coffee", "dark roast")),
    ("Apples - green - sour", ParsedEntry("", "Apples", "green - sour")),
    ("  3 eggs  ", ParsedEntry("3", "eggs", "")),
])
def test_parse_entry_input(text, expected):
    assert parse_entry_input(text) == expected


def test_quantity_needs_following_text():
    """Test that a lone number is kept as the description."""
    assert parse_entry_input("42") == ParsedEntry("", "42", "")


def test_uppercase_unit_is_not_quantity():
    """Test that only lowercase units are part of the quantity."""
    parsed = parse_entry_input("2KG flour")
    assert parsed.quantity == ""
    assert parsed.description == "2KG flour"


def test_unclosed_parenthesis_is_description():
    parsed = parse_entry_input("bread (sliced")
    assert parsed.description == "bread (sliced"
    assert parsed.notes == ""
