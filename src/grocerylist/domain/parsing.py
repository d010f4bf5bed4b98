"""Parsing of free-text entry lines such as ``2kg flour - organic``."""
import re
from dataclasses import dataclass


QUANTITY_PATTERN = re.compile(r"^(\d+[a-z]*)\s+(.+)$")


@dataclass(frozen=True)
class ParsedEntry:
    """Quantity, description and notes split out of one input line."""
    quantity: str
    description: str
    notes: str


def _split_notes(text: str) -> tuple[str, str]:
    """Split ``desc - notes`` or ``desc (notes)`` into its two parts."""
    dash = text.find(" - ")
    if dash != -1:
        return text[:dash].strip(), text[dash + 3:].strip()

    paren_start = text.find(" (")
    if paren_start != -1:
        paren_end = text.rfind(")")
        if paren_end > paren_start:
            return text[:paren_start].strip(), text[paren_start + 2:paren_end].strip()

    return text.strip(), ""


def parse_entry_input(text: str) -> ParsedEntry:
    """
    Parse a raw entry line.

    A leading number, optionally followed by a lowercase unit (``2``,
    ``12oz``), is taken as the quantity. Notes follow `` - `` or sit in
    parentheses after the description.

    Args:
        text: Raw input line

    Returns:
        The parsed parts; missing parts are empty strings
    """
    text = text.strip()
    match = QUANTITY_PATTERN.match(text)
    if match:
        quantity, rest = match.group(1), match.group(2)
    else:
        quantity, rest = "", text

    description, notes = _split_notes(rest)
    return ParsedEntry(quantity=quantity, description=description, notes=notes)
