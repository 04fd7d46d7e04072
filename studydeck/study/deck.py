"""Collection helpers for a deck snapshot.

Browse-and-edit operations used by the review UI: add, find, search,
edit, replace and remove items. Every helper is pure and returns a new
list; persisting the result is the caller's job (DeckStore.save)."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, List, Optional, Sequence

from studydeck.core.exceptions import ItemNotFoundError
from studydeck.study.models import StudyItem


def find_item(items: Iterable[StudyItem], item_id: str) -> Optional[StudyItem]:
    """Return the item with the given id, or None."""
    for item in items:
        if item.id == item_id:
            return item
    return None


def has_primary(items: Iterable[StudyItem], primary: str) -> bool:
    """Check whether an item with this primary form is already saved."""
    primary = primary.strip()
    return any(item.content.primary == primary for item in items)


def add_item(items: Sequence[StudyItem], item: StudyItem) -> List[StudyItem]:
    """Append an item. An existing item with the same id is replaced."""
    if find_item(items, item.id) is not None:
        return replace_item(items, item)
    return [*items, item]


def replace_item(items: Sequence[StudyItem], updated: StudyItem) -> List[StudyItem]:
    """Swap in the updated version of an item, matched by id.

    Raises:
        ItemNotFoundError: If no item has updated.id
    """
    if find_item(items, updated.id) is None:
        raise ItemNotFoundError(updated.id)
    return [updated if item.id == updated.id else item for item in items]


def remove_item(items: Sequence[StudyItem], item_id: str) -> List[StudyItem]:
    """Remove an item by id.

    Raises:
        ItemNotFoundError: If no item has item_id
    """
    if find_item(items, item_id) is None:
        raise ItemNotFoundError(item_id)
    return [item for item in items if item.id != item_id]


def update_meaning(
    items: Sequence[StudyItem], item_id: str, meaning: str
) -> List[StudyItem]:
    """Edit the meaning of one item. Scheduling state is untouched."""
    item = find_item(items, item_id)
    if item is None:
        raise ItemNotFoundError(item_id)
    edited = replace(item, content=replace(item.content, meaning=meaning.strip()))
    return replace_item(items, edited)


def search_items(items: Iterable[StudyItem], query: str) -> List[StudyItem]:
    """Filter items by a free-text query.

    Matches the primary form or reading as a substring, or the meaning
    case-insensitively. An empty query returns every item.
    """
    query = query.strip()
    if not query:
        return list(items)

    lowered = query.lower()
    return [
        item
        for item in items
        if query in item.content.primary
        or (item.content.reading and query in item.content.reading)
        or lowered in item.content.meaning.lower()
    ]


def filter_by_tag(items: Iterable[StudyItem], tag: str) -> List[StudyItem]:
    """Return items carrying the given tag."""
    return [item for item in items if tag in item.tags]
