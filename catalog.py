"""
catalog.py

The catalog owns every registered item. Items are stored in registration order, so an
item's id is also its position, and a title index gives direct lookup by title.
"""

from __future__ import annotations
import logging
import numbers
from dataclasses import dataclass
from typing import Dict, List

import title_matcher
from lending_errors import AlreadyExists, InvalidArgument, NotFound

logger = logging.getLogger("Catalog")


def _is_integer(value) -> bool:
    """True for ints and numpy integers; bools are not counts or ids."""
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


@dataclass
class Item:
    """A catalog entry with a title and a fixed number of copies."""

    id: int
    title: str
    available_copies_count: int
    borrowed_copies_count: int = 0
    exists: bool = True

    @property
    def total_copies_count(self) -> int:
        return self.available_copies_count + self.borrowed_copies_count


class Catalog:
    """
    Catalog of items indexed by numeric id and by title.

    Items are never removed. Titles are indexed once on registration and never change,
    so the title index always agrees with the stored items.
    """

    def __init__(self):
        self._items: List[Item] = []
        self._title_index: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._items)

    # ---------------- Registration ----------------
    def register(self, title: str, copies_count: int) -> Item:
        """
        Register a new item and return it.

        Args:
            title: non-empty title, unique across the catalog (case-sensitive).
            copies_count: number of copies, must be a positive integer.

        Raises:
            InvalidArgument: empty title or non-positive copy count.
            AlreadyExists: the title is already registered.
        """
        if title_matcher.is_empty(title):
            raise InvalidArgument("Missing value for 'title'.")
        if not _is_integer(copies_count) or copies_count <= 0:
            raise InvalidArgument("Value for 'copiesCount' must be greater than 0.")
        copies_count = int(copies_count)
        if self._lookup_title(title) is not None:
            logger.debug("Attempt to register existing title: %s", title)
            raise AlreadyExists("Item already exists.")

        item = Item(id=len(self._items), title=title, available_copies_count=copies_count)
        self._items.append(item)
        self._title_index[title] = item.id
        logger.info("Registered item %d (%s) with %d copies", item.id, title, copies_count)
        return item

    def restore(self, item: Item) -> Item:
        """
        Re-insert an item loaded from a snapshot.

        The item's id must be the next sequential id and its title must be new.
        """
        if item.id != len(self._items):
            raise InvalidArgument(f"Snapshot item id {item.id} out of sequence (expected {len(self._items)}).")
        if title_matcher.is_empty(item.title):
            raise InvalidArgument("Missing value for 'title'.")
        if self._lookup_title(item.title) is not None:
            raise AlreadyExists("Item already exists.")
        if item.available_copies_count < 0 or item.borrowed_copies_count < 0 or item.total_copies_count <= 0:
            raise InvalidArgument(f"Snapshot item {item.id} has invalid copy counts.")
        item.exists = True
        self._items.append(item)
        self._title_index[item.title] = item.id
        return item

    # ---------------- Lookups ----------------
    def _lookup_title(self, title: str):
        item_id = self._title_index.get(title)
        if item_id is None:
            return None
        if not title_matcher.equals(self._items[item_id].title, title):
            return None
        return item_id

    def get_by_id(self, item_id: int) -> Item:
        """
        Fetch an item by id.

        The returned object is the live catalog entry; borrow/return transitions
        mutate its counts in place.
        """
        if not _is_integer(item_id):
            raise NotFound(f"Item not found: {item_id!r}")
        item_id = int(item_id)
        if item_id < 0 or item_id >= len(self._items) or not self._items[item_id].exists:
            raise NotFound(f"Item not found: {item_id}")
        return self._items[item_id]

    def get_by_title(self, title: str) -> Item:
        """Fetch an item by its exact title."""
        if title_matcher.is_empty(title):
            raise InvalidArgument("Missing value for 'title'.")
        item_id = self._lookup_title(title)
        if item_id is None:
            raise NotFound(f"Item not found: {title}")
        return self._items[item_id]

    def list_all(self) -> List[Item]:
        """Return all items in registration order."""
        return list(self._items)

    def search(self, query: str) -> List[Item]:
        """
        Search items by title using a case-insensitive substring match.

        Returns an empty list for an empty query.
        """
        q = (query or "").strip().lower()
        if q == "":
            return []
        return [item for item in self._items if q in item.title.lower()]
