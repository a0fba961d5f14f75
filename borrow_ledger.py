"""
borrow_ledger.py

Borrow/return bookkeeping. The ledger keeps an append-only history of borrow records
per item and a borrow state per (borrower, item) pair that points at the record of the
borrower's current loan.
"""

from __future__ import annotations
import datetime
import logging
from dataclasses import dataclass, replace
from typing import Dict, Hashable, List, Optional, Tuple

from catalog import Item
from lending_errors import AlreadyBorrowed, InvalidArgument, NotBorrowed, Unavailable

logger = logging.getLogger("BorrowLedger")


@dataclass
class BorrowRecord:
    """One borrow of one copy. `return_time` stays None until the copy comes back."""

    borrow_start_time: datetime.datetime
    borrower_identity: Hashable
    return_time: Optional[datetime.datetime] = None

    @property
    def is_returned(self) -> bool:
        return self.return_time is not None


@dataclass
class BorrowState:
    is_currently_borrowed: bool = False
    active_record_index: int = 0


class BorrowLedger:
    """
    Per-item borrow history and per-(borrower, item) borrow state.

    State for a pair moves Available -> Borrowed on borrow and Borrowed -> Available
    on return. A pair with no entry is Available. Entries are flipped rather than
    deleted on return, so the same borrower can borrow the item again later.
    """

    def __init__(self):
        self._history: Dict[int, List[BorrowRecord]] = {}
        self._states: Dict[Tuple[Hashable, int], BorrowState] = {}

    # ---------------- Transitions ----------------
    def borrow(self, item: Item, borrower_identity: Hashable, now: datetime.datetime) -> BorrowRecord:
        """
        Lend one copy of `item` to `borrower_identity`.

        Both preconditions are checked before anything is written.

        Raises:
            Unavailable: no copies left.
            AlreadyBorrowed: the borrower already holds a copy of this item.
        """
        if item.available_copies_count == 0:
            logger.debug("No copies of item %d left for %s", item.id, borrower_identity)
            raise Unavailable("There are no available copies for that item.")
        key = (borrower_identity, item.id)
        state = self._states.get(key)
        if state is not None and state.is_currently_borrowed:
            logger.debug("%s already holds item %d", borrower_identity, item.id)
            raise AlreadyBorrowed("You can borrow an item only once.")

        item.available_copies_count -= 1
        item.borrowed_copies_count += 1
        history = self._history.setdefault(item.id, [])
        record = BorrowRecord(borrow_start_time=now, borrower_identity=borrower_identity)
        history.append(record)
        self._states[key] = BorrowState(is_currently_borrowed=True, active_record_index=len(history) - 1)
        logger.info("Item %d borrowed by %s", item.id, borrower_identity)
        return record

    def return_item(self, item: Item, borrower_identity: Hashable, now: datetime.datetime) -> BorrowRecord:
        """
        Take back the copy of `item` held by `borrower_identity`.

        The active history record is closed in place; no record is appended.

        Raises:
            NotBorrowed: the borrower does not currently hold a copy.
        """
        key = (borrower_identity, item.id)
        state = self._states.get(key)
        if state is None or not state.is_currently_borrowed:
            logger.debug("%s has no open borrow of item %d", borrower_identity, item.id)
            raise NotBorrowed("You haven't borrowed that item.")

        record = self._history[item.id][state.active_record_index]
        item.available_copies_count += 1
        item.borrowed_copies_count -= 1
        record.return_time = now
        state.is_currently_borrowed = False
        logger.info("Item %d returned by %s", item.id, borrower_identity)
        return record

    # ---------------- Queries ----------------
    def get_state(self, borrower_identity: Hashable, item_id: int) -> BorrowState:
        """Return a copy of the pair's state, or the Available default if it has none."""
        state = self._states.get((borrower_identity, item_id))
        if state is None:
            return BorrowState()
        return replace(state)

    def get_history(self, item_id: int) -> List[BorrowRecord]:
        """Return copies of the item's records in borrow order; empty for unknown ids."""
        return [replace(r) for r in self._history.get(item_id, [])]

    def active_borrows(self) -> Dict[Hashable, List[int]]:
        """Map each borrower currently holding copies to the ids of those items."""
        holders: Dict[Hashable, List[int]] = {}
        for (borrower, item_id), state in self._states.items():
            if state.is_currently_borrowed:
                holders.setdefault(borrower, []).append(item_id)
        for item_ids in holders.values():
            item_ids.sort()
        return holders

    def count_open(self, item_id: int) -> int:
        """Number of records for the item that have not been returned yet."""
        return sum(1 for r in self._history.get(item_id, []) if not r.is_returned)

    def history_lengths(self) -> Dict[int, int]:
        """Map each item id with history to its number of borrow records."""
        return {item_id: len(records) for item_id, records in self._history.items()}

    # ---------------- Snapshot support ----------------
    def restore_record(self, item_id: int, record: BorrowRecord) -> None:
        """
        Append a record loaded from a snapshot and rebuild the pair's state from it.

        Records must arrive in their original order. An open record for a pair that
        already has an open record is rejected.
        """
        key = (record.borrower_identity, item_id)
        state = self._states.get(key)
        if state is not None and state.is_currently_borrowed:
            raise InvalidArgument(
                f"Snapshot history for item {item_id} has a second open borrow by {record.borrower_identity}.")
        history = self._history.setdefault(item_id, [])
        history.append(record)
        self._states[key] = BorrowState(is_currently_borrowed=not record.is_returned,
                                        active_record_index=len(history) - 1)
