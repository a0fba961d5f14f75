"""
lending_registry.py

LendingRegistry ties the catalog and the borrow ledger together. It resolves items by
id or title, runs borrow/return transitions, checks administrator rights for
registration and reports every successful change to a notification sink.

All mutations and reads go through one re-entrant lock, so a mutation (including its
notification) completes before the next one starts and readers never see a
half-applied transition.
"""

from __future__ import annotations
import datetime
import logging
import numbers
import threading
from dataclasses import replace
from typing import Callable, Dict, Hashable, List, Optional

import pandas as pd

from borrow_ledger import BorrowLedger, BorrowRecord, BorrowState
from catalog import Catalog, Item
from lending_errors import InvalidArgument, Unauthorized
from notifications import (ItemBorrowed, ItemRegistered, ItemReturned, LoggingSink,
                           Notification, NotificationSink)

# Configuration
DEFAULT_ADMINISTRATOR = "admin"

ITEM_REPORT_COLUMNS = ["Item ID", "Title", "Available", "Borrowed", "Total"]
HISTORY_REPORT_COLUMNS = ["Item ID", "Title", "Borrower", "Borrowed At", "Returned At"]

logger = logging.getLogger("LendingRegistry")


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class OwnerAuthorizer:
    """Single-owner access check: only the administrator identity is authorized."""

    def __init__(self, owner: Hashable):
        self.owner = owner

    def is_authorized(self, caller: Hashable) -> bool:
        return caller is not None and caller == self.owner


class LendingRegistry:
    """
    Lending registry over an in-memory catalog and borrow ledger.

    Reads hand out copies of items, records and states; only the registry's own
    transitions mutate the stored objects.
    """

    def __init__(self,
                 administrator: Hashable = DEFAULT_ADMINISTRATOR,
                 authorizer=None,
                 sink: Optional[NotificationSink] = None,
                 clock: Optional[Callable[[], datetime.datetime]] = None):
        """
        Initialize the registry.

        Args:
            administrator: identity allowed to register items when no authorizer is given.
            authorizer: object with `is_authorized(caller) -> bool`; defaults to an
                OwnerAuthorizer for `administrator`.
            sink: callable receiving notifications; defaults to LoggingSink.
            clock: zero-argument callable returning the current time, used when a
                borrow/return is called without `now`.
        """
        self.administrator = administrator
        self.authorizer = authorizer if authorizer is not None else OwnerAuthorizer(administrator)
        self.sink = sink if sink is not None else LoggingSink()
        self.clock = clock or utc_now
        self.catalog = Catalog()
        self.ledger = BorrowLedger()
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        """The lock serializing every mutation and read on this registry."""
        return self._lock

    def reset(self) -> None:
        """Drop every item, record and borrow state."""
        with self._lock:
            self.catalog = Catalog()
            self.ledger = BorrowLedger()
            logger.info("Registry reset")

    def _notify(self, notification: Notification) -> None:
        self.sink(notification)

    def _resolve_time(self, now) -> datetime.datetime:
        """
        Return `now` as a datetime, falling back to the clock.

        Numeric values are read as POSIX epoch seconds (UTC). Anything else raises
        InvalidArgument before any state is touched.
        """
        value = now if now is not None else self.clock()
        if isinstance(value, datetime.datetime):
            return value
        if isinstance(value, numbers.Real) and not isinstance(value, bool):
            return datetime.datetime.fromtimestamp(value, tz=datetime.timezone.utc)
        raise InvalidArgument(f"Invalid timestamp: {value!r}")

    # ---------------- Registration ----------------
    def register_item(self, title: str, copies_count: int, caller: Hashable = None) -> Item:
        """
        Register a new item. Only an authorized caller may do this.

        Returns a copy of the new item.

        Raises:
            Unauthorized: caller is not the administrator.
            InvalidArgument, AlreadyExists: see Catalog.register.
        """
        with self._lock:
            if not self.authorizer.is_authorized(caller):
                logger.debug("Unauthorized registration attempt by %s", caller)
                raise Unauthorized("Caller is not the administrator.")
            item = self.catalog.register(title, copies_count)
            self._notify(ItemRegistered(title=item.title, id=item.id,
                                        available_copies_count=item.available_copies_count))
            return replace(item)

    # ---------------- Borrow / return ----------------
    def _borrow(self, item: Item, borrower_identity: Hashable, now: Optional[datetime.datetime]) -> BorrowRecord:
        record = self.ledger.borrow(item, borrower_identity, self._resolve_time(now))
        self._notify(ItemBorrowed(title=item.title, id=item.id, borrower_identity=borrower_identity,
                                  borrow_start_time=record.borrow_start_time))
        return replace(record)

    def _return(self, item: Item, borrower_identity: Hashable, now: Optional[datetime.datetime]) -> BorrowRecord:
        record = self.ledger.return_item(item, borrower_identity, self._resolve_time(now))
        self._notify(ItemReturned(title=item.title, id=item.id, borrower_identity=borrower_identity,
                                  return_time=record.return_time))
        return replace(record)

    def borrow_by_title(self, title: str, borrower_identity: Hashable,
                        now: Optional[datetime.datetime] = None) -> BorrowRecord:
        """Borrow one copy of the item with this title. Returns the new borrow record."""
        with self._lock:
            return self._borrow(self.catalog.get_by_title(title), borrower_identity, now)

    def borrow_by_id(self, item_id: int, borrower_identity: Hashable,
                     now: Optional[datetime.datetime] = None) -> BorrowRecord:
        """Borrow one copy of the item with this id. Returns the new borrow record."""
        with self._lock:
            return self._borrow(self.catalog.get_by_id(item_id), borrower_identity, now)

    def return_by_title(self, title: str, borrower_identity: Hashable,
                        now: Optional[datetime.datetime] = None) -> BorrowRecord:
        """Return the borrower's copy of the item with this title. Returns the closed record."""
        with self._lock:
            return self._return(self.catalog.get_by_title(title), borrower_identity, now)

    def return_by_id(self, item_id: int, borrower_identity: Hashable,
                     now: Optional[datetime.datetime] = None) -> BorrowRecord:
        """Return the borrower's copy of the item with this id. Returns the closed record."""
        with self._lock:
            return self._return(self.catalog.get_by_id(item_id), borrower_identity, now)

    # ---------------- Queries ----------------
    def list_items(self) -> List[Item]:
        """Return copies of all items in registration order."""
        with self._lock:
            return [replace(item) for item in self.catalog.list_all()]

    def get_item_by_id(self, item_id: int) -> Item:
        """Return a copy of the item with this id."""
        with self._lock:
            return replace(self.catalog.get_by_id(item_id))

    def get_item_by_title(self, title: str) -> Item:
        """Return a copy of the item with this exact title."""
        with self._lock:
            return replace(self.catalog.get_by_title(title))

    def search_items(self, query: str) -> List[Item]:
        """Return copies of the items whose title contains `query`, ignoring case."""
        with self._lock:
            return [replace(item) for item in self.catalog.search(query)]

    def get_borrow_state(self, borrower_identity: Hashable, item_id: int) -> BorrowState:
        """Return the borrow state of one (borrower, item) pair; never fails."""
        with self._lock:
            return self.ledger.get_state(borrower_identity, item_id)

    def get_borrow_history(self, item_id: int) -> List[BorrowRecord]:
        """Return copies of the item's borrow records in borrow order; empty for unknown ids."""
        with self._lock:
            return self.ledger.get_history(item_id)

    def members_with_borrowed_items(self) -> List[Dict]:
        """
        Return the borrowers currently holding copies.

        Each entry has the borrower identity and the ids and titles of the items held.
        """
        with self._lock:
            members = []
            for borrower, item_ids in self.ledger.active_borrows().items():
                titles = [self.catalog.get_by_id(i).title for i in item_ids]
                members.append({"Borrower": borrower, "ItemIds": item_ids, "Titles": titles})
            return members

    # ---------------- Reports ----------------
    def export_report_items(self) -> pd.DataFrame:
        """
        Build a DataFrame of the catalog inventory.

        Columns: Item ID, Title, Available, Borrowed, Total.
        """
        with self._lock:
            rows = [{
                "Item ID": item.id,
                "Title": item.title,
                "Available": item.available_copies_count,
                "Borrowed": item.borrowed_copies_count,
                "Total": item.total_copies_count,
            } for item in self.catalog.list_all()]
        return pd.DataFrame(rows, columns=ITEM_REPORT_COLUMNS)

    def export_report_history(self, item_id: Optional[int] = None) -> pd.DataFrame:
        """
        Build a DataFrame of borrow records, for one item or for the whole catalog.

        Records keep their per-item borrow order; "Returned At" is NaT for open borrows.
        """
        with self._lock:
            items = self.catalog.list_all() if item_id is None else [self.catalog.get_by_id(item_id)]
            rows = []
            for item in items:
                for record in self.ledger.get_history(item.id):
                    rows.append({
                        "Item ID": item.id,
                        "Title": item.title,
                        "Borrower": record.borrower_identity,
                        "Borrowed At": record.borrow_start_time,
                        "Returned At": record.return_time,
                    })
        out = pd.DataFrame(rows, columns=HISTORY_REPORT_COLUMNS)
        out["Borrowed At"] = pd.to_datetime(out["Borrowed At"], utc=True)
        out["Returned At"] = pd.to_datetime(out["Returned At"], utc=True)
        return out

    def most_borrowed_item(self) -> Optional[str]:
        """
        Title of the item with the most borrow records, or None with no history.

        Ties go to the item registered first.
        """
        with self._lock:
            lengths = self.ledger.history_lengths()
            counts = pd.Series({item.title: lengths.get(item.id, 0) for item in self.catalog.list_all()},
                               dtype="int64")
        counts = counts[counts > 0]
        if counts.empty:
            return None
        return counts.idxmax()
