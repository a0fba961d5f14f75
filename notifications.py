"""
notifications.py

Notifications raised by the lending registry, plus two ready-made sinks. A sink is any
callable taking one notification; the registry calls it after each successful
registration, borrow and return.
"""

from __future__ import annotations
import datetime
import logging
from dataclasses import dataclass
from typing import Callable, Hashable, List, Union

logger = logging.getLogger("LendingNotifications")


@dataclass(frozen=True)
class ItemRegistered:
    title: str
    id: int
    available_copies_count: int


@dataclass(frozen=True)
class ItemBorrowed:
    title: str
    id: int
    borrower_identity: Hashable
    borrow_start_time: datetime.datetime


@dataclass(frozen=True)
class ItemReturned:
    title: str
    id: int
    borrower_identity: Hashable
    return_time: datetime.datetime


Notification = Union[ItemRegistered, ItemBorrowed, ItemReturned]
NotificationSink = Callable[[Notification], None]


class LoggingSink:
    """Write every notification to the log at INFO level."""

    def __call__(self, notification: Notification) -> None:
        if isinstance(notification, ItemRegistered):
            logger.info("ItemRegistered: %d '%s' (%d copies)", notification.id, notification.title,
                        notification.available_copies_count)
        elif isinstance(notification, ItemBorrowed):
            logger.info("ItemBorrowed: %d '%s' by %s at %s", notification.id, notification.title,
                        notification.borrower_identity, notification.borrow_start_time)
        elif isinstance(notification, ItemReturned):
            logger.info("ItemReturned: %d '%s' by %s at %s", notification.id, notification.title,
                        notification.borrower_identity, notification.return_time)
        else:
            logger.info("Notification: %r", notification)


class RecordingSink:
    """Collect notifications in order. Useful for tests and simple UIs."""

    def __init__(self):
        self.notifications: List[Notification] = []

    def __call__(self, notification: Notification) -> None:
        self.notifications.append(notification)

    def of_type(self, kind) -> List[Notification]:
        return [n for n in self.notifications if isinstance(n, kind)]

    def clear(self) -> None:
        self.notifications.clear()
