"""
lending_errors.py

Exceptions raised by the lending registry. Every error is raised before any state is
touched, so catching one never leaves a half-applied borrow or return behind.
"""


class LendingError(Exception):
    """Base exception for lending registry errors."""


class InvalidArgument(LendingError):
    """Empty title or non-positive copy count."""


class AlreadyExists(LendingError):
    """An item with the same title is already registered."""


class NotFound(LendingError):
    """Unknown item id or title."""


class Unavailable(LendingError):
    """No free copies left for the item."""


class AlreadyBorrowed(LendingError):
    """The borrower already holds a copy of the item."""


class NotBorrowed(LendingError):
    """The borrower does not currently hold a copy of the item."""


class Unauthorized(LendingError):
    """Caller is not allowed to register items."""
