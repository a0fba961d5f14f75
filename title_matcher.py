"""
title_matcher.py

Title checks shared by the catalog: emptiness after trimming and exact equality.
"""

from __future__ import annotations
from typing import Optional


def is_empty(title: Optional[str]) -> bool:
    """Return True if `title` is None or has zero length once trimmed."""
    if title is None:
        return True
    return len(str(title).strip()) == 0


def equals(a: Optional[str], b: Optional[str]) -> bool:
    """
    Exact, case-sensitive comparison of two titles.

    "Book 1" and "book 1" are different titles.
    """
    if a is None or b is None:
        return False
    return str(a) == str(b)
