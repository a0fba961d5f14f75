import datetime

import pandas as pd
import pytest

from lending_errors import NotFound
from lending_registry import HISTORY_REPORT_COLUMNS, ITEM_REPORT_COLUMNS

ADMIN = "owner"
T0 = datetime.datetime(2024, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)


def test_item_report(book_registry):
    book_registry.register_item("Book 2", 1, caller=ADMIN)
    book_registry.borrow_by_id(0, "user")

    report = book_registry.export_report_items()

    assert list(report.columns) == ITEM_REPORT_COLUMNS
    assert report.to_dict(orient="records") == [
        {"Item ID": 0, "Title": "Book 1", "Available": 1, "Borrowed": 1, "Total": 2},
        {"Item ID": 1, "Title": "Book 2", "Available": 1, "Borrowed": 0, "Total": 1},
    ]


def test_item_report_empty(registry):
    report = registry.export_report_items()
    assert report.empty
    assert list(report.columns) == ITEM_REPORT_COLUMNS


def test_history_report(book_registry):
    book_registry.borrow_by_id(0, "userA", now=T0)
    book_registry.borrow_by_id(0, "userB", now=T0 + datetime.timedelta(hours=1))
    book_registry.return_by_id(0, "userA", now=T0 + datetime.timedelta(hours=2))

    report = book_registry.export_report_history(0)

    assert list(report.columns) == HISTORY_REPORT_COLUMNS
    assert list(report["Borrower"]) == ["userA", "userB"]
    assert report["Returned At"].iloc[0] == pd.Timestamp(T0 + datetime.timedelta(hours=2))
    assert pd.isna(report["Returned At"].iloc[1])


def test_history_report_unknown_item(book_registry):
    with pytest.raises(NotFound):
        book_registry.export_report_history(4)


def test_history_report_empty(book_registry):
    report = book_registry.export_report_history()
    assert report.empty
    assert list(report.columns) == HISTORY_REPORT_COLUMNS


def test_most_borrowed_item(registry):
    assert registry.most_borrowed_item() is None
    registry.register_item("Book 1", 3, caller=ADMIN)
    registry.register_item("Book 2", 3, caller=ADMIN)
    registry.borrow_by_id(1, "a")
    assert registry.most_borrowed_item() == "Book 2"
    registry.borrow_by_id(0, "a")
    # tie goes to the earlier registration
    assert registry.most_borrowed_item() == "Book 1"
    registry.borrow_by_id(1, "b")
    assert registry.most_borrowed_item() == "Book 2"


def test_report_ids_can_be_fed_back(book_registry):
    item_id = book_registry.export_report_items()["Item ID"].iloc[0]
    book_registry.borrow_by_id(item_id, "userA")

    assert book_registry.get_borrow_state("userA", 0).is_currently_borrowed
    book_registry.return_by_id(item_id, "userA")
    assert book_registry.get_item_by_id(item_id).available_copies_count == 2
