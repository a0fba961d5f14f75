"""
registry_store.py

CSV snapshots of a LendingRegistry. A snapshot is two files in one directory: the
items with their counts, and every borrow record in borrow order. Loading replays the
records into a fresh registry so borrow states point at the right records again.
"""

from __future__ import annotations
import logging
import pathlib
from typing import Union

import pandas as pd

from borrow_ledger import BorrowRecord
from catalog import Item
from lending_errors import InvalidArgument
from lending_registry import DEFAULT_ADMINISTRATOR, LendingRegistry

# Configuration
DEFAULT_DATA_DIR = pathlib.Path(__file__).resolve().parent / "data"
ITEMS_CSV = "items.csv"
HISTORY_CSV = "borrow_history.csv"

ITEM_COLUMNS = ["id", "title", "available_copies_count", "borrowed_copies_count"]
HISTORY_COLUMNS = ["item_id", "borrower_identity", "borrow_start_time", "return_time"]

logger = logging.getLogger("RegistryStore")

PathLike = Union[str, pathlib.Path]


def _isoformat(value) -> str:
    return value.isoformat() if value is not None else ""


def save_registry(registry: LendingRegistry, data_dir: PathLike = DEFAULT_DATA_DIR) -> None:
    """
    Write the registry's items and borrow history to CSV files in `data_dir`.

    The directory is created if needed. Existing snapshot files are overwritten.
    """
    data_dir = pathlib.Path(data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)

    with registry.lock:
        items = registry.list_items()
        item_rows = [{
            "id": item.id,
            "title": item.title,
            "available_copies_count": item.available_copies_count,
            "borrowed_copies_count": item.borrowed_copies_count,
        } for item in items]
        history_rows = []
        for item in items:
            for record in registry.get_borrow_history(item.id):
                history_rows.append({
                    "item_id": item.id,
                    "borrower_identity": record.borrower_identity,
                    "borrow_start_time": _isoformat(record.borrow_start_time),
                    "return_time": _isoformat(record.return_time),
                })

    items_df = pd.DataFrame(item_rows, columns=ITEM_COLUMNS)
    items_df.to_csv(data_dir / ITEMS_CSV, index=False, columns=ITEM_COLUMNS)
    logger.info("Saved %d items to %s", len(items_df), data_dir / ITEMS_CSV)

    history_df = pd.DataFrame(history_rows, columns=HISTORY_COLUMNS)
    history_df.to_csv(data_dir / HISTORY_CSV, index=False, columns=HISTORY_COLUMNS)
    logger.info("Saved %d borrow records to %s", len(history_df), data_dir / HISTORY_CSV)


def _read_csv(path: pathlib.Path, columns) -> pd.DataFrame:
    if not path.exists():
        logger.warning("Snapshot file not found: %s (starting empty)", path)
        return pd.DataFrame(columns=columns)
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise InvalidArgument(f"{path.name} is missing columns: {', '.join(missing)}")
    return df


def _parse_int(value: str, what: str) -> int:
    try:
        return int(str(value).strip())
    except ValueError:
        raise InvalidArgument(f"Invalid {what}: {value!r}") from None


def _parse_time(value: str, what: str):
    value = str(value).strip()
    if value == "":
        return None
    try:
        return pd.Timestamp(value).to_pydatetime()
    except ValueError:
        raise InvalidArgument(f"Invalid {what}: {value!r}") from None


def load_registry(data_dir: PathLike = DEFAULT_DATA_DIR,
                  administrator=DEFAULT_ADMINISTRATOR, **registry_kwargs) -> LendingRegistry:
    """
    Build a LendingRegistry from a CSV snapshot in `data_dir`.

    Missing files give an empty registry. Borrower identities come back as strings.
    No notifications are raised while loading.

    Raises:
        InvalidArgument: malformed rows, or a history that disagrees with the item counts.
    """
    data_dir = pathlib.Path(data_dir)
    registry = LendingRegistry(administrator=administrator, **registry_kwargs)

    items_df = _read_csv(data_dir / ITEMS_CSV, ITEM_COLUMNS)
    history_df = _read_csv(data_dir / HISTORY_CSV, HISTORY_COLUMNS)

    with registry.lock:
        items_df = items_df.assign(_id=[_parse_int(v, "item id") for v in items_df["id"]])
        for _, row in items_df.sort_values("_id", kind="stable").iterrows():
            registry.catalog.restore(Item(
                id=int(row["_id"]),
                title=row["title"],
                available_copies_count=_parse_int(row["available_copies_count"], "available copies count"),
                borrowed_copies_count=_parse_int(row["borrowed_copies_count"], "borrowed copies count"),
            ))

        # stable sort keeps each item's records in file (borrow) order
        history_df = history_df.assign(_item_id=[_parse_int(v, "item id") for v in history_df["item_id"]])
        for _, row in history_df.sort_values("_item_id", kind="stable").iterrows():
            item_id = int(row["_item_id"])
            if item_id < 0 or item_id >= len(registry.catalog):
                raise InvalidArgument(f"Borrow record refers to unknown item {item_id}.")
            start = _parse_time(row["borrow_start_time"], "borrow start time")
            if start is None:
                raise InvalidArgument(f"Borrow record for item {item_id} has no start time.")
            registry.ledger.restore_record(item_id, BorrowRecord(
                borrow_start_time=start,
                borrower_identity=row["borrower_identity"],
                return_time=_parse_time(row["return_time"], "return time"),
            ))

        for item in registry.catalog.list_all():
            open_count = registry.ledger.count_open(item.id)
            if open_count != item.borrowed_copies_count:
                raise InvalidArgument(
                    f"Item {item.id} has {item.borrowed_copies_count} borrowed copies "
                    f"but {open_count} open borrow records.")

    logger.info("Loaded %d items from %s", len(registry.catalog), data_dir)
    return registry
