#!/usr/bin/env python3
"""
lending_cli.py

Interactive text menu over a LendingRegistry, optionally backed by a CSV snapshot.

Typical usage:
    python lending_cli.py --data-dir data --admin admin
"""

from __future__ import annotations
import argparse
import logging
import pathlib
from typing import Optional

from lending_errors import LendingError
from lending_registry import DEFAULT_ADMINISTRATOR, LendingRegistry
from registry_store import DEFAULT_DATA_DIR, load_registry, save_registry

logger = logging.getLogger("LendingCLI")


def input_prompt(prompt: str) -> str:
    """
    Wrapper around built-in input() that returns a stripped string and handles interrupts.

    Returns an empty string on EOF/KeyboardInterrupt.
    """
    try:
        return input(prompt).strip()
    except (EOFError, KeyboardInterrupt):
        print()
        return ""


def print_menu():
    """Print the interactive menu to stdout."""
    print("\n--- Lending Registry (CLI) ---")
    print("1. List all items")
    print("2. Search items by title")
    print("3. Register item")
    print("4. Borrow item")
    print("5. Return item")
    print("6. Show borrow state")
    print("7. Show borrow history")
    print("8. Show borrowers holding items")
    print("9. Show most borrowed item")
    print("10. Save state")
    print("0. Exit")


def _parse_item_ref(raw: str):
    """Digits are read as an item id, anything else as a title."""
    return ("id", int(raw)) if raw.isdecimal() else ("title", raw)


def _print_item(item) -> None:
    print(f"{item.id}: {item.title} | available {item.available_copies_count} "
          f"| borrowed {item.borrowed_copies_count}")


def _borrow_or_return(registry: LendingRegistry, action: str) -> None:
    who = input_prompt("Borrower: ")
    kind, key = _parse_item_ref(input_prompt("Item ID or title: "))
    if action == "borrow":
        record = registry.borrow_by_id(key, who) if kind == "id" else registry.borrow_by_title(key, who)
        print(f"Borrowed by {record.borrower_identity} at {record.borrow_start_time.isoformat()}.")
    else:
        record = registry.return_by_id(key, who) if kind == "id" else registry.return_by_title(key, who)
        print(f"Returned by {record.borrower_identity} at {record.return_time.isoformat()}.")


def handle_choice(registry: LendingRegistry, choice: str, caller: str, data_dir: pathlib.Path) -> None:
    """
    Run one menu action. Registry errors propagate to the caller.
    """
    if choice == "1":
        items = registry.list_items()
        print(f"\nTotal items: {len(items)}")
        for item in items:
            _print_item(item)
    elif choice == "2":
        res = registry.search_items(input_prompt("Search query: "))
        print(f"Found {len(res)} result(s):")
        for item in res:
            _print_item(item)
    elif choice == "3":
        title = input_prompt("Title: ")
        copies_raw = input_prompt("Copies: ")
        copies = int(copies_raw) if copies_raw.isdecimal() else 0
        item = registry.register_item(title, copies, caller=caller)
        print(f"Registered item {item.id}.")
    elif choice == "4":
        _borrow_or_return(registry, "borrow")
    elif choice == "5":
        _borrow_or_return(registry, "return")
    elif choice == "6":
        who = input_prompt("Borrower: ")
        item_id = input_prompt("Item ID: ")
        state = registry.get_borrow_state(who, int(item_id) if item_id.isdecimal() else -1)
        print(f"Borrowed: {state.is_currently_borrowed} (record {state.active_record_index})")
    elif choice == "7":
        kind, key = _parse_item_ref(input_prompt("Item ID or title: "))
        item = registry.get_item_by_id(key) if kind == "id" else registry.get_item_by_title(key)
        history = registry.export_report_history(item.id)
        if history.empty:
            print("No borrow history.")
        else:
            print(history.to_string(index=False))
    elif choice == "8":
        members = registry.members_with_borrowed_items()
        print(f"\nBorrowers holding items: {len(members)}")
        for m in members:
            print(f"{m['Borrower']} -> {m['Titles']}")
    elif choice == "9":
        print("Most borrowed item:", registry.most_borrowed_item() or "N/A")
    elif choice == "10":
        save_registry(registry, data_dir)
        print(f"Saved state to {data_dir}.")
    else:
        print("Unknown choice. Try again.")


def cli_loop(registry: LendingRegistry, caller: str, data_dir: pathlib.Path):
    """
    Interactive command-loop for the lending registry.

    Registry errors are printed and the loop continues.
    """
    while True:
        print_menu()
        choice = input_prompt("Choose (0-10): ")
        if choice == "0":
            print("Exiting. You may save changes (option 10) before leaving.")
            break
        try:
            handle_choice(registry, choice, caller, data_dir)
        except LendingError as e:
            logger.debug("Operation rejected: %s", e)
            print(f"Failed: {e}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Interactive lending registry")
    parser.add_argument("--data-dir", default=str(DEFAULT_DATA_DIR),
                        help="directory holding the CSV snapshot")
    parser.add_argument("--admin", default=DEFAULT_ADMINISTRATOR,
                        help="administrator identity; the CLI acts as this caller")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s: %(message)s")

    data_dir = pathlib.Path(args.data_dir)
    registry = load_registry(data_dir, administrator=args.admin)
    print("Welcome. Loaded lending registry from", data_dir)
    cli_loop(registry, args.admin, data_dir)
    ans = input_prompt("Save state before exit? (y/n): ")
    if ans.lower().startswith("y"):
        save_registry(registry, data_dir)
        print("Saved.")
    print("Goodbye.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
