import pytest

import lending_cli
from lending_registry import LendingRegistry
from notifications import RecordingSink
from registry_store import ITEMS_CSV

ADMIN = "owner"


def feed(monkeypatch, answers):
    answers = iter(answers)
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))


@pytest.fixture
def cli_registry():
    return LendingRegistry(administrator=ADMIN, sink=RecordingSink())


def test_register_borrow_return_session(monkeypatch, capsys, cli_registry, tmp_path):
    feed(monkeypatch, [
        "3", "Book 1", "2",
        "4", "userA", "0",
        "4", "userA", "Book 1",
        "5", "userA", "Book 1",
        "1",
        "0",
    ])
    lending_cli.cli_loop(cli_registry, ADMIN, tmp_path)
    out = capsys.readouterr().out

    assert "Registered item 0." in out
    assert "Failed: You can borrow an item only once." in out
    assert "0: Book 1 | available 2 | borrowed 0" in out
    assert len(cli_registry.get_borrow_history(0)) == 1


def test_errors_do_not_stop_the_loop(monkeypatch, capsys, cli_registry, tmp_path):
    feed(monkeypatch, ["5", "nobody", "7", "3", "", "4", "0"])
    lending_cli.cli_loop(cli_registry, ADMIN, tmp_path)
    out = capsys.readouterr().out

    assert "Failed: Item not found: 7" in out
    assert "Failed: Missing value for 'title'." in out


def test_save_option_writes_snapshot(monkeypatch, cli_registry, tmp_path):
    cli_registry.register_item("Book 1", 1, caller=ADMIN)
    feed(monkeypatch, ["10", "0"])
    lending_cli.cli_loop(cli_registry, ADMIN, tmp_path)
    assert (tmp_path / ITEMS_CSV).exists()


def test_main_loads_and_saves(monkeypatch, capsys, tmp_path):
    feed(monkeypatch, ["3", "Book 1", "1", "0", "y"])
    assert lending_cli.main(["--data-dir", str(tmp_path), "--admin", ADMIN]) == 0
    assert (tmp_path / ITEMS_CSV).read_text().splitlines()[1] == "0,Book 1,1,0"
    assert "Goodbye." in capsys.readouterr().out


def test_non_ascii_digits_do_not_crash_the_loop(monkeypatch, capsys, cli_registry, tmp_path):
    cli_registry.register_item("Book 1", 1, caller=ADMIN)
    feed(monkeypatch, [
        "3", "Book", "²",
        "4", "userA", "²",
        "6", "userA", "²",
        "0",
    ])
    lending_cli.cli_loop(cli_registry, ADMIN, tmp_path)
    out = capsys.readouterr().out

    assert "Failed: Value for 'copiesCount' must be greater than 0." in out
    assert "Failed: Item not found: ²" in out
    assert "Borrowed: False (record 0)" in out
    assert [i.title for i in cli_registry.list_items()] == ["Book 1"]
