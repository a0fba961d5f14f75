import datetime
import sys
import pathlib

import pytest

# Add project root to sys.path so imports from repo root work without installing
sys.path.insert(0, str(pathlib.Path(__file__).resolve().parent.parent))

from lending_registry import LendingRegistry
from notifications import RecordingSink

ADMIN = "owner"


class StepClock:
    """Clock that advances one minute per call, starting at a fixed UTC time."""

    def __init__(self, start=datetime.datetime(2024, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)):
        self.current = start

    def __call__(self):
        now = self.current
        self.current = now + datetime.timedelta(minutes=1)
        return now


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def registry(sink, clock):
    return LendingRegistry(administrator=ADMIN, sink=sink, clock=clock)


@pytest.fixture
def book_registry(registry, sink):
    """Registry holding 'Book 1' (id 0) with two copies; the registration notification is cleared."""
    registry.register_item("Book 1", 2, caller=ADMIN)
    sink.clear()
    return registry
