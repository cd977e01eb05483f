from datetime import datetime

import pytest

from calendar_engine.errors import PersistenceError
from storage.backends import InMemoryBackend, StorageBackend
from storage.event_store import EventStore

# Tuesday
REFERENCE_NOW = datetime(2025, 6, 10, 9, 30)


class RefusingBackend(StorageBackend):
    """Reads fine, refuses every write."""

    def __init__(self, initial=None):
        self._items = dict(initial or {})

    def get_item(self, key):
        return self._items.get(key)

    def set_item(self, key, value):
        raise PersistenceError("quota exceeded")


@pytest.fixture
def backend():
    return InMemoryBackend()


@pytest.fixture
def store(backend):
    return EventStore(backend, storage_key="test-events", clock=lambda: REFERENCE_NOW)


@pytest.fixture
def refusing_store():
    return EventStore(RefusingBackend(), storage_key="test-events", clock=lambda: REFERENCE_NOW)
