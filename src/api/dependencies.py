import os
from functools import lru_cache

from fastapi import Depends

from extraction.event_extractor import EventTextExtractor
from storage.backends import JsonFileBackend
from storage.event_store import DEFAULT_STORAGE_KEY, EventStore

# Configuration
CALENDAR_STORAGE_PATH = os.getenv("CALENDAR_STORAGE_PATH", "data/calendar.json")
CALENDAR_STORAGE_KEY = os.getenv("CALENDAR_STORAGE_KEY", DEFAULT_STORAGE_KEY)
LOAD_TEST_MAX_EVENTS = int(os.getenv("LOAD_TEST_MAX_EVENTS", "500"))


@lru_cache(maxsize=1)
def get_event_store() -> EventStore:
    return EventStore(JsonFileBackend(CALENDAR_STORAGE_PATH), storage_key=CALENDAR_STORAGE_KEY)


def get_extractor(store: EventStore = Depends(get_event_store)) -> EventTextExtractor:
    return EventTextExtractor(store)
