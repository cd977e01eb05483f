import logging
import time
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from api.dependencies import get_event_store, get_extractor
from api.metrics import (
    EVENTS_CREATED_TOTAL,
    EVENTS_DELETED_TOTAL,
    EVENTS_STORED,
    REQUEST_LATENCY_SECONDS,
    REQUESTS_TOTAL,
    TEXT_EXTRACTIONS_TOTAL,
)
from calendar_engine.errors import PersistenceError
from calendar_engine.models import CalendarEvent, DateParseResult, EventDraft, RecurringFrequency
from extraction.event_extractor import EventTextExtractor
from parsing.date_parser import resolve_date
from storage.event_store import EventStore

router = APIRouter()
logger = logging.getLogger(__name__)


class TextIn(BaseModel):
    text: str
    today: Optional[date] = None


class RecurrenceIn(BaseModel):
    frequency: RecurringFrequency
    end_date: Optional[datetime] = None


def _observe(endpoint: str, status: str, start: float) -> None:
    REQUESTS_TOTAL.labels(endpoint=endpoint, status=status).inc()
    REQUEST_LATENCY_SECONDS.labels(endpoint=endpoint).observe(time.time() - start)


def _persistence_failed(endpoint: str, start: float, err: PersistenceError) -> HTTPException:
    logger.error(f"Storage write failed on {endpoint}: {err}")
    _observe(endpoint, "storage_error", start)
    return HTTPException(status_code=507, detail=f"Could not save calendar: {err}")


@router.get("/events")
async def list_events(store: EventStore = Depends(get_event_store)) -> List[CalendarEvent]:
    events = store.get_all_events()
    EVENTS_STORED.set(len(events))
    return events


@router.post("/events", status_code=201)
async def create_event(
    draft: EventDraft, store: EventStore = Depends(get_event_store)
) -> CalendarEvent:
    start = time.time()
    try:
        event = store.add_event(draft)
    except PersistenceError as e:
        raise _persistence_failed("/events", start, e)

    EVENTS_CREATED_TOTAL.labels(source="form").inc()
    _observe("/events", "created", start)
    return event


@router.get("/events/upcoming")
async def upcoming_events(store: EventStore = Depends(get_event_store)) -> List[CalendarEvent]:
    """Events in the next seven days."""
    return store.get_upcoming_events()


@router.get("/events/date/{day}")
async def events_for_date(day: str, store: EventStore = Depends(get_event_store)) -> dict:
    try:
        target = datetime.strptime(day, "%Y-%m-%d").date()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid date format. Use YYYY-MM-DD")

    events = store.get_events_for_date(target)
    return {"date": day, "events": events}


@router.post("/events/parse-date")
async def parse_date(payload: TextIn) -> DateParseResult:
    return resolve_date(payload.text, payload.today)


@router.post("/events/from-text", status_code=201)
async def create_event_from_text(
    payload: TextIn, extractor: EventTextExtractor = Depends(get_extractor)
) -> CalendarEvent:
    start = time.time()
    logger.info(f"Creating event from text: {payload.text[:50]}...")

    event = extractor.create_event_from_text(payload.text, payload.today)
    if event is None:
        TEXT_EXTRACTIONS_TOTAL.labels(result="failed").inc()
        _observe("/events/from-text", "failed", start)
        raise HTTPException(status_code=422, detail="Could not create an event from this text")

    TEXT_EXTRACTIONS_TOTAL.labels(result="created").inc()
    EVENTS_CREATED_TOTAL.labels(source="text").inc()
    _observe("/events/from-text", "created", start)
    return event


@router.get("/events/{event_id}")
async def get_event(event_id: str, store: EventStore = Depends(get_event_store)) -> CalendarEvent:
    for event in store.get_all_events():
        if event.id == event_id:
            return event
    raise HTTPException(status_code=404, detail="Event not found")


@router.put("/events/{event_id}")
async def replace_event(
    event_id: str, draft: EventDraft, store: EventStore = Depends(get_event_store)
) -> CalendarEvent:
    start = time.time()
    replacement = CalendarEvent(**draft.model_dump(), id=event_id)
    try:
        updated = store.update_event(replacement)
    except PersistenceError as e:
        raise _persistence_failed("/events/{id}", start, e)

    if updated is None:
        _observe("/events/{id}", "not_found", start)
        raise HTTPException(status_code=404, detail="Event not found")

    _observe("/events/{id}", "updated", start)
    return updated


@router.delete("/events/{event_id}")
async def delete_event(event_id: str, store: EventStore = Depends(get_event_store)) -> dict:
    start = time.time()
    try:
        deleted = store.delete_event(event_id)
    except PersistenceError as e:
        raise _persistence_failed("/events/{id}", start, e)

    if deleted:
        EVENTS_DELETED_TOTAL.inc()
    _observe("/events/{id}", "deleted" if deleted else "not_found", start)
    return {"id": event_id, "deleted": deleted}


@router.post("/events/{event_id}/recurring", status_code=201)
async def make_recurring(
    event_id: str, payload: RecurrenceIn, store: EventStore = Depends(get_event_store)
) -> List[CalendarEvent]:
    start = time.time()
    base = next((e for e in store.get_all_events() if e.id == event_id), None)
    if base is None:
        raise HTTPException(status_code=404, detail="Event not found")

    try:
        created = store.add_recurring_events(base, payload.frequency, payload.end_date)
    except PersistenceError as e:
        raise _persistence_failed("/events/{id}/recurring", start, e)

    EVENTS_CREATED_TOTAL.labels(source="recurrence").inc(len(created) - 1)
    _observe("/events/{id}/recurring", "created", start)
    return created
