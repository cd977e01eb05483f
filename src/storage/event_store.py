"""
Persistent calendar event store.

The whole collection lives under one storage key as a JSON array. Every write
is a full read-modify-write of that array, so a record added through this store
is visible to the very next read.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional, Union

from dateutil.relativedelta import relativedelta
from pydantic import ValidationError

from calendar_engine.errors import PersistenceError
from calendar_engine.models import CalendarEvent, EventDraft, RecurringFrequency
from storage.backends import InMemoryBackend, StorageBackend

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "calendarEvents"
UPCOMING_WINDOW = timedelta(days=7)
RECURRENCE_DEFAULT_MONTHS = 3

RECURRENCE_STEPS = {
    "daily": relativedelta(days=1),
    "weekly": relativedelta(weeks=1),
    "biweekly": relativedelta(weeks=2),
    # month steps clamp to the last day of shorter months
    "monthly": relativedelta(months=1),
}


class EventStore:
    def __init__(
        self,
        backend: Optional[StorageBackend] = None,
        storage_key: str = DEFAULT_STORAGE_KEY,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.backend = backend if backend is not None else InMemoryBackend()
        self.storage_key = storage_key
        self._clock = clock or datetime.now

    # -- persistence -----------------------------------------------------

    def _persist(self, events: List[CalendarEvent]) -> None:
        payload = json.dumps(
            [e.model_dump(mode="json", exclude_none=True) for e in events],
            ensure_ascii=False,
        )
        try:
            self.backend.set_item(self.storage_key, payload)
        except PersistenceError:
            logger.error("Storage refused write of %d events to '%s'", len(events), self.storage_key)
            raise
        except Exception as e:
            logger.error("Storage write failed for '%s': %s", self.storage_key, e)
            raise PersistenceError(f"failed to persist calendar events: {e}") from e

    def get_all_events(self) -> List[CalendarEvent]:
        """
        Return every stored event. Never raises: a missing, corrupt or
        partially invalid collection reads as empty.
        """
        try:
            raw = self.backend.get_item(self.storage_key)
            if raw is None:
                return []

            data = json.loads(raw)
            if not isinstance(data, list):
                logger.warning("Stored events under '%s' are not a JSON array, ignoring", self.storage_key)
                return []

            return [CalendarEvent.model_validate(item) for item in data]
        except (ValueError, TypeError, ValidationError) as e:
            logger.warning("Error loading calendar events from '%s': %s", self.storage_key, e)
            return []
        except Exception as e:
            logger.warning("Storage read failed for '%s': %s", self.storage_key, e)
            return []

    # -- writes ----------------------------------------------------------

    def add_event(self, draft: EventDraft) -> CalendarEvent:
        events = self.get_all_events()
        fields = draft.model_dump(exclude={"id"})
        new_event = CalendarEvent(**fields, id=uuid.uuid4().hex)

        events.append(new_event)
        self._persist(events)
        logger.info("Added event %s '%s' on %s", new_event.id, new_event.title, new_event.date.date())
        return new_event

    def update_event(self, event: CalendarEvent) -> Optional[CalendarEvent]:
        """Replace the stored record with the same id. None if the id is unknown."""
        events = self.get_all_events()
        for i, existing in enumerate(events):
            if existing.id == event.id:
                events[i] = event.model_copy(deep=True)
                self._persist(events)
                return events[i]
        return None

    def delete_event(self, event_id: str) -> bool:
        events = self.get_all_events()
        remaining = [e for e in events if e.id != event_id]
        if len(remaining) == len(events):
            return False

        self._persist(remaining)
        logger.info("Deleted event %s", event_id)
        return True

    def add_recurring_events(
        self,
        event: CalendarEvent,
        frequency: RecurringFrequency,
        end_date: Optional[datetime] = None,
    ) -> List[CalendarEvent]:
        """
        Expand `event` into a recurring series stored alongside it.

        The base event is updated in place (or stored if absent) with the
        recurrence metadata; instances are generated up to and including
        `end_date`, which defaults to three months after the base date.
        Returns the base event followed by the generated instances.
        """
        if frequency == "none":
            return [event]

        events = self.get_all_events()
        final_end = end_date or event.date + relativedelta(months=RECURRENCE_DEFAULT_MONTHS)
        base = event.model_copy(update={"recurring": frequency, "end_date": final_end})
        step = RECURRENCE_STEPS[frequency]

        # re-expanding replaces the previous series instead of duplicating it
        instance_prefix = f"{base.id}-"
        events = [e for e in events if not e.id.startswith(instance_prefix)]

        for i, existing in enumerate(events):
            if existing.id == base.id:
                events[i] = base
                break
        else:
            events.append(base)

        created = [base]
        current = base.date + step
        while current <= final_end:
            instance = base.model_copy(
                update={"id": f"{base.id}-{int(current.timestamp() * 1000)}", "date": current}
            )
            events.append(instance)
            created.append(instance)
            current = current + step

        self._persist(events)
        logger.info("Created %d %s occurrences of %s", len(created) - 1, frequency, base.id)
        return created

    # -- queries ---------------------------------------------------------

    def get_events_for_date(self, day: Union[date, datetime]) -> List[CalendarEvent]:
        target = day.date() if isinstance(day, datetime) else day
        return [e for e in self.get_all_events() if e.date.date() == target]

    def get_upcoming_events(self, now: Optional[datetime] = None) -> List[CalendarEvent]:
        """Events in the half-open window [now, now + 7 days)."""
        start = now or self._clock()
        end = start + UPCOMING_WINDOW
        return [e for e in self.get_all_events() if start <= e.date < end]
