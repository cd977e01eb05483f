from datetime import date, datetime, timedelta

import pytest

from calendar_engine.errors import PersistenceError
from calendar_engine.models import EventDraft
from storage.event_store import EventStore
from conftest import REFERENCE_NOW


def _draft(title="Dentist", when=REFERENCE_NOW, **kw):
    return EventDraft(title=title, date=when, **kw)


def test_add_then_get_all_roundtrip(store):
    draft = _draft(category="health", description="cleaning")
    saved = store.add_event(draft)

    events = store.get_all_events()
    assert len(events) == 1
    assert events[0] == saved
    assert saved.id
    assert saved.model_dump(exclude={"id"}) == draft.model_dump()


def test_ids_are_unique(store):
    ids = {store.add_event(_draft(title=f"E{i}")).id for i in range(50)}
    assert len(ids) == 50


def test_delete_twice(store):
    saved = store.add_event(_draft())
    assert store.delete_event(saved.id) is True
    assert store.delete_event(saved.id) is False
    assert store.get_all_events() == []


def test_delete_unknown_leaves_collection(store, backend):
    store.add_event(_draft())
    before = backend.get_item("test-events")
    assert store.delete_event("nope") is False
    assert backend.get_item("test-events") == before


def test_deleted_id_not_reused(store):
    first = store.add_event(_draft())
    store.delete_event(first.id)
    second = store.add_event(_draft())
    assert second.id != first.id


def test_update_replaces_whole_record(store):
    saved = store.add_event(_draft(description="old"))
    changed = saved.model_copy(update={"title": "Moved", "description": ""})
    assert store.update_event(changed) == changed

    [stored] = store.get_all_events()
    assert stored.title == "Moved"
    assert stored.description == ""


def test_update_unknown_returns_none(store):
    saved = store.add_event(_draft())
    ghost = saved.model_copy(update={"id": "ghost"})
    assert store.update_event(ghost) is None


def test_events_for_date_is_day_granular(store):
    store.add_event(_draft(title="Morning", when=datetime(2025, 6, 12, 0, 0)))
    store.add_event(_draft(title="Night", when=datetime(2025, 6, 12, 23, 59)))
    store.add_event(_draft(title="Other", when=datetime(2025, 6, 13, 0, 0)))

    titles = {e.title for e in store.get_events_for_date(date(2025, 6, 12))}
    assert titles == {"Morning", "Night"}
    assert len(store.get_events_for_date(datetime(2025, 6, 12, 15, 0))) == 2


def test_upcoming_window_is_half_open(store):
    now = REFERENCE_NOW
    store.add_event(_draft(title="now", when=now))
    store.add_event(_draft(title="last minute", when=now + timedelta(days=6, hours=23, minutes=59)))
    store.add_event(_draft(title="boundary", when=now + timedelta(days=7)))
    store.add_event(_draft(title="past", when=now - timedelta(minutes=1)))

    titles = {e.title for e in store.get_upcoming_events()}
    assert titles == {"now", "last minute"}


def test_add_propagates_persistence_error(refusing_store):
    with pytest.raises(PersistenceError):
        refusing_store.add_event(_draft())


def test_weekly_recurrence(store):
    base = store.add_event(_draft(when=datetime(2025, 6, 2, 18, 0)))
    created = store.add_recurring_events(base, "weekly", end_date=datetime(2025, 6, 30, 18, 0))

    assert [e.date.day for e in created] == [2, 9, 16, 23, 30]
    assert all(e.recurring == "weekly" for e in created)
    assert created[1].id.startswith(f"{base.id}-")
    # base event updated in place, not duplicated
    assert len(store.get_all_events()) == 5


def test_recurrence_none_is_noop(store):
    base = store.add_event(_draft())
    assert store.add_recurring_events(base, "none") == [base]
    assert len(store.get_all_events()) == 1


def test_monthly_recurrence_defaults_to_three_months(store):
    base = store.add_event(_draft(when=datetime(2025, 1, 31)))
    created = store.add_recurring_events(base, "monthly")
    assert [e.date.date() for e in created] == [
        date(2025, 1, 31),
        date(2025, 2, 28),
        date(2025, 3, 28),
        date(2025, 4, 28),
    ]


def test_re_expanding_replaces_series(store):
    base = store.add_event(_draft(when=datetime(2025, 6, 2, 18, 0)))
    store.add_recurring_events(base, "weekly", end_date=datetime(2025, 6, 16, 18, 0))
    again = store.add_recurring_events(base, "weekly", end_date=datetime(2025, 6, 16, 18, 0))

    ids = [e.id for e in store.get_all_events()]
    assert len(ids) == len(set(ids)) == 3
    assert sorted(ids) == sorted(e.id for e in again)

    # one record per id, so a delete removes exactly one occurrence
    assert store.delete_event(again[1].id) is True
    assert len(store.get_all_events()) == 2


def test_re_expanding_with_shorter_end_drops_stale_instances(store):
    base = store.add_event(_draft(when=datetime(2025, 6, 2, 18, 0)))
    store.add_recurring_events(base, "daily", end_date=datetime(2025, 6, 6, 18, 0))
    store.add_recurring_events(base, "weekly", end_date=datetime(2025, 6, 9, 18, 0))

    assert [e.date.day for e in store.get_all_events()] == [2, 9]


def test_biweekly_recurrence(store):
    base = store.add_event(_draft(when=datetime(2025, 6, 2, 18, 0)))
    created = store.add_recurring_events(base, "biweekly", end_date=datetime(2025, 7, 14, 18, 0))
    assert [e.date.date() for e in created] == [
        date(2025, 6, 2),
        date(2025, 6, 16),
        date(2025, 6, 30),
        date(2025, 7, 14),
    ]


def test_separate_keys_are_isolated(backend):
    a = EventStore(backend, storage_key="a")
    b = EventStore(backend, storage_key="b")
    a.add_event(_draft())
    assert b.get_all_events() == []
