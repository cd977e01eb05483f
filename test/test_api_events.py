import importlib

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_event_store


@pytest.fixture
def client(store):
    main_mod = importlib.import_module("api.main")
    main_mod.app.dependency_overrides[get_event_store] = lambda: store
    yield TestClient(main_mod.app)
    main_mod.app.dependency_overrides.clear()


@pytest.fixture
def refusing_client(refusing_store):
    main_mod = importlib.import_module("api.main")
    main_mod.app.dependency_overrides[get_event_store] = lambda: refusing_store
    yield TestClient(main_mod.app)
    main_mod.app.dependency_overrides.clear()


def test_create_list_delete(client):
    r = client.post("/events", json={"title": "Gym", "category": "health", "date": "2025-06-11T07:00:00"})
    assert r.status_code == 201
    event = r.json()
    assert event["id"]
    assert event["date"] == "2025-06-11T07:00:00"

    listed = client.get("/events").json()
    assert [e["id"] for e in listed] == [event["id"]]

    by_day = client.get("/events/date/2025-06-11").json()
    assert len(by_day["events"]) == 1

    d = client.delete(f"/events/{event['id']}")
    assert d.json() == {"id": event["id"], "deleted": True}
    d = client.delete(f"/events/{event['id']}")
    assert d.json()["deleted"] is False


def test_invalid_day_format(client):
    assert client.get("/events/date/11-06-2025").status_code == 400


def test_replace_event(client):
    created = client.post("/events", json={"title": "Gym", "date": "2025-06-11T07:00:00"}).json()
    r = client.put(f"/events/{created['id']}", json={"title": "Swim", "date": "2025-06-12T07:00:00"})
    assert r.status_code == 200
    assert r.json()["title"] == "Swim"
    assert client.get(f"/events/{created['id']}").json()["title"] == "Swim"

    assert client.put("/events/missing", json={"title": "X", "date": "2025-06-12T07:00:00"}).status_code == 404


def test_upcoming(client):
    client.post("/events", json={"title": "Soon", "date": "2025-06-12T07:00:00"})
    client.post("/events", json={"title": "Later", "date": "2025-06-30T07:00:00"})
    titles = [e["title"] for e in client.get("/events/upcoming").json()]
    assert titles == ["Soon"]


def test_from_text(client):
    r = client.post(
        "/events/from-text",
        json={"text": "schedule a dentist appointment tomorrow", "today": "2025-06-10"},
    )
    assert r.status_code == 201
    body = r.json()
    assert body["title"] == "A dentist appointment"
    assert body["category"] == "general"
    assert body["date"].startswith("2025-06-11")


def test_from_text_failure_is_422(refusing_client):
    r = refusing_client.post("/events/from-text", json={"text": "schedule yoga tomorrow"})
    assert r.status_code == 422


def test_create_storage_failure_is_507(refusing_client):
    r = refusing_client.post("/events", json={"title": "Gym", "date": "2025-06-11T07:00:00"})
    assert r.status_code == 507


def test_parse_date(client):
    r = client.post("/events/parse-date", json={"text": "next monday", "today": "2025-06-10"})
    body = r.json()
    assert body["matched"] is True
    assert body["rule"] == "weekday"
    assert body["value"].startswith("2025-06-23")

    fallback = client.post("/events/parse-date", json={"text": "someday", "today": "2025-06-10"}).json()
    assert fallback["matched"] is False


def test_recurring(client):
    created = client.post("/events", json={"title": "Standup", "date": "2025-06-02T09:00:00"}).json()
    r = client.post(
        f"/events/{created['id']}/recurring",
        json={"frequency": "weekly", "end_date": "2025-06-16T09:00:00"},
    )
    assert r.status_code == 201
    assert len(r.json()) == 3
    assert client.post("/events/missing/recurring", json={"frequency": "daily"}).status_code == 404


def test_load_test_isolated_does_not_touch_store(client, store):
    r = client.post("/load-test", json={"count": 8, "seed": 1})
    assert r.status_code == 200
    body = r.json()
    assert body["eventsCreated"] == 8
    assert body["updateBatchSize"] == 4
    assert body["deleteBatchSize"] == 2
    assert store.get_all_events() == []


def test_load_test_live(client, store):
    r = client.post("/load-test", json={"count": 8, "target": "live", "seed": 1})
    assert r.json()["eventsDeleted"] == 2
    assert len(store.get_all_events()) == 6


def test_load_test_limit(client):
    assert client.post("/load-test", json={"count": 100000}).status_code == 400
