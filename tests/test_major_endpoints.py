import datetime

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from recurring_planner.core import clock


@pytest.fixture()
def client(engine, monkeypatch):
    from recurring_planner.application import app
    from recurring_planner.core import db as db_module

    monkeypatch.setattr(db_module, "_ensure_db_initialized", lambda: None)

    def _override_get_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[db_module.get_db] = _override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _create_every_other_day(client, **overrides):
    payload = {
        "title": "Water plants",
        "anchor_date": "2026-01-01",
        "time": "08:00",
        "pattern": {"kind": "every_n_days", "interval": 2},
    }
    payload.update(overrides)
    response = client.post("/api/templates", json=payload)
    assert response.status_code == 201
    return response.json()


def test_calendar_endpoint_rollover_and_payload_shape(client):
    response = client.get("/api/calendar?year=2026&month=13")

    assert response.status_code == 200
    payload = response.json()
    assert payload["year"] == 2027
    assert payload["month"] == 1
    assert all(len(week) == 7 for week in payload["calendar_data"])
    day = payload["calendar_data"][0][0]
    assert {
        "date",
        "day_num",
        "is_current_month",
        "is_today",
        "pending_count",
        "done_count",
        "skipped_count",
        "occurrence_count",
        "todo_count",
        "total_count",
    }.issubset(day.keys())


def test_calendar_endpoint_rejects_non_integer_month(client):
    response = client.get("/api/calendar?year=2026&month=jan")

    assert response.status_code == 400


def test_day_endpoint_rejects_invalid_date(client):
    response = client.get("/api/day/not-a-date")

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid date format"


def test_day_endpoint_merges_occurrences_and_todos(client):
    template = _create_every_other_day(client)
    todo = client.post("/api/todos", json={"title": "Pay rent", "due_date": "2026-01-01"})
    assert todo.status_code == 201

    response = client.get("/api/day/2026-01-01")

    assert response.status_code == 200
    payload = response.json()
    assert payload["date"] == "2026-01-01"
    assert payload["completion_rate"] == 0
    kinds = sorted(item["kind"] for item in payload["timeline_items"])
    assert kinds == ["occurrence", "todo"]
    occurrence = next(item for item in payload["timeline_items"] if item["kind"] == "occurrence")
    assert occurrence["template_id"] == template["id"]
    assert occurrence["is_done"] is False


def test_today_endpoint_uses_configured_zone(client):
    current = clock.today(clock.get_timezone())
    client.post("/api/todos", json={"title": "Today only", "due_date": current.isoformat()})

    response = client.get("/api/today")

    assert response.status_code == 200
    payload = response.json()
    assert payload["date"] == current.isoformat()
    assert [item["title"] for item in payload["timeline_items"]] == ["Today only"]


def test_template_create_and_detail(client):
    created = _create_every_other_day(client, count=3)

    assert created["description"] == "Every 2 days for 3 occurrences"
    assert created["pattern"] == {"kind": "every_n_days", "interval": 2}

    detail = client.get(f"/api/templates/{created['id']}")
    assert detail.status_code == 200
    assert detail.json()["history"] == []

    listing = client.get("/api/templates").json()["templates"]
    assert [item["id"] for item in listing] == [created["id"]]


def test_template_create_rejects_bad_pattern(client):
    response = client.post(
        "/api/templates",
        json={"title": "Nope", "anchor_date": "2026-01-01", "pattern": {"kind": "hourly"}},
    )

    assert response.status_code == 400


def test_unknown_template_is_404(client):
    assert client.get("/api/templates/999").status_code == 404
    assert client.put("/api/templates/999/occurrences/2026-01-01/status", json={"status": "done"}).status_code == 404


def test_occurrence_status_on_non_generated_date_is_409(client):
    template = _create_every_other_day(client)

    response = client.put(f"/api/templates/{template['id']}/occurrences/2026-01-04/status", json={"status": "done"})

    assert response.status_code == 409


def test_occurrence_status_and_title_updates(client):
    template = _create_every_other_day(client)
    base = f"/api/templates/{template['id']}/occurrences/2026-01-03"

    done = client.put(f"{base}/status", json={"status": "done"})
    assert done.status_code == 200
    assert done.json()["status"] == "done"
    assert done.json()["completed_at"] is not None

    renamed = client.put(f"{base}/title", json={"title": "Water plants twice"})
    assert renamed.json()["title"] == "Water plants twice"
    assert renamed.json()["status"] == "done"

    bad = client.put(f"{base}/status", json={"status": "finished"})
    assert bad.status_code == 400

    single = client.get(base)
    assert single.json()["override_title"] == "Water plants twice"
    assert client.get(f"/api/templates/{template['id']}/occurrences/2026-01-04").status_code == 409

    window = client.get(f"/api/templates/{template['id']}/occurrences?start=2026-01-01&end=2026-01-06").json()
    assert [(item["date"], item["status"]) for item in window["occurrences"]] == [
        ("2026-01-01", "pending"),
        ("2026-01-03", "done"),
        ("2026-01-05", "pending"),
    ]


def test_occurrence_window_is_bounded(client, monkeypatch):
    template = _create_every_other_day(client)
    monkeypatch.setenv("PLANNER_MAX_EXPAND_DAYS", "10")

    response = client.get(f"/api/templates/{template['id']}/occurrences?start=2026-01-01&end=2026-02-01")

    assert response.status_code == 400


def test_exceptions_endpoints(client):
    template = _create_every_other_day(client)
    url = f"/api/templates/{template['id']}/exceptions"

    added = client.post(url, json={"date": "2026-01-03"})
    assert added.status_code == 201
    assert added.json()["exceptions"] == ["2026-01-03"]
    assert client.post(url, json={"date": "2026-01-04"}).status_code == 409

    day = client.get("/api/day/2026-01-03").json()
    assert day["timeline_items"] == []

    removed = client.delete(f"{url}/2026-01-03")
    assert removed.status_code == 200
    assert removed.json()["exceptions"] == []
    assert client.delete(f"{url}/2026-01-03").status_code == 404


def test_edit_and_retire_template(client):
    template = _create_every_other_day(client)

    edited = client.patch(f"/api/templates/{template['id']}", json={"title": "Water ferns"})
    assert edited.status_code == 200
    assert edited.json()["title"] == "Water ferns"

    retired = client.post(f"/api/templates/{template['id']}/retire")
    assert retired.status_code == 200
    assert retired.json()["active"] is False
    assert retired.json()["next_occurrence"] is None
    assert client.get("/api/templates").json()["templates"] == []
    assert len(client.get("/api/templates?include_retired=true").json()["templates"]) == 1

    future = (clock.today(clock.get_timezone()) + datetime.timedelta(days=1)).isoformat()
    assert client.get(f"/api/day/{future}").json()["timeline_items"] == []


def test_todo_crud(client):
    created = client.post("/api/todos", json={"title": "Pay rent", "due_date": "2026-01-01", "time": "18:00"})
    assert created.status_code == 201
    todo_id = created.json()["id"]

    edited = client.patch(f"/api/todos/{todo_id}", json={"title": "Pay rent (January)"})
    assert edited.json()["title"] == "Pay rent (January)"

    done = client.put(f"/api/todos/{todo_id}/status", json={"status": "done"})
    assert done.json()["status"] == "done"

    assert client.post("/api/todos", json={"title": "", "due_date": "2026-01-01"}).status_code == 400
    assert client.delete(f"/api/todos/{todo_id}").json() == {"status": "deleted", "id": todo_id}
    assert client.delete(f"/api/todos/{todo_id}").status_code == 404


def test_lifespan_initializes_database_once(monkeypatch):
    from recurring_planner.application import app
    from recurring_planner.core import db as db_module

    calls = []
    monkeypatch.setattr(db_module, "_ensure_db_initialized", lambda: calls.append("init"))

    with TestClient(app):
        assert calls == ["init"]
    assert calls == ["init"]


def test_malformed_json_body_is_400(client):
    template = _create_every_other_day(client)
    headers = {"content-type": "application/json"}

    edited = client.patch(f"/api/templates/{template['id']}", content=b"{not json", headers=headers)
    assert edited.status_code == 400
    assert edited.json()["detail"] == "Invalid JSON"

    created = client.post("/api/todos", content=b"[1, 2", headers=headers)
    assert created.status_code == 400
    assert created.json()["detail"] == "Invalid JSON"


@pytest.mark.parametrize("query", ["year=10000&month=1", "year=9999&month=12", "year=0&month=1"])
def test_calendar_endpoint_out_of_range_is_400(client, query):
    response = client.get(f"/api/calendar?{query}")

    assert response.status_code == 400
    assert response.json()["detail"] == "year and month are out of range"


def test_occurrence_window_near_max_date_is_400(client):
    template = _create_every_other_day(client)

    response = client.get(f"/api/templates/{template['id']}/occurrences?start=9999-12-20")

    assert response.status_code == 400
    assert response.json()["detail"] == "window is out of range"
