from datetime import datetime, timedelta, timezone

import pytest

from mood_journal.errors import PersistenceError


def _create(client, text="Water the plants", **extra):
    resp = client.post("/api/tasks", json={"text": text, **extra})
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_health(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_create_task_returns_full_record(client):
    task = _create(client, "Call mom")
    assert set(task) == {"id", "text", "done", "created_at", "source"}
    assert task["text"] == "Call mom"
    assert task["done"] is False
    assert task["source"] == "web"


def test_create_task_keeps_client_fields(client):
    task = _create(client, "From popup", done=True, createdAt="2026-10-01T08:30:00.000Z", source="extension")
    assert task["done"] is True
    assert task["source"] == "extension"
    assert task["created_at"].startswith("2026-10-01T08:30:00")


@pytest.mark.parametrize("body", [{}, {"text": ""}, {"text": "   "}, {"text": None}, {"text": 42}, {"done": True}])
def test_create_task_without_text_is_rejected(client, body):
    resp = client.post("/api/tasks", json=body)
    assert resp.status_code == 400
    assert "error" in resp.json()
    # nothing persisted
    assert client.get("/api/tasks").json() == []


def test_missing_text_message(client):
    resp = client.post("/api/tasks", json={"text": ""})
    assert resp.json() == {"error": "text is required"}


def test_list_tasks_newest_first(client):
    now = datetime.now(timezone.utc)
    _create(client, "oldest", createdAt=(now - timedelta(days=2)).isoformat())
    _create(client, "newest", createdAt=now.isoformat())
    _create(client, "middle", createdAt=(now - timedelta(days=1)).isoformat())

    texts = [t["text"] for t in client.get("/api/tasks").json()]
    assert texts == ["newest", "middle", "oldest"]


def test_patch_updates_only_supplied_fields(client):
    task = _create(client, "Draft")
    resp = client.patch(f"/api/tasks/{task['id']}", json={"text": "Final"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["text"] == "Final"
    assert body["done"] is False

    body = client.patch(f"/api/tasks/{task['id']}", json={"done": True}).json()
    assert body["text"] == "Final"
    assert body["done"] is True


def test_toggle_twice_restores_done(client):
    task = _create(client, "Stretch")
    original = task["done"]
    first = client.patch(f"/api/tasks/{task['id']}", json={"done": not original}).json()
    second = client.patch(f"/api/tasks/{task['id']}", json={"done": not first["done"]}).json()
    assert second["done"] == original


def test_patch_with_nothing_to_update(client):
    task = _create(client)
    resp = client.patch(f"/api/tasks/{task['id']}", json={})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Nothing to update"}


def test_patch_with_wrong_types_is_rejected(client):
    task = _create(client)
    resp = client.patch(f"/api/tasks/{task['id']}", json={"done": "yes"})
    assert resp.status_code == 400
    assert "done" in resp.json()["error"]


def test_patch_unknown_id_returns_empty_result(client):
    resp = client.patch("/api/tasks/9999", json={"done": True})
    assert resp.status_code == 200
    assert resp.json() is None


def test_delete_task(client):
    task = _create(client)
    resp = client.delete(f"/api/tasks/{task['id']}")
    assert resp.status_code == 204
    assert resp.content == b""
    assert client.get("/api/tasks").json() == []


def test_delete_is_idempotent(client):
    assert client.delete("/api/tasks/12345").status_code == 204
    task = _create(client)
    assert client.delete(f"/api/tasks/{task['id']}").status_code == 204
    assert client.delete(f"/api/tasks/{task['id']}").status_code == 204


def test_weekly_counts_last_seven_days(client):
    now = datetime.now(timezone.utc)
    _create(client, "today 1", done=True, createdAt=now.isoformat())
    _create(client, "today 2", done=True, createdAt=now.isoformat())
    _create(client, "today open", done=False, createdAt=now.isoformat())
    _create(client, "two days ago", done=True, createdAt=(now - timedelta(days=2)).isoformat())
    _create(client, "too old", done=True, createdAt=(now - timedelta(days=10)).isoformat())

    resp = client.get("/api/tasks/weekly")
    assert resp.status_code == 200
    days = resp.json()
    assert len(days) == 7
    assert days[-1] == {"day": now.date().isoformat(), "completed": 2}
    assert days[-3] == {"day": (now - timedelta(days=2)).date().isoformat(), "completed": 1}
    assert sum(d["completed"] for d in days) == 3


def test_persistence_failure_is_generic_500(client, monkeypatch):
    from mood_journal.crud import TaskStore

    async def broken(self):
        raise PersistenceError()

    monkeypatch.setattr(TaskStore, "list", broken)
    resp = client.get("/api/tasks")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Server error"}


def test_unknown_route_uses_error_body(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert "error" in resp.json()
