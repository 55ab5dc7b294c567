import pytest
from datetime import datetime, timezone, timedelta
from fastapi.testclient import TestClient

from tasktracker.adapters.memory.task_repo import InMemoryTaskRepository
from tasktracker.api.http import create_app
from tasktracker.config import Settings
from tasktracker.domain.errors import StorageError
from tasktracker.services.task_service import TaskService

BASE = "/api/v1/task"


def ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@pytest.fixture
def client():
    service = TaskService(InMemoryTaskRepository())
    return TestClient(create_app(service, Settings()))


def create(client, title="A", description="d", **extra):
    response = client.post(BASE, json={"title": title, "description": description, **extra})
    assert response.status_code == 201, response.text
    return response.json()


def test_create_returns_pending_task(client):
    due = (datetime.now(timezone.utc) + timedelta(hours=24)).isoformat()

    body = create(client, due_date=due)

    assert body["id"]
    assert body["status"] == "pending"
    assert body["created_at"] == body["updated_at"]
    assert ts(body["due_date"]) == ts(due)


def test_create_ignores_requested_status(client):
    body = create(client, status="completed")
    assert body["status"] == "pending"


@pytest.mark.parametrize(
    "payload",
    [
        {"description": "no title"},
        {"title": "no description"},
        {"title": "   ", "description": "blank title"},
        {"title": "A", "description": "d", "due_date": "not-a-date"},
    ],
)
def test_create_invalid_body_is_400(client, payload):
    response = client.post(BASE, json=payload)

    assert response.status_code == 400
    assert response.json()["code"] == 400
    assert response.json()["message"]


def test_get_and_list(client):
    a = create(client, "A")
    b = create(client, "B")

    assert client.get(f"{BASE}/{a['id']}").json() == a
    listed = client.get(BASE).json()
    assert {t["id"] for t in listed} == {a["id"], b["id"]}


def test_get_missing_is_404(client):
    response = client.get(f"{BASE}/does-not-exist")

    assert response.status_code == 404
    assert response.json() == {"code": 404, "message": "task with ID does-not-exist not found"}


def test_update_scenario(client):
    task = create(client)

    response = client.put(f"{BASE}/{task['id']}", json={"status": "in_progress"})
    assert response.status_code == 200
    updated = response.json()
    assert updated["status"] == "in_progress"
    assert updated["title"] == task["title"]
    assert updated["created_at"] == task["created_at"]
    assert ts(updated["updated_at"]) >= ts(task["updated_at"])

    response = client.put(f"{BASE}/{task['id']}", json={"status": "archived"})
    assert response.status_code == 400
    assert "invalid status" in response.json()["message"]
    assert client.get(f"{BASE}/{task['id']}").json()["status"] == "in_progress"

    assert client.delete(f"{BASE}/{task['id']}").status_code == 204
    assert client.get(f"{BASE}/{task['id']}").status_code == 404


def test_update_can_clear_due_date(client):
    task = create(client, due_date="2030-01-01T00:00:00Z")

    updated = client.put(f"{BASE}/{task['id']}", json={"due_date": None}).json()

    assert updated["due_date"] is None


def test_update_missing_is_404(client):
    response = client.put(f"{BASE}/nope", json={"status": "completed"})
    assert response.status_code == 404


def test_update_blank_title_is_400(client):
    task = create(client)
    response = client.put(f"{BASE}/{task['id']}", json={"title": ""})
    assert response.status_code == 400


def test_delete_missing_is_404(client):
    assert client.delete(f"{BASE}/nope").status_code == 404


def test_list_filters(client):
    a = create(client, "A", due_date="2030-01-01T00:00:00Z")
    b = create(client, "B", due_date="2030-06-01T00:00:00Z")
    client.put(f"{BASE}/{b['id']}", json={"status": "completed"})

    by_status = client.get(BASE, params={"status": "completed"}).json()
    before = client.get(BASE, params={"due_before": "2030-03-01T00:00:00Z"}).json()

    assert [t["id"] for t in by_status] == [b["id"]]
    assert [t["id"] for t in before] == [a["id"]]


def test_list_unknown_status_filter_is_400(client):
    assert client.get(BASE, params={"status": "archived"}).status_code == 400


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_custom_base_path():
    settings = Settings(api_base_path="/tasks-api")
    client = TestClient(create_app(TaskService(InMemoryTaskRepository()), settings))

    assert client.get("/tasks-api/task").status_code == 200
    assert client.get(BASE).status_code == 404


class BrokenRepository(InMemoryTaskRepository):
    def list_all(self, filters=None):
        raise StorageError("list", RuntimeError("connection refused"))


def test_storage_failure_is_500_without_details():
    client = TestClient(create_app(TaskService(BrokenRepository()), Settings()))

    response = client.get(BASE)

    assert response.status_code == 500
    assert response.json() == {"code": 500, "message": "internal server error"}
