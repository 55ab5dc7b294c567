import pytest
import sqlalchemy as db
from datetime import datetime, timezone, timedelta
from tasktracker.adapters.sql.task_repo import SqlTaskRepository
from tasktracker.domain.task import Task, TaskId, TaskFilter
from tasktracker.domain.enums import TaskStatus
from tasktracker.domain.errors import TaskNotFoundError, StorageError
from tasktracker.services.task_service import TaskService
from tasktracker.domain.errors import InvalidStatusError

T0 = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def tmp_repo(tmp_path):
    """Repository on a fresh temporary database."""
    repo = SqlTaskRepository(tmp_path / "tasks.db")
    yield repo
    repo.close()


def make_task(title: str = "Test", created_at: datetime = T0, **kwargs) -> Task:
    return Task(
        title=title,
        description="desc",
        status=TaskStatus.PENDING,
        created_at=created_at,
        updated_at=created_at,
        **kwargs,
    )


def test_create_and_get(tmp_repo):
    due = T0 + timedelta(days=1)
    stored = tmp_repo.create(make_task(due_date=due))

    fetched = tmp_repo.get_by_id(stored.task_id)
    assert fetched == stored
    assert fetched is not stored
    assert fetched.status is TaskStatus.PENDING
    assert fetched.created_at.tzinfo is not None
    assert fetched.due_date == due


def test_get_missing_raises(tmp_repo):
    with pytest.raises(TaskNotFoundError):
        tmp_repo.get_by_id(TaskId("nope"))


def test_delete_removes(tmp_repo):
    stored = tmp_repo.create(make_task())
    tmp_repo.delete(stored.task_id)
    with pytest.raises(TaskNotFoundError):
        tmp_repo.get_by_id(stored.task_id)
    with pytest.raises(TaskNotFoundError):
        tmp_repo.delete(stored.task_id)


def test_update_changes_status(tmp_repo):
    stored = tmp_repo.create(make_task())

    stored.status = TaskStatus.COMPLETED
    stored.updated_at = T0 + timedelta(minutes=1)
    tmp_repo.update(stored)

    result = tmp_repo.get_by_id(stored.task_id)
    assert result.status == TaskStatus.COMPLETED
    assert result.updated_at == T0 + timedelta(minutes=1)


def test_update_missing_raises(tmp_repo):
    tmp_repo.create(make_task())
    before = tmp_repo.list_all()

    with pytest.raises(TaskNotFoundError):
        tmp_repo.update(make_task(task_id=TaskId("nope")))
    assert tmp_repo.list_all() == before


def test_list_newest_first_and_filters(tmp_repo):
    old = tmp_repo.create(make_task("old", T0, due_date=T0 + timedelta(days=1)))
    new = tmp_repo.create(make_task("new", T0 + timedelta(hours=1), due_date=T0 + timedelta(days=5)))
    tmp_repo.create(make_task("no due", T0 + timedelta(minutes=1)))

    all_tasks = tmp_repo.list_all()
    assert [t.title for t in all_tasks] == ["new", "no due", "old"]

    soon = tmp_repo.list_all(TaskFilter(due_before=T0 + timedelta(days=2)))
    late = tmp_repo.list_all(TaskFilter(due_after=T0 + timedelta(days=2)))
    assert [t.task_id for t in soon] == [old.task_id]
    assert [t.task_id for t in late] == [new.task_id]
    assert tmp_repo.list_all(TaskFilter(status=TaskStatus.COMPLETED)) == []


def test_data_survives_a_new_repository(tmp_path):
    path = tmp_path / "tasks.db"
    first = SqlTaskRepository(path)
    stored = first.create(make_task())
    first.close()

    second = SqlTaskRepository(path)
    assert second.get_by_id(stored.task_id).title == "Test"
    second.close()


def test_unknown_status_in_row_is_rejected_by_service(tmp_repo):
    stored = tmp_repo.create(make_task())
    with tmp_repo.engine.begin() as conn:
        conn.execute(
            db.update(tmp_repo.tasks).where(tmp_repo.tasks.c.id == stored.task_id).values(status="Closed")
        )

    task = tmp_repo.get_by_id(stored.task_id)
    assert task.status == "Closed"

    task.status = TaskStatus.PENDING
    with pytest.raises(InvalidStatusError):
        TaskService(tmp_repo).update_task(task)


def test_driver_failure_becomes_storage_error(tmp_repo):
    with tmp_repo.engine.begin() as conn:
        conn.execute(db.text("DROP TABLE tasks"))

    with pytest.raises(StorageError):
        tmp_repo.list_all()
    with pytest.raises(StorageError):
        tmp_repo.create(make_task())
