import pytest
from typer.testing import CliRunner

from tasktracker.api.cli import app
from tasktracker.adapters.sql.task_repo import SqlTaskRepository
from tasktracker.domain.enums import TaskStatus

runner = CliRunner()


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "tasks.db"
    monkeypatch.setenv("TASKTRACKER_ENV", "test")
    monkeypatch.setenv("REPOSITORY_TYPE", "sqlite")
    monkeypatch.setenv("SQLITE_PATH", str(path))
    monkeypatch.setenv("LOG_LEVEL", "error")
    monkeypatch.delenv("APP_ENV", raising=False)
    return path


def stored(path):
    repo = SqlTaskRepository(path)
    try:
        return repo.list_all()
    finally:
        repo.close()


def test_add_creates_pending_task(db_path):
    result = runner.invoke(app, ["add", "Write report", "-d", "quarterly", "--due", "2030-01-01T09:00:00Z"])

    assert result.exit_code == 0, result.output
    assert "Task created" in result.output
    [task] = stored(db_path)
    assert task.title == "Write report"
    assert task.status is TaskStatus.PENDING
    assert task.due_date.year == 2030


def test_add_blank_title_is_rejected(db_path):
    result = runner.invoke(app, ["add", "   "])

    assert result.exit_code == 1
    assert stored(db_path) == []


def test_add_bad_due_date_is_usage_error(db_path):
    result = runner.invoke(app, ["add", "A", "--due", "tomorrow"])
    assert result.exit_code == 2


def test_list_and_show(db_path):
    runner.invoke(app, ["add", "First"])
    runner.invoke(app, ["add", "Second"])
    task = stored(db_path)[0]

    listed = runner.invoke(app, ["list"])
    shown = runner.invoke(app, ["show", task.task_id])

    assert listed.exit_code == 0
    assert "First" in listed.output and "Second" in listed.output
    assert "Total: 2" in listed.output
    assert shown.exit_code == 0
    assert task.task_id in shown.output


def test_status_change_and_filter(db_path):
    runner.invoke(app, ["add", "A"])
    task = stored(db_path)[0]

    result = runner.invoke(app, ["status", task.task_id, "completed"])

    assert result.exit_code == 0, result.output
    assert stored(db_path)[0].status is TaskStatus.COMPLETED
    assert "Total: 1" in runner.invoke(app, ["list", "--status", "completed"]).output
    assert "Total: 0" in runner.invoke(app, ["list", "-s", "pending"]).output


def test_status_unknown_value_is_rejected(db_path):
    runner.invoke(app, ["add", "A"])
    task = stored(db_path)[0]

    result = runner.invoke(app, ["status", task.task_id, "archived"])

    assert result.exit_code == 1
    assert stored(db_path)[0].status is TaskStatus.PENDING


def test_rm_then_show_is_not_found(db_path):
    runner.invoke(app, ["add", "A"])
    task = stored(db_path)[0]

    assert runner.invoke(app, ["rm", task.task_id]).exit_code == 0
    result = runner.invoke(app, ["show", task.task_id])

    assert result.exit_code == 1
    assert "not found" in result.output.lower()
    assert runner.invoke(app, ["rm", task.task_id]).exit_code == 1


def test_bad_configuration_exits_with_2(db_path, monkeypatch):
    monkeypatch.setenv("REPOSITORY_TYPE", "mongo")

    result = runner.invoke(app, ["list"])

    assert result.exit_code == 2
    assert "REPOSITORY_TYPE" in result.output
