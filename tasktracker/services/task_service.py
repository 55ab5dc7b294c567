from tasktracker.ports.task_repository import TaskRepository
from tasktracker.ports.clock import Clock
from tasktracker.domain.task import Task, TaskId, TaskFilter, as_utc
from tasktracker.domain.errors import TaskValidationError, InvalidStatusError
from tasktracker.domain.enums import TaskStatus
from tasktracker.domain.transitions import validate_transition
from tasktracker.adapters.system.clock_system import SystemClock
from datetime import datetime
import logging

logger = logging.getLogger(__name__)


### COMMENTS
# ==========================================================
# Service layer (services/task_service.py): use cases.
# ==========================================================
# Role:
# - Orchestrates application logic over the `TaskRepository` port.
# - Validates input (title) and status transitions.
# - Stamps timestamps through the `Clock` port; ids come from the repository.
#
# Rules:
# - Talks to ports only, never to a concrete adapter.
# - Domain errors:
#     * empty title -> `TaskValidationError`,
#     * unknown status or forbidden transition -> `InvalidStatusError`,
#     * missing record -> `TaskNotFoundError` (raised by the repository).
# - Storage errors are never caught here.
# - Known race: update_task reads, validates, then writes. Two concurrent
#   updates from the same state both pass validation and the last write wins.



class TaskService:
    """
    Use-case service for tasks.

    :param repo: Implementation of the TaskRepository port.
    :param clock: Time source for created_at/updated_at (system UTC clock by default).
    """
    def __init__(self, repo: TaskRepository, clock: Clock | None = None) -> None:
        self.repo = repo
        self.clock = clock or SystemClock()

    def create_task(self, title, description="", due_date: datetime | None = None) -> Task:
        """
            Creates a new task and stores it.

            - Validation: `title` must not be empty or whitespace only
              (`TaskValidationError("title", "...")`).
            - Status is always `pending`; `created_at == updated_at == clock.now()`.
            - The repository assigns `task_id`.

            :param title: Task title (required).
            :param description: Description, may be empty.
            :param due_date: Optional deadline. Naive values are read as UTC.
            :return: The persisted `Task`.
            :raises TaskValidationError: When `title` is invalid.
        """
        self._validate_title(title)

        now = self.clock.now()
        task = Task(
            title=title,
            description=description or "",
            status=TaskStatus.PENDING,
            created_at=now,
            updated_at=now,
            due_date=as_utc(due_date),
        )
        created = self.repo.create(task)
        logger.info("created task %s", created.task_id)
        return created

    def get_task(self, task_id: TaskId) -> Task:
        """
            Returns a single task.

            :raises TaskNotFoundError: When the task does not exist.
        """
        return self.repo.get_by_id(task_id)

    def list_tasks(self, filters: TaskFilter | None = None) -> list[Task]:
        """Returns all tasks matching `filters`, newest first."""
        return self.repo.list_all(filters)

    def update_task(self, new_task: Task) -> Task:
        """
            Replaces an existing task with `new_task`.

            - Loads the stored version by `new_task.task_id`.
            - Validates the status transition from the stored status to `new_task.status`.
            - Keeps the original `created_at`, sets `updated_at = clock.now()`.
            - Hands the full record to `repo.update` (no field merging).

            Not atomic with respect to concurrent writers: the last successful
            write wins, there is no conflict detection.

            :param new_task: Full new version of the task, `task_id` must be set.
            :return: The stored `Task`.
            :raises TaskNotFoundError: When the task does not exist.
            :raises InvalidStatusError: For an unknown status or a forbidden transition.
            :raises TaskValidationError: When the title is empty.
        """
        existing = self.repo.get_by_id(new_task.task_id)

        try:
            status = validate_transition(existing.status, new_task.status)
        except InvalidStatusError as e:
            logger.warning("rejected update of task %s: %s", new_task.task_id, e)
            raise
        self._validate_title(new_task.title)

        updated = new_task.copy()
        updated.status = status
        updated.due_date = as_utc(updated.due_date)
        updated.created_at = existing.created_at
        updated.updated_at = max(self.clock.now(), existing.created_at)

        self.repo.update(updated)
        logger.info("updated task %s (%s -> %s)", updated.task_id, existing.status, status)
        return updated

    def change_status(self, task_id: TaskId, status: TaskStatus | str) -> Task:
        """
            Moves a task to another status, keeping every other field.

            :raises TaskNotFoundError: When the task does not exist.
            :raises InvalidStatusError: For an unknown status or a forbidden transition.
        """
        task = self.repo.get_by_id(task_id)
        task.status = status
        return self.update_task(task)

    def delete_task(self, task_id: TaskId) -> None:
        """
            Deletes a task.

            - Checks existence first through `repo.get_by_id`, so the missing-task
              error always comes from the same place.
            - Then delegates to `repo.delete`.

            :raises TaskNotFoundError: When the task does not exist.
        """
        self.repo.get_by_id(task_id)
        self.repo.delete(task_id)
        logger.info("deleted task %s", task_id)

    @staticmethod
    def _validate_title(title) -> None:
        if not isinstance(title, str) or not title.strip():
            raise TaskValidationError("title", "title must not be empty")
