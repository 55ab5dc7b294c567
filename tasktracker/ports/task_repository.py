from typing import Protocol, Optional
from tasktracker.domain.task import Task, TaskId, TaskFilter


### COMMENTS
# ==========================================================
# Task repository contract (ports/task_repository.py).
# ==========================================================
# Technology-neutral interface of the task storage layer.
# - Implemented by the in-memory map and by the SQL backend.
# - Adapters map technical errors to domain errors
#   (missing record -> TaskNotFoundError, driver failure -> StorageError).
# - No business logic here: title and status checks live in the service.
# - Listing order is the same for every backend: newest first
#   (created_at DESC), task_id ASC as tiebreaker.


class TaskRepository(Protocol):
    """Storage capability set for `Task` objects.

    Implementations must:
    - be safe to call from several threads at once,
    - never hand out or keep a reference shared with the caller (copy in, copy out),
    - map technical failures to domain errors,
    - not perform business validation.
    """

    def create(self, task: Task) -> Task:
        """Stores a new task under a freshly generated identifier.

        Returns:
            Task: Copy of the stored record, with `task_id` set and
            `created_at`/`updated_at` filled in when the caller left them empty.

        Domain errors:
            StorageError: When the backend fails. Never fails for duplicates,
            identifiers are always generated here.
        """

    def get_by_id(self, task_id: TaskId) -> Task:
        """Returns a copy of the task with the given `task_id`.

        Domain errors:
            TaskNotFoundError: When no such record exists.
        """

    def list_all(self, filters: Optional[TaskFilter] = None) -> list[Task]:
        """Returns copies of all tasks matching `filters`, newest first.

        Parameters:
            filters (Optional[TaskFilter]): `None` or an empty filter returns everything.

        Domain errors:
            StorageError only; an empty store is an empty list.
        """

    def update(self, task: Task) -> None:
        """Replaces the record with the same `task_id` wholesale.

        Domain errors:
            TaskNotFoundError: When the record does not exist.

        Notes:
            Fields are never merged, the full object is stored. Timestamps are
            the caller's responsibility.
        """

    def delete(self, task_id: TaskId) -> None:
        """Removes (hard delete) the record with `task_id`.

        Domain errors:
            TaskNotFoundError: When the record does not exist.
        """
