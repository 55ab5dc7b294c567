from tasktracker.domain.task import Task, TaskId, TaskFilter
from tasktracker.domain.errors import TaskNotFoundError
from tasktracker.ports.clock import Clock
from tasktracker.ports.id_provider import IdProvider
from tasktracker.adapters.memory.rwlock import ReadWriteLock
from tasktracker.adapters.system.clock_system import SystemClock
from tasktracker.adapters.system.id_provider_uuid import UuidIdProvider
from typing import Iterable, Optional
import logging

logger = logging.getLogger(__name__)

### COMMENTS
# ==========================================================
# In-memory adapter of the task repository (adapters/memory/task_repo.py).
# ==========================================================
# Implements the `TaskRepository` port in process memory.
#
# - Used by default, by tests, and when nothing needs to survive a restart.
# - Data lives in `_data: dict[TaskId, Task]`, owned by the instance
#   (no module-level state); build one at startup and pass it to the service.
# - `_lock` is a reader/writer lock: get/list share it, create/update/delete
#   take it exclusively.
# - Copy in, copy out: stored objects never leave the repository.
# - Contract rules:
#     * `create`    -> new id from the IdProvider, never a duplicate error,
#     * `get_by_id` -> copy or `TaskNotFoundError`,
#     * `update`    -> full replacement or `TaskNotFoundError`,
#     * `delete`    -> removes or `TaskNotFoundError`,
#     * `list_all`  -> filtered snapshot, created_at DESC + task_id ASC.


def _newest_first(tasks: list[Task]) -> list[Task]:
    # two stable sorts: tiebreaker first, then the primary key
    tasks.sort(key=lambda t: str(t.task_id))
    tasks.sort(key=lambda t: t.created_at, reverse=True)
    return tasks


class InMemoryTaskRepository:
    """
        Creates the repository, optionally seeded with existing tasks.

        :param initial: Tasks to preload; they must already carry a `task_id`.
            On duplicate ids the last one wins (seed only, not part of the API).
            Missing timestamps are stamped from `clock`, as in `create`.
        :param id_provider: Source of identifiers for `create` (UUID4 by default).
        :param clock: Used to fill missing timestamps on `create`.
    """
    def __init__(
        self,
        initial: Iterable[Task] | None = None,
        id_provider: IdProvider | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._data: dict[TaskId, Task] = {}
        self._lock = ReadWriteLock()
        self._ids = id_provider or UuidIdProvider()
        self._clock = clock or SystemClock()
        for t in (initial or []):
            seeded = t.copy()
            if seeded.created_at is None:
                seeded.created_at = self._clock.now()
            if seeded.updated_at is None:
                seeded.updated_at = seeded.created_at
            self._data[seeded.task_id] = seeded

    def create(self, task: Task) -> Task:
        """
            Stores a new task.

            - Assigns a fresh `task_id`; whatever id the input carried is ignored.
            - Fills `created_at` (and `updated_at`, from `created_at`) when empty.
            - Stores a copy, so the caller's object stays detached.

            :param task: Task to store.
            :return: Copy of the stored task.
        """
        stored = task.copy()
        with self._lock.write_locked():
            stored.task_id = TaskId(self._ids.new_id())
            while stored.task_id in self._data:
                stored.task_id = TaskId(self._ids.new_id())
            if stored.created_at is None:
                stored.created_at = self._clock.now()
            if stored.updated_at is None:
                stored.updated_at = stored.created_at
            self._data[stored.task_id] = stored
        logger.debug("stored task %s", stored.task_id)
        return stored.copy()

    def get_by_id(self, task_id: TaskId) -> Task:
        """
            Returns the task with the given `task_id`.

            :param task_id: Identifier of the task.
            :raises TaskNotFoundError: When no such task exists.
            :return: An independent copy of the stored `Task`.
        """
        with self._lock.read_locked():
            task = self._data.get(task_id)
            if task is None:
                raise TaskNotFoundError(task_id)
            return task.copy()

    def list_all(self, filters: Optional[TaskFilter] = None) -> list[Task]:
        """
        Returns a snapshot of the stored tasks, newest first.

        :param filters: Optional criteria; `None` returns everything.
        :return: List of copies, created_at DESC with task_id ASC as tiebreaker.
        """
        with self._lock.read_locked():
            tasks = [t.copy() for t in self._data.values()]

        if filters is not None and not filters.is_empty():
            tasks = [t for t in tasks if filters.matches(t)]

        return _newest_first(tasks)

    def update(self, task: Task) -> None:
        """
            Replaces the existing record with the same `task_id`.

            - No field merging: the stored object is swapped for a copy of `task`.

            :param task: Full new version of the task.
            :raises TaskNotFoundError: When the record does not exist.
            :return: None
        """
        replacement = task.copy()
        with self._lock.write_locked():
            if task.task_id not in self._data:
                raise TaskNotFoundError(task.task_id)
            self._data[task.task_id] = replacement

    def delete(self, task_id: TaskId) -> None:
        """
            Removes the task with the given identifier.

            :param task_id: Identifier of the task to delete.
            :raises TaskNotFoundError: When no such task exists.
            :return: None
        """
        with self._lock.write_locked():
            if task_id not in self._data:
                raise TaskNotFoundError(task_id)
            del self._data[task_id]
