from typing import NewType
from datetime import datetime, timezone
from dataclasses import dataclass, replace
from tasktracker.domain.enums import TaskStatus

TaskId = NewType("TaskId", str)


def as_utc(value: datetime | None) -> datetime | None:
    """Naive datetimes are read as UTC; aware ones are converted to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass
class Task():
    """
    Domain model of a single task. Timestamps are UTC-aware and stamped by the
    service or the storage layer, never by the caller.

    `status` is normally a `TaskStatus`, but may carry any string coming from
    the outside world; the service rejects unknown values on update.
    """
    title: str
    description: str = ""
    status: TaskStatus | str = TaskStatus.PENDING
    created_at: datetime | None = None
    updated_at: datetime | None = None
    due_date: datetime | None = None
    task_id: TaskId | None = None

    def copy(self) -> "Task":
        """Independent copy; all fields are immutable values so a shallow copy is enough."""
        return replace(self)


@dataclass(frozen=True)
class TaskFilter():
    """Optional criteria for listing tasks. An empty filter matches everything."""
    status: TaskStatus | None = None
    due_before: datetime | None = None
    due_after: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "due_before", as_utc(self.due_before))
        object.__setattr__(self, "due_after", as_utc(self.due_after))

    def matches(self, task: Task) -> bool:
        if self.status is not None and task.status != self.status:
            return False
        if self.due_before is not None:
            if task.due_date is None or task.due_date >= self.due_before:
                return False
        if self.due_after is not None:
            if task.due_date is None or task.due_date <= self.due_after:
                return False
        return True

    def is_empty(self) -> bool:
        return self.status is None and self.due_before is None and self.due_after is None


### COMMENTS
# ======================================
# Task vs. TaskFilter
# ======================================
# Task is a plain mutable record. Storage never hands out its own instance:
# every read returns `task.copy()` and every write stores a copy, so editing
# a fetched task changes nothing until `TaskService.update_task` succeeds.
#
# TaskFilter is frozen: it is a value built once per request.
# `due_before` / `due_after` are strict bounds and skip tasks without a due date.
# Bounds are normalized to UTC, like every stored timestamp.
