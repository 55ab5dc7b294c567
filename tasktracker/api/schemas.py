from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from tasktracker.domain.enums import TaskStatus
from tasktracker.domain.task import Task, as_utc


class TaskCreate(BaseModel):
    """Body of POST /task. Status is not accepted, new tasks always start as pending."""
    title: str
    description: str
    due_date: Optional[datetime] = None

    @field_validator("due_date")
    @classmethod
    def _due_date_utc(cls, v):
        return as_utc(v)


class TaskUpdate(BaseModel):
    """Body of PUT /task/{id}. Omitted fields keep their stored value;
    an explicit `"due_date": null` clears the deadline."""
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    due_date: Optional[datetime] = None

    @field_validator("due_date")
    @classmethod
    def _due_date_utc(cls, v):
        return as_utc(v)

    def apply_to(self, task: Task) -> Task:
        """Returns a copy of `task` with the fields present in the body replaced."""
        merged = task.copy()
        for name, value in self.model_dump(exclude_unset=True).items():
            if name != "due_date" and value is None:
                continue
            setattr(merged, name, value)
        return merged


class TaskOut(BaseModel):
    """Task as served over HTTP."""
    id: str
    title: str
    description: str
    status: str
    created_at: datetime
    updated_at: datetime
    due_date: Optional[datetime] = None

    @classmethod
    def from_task(cls, task: Task) -> "TaskOut":
        status = task.status.value if isinstance(task.status, TaskStatus) else str(task.status)
        return cls(
            id=str(task.task_id),
            title=task.title,
            description=task.description,
            status=status,
            created_at=task.created_at,
            updated_at=task.updated_at,
            due_date=task.due_date,
        )


class ErrorOut(BaseModel):
    code: int
    message: str
