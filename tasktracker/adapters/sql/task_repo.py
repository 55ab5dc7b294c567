from __future__ import annotations
from typing import Any, Optional
import logging
import sqlalchemy as db
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from pathlib import Path
from tasktracker.ports.task_repository import TaskRepository
from tasktracker.ports.clock import Clock
from tasktracker.ports.id_provider import IdProvider
from tasktracker.domain.task import Task, TaskId, TaskFilter
from tasktracker.domain.enums import TaskStatus
from tasktracker.domain.errors import TaskNotFoundError, StorageError
from tasktracker.adapters.system.clock_system import SystemClock
from tasktracker.adapters.system.id_provider_uuid import UuidIdProvider
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


def sqlite_url(path: str | Path) -> str:
    """'data/tasks.db' -> 'sqlite:///data/tasks.db'; parent directory is created."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{path}"


def create_sql_engine(url: str, **pool_options: Any) -> Engine:
    """
    SQLite gets a thread-shareable connection and no pool tuning; every other
    URL gets the pool options (pool_size, max_overflow, pool_recycle) plus pre-ping.
    """
    if url.startswith("sqlite"):
        return db.create_engine(
            url,
            future=True,
            connect_args={"check_same_thread": False},
        )
    return db.create_engine(url, future=True, pool_pre_ping=True, **pool_options)


class SqlTaskRepository(TaskRepository):
    def __init__(
        self,
        url: str | Path | Engine,
        id_provider: IdProvider | None = None,
        clock: Clock | None = None,
    ) -> None:
        """
        url: e.g. 'sqlite:///data/tasks.db', a Path to a SQLite file, or a ready Engine
        (the factory passes an Engine configured with pool settings for PostgreSQL).
        """
        if isinstance(url, Engine):
            self.engine = url
        elif isinstance(url, Path):
            self.engine = create_sql_engine(sqlite_url(url))
        else:
            self.engine = create_sql_engine(url)

        self._ids = id_provider or UuidIdProvider()
        self._clock = clock or SystemClock()
        self.meta = db.MetaData()

        self.tasks = db.Table(
            "tasks",
            self.meta,
            db.Column("id", db.String(36), primary_key=True),
            db.Column("title", db.String(255), nullable=False),
            db.Column("description", db.Text, nullable=False, default=""),
            db.Column("status", db.String(50), nullable=False),
            db.Column("created_at", db.DateTime(timezone=True), nullable=False),
            db.Column("updated_at", db.DateTime(timezone=True), nullable=False),
            db.Column("due_date", db.DateTime(timezone=True), nullable=True),
            db.Index("idx_tasks_created_at", "created_at"),
        )

        try:
            self.meta.create_all(self.engine)
        except SQLAlchemyError as e:
            logger.error("could not create schema: %s", e)
            raise StorageError("schema setup", e)

    def close(self) -> None:
        self.engine.dispose()

    @staticmethod
    def _utc(value: datetime | None) -> datetime | None:
        # everything is written in UTC; SQLite hands values back without the offset
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def _to_row(self, task: Task) -> dict:
        return {
            "id": str(task.task_id),
            "title": task.title,
            "description": task.description or "",
            "status": task.status.value if isinstance(task.status, TaskStatus) else str(task.status),
            "created_at": self._utc(task.created_at),
            "updated_at": self._utc(task.updated_at),
            "due_date": self._utc(task.due_date),
        }

    def _from_row(self, row) -> Task:
        raw_status = row["status"]
        try:
            status = TaskStatus(raw_status)
        except ValueError:
            # kept as-is so the service can reject transitions out of it
            status = raw_status

        return Task(
            task_id=TaskId(row["id"]),
            title=row["title"],
            description=row["description"],
            status=status,
            created_at=self._utc(row["created_at"]),
            updated_at=self._utc(row["updated_at"]),
            due_date=self._utc(row["due_date"]),
        )

    def create(self, task: Task) -> Task:
        stored = task.copy()
        stored.task_id = TaskId(self._ids.new_id())
        if stored.created_at is None:
            stored.created_at = self._clock.now()
        if stored.updated_at is None:
            stored.updated_at = stored.created_at

        stmt = db.insert(self.tasks).values(**self._to_row(stored))
        try:
            with self.engine.begin() as conn:
                conn.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("insert of task %s failed: %s", stored.task_id, e)
            raise StorageError("create", e)
        return stored

    def get_by_id(self, task_id: TaskId) -> Task:
        stmt = db.select(self.tasks).where(self.tasks.c.id == str(task_id))
        try:
            with self.engine.connect() as conn:
                row = conn.execute(stmt).mappings().first()
        except SQLAlchemyError as e:
            logger.error("select of task %s failed: %s", task_id, e)
            raise StorageError("get_by_id", e)
        if row is None:
            raise TaskNotFoundError(task_id)
        return self._from_row(row)

    def list_all(self, filters: Optional[TaskFilter] = None) -> list[Task]:
        # newest first, id as tiebreaker
        stmt = db.select(self.tasks).order_by(
            self.tasks.c.created_at.desc(), self.tasks.c.id.asc()
        )
        if filters is not None:
            if filters.status is not None:
                stmt = stmt.where(self.tasks.c.status == filters.status.value)
            if filters.due_before is not None:
                stmt = stmt.where(self.tasks.c.due_date < self._utc(filters.due_before))
            if filters.due_after is not None:
                stmt = stmt.where(self.tasks.c.due_date > self._utc(filters.due_after))

        try:
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).mappings().all()
        except SQLAlchemyError as e:
            logger.error("listing tasks failed: %s", e)
            raise StorageError("list", e)
        return [self._from_row(r) for r in rows]

    def update(self, task: Task) -> None:
        rec = self._to_row(task)
        rec.pop("id")
        stmt = (
            db.update(self.tasks)
            .where(self.tasks.c.id == str(task.task_id))
            .values(**rec)
        )
        try:
            with self.engine.begin() as conn:
                result = conn.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("update of task %s failed: %s", task.task_id, e)
            raise StorageError("update", e)
        if result.rowcount == 0:
            raise TaskNotFoundError(task.task_id)

    def delete(self, task_id: TaskId) -> None:
        stmt = db.delete(self.tasks).where(self.tasks.c.id == str(task_id))
        try:
            with self.engine.begin() as conn:
                result = conn.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("delete of task %s failed: %s", task_id, e)
            raise StorageError("delete", e)
        if result.rowcount == 0:
            raise TaskNotFoundError(task_id)
