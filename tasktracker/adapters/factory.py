from tasktracker.config import Settings
from tasktracker.ports.task_repository import TaskRepository
from tasktracker.adapters.memory.task_repo import InMemoryTaskRepository
from tasktracker.adapters.sql.task_repo import SqlTaskRepository, create_sql_engine, sqlite_url
import logging

logger = logging.getLogger(__name__)


def build_repository(settings: Settings) -> TaskRepository:
    """Picks the storage backend once, at startup.

    - `memory`   -> InMemoryTaskRepository (nothing survives a restart)
    - `sqlite`   -> SqlTaskRepository on `settings.sqlite_path`
    - `postgres` -> SqlTaskRepository on a pooled engine built from DB_* / DATABASE_URL
    """
    kind = settings.repository_type
    if kind == "memory":
        logger.info("using in-memory task repository")
        return InMemoryTaskRepository()
    if kind == "sqlite":
        logger.info("using sqlite task repository at %s", settings.sqlite_path)
        return SqlTaskRepository(sqlite_url(settings.sqlite_path))
    if kind == "postgres":
        engine = create_sql_engine(
            settings.sqlalchemy_url(),
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=settings.db_conn_max_lifetime,
        )
        logger.info("using postgres task repository on %s", engine.url.render_as_string(hide_password=True))
        return SqlTaskRepository(engine)
    raise ValueError(f"unknown repository type: {kind}")
