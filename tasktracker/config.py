# tasktracker/config.py

"""Settings loaded from environment variables (+ optional .env).

- One frozen Settings object, built once at startup with `Settings.from_env()`.
- Nothing is read at import time.
- `validate()` collects every problem and raises a single ConfigError.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from dotenv import load_dotenv
from sqlalchemy.engine import URL

ENVIRONMENTS = ("development", "staging", "production")
REPOSITORY_TYPES = ("memory", "sqlite", "postgres")
SSL_MODES = ("disable", "require", "verify-full")
LOG_LEVELS = ("debug", "info", "warning", "error")
LOG_FORMATS = ("text", "json")


class ConfigError(Exception):
    """Raised at startup when the configuration is unusable."""

    def __init__(self, problems: List[str]):
        self.problems = problems
        super().__init__(
            "configuration validation failed:\n" + "\n".join(f"- {p}" for p in problems)
        )


class Secret(str):
    """String that never shows its value in logs or reprs."""

    def __repr__(self) -> str:
        return "[REDACTED]"

    def __str__(self) -> str:
        return "[REDACTED]"

    def reveal(self) -> str:
        return str.__str__(self)


def _env(env: Mapping[str, str], name: str, default: str = "") -> str:
    v = env.get(name)
    return default if v is None or v.strip() == "" else v.strip()


def _env_int(env: Mapping[str, str], name: str, default: int, problems: List[str]) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        problems.append(f"{name} must be an integer, got {raw!r}")
        return default


def _env_list(env: Mapping[str, str], name: str, default: List[str]) -> List[str]:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.split(",") if p.strip()]


@dataclass(frozen=True)
class Settings:
    # ---- App ----
    environment: str = "development"

    # ---- Server ----
    host: str = "localhost"
    port: int = 8080
    api_base_path: str = "/api/v1"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    # ---- Storage ----
    repository_type: str = "memory"
    sqlite_path: str = "data/tasks.db"
    database_url: Optional[str] = None
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = ""
    db_password: Secret = Secret("")
    db_name: str = "tasks"
    db_ssl_mode: str = "disable"
    db_pool_size: int = 10
    db_max_overflow: int = 5
    db_conn_max_lifetime: int = 300

    # ---- Logging ----
    log_level: str = "info"
    log_format: str = "text"

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> "Settings":
        """Builds and validates settings. Reads `.env` unless TASKTRACKER_ENV=test
        or an explicit mapping is given."""
        if env is None:
            if os.getenv("TASKTRACKER_ENV") != "test":
                load_dotenv(override=False)
            env = os.environ

        problems: List[str] = []
        settings = Settings(
            environment=_env(env, "APP_ENV", "development").lower(),
            host=_env(env, "SERVER_HOST", "localhost"),
            port=_env_int(env, "SERVER_PORT", 8080, problems),
            api_base_path=_env(env, "API_BASE_PATH", "/api/v1"),
            cors_origins=_env_list(env, "CORS_ALLOWED_ORIGINS", ["*"]),
            repository_type=_env(env, "REPOSITORY_TYPE", "memory").lower(),
            sqlite_path=_env(env, "SQLITE_PATH", "data/tasks.db"),
            database_url=_env(env, "DATABASE_URL") or None,
            db_host=_env(env, "DB_HOST", "localhost"),
            db_port=_env_int(env, "DB_PORT", 5432, problems),
            db_user=_env(env, "DB_USER"),
            db_password=Secret(env.get("DB_PASSWORD", "")),
            db_name=_env(env, "DB_NAME", "tasks"),
            db_ssl_mode=_env(env, "DB_SSL_MODE", "disable").lower(),
            db_pool_size=_env_int(env, "DB_POOL_SIZE", 10, problems),
            db_max_overflow=_env_int(env, "DB_MAX_OVERFLOW", 5, problems),
            db_conn_max_lifetime=_env_int(env, "DB_CONN_MAX_LIFETIME", 300, problems),
            log_level=_env(env, "LOG_LEVEL", "info").lower(),
            log_format=_env(env, "LOG_FORMAT", "text").lower(),
        )
        settings.validate(problems)
        return settings

    def validate(self, problems: List[str] | None = None) -> None:
        problems = list(problems or [])

        if self.environment not in ENVIRONMENTS:
            problems.append(f"APP_ENV must be one of {ENVIRONMENTS}, got {self.environment!r}")
        if self.repository_type not in REPOSITORY_TYPES:
            problems.append(
                f"REPOSITORY_TYPE must be one of {REPOSITORY_TYPES}, got {self.repository_type!r}"
            )
        if self.db_ssl_mode not in SSL_MODES:
            problems.append(f"DB_SSL_MODE must be one of {SSL_MODES}, got {self.db_ssl_mode!r}")
        if self.log_level not in LOG_LEVELS:
            problems.append(f"LOG_LEVEL must be one of {LOG_LEVELS}, got {self.log_level!r}")
        if self.log_format not in LOG_FORMATS:
            problems.append(f"LOG_FORMAT must be one of {LOG_FORMATS}, got {self.log_format!r}")
        if not 0 < self.port < 65536:
            problems.append(f"SERVER_PORT out of range: {self.port}")
        if self.db_pool_size < 1:
            problems.append("DB_POOL_SIZE must be at least 1")
        if self.db_max_overflow < 0:
            problems.append("DB_MAX_OVERFLOW must not be negative")
        if not self.api_base_path.startswith("/"):
            problems.append("API_BASE_PATH must start with '/'")

        if self.repository_type == "postgres" and not self.database_url:
            if not self.db_user:
                problems.append("DB_USER is required for the postgres repository")
            if not self.db_name:
                problems.append("DB_NAME is required for the postgres repository")

        if self.environment == "production":
            if self.repository_type == "postgres" and self.db_ssl_mode != "verify-full":
                problems.append("SSL mode must be verify-full in production")
            if "*" in self.cors_origins:
                problems.append("wildcard CORS not allowed in production")

        if problems:
            raise ConfigError(problems)

    def sqlalchemy_url(self) -> str:
        """URL of the postgres backend; DATABASE_URL wins over the DB_* parts."""
        if self.database_url:
            return self.database_url
        return URL.create(
            "postgresql+psycopg2",
            username=self.db_user,
            password=self.db_password.reveal() or None,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
            query={"sslmode": self.db_ssl_mode},
        ).render_as_string(hide_password=False)
