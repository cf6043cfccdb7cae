"""Persistence layer for seoflow executions and checkpoints."""

from __future__ import annotations

import inspect
import os
from typing import Optional

from ..config import SeoflowConfig, load_config
from .inmemory import InMemoryExecutionRepository
from .repository import ExecutionRepository, build_resume_info
from .sqlite import SQLiteExecutionRepository

try:  # pragma: no cover - optional dependency
    from .postgres import PostgresExecutionRepository
except ImportError:  # pragma: no cover - optional dependency
    PostgresExecutionRepository = None  # type: ignore

try:  # pragma: no cover - optional dependency
    from .redis import RedisExecutionRepository
except ImportError:  # pragma: no cover - optional dependency
    RedisExecutionRepository = None  # type: ignore


def get_repository(
    database_url: Optional[str] = None, config: Optional[SeoflowConfig] = None
) -> ExecutionRepository:
    """Factory function to build an execution repository.

    The backend is selected based on ``database_url`` which can be provided
    explicitly, via environment variable ``SEOFLOW_DATABASE_URL`` or
    ``DATABASE_URL``, or from loaded configuration. When no database is
    configured, an in-memory repository is returned. Every call builds a new
    repository; callers that need a shared one pass it around explicitly.
    """

    config = config or load_config()
    database_url = (
        database_url
        or os.getenv("SEOFLOW_DATABASE_URL")
        or os.getenv("DATABASE_URL")
        or config.database_url
    )

    if not database_url:
        return InMemoryExecutionRepository()

    if database_url.startswith("sqlite://"):
        path = database_url.replace("sqlite://", "", 1)
        return SQLiteExecutionRepository(path)
    if database_url.startswith("postgres://") or database_url.startswith(
        "postgresql://"
    ):
        if PostgresExecutionRepository is None:
            raise RuntimeError("Postgres support not available (install asyncpg)")
        return PostgresExecutionRepository(database_url)
    if database_url.startswith("redis://") or database_url.startswith("rediss://"):
        if RedisExecutionRepository is None:
            raise RuntimeError("Redis support not available (install redis)")
        return RedisExecutionRepository(
            url=database_url, key_prefix=config.redis.key_prefix
        )
    if database_url == "redis":
        if RedisExecutionRepository is None:
            raise RuntimeError("Redis support not available (install redis)")
        redis_conf = config.redis
        return RedisExecutionRepository(
            host=redis_conf.host,
            port=redis_conf.port,
            db=redis_conf.db,
            password=redis_conf.password,
            key_prefix=redis_conf.key_prefix,
        )
    raise ValueError(f"Unsupported database backend: {database_url}")


async def close_repository(repository: ExecutionRepository) -> None:
    """Release the connections held by ``repository``.

    Redis repositories disconnect asynchronously, SQLite closes its
    connection directly; backends without either are left alone.
    """
    release = getattr(repository, "disconnect", None) or getattr(
        repository, "close", None
    )
    if release is None:
        return
    outcome = release()
    if inspect.isawaitable(outcome):
        await outcome


__all__ = [
    "ExecutionRepository",
    "InMemoryExecutionRepository",
    "SQLiteExecutionRepository",
    "PostgresExecutionRepository",
    "RedisExecutionRepository",
    "build_resume_info",
    "close_repository",
    "get_repository",
]
