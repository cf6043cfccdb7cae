"""Redis implementation of the execution repository."""

from __future__ import annotations

from typing import Any, Optional

import redis.asyncio as redis

from ..contracts import (
    CheckpointRecord,
    CheckpointSnapshot,
    CheckpointType,
    ResumeInfo,
    WorkflowExecution,
)
from .repository import ExecutionRepository, build_resume_info, decode_execution


class RedisExecutionRepository(ExecutionRepository):
    """Persist executions and checkpoints in Redis.

    Layout, under ``key_prefix``:

    * ``<prefix>:execution:<id>``: execution record as JSON
    * ``<prefix>:executions``: sorted set of ids scored by start time
    * ``<prefix>:user:<user_id>``: same, per user
    * ``<prefix>:checkpoints:<id>``: list of checkpoint JSON, append only
    * ``<prefix>:checkpoint_seq:<id>``: counter handing out checkpoint ids
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
        key_prefix: str = "seoflow",
        url: Optional[str] = None,
    ) -> None:
        self.host = host
        self.port = port
        self.db = db
        self.password = password
        self.key_prefix = key_prefix
        self.url = url
        self._redis: Optional[Any] = None

    async def connect(self) -> None:
        """Connect to Redis."""
        if self.url:
            self._redis = redis.from_url(self.url, decode_responses=True)
        else:
            self._redis = redis.Redis(
                host=self.host,
                port=self.port,
                db=self.db,
                password=self.password,
                decode_responses=True,
            )
        await self._redis.ping()

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    async def _client(self) -> Any:
        if not self._redis:
            await self.connect()
        return self._redis

    def _key(self, *parts: str) -> str:
        return ":".join((self.key_prefix, *parts))

    # ------------------------------------------------------------------
    async def save_execution(self, execution: WorkflowExecution) -> None:
        client = await self._client()
        score = execution.start_time.timestamp()
        async with client.pipeline(transaction=True) as pipe:
            pipe.set(self._key("execution", execution.id), execution.model_dump_json())
            pipe.zadd(self._key("executions"), {execution.id: score})
            if execution.user_id:
                pipe.zadd(self._key("user", execution.user_id), {execution.id: score})
            await pipe.execute()

    async def save_checkpoint(
        self,
        execution_id: str,
        snapshot: CheckpointSnapshot,
        checkpoint_type: CheckpointType,
    ) -> None:
        client = await self._client()
        # INCR is atomic, so concurrent writers never share an id
        checkpoint_id = await client.incr(self._key("checkpoint_seq", execution_id))
        record = CheckpointRecord(
            id=checkpoint_id,
            execution_id=execution_id,
            checkpoint_type=checkpoint_type,
            snapshot=snapshot,
        )
        await client.rpush(
            self._key("checkpoints", execution_id), record.model_dump_json()
        )

    async def load_execution(self, execution_id: str) -> WorkflowExecution | None:
        client = await self._client()
        data = await client.get(self._key("execution", execution_id))
        if data is None:
            return None
        return decode_execution(data)

    async def resume_from_checkpoint(self, execution_id: str) -> ResumeInfo:
        execution = await self.load_execution(execution_id)
        checkpoints = await self.list_checkpoints(execution_id)
        return build_resume_info(execution, checkpoints)

    async def list_executions(
        self, user_id: Optional[str] = None, limit: int = 50
    ) -> list[WorkflowExecution]:
        client = await self._client()
        index = self._key("user", user_id) if user_id else self._key("executions")
        ids = await client.zrevrange(index, 0, limit - 1)
        if not ids:
            return []
        records = await client.mget([self._key("execution", i) for i in ids])
        return [
            decode_execution(r) for r in records if r is not None
        ]

    async def list_checkpoints(self, execution_id: str) -> list[CheckpointRecord]:
        client = await self._client()
        items = await client.lrange(self._key("checkpoints", execution_id), 0, -1)
        records = [CheckpointRecord.model_validate_json(i) for i in items]
        return sorted(records, key=lambda record: record.id)
