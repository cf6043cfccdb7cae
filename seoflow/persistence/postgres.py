"""PostgreSQL implementation of the execution repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import asyncpg

from ..contracts import (
    CheckpointRecord,
    CheckpointSnapshot,
    CheckpointType,
    ResumeInfo,
    WorkflowExecution,
)
from .repository import ExecutionRepository, build_resume_info, decode_execution


class PostgresExecutionRepository(ExecutionRepository):
    """Persist executions and checkpoints using PostgreSQL."""

    def __init__(self, dsn: str):
        self._dsn = dsn
        self._initialized = False

    async def _connect(self) -> asyncpg.Connection:
        conn = await asyncpg.connect(self._dsn)
        if not self._initialized:
            await self._ensure_schema(conn)
            self._initialized = True
        return conn

    async def _ensure_schema(self, conn: asyncpg.Connection) -> None:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS workflow_executions (
                id TEXT PRIMARY KEY,
                workflow_id TEXT NOT NULL,
                conversation_id TEXT,
                user_id TEXT,
                status TEXT NOT NULL,
                start_time TIMESTAMPTZ NOT NULL,
                record JSONB NOT NULL,
                updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
            )
            """
        )
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS workflow_checkpoints (
                id SERIAL PRIMARY KEY,
                execution_id TEXT NOT NULL,
                step_id TEXT NOT NULL,
                checkpoint_type TEXT NOT NULL,
                snapshot JSONB NOT NULL,
                created_at TIMESTAMPTZ NOT NULL DEFAULT now()
            )
            """
        )
        await conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_workflow_checkpoints_execution_id "
            "ON workflow_checkpoints(execution_id)"
        )

    # ------------------------------------------------------------------
    async def save_execution(self, execution: WorkflowExecution) -> None:
        conn = await self._connect()
        try:
            await conn.execute(
                """
                INSERT INTO workflow_executions
                    (id, workflow_id, conversation_id, user_id, status, start_time, record, updated_at)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                ON CONFLICT (id) DO UPDATE SET
                    status = EXCLUDED.status,
                    record = EXCLUDED.record,
                    updated_at = EXCLUDED.updated_at
                """,
                execution.id,
                execution.workflow_id,
                execution.conversation_id,
                execution.user_id,
                execution.status.value,
                execution.start_time,
                execution.model_dump_json(),
                datetime.now(timezone.utc),
            )
        finally:
            await conn.close()

    async def save_checkpoint(
        self,
        execution_id: str,
        snapshot: CheckpointSnapshot,
        checkpoint_type: CheckpointType,
    ) -> None:
        conn = await self._connect()
        try:
            await conn.execute(
                """
                INSERT INTO workflow_checkpoints (execution_id, step_id, checkpoint_type, snapshot)
                VALUES ($1, $2, $3, $4)
                """,
                execution_id,
                snapshot.step_id,
                CheckpointType(checkpoint_type).value,
                snapshot.model_dump_json(),
            )
        finally:
            await conn.close()

    async def load_execution(self, execution_id: str) -> WorkflowExecution | None:
        conn = await self._connect()
        try:
            row = await conn.fetchrow(
                "SELECT record FROM workflow_executions WHERE id = $1",
                execution_id,
            )
        finally:
            await conn.close()
        if not row:
            return None
        return decode_execution(row["record"])

    async def resume_from_checkpoint(self, execution_id: str) -> ResumeInfo:
        execution = await self.load_execution(execution_id)
        checkpoints = await self.list_checkpoints(execution_id)
        return build_resume_info(execution, checkpoints)

    async def list_executions(
        self, user_id: Optional[str] = None, limit: int = 50
    ) -> list[WorkflowExecution]:
        conn = await self._connect()
        try:
            if user_id is None:
                rows = await conn.fetch(
                    "SELECT record FROM workflow_executions ORDER BY start_time DESC LIMIT $1",
                    limit,
                )
            else:
                rows = await conn.fetch(
                    """
                    SELECT record FROM workflow_executions
                    WHERE user_id = $1 ORDER BY start_time DESC LIMIT $2
                    """,
                    user_id,
                    limit,
                )
        finally:
            await conn.close()
        return [decode_execution(r["record"]) for r in rows]

    async def list_checkpoints(self, execution_id: str) -> list[CheckpointRecord]:
        conn = await self._connect()
        try:
            rows = await conn.fetch(
                """
                SELECT id, execution_id, checkpoint_type, snapshot, created_at
                FROM workflow_checkpoints WHERE execution_id = $1 ORDER BY id
                """,
                execution_id,
            )
        finally:
            await conn.close()
        return [
            CheckpointRecord(
                id=r["id"],
                execution_id=r["execution_id"],
                checkpoint_type=r["checkpoint_type"],
                snapshot=CheckpointSnapshot.model_validate_json(r["snapshot"]),
                created_at=r["created_at"],
            )
            for r in rows
        ]
