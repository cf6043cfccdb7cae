"""SQLite implementation of the execution repository."""

from __future__ import annotations

import asyncio
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from ..contracts import (
    CheckpointRecord,
    CheckpointSnapshot,
    CheckpointType,
    ResumeInfo,
    WorkflowExecution,
)
from .repository import ExecutionRepository, build_resume_info, decode_execution


class SQLiteExecutionRepository(ExecutionRepository):
    """Persist executions and checkpoints using SQLite."""

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS workflow_executions (
                id TEXT PRIMARY KEY,
                workflow_id TEXT NOT NULL,
                conversation_id TEXT,
                user_id TEXT,
                status TEXT NOT NULL,
                start_time TEXT NOT NULL,
                record TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS workflow_checkpoints (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                execution_id TEXT NOT NULL,
                step_id TEXT NOT NULL,
                checkpoint_type TEXT NOT NULL,
                snapshot TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
            """
        )
        cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_workflow_checkpoints_execution_id "
            "ON workflow_checkpoints(execution_id)"
        )
        self._conn.commit()

    # ------------------------------------------------------------------
    # Helper methods
    # Parallel steps may write concurrently from worker threads.
    def _execute(self, query: str, *params: Any) -> None:
        with self._lock:
            cur = self._conn.cursor()
            cur.execute(query, params)
            self._conn.commit()

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        with self._lock:
            cur = self._conn.cursor()
            cur.execute(query, params)
            return cur.fetchone()

    def _fetchall(self, query: str, *params: Any) -> list[sqlite3.Row]:
        with self._lock:
            cur = self._conn.cursor()
            cur.execute(query, params)
            return cur.fetchall()

    @staticmethod
    def _row_to_checkpoint(row: sqlite3.Row) -> CheckpointRecord:
        return CheckpointRecord(
            id=row["id"],
            execution_id=row["execution_id"],
            checkpoint_type=row["checkpoint_type"],
            snapshot=CheckpointSnapshot.model_validate_json(row["snapshot"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def close(self) -> None:
        self._conn.close()

    # ------------------------------------------------------------------
    # Repository API
    async def save_execution(self, execution: WorkflowExecution) -> None:
        await asyncio.to_thread(
            self._execute,
            """
            INSERT INTO workflow_executions
                (id, workflow_id, conversation_id, user_id, status, start_time, record, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                status = excluded.status,
                record = excluded.record,
                updated_at = excluded.updated_at
            """,
            execution.id,
            execution.workflow_id,
            execution.conversation_id,
            execution.user_id,
            execution.status.value,
            execution.start_time.isoformat(),
            execution.model_dump_json(),
            datetime.now(timezone.utc).isoformat(),
        )

    async def save_checkpoint(
        self,
        execution_id: str,
        snapshot: CheckpointSnapshot,
        checkpoint_type: CheckpointType,
    ) -> None:
        await asyncio.to_thread(
            self._execute,
            """
            INSERT INTO workflow_checkpoints
                (execution_id, step_id, checkpoint_type, snapshot, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            execution_id,
            snapshot.step_id,
            CheckpointType(checkpoint_type).value,
            snapshot.model_dump_json(),
            datetime.now(timezone.utc).isoformat(),
        )

    async def load_execution(self, execution_id: str) -> WorkflowExecution | None:
        row = await asyncio.to_thread(
            self._fetchone,
            "SELECT record FROM workflow_executions WHERE id = ?",
            execution_id,
        )
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
        if user_id is None:
            rows = await asyncio.to_thread(
                self._fetchall,
                "SELECT record FROM workflow_executions ORDER BY start_time DESC LIMIT ?",
                limit,
            )
        else:
            rows = await asyncio.to_thread(
                self._fetchall,
                "SELECT record FROM workflow_executions WHERE user_id = ? "
                "ORDER BY start_time DESC LIMIT ?",
                user_id,
                limit,
            )
        return [decode_execution(r["record"]) for r in rows]

    async def list_checkpoints(self, execution_id: str) -> list[CheckpointRecord]:
        rows = await asyncio.to_thread(
            self._fetchall,
            "SELECT id, execution_id, checkpoint_type, snapshot, created_at "
            "FROM workflow_checkpoints WHERE execution_id = ? ORDER BY id",
            execution_id,
        )
        return [self._row_to_checkpoint(r) for r in rows]
