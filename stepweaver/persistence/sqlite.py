"""SQLite implementation of the agent store."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

from ..constants import DEFAULT_EXECUTION_RETENTION_DAYS
from ..contracts import WorkflowDefinition
from ..errors import DefinitionNotFound, RecordNotFound
from ..models import ExecutionRecord, utcnow
from .models import AgentSummary, ExecutionSummary
from .repository import AgentStore


class SQLiteAgentStore(AgentStore):
    """Persist agent definitions and execution records using SQLite.

    Full documents are stored as JSON next to the columns used for listing
    and cleanup.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS agents (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                description TEXT,
                tags TEXT,
                created TEXT NOT NULL,
                updated TEXT NOT NULL,
                definition TEXT NOT NULL
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS executions (
                id TEXT PRIMARY KEY,
                agent_id TEXT NOT NULL,
                status TEXT NOT NULL,
                start_time TEXT NOT NULL,
                end_time TEXT,
                duration INTEGER,
                record TEXT NOT NULL
            )
            """
        )
        cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_executions_agent ON executions (agent_id)"
        )
        self._conn.commit()

    # ------------------------------------------------------------------
    # Helper methods
    def _execute(self, query: str, *params: Any) -> int:
        cur = self._conn.cursor()
        cur.execute(query, params)
        self._conn.commit()
        return cur.rowcount

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchone()

    def _fetchall(self, query: str, *params: Any) -> list[sqlite3.Row]:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchall()

    # ------------------------------------------------------------------
    # Agents
    async def save_agent(self, agent: WorkflowDefinition) -> None:
        await asyncio.to_thread(
            self._execute,
            """
            INSERT INTO agents (id, name, description, tags, created, updated, definition)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name = excluded.name,
                description = excluded.description,
                tags = excluded.tags,
                updated = excluded.updated,
                definition = excluded.definition
            """,
            agent.id,
            agent.name,
            agent.description,
            json.dumps(agent.tags),
            agent.created.isoformat(),
            agent.updated.isoformat(),
            agent.to_json(),
        )

    async def load_agent(self, agent_id: str) -> WorkflowDefinition:
        row = await asyncio.to_thread(
            self._fetchone, "SELECT definition FROM agents WHERE id = ?", agent_id
        )
        if not row:
            raise DefinitionNotFound(agent_id)
        return WorkflowDefinition.from_json(row["definition"])

    async def list_agents(self) -> list[AgentSummary]:
        rows = await asyncio.to_thread(
            self._fetchall,
            "SELECT id, name, description, tags, created, updated FROM agents ORDER BY updated DESC",
        )
        return [
            AgentSummary(
                id=r["id"],
                name=r["name"],
                description=r["description"] or "",
                tags=json.loads(r["tags"] or "[]"),
                created=r["created"],
                updated=r["updated"],
            )
            for r in rows
        ]

    async def delete_agent(self, agent_id: str) -> bool:
        deleted = await asyncio.to_thread(
            self._execute, "DELETE FROM agents WHERE id = ?", agent_id
        )
        return deleted > 0

    # ------------------------------------------------------------------
    # Executions
    async def save_execution(self, record: ExecutionRecord) -> None:
        await asyncio.to_thread(
            self._execute,
            """
            INSERT INTO executions (id, agent_id, status, start_time, end_time, duration, record)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                status = excluded.status,
                end_time = excluded.end_time,
                duration = excluded.duration,
                record = excluded.record
            """,
            record.id,
            record.agent_id,
            record.status,
            record.start_time.isoformat(),
            record.end_time.isoformat() if record.end_time else None,
            record.duration,
            record.to_json(),
        )

    async def load_execution(self, execution_id: str) -> ExecutionRecord:
        row = await asyncio.to_thread(
            self._fetchone, "SELECT record FROM executions WHERE id = ?", execution_id
        )
        if not row:
            raise RecordNotFound(execution_id)
        return ExecutionRecord.from_json(row["record"])

    async def list_executions(
        self, agent_id: Optional[str] = None
    ) -> list[ExecutionSummary]:
        query = "SELECT id, agent_id, status, start_time, end_time, duration FROM executions"
        params: list[Any] = []
        if agent_id is not None:
            query += " WHERE agent_id = ?"
            params.append(agent_id)
        query += " ORDER BY start_time DESC"
        rows = await asyncio.to_thread(self._fetchall, query, *params)
        return [
            ExecutionSummary(
                id=r["id"],
                agent_id=r["agent_id"],
                status=r["status"],
                start_time=r["start_time"],
                end_time=r["end_time"],
                duration=r["duration"],
            )
            for r in rows
        ]

    async def cleanup_old_executions(
        self, max_age_days: int = DEFAULT_EXECUTION_RETENTION_DAYS
    ) -> int:
        # start_time is stored as a UTC ISO string, so string order is time order
        cutoff = (utcnow() - timedelta(days=max_age_days)).isoformat()
        return await asyncio.to_thread(
            self._execute, "DELETE FROM executions WHERE start_time < ?", cutoff
        )

    def close(self) -> None:
        self._conn.close()
