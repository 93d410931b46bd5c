"""In-memory implementation of the agent store."""

from __future__ import annotations

from datetime import timedelta
from typing import Dict, Optional

from ..constants import DEFAULT_EXECUTION_RETENTION_DAYS
from ..contracts import WorkflowDefinition
from ..errors import DefinitionNotFound, RecordNotFound
from ..models import ExecutionRecord, utcnow
from .models import AgentSummary, ExecutionSummary
from .repository import AgentStore


class InMemoryAgentStore(AgentStore):
    """Store agents and executions in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts. Copies are stored so callers cannot
    mutate persisted state by accident.
    """

    def __init__(self) -> None:
        self._agents: Dict[str, WorkflowDefinition] = {}
        self._executions: Dict[str, ExecutionRecord] = {}

    # ------------------------------------------------------------------
    async def save_agent(self, agent: WorkflowDefinition) -> None:
        self._agents[agent.id] = agent.model_copy(deep=True)

    async def load_agent(self, agent_id: str) -> WorkflowDefinition:
        agent = self._agents.get(agent_id)
        if agent is None:
            raise DefinitionNotFound(agent_id)
        return agent.model_copy(deep=True)

    async def list_agents(self) -> list[AgentSummary]:
        return [AgentSummary.of(agent) for agent in self._agents.values()]

    async def delete_agent(self, agent_id: str) -> bool:
        return self._agents.pop(agent_id, None) is not None

    # ------------------------------------------------------------------
    async def save_execution(self, record: ExecutionRecord) -> None:
        self._executions[record.id] = record.model_copy(deep=True)

    async def load_execution(self, execution_id: str) -> ExecutionRecord:
        record = self._executions.get(execution_id)
        if record is None:
            raise RecordNotFound(execution_id)
        return record.model_copy(deep=True)

    async def list_executions(
        self, agent_id: Optional[str] = None
    ) -> list[ExecutionSummary]:
        records = [
            r
            for r in self._executions.values()
            if agent_id is None or r.agent_id == agent_id
        ]
        records.sort(key=lambda r: r.start_time, reverse=True)
        return [ExecutionSummary.of(r) for r in records]

    async def cleanup_old_executions(
        self, max_age_days: int = DEFAULT_EXECUTION_RETENTION_DAYS
    ) -> int:
        cutoff = utcnow() - timedelta(days=max_age_days)
        stale = [eid for eid, r in self._executions.items() if r.start_time < cutoff]
        for eid in stale:
            del self._executions[eid]
        return len(stale)
