"""Store abstraction for agent definitions and execution records."""

from __future__ import annotations

from typing import Optional, Protocol

from ..constants import DEFAULT_EXECUTION_RETENTION_DAYS
from ..contracts import WorkflowDefinition
from ..models import ExecutionRecord
from .models import AgentSummary, ExecutionSummary


class AgentStore(Protocol):
    """Protocol for definition and execution persistence backends."""

    async def save_agent(self, agent: WorkflowDefinition) -> None:
        """Insert or replace an agent definition."""

    async def load_agent(self, agent_id: str) -> WorkflowDefinition:
        """Return the definition or raise ``DefinitionNotFound``."""

    async def list_agents(self) -> list[AgentSummary]:
        """Return summaries of all stored agents."""

    async def delete_agent(self, agent_id: str) -> bool:
        """Remove an agent; return whether it existed."""

    async def save_execution(self, record: ExecutionRecord) -> None:
        """Upsert an execution record by id."""

    async def load_execution(self, execution_id: str) -> ExecutionRecord:
        """Return the record or raise ``RecordNotFound``."""

    async def list_executions(
        self, agent_id: Optional[str] = None
    ) -> list[ExecutionSummary]:
        """Return execution summaries, newest first."""

    async def cleanup_old_executions(
        self, max_age_days: int = DEFAULT_EXECUTION_RETENTION_DAYS
    ) -> int:
        """Delete executions started more than ``max_age_days`` ago."""
