"""Listing summaries returned by agent stores."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..contracts import WorkflowDefinition
from ..models import ExecutionRecord


class AgentSummary(BaseModel):
    id: str
    name: str
    description: str = ""
    created: datetime
    updated: datetime
    tags: List[str] = Field(default_factory=list)

    @classmethod
    def of(cls, agent: WorkflowDefinition) -> "AgentSummary":
        return cls(
            id=agent.id,
            name=agent.name,
            description=agent.description,
            created=agent.created,
            updated=agent.updated,
            tags=list(agent.tags),
        )


class ExecutionSummary(BaseModel):
    id: str
    agent_id: str
    status: str
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: Optional[int] = None

    @classmethod
    def of(cls, record: ExecutionRecord) -> "ExecutionSummary":
        return cls(
            id=record.id,
            agent_id=record.agent_id,
            status=record.status,
            start_time=record.start_time,
            end_time=record.end_time,
            duration=record.duration,
        )
