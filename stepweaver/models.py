"""Execution records produced by the agent executor."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

ExecutionStatus = Literal["pending", "running", "completed", "failed", "cancelled"]
StepStatus = Literal["pending", "running", "completed", "failed", "skipped"]
FINISHED_STATUSES = ("completed", "failed", "cancelled")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def elapsed_ms(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() * 1000)


class LogEntry(BaseModel):
    timestamp: datetime = Field(default_factory=utcnow)
    level: Literal["debug", "info", "warn", "error"]
    message: str
    step_id: Optional[str] = None
    data: Optional[Any] = None


class StepExecution(BaseModel):
    """Outcome of a single step within one execution."""

    step_id: str
    step_name: str = ""
    status: StepStatus = "pending"
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[int] = None
    inputs: Dict[str, Any] = Field(default_factory=dict)
    outputs: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None
    tokens_used: int = 0
    cost: float = 0.0

    def start(self) -> None:
        if self.status != "pending":
            raise ValueError(f"Cannot start step {self.step_id} in status {self.status}")
        self.status = "running"
        self.start_time = utcnow()

    def finish(self, status: Literal["completed", "failed"], error: Optional[str] = None) -> None:
        if self.status != "running":
            raise ValueError(f"Cannot finish step {self.step_id} in status {self.status}")
        self.status = status
        self.error = error
        self.end_time = utcnow()
        self.duration = elapsed_ms(self.start_time, self.end_time)

    def skip(self, reason: Optional[str] = None) -> None:
        if self.status != "pending":
            raise ValueError(f"Cannot skip step {self.step_id} in status {self.status}")
        self.status = "skipped"
        self.error = reason


class ExecutionMetrics(BaseModel):
    total_steps: int = 0
    completed_steps: int = 0
    failed_steps: int = 0
    skipped_steps: int = 0
    total_tokens_used: int = 0
    total_cost: float = 0.0
    average_step_duration: float = 0.0
    execution_efficiency: float = 0.0


class ExecutionRecord(BaseModel):
    """Mutable per-run result of interpreting an agent definition once."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    agent_id: str
    status: ExecutionStatus = "pending"
    start_time: datetime = Field(default_factory=utcnow)
    end_time: Optional[datetime] = None
    duration: Optional[int] = None
    inputs: Dict[str, Any] = Field(default_factory=dict)
    outputs: Dict[str, Any] = Field(default_factory=dict)
    steps: List[StepExecution] = Field(default_factory=list)
    error: Optional[str] = None
    logs: List[LogEntry] = Field(default_factory=list)
    metrics: ExecutionMetrics = Field(default_factory=ExecutionMetrics)

    @property
    def is_finished(self) -> bool:
        return self.status in FINISHED_STATUSES

    def stamp_end(self) -> None:
        self.end_time = utcnow()
        self.duration = elapsed_ms(self.start_time, self.end_time)

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data: str) -> "ExecutionRecord":
        return cls.model_validate_json(data)
