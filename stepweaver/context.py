"""Per-run state threaded through every step."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

if TYPE_CHECKING:
    from .config import StepweaverConfig
    from .contracts import WorkflowDefinition
    from .llm import ChatBackend
    from .metrics import ExecutionLogger
    from .models import ExecutionRecord
    from .tools import ToolRegistry

LogCallback = Callable[..., None]


@dataclass
class ExecutionContext:
    """Variable bag and identifiers visible to steps and tools.

    Variables are cumulative: steps add to them but never remove entries.
    """

    agent_id: str
    execution_id: str
    log: LogCallback
    variables: Dict[str, Any] = field(default_factory=dict)
    credentials: Dict[str, str] = field(default_factory=dict)
    step_id: str = ""
    working_dir: str = field(default_factory=os.getcwd)

    def set_variable(self, name: str, value: Any) -> None:
        self.variables[name] = value


@dataclass
class StepRuntime:
    """Services a step handler may use during one execution."""

    definition: "WorkflowDefinition"
    record: "ExecutionRecord"
    events: "ExecutionLogger"
    tools: "ToolRegistry"
    chat: Optional["ChatBackend"]
    config: "StepweaverConfig"
