"""Agent definition contracts for stepweaver workflows."""

from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .constants import DEFAULT_MAX_EXECUTION_TIME
from .steps import Step

logger = logging.getLogger(__name__)

VariableType = Literal["string", "number", "boolean", "file", "json"]
LogLevel = Literal["debug", "info", "warn", "error"]


class InputValidation(BaseModel):
    """Extra constraints applied to a caller-supplied variable."""

    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    allowed_values: Optional[List[Any]] = None

    @field_validator("pattern")
    @classmethod
    def _compile_pattern(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f"Invalid pattern {v!r}: {e}") from e
        return v


class Variable(BaseModel):
    """Declared top-level input of an agent."""

    name: str
    type: VariableType = "string"
    description: str = ""
    required: bool = False
    default_value: Optional[Any] = None
    validation: Optional[InputValidation] = None
    sensitive: bool = False


class ToolBinding(BaseModel):
    """Binds a tool name used by steps to a built-in capability."""

    name: str
    capability: str
    required_credentials: List[str] = Field(default_factory=list)
    config: Dict[str, Any] = Field(default_factory=dict)


class AgentSettings(BaseModel):
    """Execution settings of an agent."""

    max_execution_time: int = Field(
        default=DEFAULT_MAX_EXECUTION_TIME, description="Milliseconds"
    )
    error_handling: Literal["stop", "continue"] = "stop"
    log_level: LogLevel = "info"

    @field_validator("error_handling", mode="before")
    @classmethod
    def _coerce_retry(cls, v: Any) -> Any:
        # older definitions were authored with a "retry" policy
        if v == "retry":
            logger.warning("Error handling policy 'retry' is not supported, using 'stop'")
            return "stop"
        return v


class WorkflowDefinition(BaseModel):
    """Static description of an agent. Read-only for the duration of a run."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    description: str = ""
    version: str = "1.0.0"
    author: str = ""
    tags: List[str] = Field(default_factory=list)
    created: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    system_prompt: Optional[str] = None
    steps: List[Step] = Field(default_factory=list)
    variables: List[Variable] = Field(default_factory=list)
    tools: List[ToolBinding] = Field(default_factory=list)
    settings: AgentSettings = Field(default_factory=AgentSettings)

    @model_validator(mode="after")
    def _unique_variable_names(self) -> "WorkflowDefinition":
        seen = set()
        for variable in self.variables:
            if variable.name in seen:
                raise ValueError(f"Duplicate variable name: {variable.name}")
            seen.add(variable.name)
        return self

    def ordered_steps(self) -> List[Step]:
        """Steps sorted by ascending ``order``; ties keep declaration order."""
        return sorted(self.steps, key=lambda step: step.order)

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data: str) -> "WorkflowDefinition":
        return cls.model_validate_json(data)
