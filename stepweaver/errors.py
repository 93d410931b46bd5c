"""Exception hierarchy for the agent execution engine."""

from __future__ import annotations

from typing import List, Optional


class StepweaverError(Exception):
    """Base class for all stepweaver errors."""


class ValidationFailed(StepweaverError):
    """Caller-supplied inputs violate the agent's variable schema."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(f"Input validation failed: {', '.join(self.errors)}")


class DefinitionNotFound(StepweaverError):
    """Raised when an agent definition id is unknown to the store."""

    def __init__(self, agent_id: str):
        self.agent_id = agent_id
        super().__init__(f"Agent with ID '{agent_id}' not found")


class RecordNotFound(StepweaverError):
    """Raised when an execution id is unknown to the store."""

    def __init__(self, execution_id: str):
        self.execution_id = execution_id
        super().__init__(f"Execution with ID '{execution_id}' not found")


class StepFailure(StepweaverError):
    """Error raised from inside a step handler.

    Step failures never escape the executor loop; they are recorded on the
    step's execution entry.
    """


class RequiredInputMissing(StepFailure):
    def __init__(self, input_name: str):
        self.input_name = input_name
        super().__init__(f"Required input '{input_name}' is missing")


class ToolNotAvailable(StepFailure):
    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Tool '{tool_name}' not found or not initialized")


class UnknownToolAction(StepFailure):
    def __init__(self, tool_name: str, action: Optional[str]):
        self.tool_name = tool_name
        self.action = action
        super().__init__(f"Unknown {tool_name} action: {action}")


class ModelCallFailed(StepFailure):
    """The chat-completion backend did not return a usable response."""


__all__ = [
    "StepweaverError",
    "ValidationFailed",
    "DefinitionNotFound",
    "RecordNotFound",
    "StepFailure",
    "RequiredInputMissing",
    "ToolNotAvailable",
    "UnknownToolAction",
    "ModelCallFailed",
]
