"""Common step interface shared by every step variant."""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from ..context import ExecutionContext, StepRuntime


class StepInput(BaseModel):
    """Declares where a step input value comes from.

    ``previous_step`` and ``file`` sources are reserved and currently resolve
    to ``default_value``.
    """

    name: str
    type: Literal["variable", "constant", "user_input", "previous_step", "file"] = "variable"
    source: Any = None
    required: bool = False
    default_value: Optional[Any] = None


class StepOutput(BaseModel):
    """Names a key of the step's result map, optionally saved to the context."""

    name: str
    type: Literal["text", "json", "file", "url", "binary"] = "text"
    description: str = ""
    save_as: Optional[str] = None


class BaseStep(BaseModel, abc.ABC):
    """One typed unit of work in an agent definition."""

    id: str
    name: str = ""
    order: int = 0
    enabled: bool = True
    inputs: List[StepInput] = Field(default_factory=list)
    outputs: List[StepOutput] = Field(default_factory=list)

    @property
    def label(self) -> str:
        return self.name or self.id

    @abc.abstractmethod
    async def run(
        self,
        inputs: Dict[str, Any],
        context: "ExecutionContext",
        runtime: "StepRuntime",
    ) -> Dict[str, Any]:
        """Execute the step and return its named outputs."""
        raise NotImplementedError
