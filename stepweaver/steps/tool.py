from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

from ..errors import StepFailure
from .base import BaseStep

if TYPE_CHECKING:
    from ..context import ExecutionContext, StepRuntime


class ToolStepConfig(BaseModel):
    tool_name: Optional[str] = None
    action: Optional[str] = None
    parameters: Dict[str, Any] = Field(default_factory=dict)


class ToolStep(BaseStep):
    """Invokes one action of a registered tool."""

    type: Literal["tool"] = "tool"
    config: ToolStepConfig = Field(default_factory=ToolStepConfig)

    async def run(
        self,
        inputs: Dict[str, Any],
        context: "ExecutionContext",
        runtime: "StepRuntime",
    ) -> Dict[str, Any]:
        tool_name = self.config.tool_name
        if not tool_name:
            raise StepFailure("Tool name is required for tool steps")
        action = self.config.action or self.config.parameters.get("action")
        if not action:
            raise StepFailure(f"Action is required for tool '{tool_name}'")

        tool = runtime.tools.get(tool_name)

        params = {k: v for k, v in self.config.parameters.items() if k != "action"}
        params.update({k: v for k, v in inputs.items() if v is not None})

        context.log("info", f"Executing tool: {tool_name}", {"action": action})
        result = await tool.execute(action, params, context)
        if not result.success:
            raise StepFailure(f"Tool execution failed: {result.error}")

        return {
            "tool_result": result.data,
            "tool_metadata": result.metadata,
            "tool_name": tool_name,
            "success": result.success,
        }
