from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Literal, Mapping, Tuple

from pydantic import BaseModel, Field

from ..errors import StepFailure
from ..resolver import interpolate
from .base import BaseStep

if TYPE_CHECKING:
    from ..context import ExecutionContext, StepRuntime


def evaluate_condition(condition: str, variables: Mapping[str, Any]) -> bool:
    """Evaluate ``true``, ``false``, ``a == b`` or ``a != b`` after interpolation.

    Any other form evaluates to ``False``.
    """
    expression = interpolate(condition, variables).strip()
    if expression == "true":
        return True
    if expression == "false":
        return False
    for operator in ("==", "!="):
        parts = expression.split(operator)
        if len(parts) == 2:
            left, right = (part.strip() for part in parts)
            return left == right if operator == "==" else left != right
    return False


class ConditionStepConfig(BaseModel):
    condition: str = ""
    true_steps: List[str] = Field(default_factory=list)
    false_steps: List[str] = Field(default_factory=list)


class ConditionStep(BaseStep):
    """Evaluates a condition and names the branch of steps to follow."""

    type: Literal["condition"] = "condition"
    config: ConditionStepConfig = Field(default_factory=ConditionStepConfig)

    def branches(self, result: bool) -> Tuple[List[str], List[str]]:
        """Return ``(taken, not_taken)`` step id lists for ``result``."""
        if result:
            return self.config.true_steps, self.config.false_steps
        return self.config.false_steps, self.config.true_steps

    async def run(
        self,
        inputs: Dict[str, Any],
        context: "ExecutionContext",
        runtime: "StepRuntime",
    ) -> Dict[str, Any]:
        if not self.config.condition:
            raise StepFailure("Condition is required for condition steps")

        result = evaluate_condition(self.config.condition, context.variables)
        taken, _ = self.branches(result)
        return {"condition_result": result, "next_steps": list(taken)}
