from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Callable, Dict, Literal

from pydantic import BaseModel, Field

from ..errors import StepFailure
from .base import BaseStep

if TYPE_CHECKING:
    from ..context import ExecutionContext, StepRuntime


TRANSFORMATIONS: Dict[str, Callable[[Any], Any]] = {
    "to_json": lambda data: json.dumps(data, separators=(",", ":")),
    "from_json": json.loads,
    "to_uppercase": lambda data: str(data).upper(),
    "to_lowercase": lambda data: str(data).lower(),
}


class TransformStepConfig(BaseModel):
    transformation: str = ""


class TransformStep(BaseStep):
    """Applies a named transformation to the ``data`` input."""

    type: Literal["transform"] = "transform"
    config: TransformStepConfig = Field(default_factory=TransformStepConfig)

    async def run(
        self,
        inputs: Dict[str, Any],
        context: "ExecutionContext",
        runtime: "StepRuntime",
    ) -> Dict[str, Any]:
        name = self.config.transformation
        if not name:
            raise StepFailure("Transformation is required for transform steps")
        transform = TRANSFORMATIONS.get(name)
        if transform is None:
            raise StepFailure(f"Unknown transformation: {name}")
        if inputs.get("data") is None:
            raise StepFailure(f"Transformation '{name}' requires a 'data' input")

        try:
            result = transform(inputs["data"])
        except (TypeError, ValueError) as e:
            raise StepFailure(f"Transformation '{name}' failed: {e}") from e
        return {"transformed_data": result, "transformation": name}
