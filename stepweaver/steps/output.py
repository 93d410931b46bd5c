from __future__ import annotations

import csv
import io
import json
from typing import TYPE_CHECKING, Any, Dict, Literal, Mapping, Optional

from pydantic import BaseModel, Field

from ..resolver import interpolate
from .base import BaseStep

if TYPE_CHECKING:
    from ..context import ExecutionContext, StepRuntime


def format_markdown(data: Mapping[str, Any]) -> str:
    """Render ``data`` as one markdown section per key."""
    markdown = "# Agent Output\n\n"
    for key, value in data.items():
        markdown += f"## {key}\n\n"
        if isinstance(value, str):
            markdown += f"{value}\n\n"
        else:
            markdown += f"```json\n{json.dumps(value, indent=2, default=str)}\n```\n\n"
    return markdown


def format_csv(data: Mapping[str, Any]) -> str:
    """Render ``data`` as a header row of keys and a single row of values."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(list(data.keys()))
    writer.writerow(
        [v if isinstance(v, str) else json.dumps(v, default=str) for v in data.values()]
    )
    return buffer.getvalue()


class OutputStepConfig(BaseModel):
    format: Literal["json", "text", "markdown", "csv"] = "json"
    template: Optional[str] = None


class OutputStep(BaseStep):
    """Formats its inputs and publishes them as execution outputs."""

    type: Literal["output"] = "output"
    config: OutputStepConfig = Field(default_factory=OutputStepConfig)

    def render(self, inputs: Dict[str, Any]) -> str:
        fmt = self.config.format
        if fmt == "json":
            return json.dumps(inputs, indent=2, default=str)
        if fmt == "text":
            if self.config.template:
                return interpolate(self.config.template, inputs)
            return json.dumps(inputs, default=str)
        if fmt == "markdown":
            return format_markdown(inputs)
        return format_csv(inputs)

    async def run(
        self,
        inputs: Dict[str, Any],
        context: "ExecutionContext",
        runtime: "StepRuntime",
    ) -> Dict[str, Any]:
        formatted = self.render(inputs)
        runtime.record.outputs.update(inputs)
        return {
            "formatted_output": formatted,
            "format": self.config.format,
            "raw_data": inputs,
        }
