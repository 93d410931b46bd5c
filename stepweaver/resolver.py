"""Resolution of step inputs and ``{variable}`` placeholders."""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any, Dict, Mapping

from .errors import RequiredInputMissing

if TYPE_CHECKING:
    from .context import ExecutionContext
    from .steps.base import BaseStep

_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")


def stringify(value: Any) -> str:
    """Render a context value the way it appears inside a template."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def interpolate(template: str, variables: Mapping[str, Any]) -> str:
    """Replace ``{name}`` placeholders with values from ``variables``.

    Placeholders naming unknown variables are left untouched.
    """

    def _replace(match: re.Match) -> str:
        key = match.group(1)
        if key in variables:
            return stringify(variables[key])
        return match.group(0)

    return _PLACEHOLDER.sub(_replace, template)


def resolve_step_inputs(step: "BaseStep", context: "ExecutionContext") -> Dict[str, Any]:
    """Compute the concrete input values of ``step``.

    Raises:
        RequiredInputMissing: A required input resolved to nothing.
    """
    resolved: Dict[str, Any] = {}
    for step_input in step.inputs:
        if step_input.type in ("variable", "user_input"):
            value = context.variables.get(step_input.source)
        elif step_input.type == "constant":
            value = step_input.source
        else:
            # previous_step and file sources are not wired up yet
            value = step_input.default_value

        if value is None and step_input.required:
            raise RequiredInputMissing(step_input.name)

        resolved[step_input.name] = value if value is not None else step_input.default_value
    return resolved
