"""Runs one step and records its outcome on the step's execution entry."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from .resolver import resolve_step_inputs

if TYPE_CHECKING:
    from .context import ExecutionContext, StepRuntime
    from .models import StepExecution
    from .steps import BaseStep

logger = logging.getLogger(__name__)


def apply_save_as(step: "BaseStep", result: Dict[str, Any], context: "ExecutionContext") -> None:
    """Copy declared outputs present in ``result`` into the context."""
    for output in step.outputs:
        if output.save_as and output.name in result:
            context.set_variable(output.save_as, result[output.name])


async def dispatch_step(
    step: "BaseStep",
    step_execution: "StepExecution",
    context: "ExecutionContext",
    runtime: "StepRuntime",
    timeout: Optional[float] = None,
) -> Optional[Dict[str, Any]]:
    """Execute ``step`` and return its result map, or ``None`` if it failed.

    Exceptions raised by the handler never escape; they become the step's
    error. ``timeout`` is in seconds.
    """
    step_execution.start()
    context.step_id = step.id
    events = runtime.events
    events.log("info", f"Executing step: {step.label}", {"step_type": step.type}, step_id=step.id)

    try:
        inputs = resolve_step_inputs(step, context)
        step_execution.inputs = inputs
        result = await asyncio.wait_for(step.run(inputs, context, runtime), timeout)
    except asyncio.TimeoutError:
        message = f"Step '{step.label}' exceeded the maximum execution time"
        step_execution.finish("failed", message)
        events.log("error", message, step_id=step.id)
        return None
    except Exception as e:
        step_execution.finish("failed", str(e))
        events.log("error", f"Step failed: {step.label}", {"error": str(e)}, step_id=step.id)
        return None

    step_execution.outputs = result
    step_execution.tokens_used = int(result.get("tokens_used") or 0)
    step_execution.cost = float(result.get("cost") or 0.0)
    apply_save_as(step, result, context)
    step_execution.finish("completed")
    events.log(
        "info",
        f"Step completed: {step.label}",
        {"duration": step_execution.duration},
        step_id=step.id,
    )
    return result
