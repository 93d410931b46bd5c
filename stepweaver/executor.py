"""Agent executor: interprets an agent definition against caller inputs."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Type

from .config import StepweaverConfig, load_config
from .context import ExecutionContext, StepRuntime
from .contracts import Variable, WorkflowDefinition
from .dispatch import dispatch_step
from .errors import ValidationFailed
from .execution_table import ExecutionTable
from .llm import ChatBackend, PydanticAIChatBackend
from .metrics import ExecutionLogger, finalize_metrics
from .models import ExecutionRecord, StepExecution
from .persistence import AgentStore, get_store
from .steps import ConditionStep
from .tools import BaseTool, build_registry

logger = logging.getLogger(__name__)

_TYPE_CHECKS = {
    "string": lambda v: isinstance(v, str),
    "number": lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
    "boolean": lambda v: isinstance(v, bool),
    "file": lambda v: isinstance(v, str),
    "json": lambda v: True,
}


def _length(value: Any) -> int:
    if isinstance(value, (str, list, dict)):
        return len(value)
    return len(str(value))


def check_variable(variable: Variable, value: Any) -> List[str]:
    """Return every violation of ``variable``'s type and constraints."""
    name = variable.name
    if not _TYPE_CHECKS[variable.type](value):
        return [f"Variable '{name}' must be of type {variable.type}"]

    rules = variable.validation
    if rules is None:
        return []
    errors = []
    if rules.min_length is not None and _length(value) < rules.min_length:
        errors.append(f"Variable '{name}' must be at least {rules.min_length} characters long")
    if rules.max_length is not None and _length(value) > rules.max_length:
        errors.append(f"Variable '{name}' must be at most {rules.max_length} characters long")
    if rules.pattern is not None and not re.search(rules.pattern, str(value)):
        errors.append(f"Variable '{name}' does not match pattern {rules.pattern}")
    if rules.allowed_values is not None and value not in rules.allowed_values:
        allowed = ", ".join(str(v) for v in rules.allowed_values)
        errors.append(f"Variable '{name}' must be one of: {allowed}")
    return errors


def validate_inputs(definition: WorkflowDefinition, inputs: Mapping[str, Any]) -> Dict[str, Any]:
    """Check ``inputs`` against the declared variables.

    Returns the initial context variables: defaults of absent variables
    overlaid with every caller input.

    Raises:
        ValidationFailed: listing every violation found.
    """
    errors: List[str] = []
    variables: Dict[str, Any] = {}
    for variable in definition.variables:
        value = inputs.get(variable.name)
        if value is None:
            if variable.default_value is not None:
                variables[variable.name] = variable.default_value
            elif variable.required:
                errors.append(f"Required variable '{variable.name}' is missing")
            continue
        errors.extend(check_variable(variable, value))
    if errors:
        raise ValidationFailed(errors)
    variables.update(inputs)
    return variables


def _secret_values(definition: WorkflowDefinition, inputs: Mapping[str, Any]) -> List[str]:
    """String values of sensitive variables, from inputs or their defaults."""
    secrets = []
    for variable in definition.variables:
        if not variable.sensitive:
            continue
        value = inputs.get(variable.name)
        if value is None:
            value = variable.default_value
        if isinstance(value, str) and value:
            secrets.append(value)
    return secrets


class AgentExecutor:
    """Runs agents loaded from a store and tracks their execution records.

    Executions run concurrently on one event loop; each run gets its own tool
    registry and context, sharing only the store and the execution table.
    """

    def __init__(
        self,
        store: Optional[AgentStore] = None,
        chat: Optional[ChatBackend] = None,
        config: Optional[StepweaverConfig] = None,
        catalog: Optional[Mapping[str, Type[BaseTool]]] = None,
        table: Optional[ExecutionTable] = None,
    ) -> None:
        self.config = config or load_config()
        self.store = store if store is not None else get_store()
        self.chat = chat if chat is not None else PydanticAIChatBackend(self.config.gateway)
        self.catalog = catalog
        self.table = table if table is not None else ExecutionTable(self.config.max_tracked_executions)

    # ------------------------------------------------------------------
    # Caller API
    async def execute_agent(
        self,
        agent_id: str,
        inputs: Optional[Mapping[str, Any]] = None,
        credentials: Optional[Mapping[str, str]] = None,
    ) -> ExecutionRecord:
        """Run agent ``agent_id`` to completion and return its record.

        Step failures are recorded on the returned record. Validation errors
        and unexpected failures mark the record failed and are re-raised.
        """
        definition = await self.store.load_agent(agent_id)
        inputs = dict(inputs or {})
        credentials = dict(credentials or {})

        record = ExecutionRecord(agent_id=agent_id, status="running", inputs=inputs)
        self.table.add(record)
        events = ExecutionLogger(
            record,
            level=definition.settings.log_level,
            sensitive=[v.name for v in definition.variables if v.sensitive],
            secrets=_secret_values(definition, inputs),
        )
        events.log("info", f"Starting execution of agent: {definition.name}", {"inputs": inputs})
        await self._persist(record)

        try:
            variables = self.validate_inputs(definition, inputs)
            registry = build_registry(definition.tools, credentials, self.catalog)
            events.log("debug", "Initialized tools", {"tools": registry.names()})

            def _log(level: str, message: str, data: Any = None) -> None:
                events.log(level, message, data, step_id=context.step_id or None)

            context = ExecutionContext(
                agent_id=agent_id,
                execution_id=record.id,
                log=_log,
                variables=variables,
                credentials=credentials,
            )
            runtime = StepRuntime(
                definition=definition,
                record=record,
                events=events,
                tools=registry,
                chat=self.chat,
                config=self.config,
            )
            await self._run_steps(definition, context, runtime)
            self._finalize(record)
            events.log(
                "info",
                f"Execution finished with status: {record.status}",
                {"duration": record.duration},
            )
        except Exception as e:
            record.status = "failed"
            record.error = str(e)
            record.stamp_end()
            finalize_metrics(record)
            events.log("error", f"Execution failed: {e}")
            await self._persist(record)
            self.table.touch(record.id)
            raise

        await self._persist(record)
        self.table.touch(record.id)
        return record

    def validate_inputs(
        self, definition: WorkflowDefinition, inputs: Mapping[str, Any]
    ) -> Dict[str, Any]:
        return validate_inputs(definition, inputs)

    def get_execution_status(self, execution_id: str) -> Optional[ExecutionRecord]:
        return self.table.get(execution_id)

    async def cancel_execution(self, execution_id: str) -> bool:
        """Request cancellation of a running execution.

        The step in flight finishes; no further step is entered.
        """
        record = self.table.get(execution_id)
        if record is None or record.status != "running":
            return False
        record.status = "cancelled"
        record.stamp_end()
        logger.info(f"Execution {execution_id} cancelled")
        await self._persist(record)
        return True

    def get_available_tools(self, credentials: Optional[Mapping[str, str]] = None) -> List[str]:
        return build_registry((), credentials, self.catalog).names()

    # ------------------------------------------------------------------
    # Internals
    async def _run_steps(
        self,
        definition: WorkflowDefinition,
        context: ExecutionContext,
        runtime: StepRuntime,
    ) -> None:
        record = runtime.record
        events = runtime.events
        steps = definition.ordered_steps()
        record.steps = [StepExecution(step_id=s.id, step_name=s.label) for s in steps]

        loop = asyncio.get_running_loop()
        deadline = loop.time() + definition.settings.max_execution_time / 1000
        policy = definition.settings.error_handling
        off_branch: Dict[str, str] = {}
        halted: Optional[str] = None

        for step, entry in zip(steps, record.steps):
            if halted is None and record.status == "cancelled":
                halted = "Execution cancelled"
                events.log("warn", "Execution cancelled, remaining steps skipped")
            if halted is None and loop.time() >= deadline:
                halted = "Maximum execution time exceeded"
                record.error = halted
                events.log("error", halted)
            if halted is not None:
                entry.skip(halted)
                continue
            if not step.enabled:
                entry.skip("Step disabled")
                events.log("debug", f"Skipping disabled step: {step.label}", step_id=step.id)
                continue
            if step.id in off_branch:
                entry.skip(off_branch[step.id])
                events.log("debug", f"Skipping step: {step.label}", {"reason": off_branch[step.id]}, step_id=step.id)
                continue

            result = await dispatch_step(step, entry, context, runtime, timeout=deadline - loop.time())

            if result is None:
                if loop.time() >= deadline:
                    halted = "Maximum execution time exceeded"
                    record.error = halted
                elif policy == "stop":
                    halted = f"Execution stopped after step '{step.label}' failed"
                    record.error = f"Step '{step.label}' failed: {entry.error}"
                continue

            if isinstance(step, ConditionStep):
                taken, not_taken = step.branches(result["condition_result"])
                reason = f"Not on the taken branch of condition '{step.label}'"
                for step_id in not_taken:
                    if step_id not in taken:
                        off_branch[step_id] = reason
                for step_id in taken:
                    off_branch.pop(step_id, None)

    @staticmethod
    def _finalize(record: ExecutionRecord) -> None:
        failed = [s for s in record.steps if s.status == "failed"]
        if record.status != "cancelled":
            record.status = "failed" if failed or record.error else "completed"
        if record.status == "failed" and not record.error:
            record.error = f"{len(failed)} step(s) failed: " + ", ".join(
                s.step_name for s in failed
            )
        if record.end_time is None:
            record.stamp_end()
        finalize_metrics(record)

    async def _persist(self, record: ExecutionRecord) -> None:
        try:
            await self.store.save_execution(record)
        except Exception:
            logger.exception(f"Failed to persist execution {record.id}")
