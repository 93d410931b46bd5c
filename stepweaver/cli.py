"""Command line interface for managing and running stepweaver agents."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
import yaml
from pydantic import ValidationError

from stepweaver import AgentExecutor, get_store
from stepweaver.persistence import AgentStore, default_database_url
from stepweaver.cli_utils.options import (
    _build_inputs,
    _load_definition_file,
    _parse_pairs,
)
from stepweaver.constants import DEFAULT_EXECUTION_RETENTION_DAYS
from stepweaver.errors import StepweaverError

app = typer.Typer(help="CLI for stepweaver agents")

# Command groups
agent_app = typer.Typer(help="Commands for managing agents")
execution_app = typer.Typer(help="Commands for inspecting executions")
tools_app = typer.Typer(help="Commands for built-in tools")

app.add_typer(agent_app, name="agent")
app.add_typer(execution_app, name="execution")
app.add_typer(tools_app, name="tools")


def _fail(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED)
    raise typer.Exit(code=1)


def _store() -> AgentStore:
    """Configured store, or a SQLite file that outlives the process."""
    return get_store(fallback_url=default_database_url())


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", help="Python logging level"),
) -> None:
    """stepweaver CLI entry point."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@agent_app.command("import")
def agent_import(path: Path) -> None:
    """
    Store an agent definition read from a YAML or JSON file.

    Files ending in ``.json`` are parsed as JSON, anything else as YAML.
    Importing a definition with an existing id replaces it.

    Example:
        stepweaver agent import ./agents/summarizer.yaml
    """
    if not path.exists():
        _fail("Specified path does not exist")
    try:
        definition = _load_definition_file(path)
    except (ValidationError, ValueError, yaml.YAMLError) as exc:
        _fail(f"Invalid agent definition: {exc}")
    asyncio.run(_store().save_agent(definition))
    typer.echo(f"Imported agent {definition.name} ({definition.id})")


@agent_app.command("list")
def agent_list() -> None:
    """List stored agents."""
    agents = asyncio.run(_store().list_agents())
    if not agents:
        typer.echo("No agents found")
        return
    for agent in agents:
        typer.echo(f"{agent.id}\t{agent.name}\t{agent.description}")


@agent_app.command("show")
def agent_show(agent_id: str) -> None:
    """Print a stored agent definition as JSON."""
    try:
        definition = asyncio.run(_store().load_agent(agent_id))
    except StepweaverError as exc:
        _fail(str(exc))
    typer.echo(definition.model_dump_json(indent=2))


@agent_app.command("delete")
def agent_delete(agent_id: str) -> None:
    """Remove a stored agent definition."""
    if not asyncio.run(_store().delete_agent(agent_id)):
        _fail(f"Agent with ID '{agent_id}' not found")
    typer.echo(f"Deleted agent {agent_id}")


@agent_app.command("run")
def agent_run(
    agent_id: str,
    input_pairs: Optional[List[str]] = typer.Option(
        None, "--input", "-i", help="Input variable as KEY=VALUE (repeatable)"
    ),
    inputs_json: Optional[str] = typer.Option(
        None, help="Input variables as a JSON object"
    ),
    credential: Optional[List[str]] = typer.Option(
        None, "--credential", "-c", help="Tool credential as KEY=VALUE (repeatable)"
    ),
) -> None:
    """
    Execute a stored agent and print its execution record.

    Values given with --input are parsed as JSON when possible, so numbers and
    booleans keep their type. --input values override --inputs-json keys.

    Example:
        stepweaver agent run 3f2a... -i topic=python -c firecrawl_api_key=fc-...
    """
    try:
        inputs = _build_inputs(input_pairs or [], inputs_json)
        credentials = _parse_pairs(credential or [], "--credential")
    except ValueError as exc:
        _fail(str(exc))

    executor = AgentExecutor(store=_store())
    try:
        record = asyncio.run(executor.execute_agent(agent_id, inputs, credentials))
    except StepweaverError as exc:
        _fail(str(exc))
    except Exception as exc:
        _fail(f"Execution failed: {exc}")

    typer.echo(record.model_dump_json(indent=2))
    if record.status != "completed":
        raise typer.Exit(code=1)


@execution_app.command("list")
def execution_list(
    agent: Optional[str] = typer.Option(None, help="Only show executions of this agent"),
) -> None:
    """List stored executions, newest first."""
    executions = asyncio.run(_store().list_executions(agent_id=agent))
    if not executions:
        typer.echo("No executions found")
        return
    for execution in executions:
        typer.echo(
            f"{execution.id}\t{execution.agent_id}\t{execution.status}\t{execution.start_time.isoformat()}"
        )


@execution_app.command("show")
def execution_show(execution_id: str) -> None:
    """Show an execution with its step outcomes and metrics."""
    try:
        record = asyncio.run(_store().load_execution(execution_id))
    except StepweaverError as exc:
        _fail(str(exc))

    typer.echo(f"Execution {record.id}: {record.status}")
    if record.error:
        typer.echo(f"Error: {record.error}")
    for step in record.steps:
        typer.echo(
            f"- {step.step_name or step.step_id}: {step.status}"
            + (f" ({step.duration} ms)" if step.duration is not None else "")
            + (f" - {step.error}" if step.error else "")
        )
    if record.outputs:
        typer.echo(f"Outputs: {json.dumps(record.outputs, default=str)}")
    typer.echo(f"Metrics: {record.metrics.model_dump_json()}")


@execution_app.command("cleanup")
def execution_cleanup(
    max_age_days: int = typer.Option(
        DEFAULT_EXECUTION_RETENTION_DAYS, help="Delete executions older than this"
    ),
) -> None:
    """Delete stored executions older than --max-age-days."""
    removed = asyncio.run(_store().cleanup_old_executions(max_age_days))
    typer.echo(f"Removed {removed} execution(s)")


@tools_app.command("list")
def tools_list(
    credential: Optional[List[str]] = typer.Option(
        None, "--credential", "-c", help="Tool credential as KEY=VALUE (repeatable)"
    ),
) -> None:
    """List the built-in tools that the given credentials make available."""
    try:
        credentials = _parse_pairs(credential or [], "--credential")
    except ValueError as exc:
        _fail(str(exc))

    executor = AgentExecutor(store=_store())
    for name in executor.get_available_tools(credentials):
        typer.echo(name)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
