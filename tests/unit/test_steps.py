"""Tests for the individual step handlers."""

import json

import pytest

from stepweaver.config import ModelPricing, StepweaverConfig
from stepweaver.context import ExecutionContext, StepRuntime
from stepweaver.contracts import WorkflowDefinition
from stepweaver.errors import ModelCallFailed, StepFailure, ToolNotAvailable, UnknownToolAction
from stepweaver.metrics import ExecutionLogger
from stepweaver.models import ExecutionRecord
from stepweaver.steps import (
    ConditionStep,
    OutputStep,
    PromptStep,
    ToolStep,
    TransformStep,
    evaluate_condition,
)
from stepweaver.tools import CodeAnalyzerTool, ToolRegistry


def _runtime(chat=None, tools=None, config=None, variables=None, system_prompt=None):
    definition = WorkflowDefinition(name="unit", system_prompt=system_prompt)
    record = ExecutionRecord(agent_id=definition.id, status="running")
    events = ExecutionLogger(record, level="debug")
    context = ExecutionContext(
        agent_id=definition.id,
        execution_id=record.id,
        log=lambda level, message, data=None: events.log(level, message, data),
        variables=dict(variables or {}),
    )
    runtime = StepRuntime(
        definition=definition,
        record=record,
        events=events,
        tools=tools if tools is not None else ToolRegistry(),
        chat=chat,
        config=config or StepweaverConfig(),
    )
    return context, runtime


# ---------------------------------------------------------------------------
# condition


@pytest.mark.parametrize(
    "condition, variables, expected",
    [
        ("true", {}, True),
        ("  false ", {}, False),
        ("{status} == ready", {"status": "ready"}, True),
        ("{status} == ready", {"status": "busy"}, False),
        ("{status} != ready", {"status": "busy"}, True),
        ("{flag} == true", {"flag": True}, True),
        ("a == b == c", {}, False),
        ("{count} > 3", {"count": 5}, False),
        ("anything else", {}, False),
    ],
)
def test_evaluate_condition(condition, variables, expected):
    assert evaluate_condition(condition, variables) is expected


@pytest.mark.asyncio
async def test_condition_step_reports_taken_branch():
    step = ConditionStep(
        id="c",
        config={"condition": "{mode} == fast", "true_steps": ["quick"], "false_steps": ["slow"]},
    )
    context, runtime = _runtime(variables={"mode": "slow"})
    result = await step.run({}, context, runtime)
    assert result == {"condition_result": False, "next_steps": ["slow"]}
    assert step.branches(True) == (["quick"], ["slow"])


@pytest.mark.asyncio
async def test_condition_step_requires_condition():
    context, runtime = _runtime()
    with pytest.raises(StepFailure, match="Condition is required"):
        await ConditionStep(id="c").run({}, context, runtime)


# ---------------------------------------------------------------------------
# transform


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "transformation, data, expected",
    [
        ("to_json", {"a": [1, 2]}, '{"a":[1,2]}'),
        ("from_json", '{"a": 1}', {"a": 1}),
        ("to_uppercase", "MiXed", "MIXED"),
        ("to_lowercase", "MiXed", "mixed"),
        ("to_uppercase", 12, "12"),
    ],
)
async def test_transformations(transformation, data, expected):
    step = TransformStep(id="t", config={"transformation": transformation})
    context, runtime = _runtime()
    result = await step.run({"data": data}, context, runtime)
    assert result == {"transformed_data": expected, "transformation": transformation}


@pytest.mark.asyncio
async def test_to_json_then_from_json_restores_value():
    value = {"name": "ada", "tags": ["x", "y"], "n": 2.5, "ok": True}
    context, runtime = _runtime()
    encoded = await TransformStep(id="a", config={"transformation": "to_json"}).run(
        {"data": value}, context, runtime
    )
    decoded = await TransformStep(id="b", config={"transformation": "from_json"}).run(
        {"data": encoded["transformed_data"]}, context, runtime
    )
    assert decoded["transformed_data"] == value


@pytest.mark.asyncio
async def test_transform_errors():
    context, runtime = _runtime()
    with pytest.raises(StepFailure, match="Unknown transformation: reverse"):
        await TransformStep(id="t", config={"transformation": "reverse"}).run(
            {"data": "x"}, context, runtime
        )
    with pytest.raises(StepFailure, match="requires a 'data' input"):
        await TransformStep(id="t", config={"transformation": "to_json"}).run({}, context, runtime)
    with pytest.raises(StepFailure, match="from_json"):
        await TransformStep(id="t", config={"transformation": "from_json"}).run(
            {"data": "{not json"}, context, runtime
        )


# ---------------------------------------------------------------------------
# output


@pytest.mark.asyncio
async def test_output_json_merges_into_record_outputs():
    step = OutputStep(id="o", config={"format": "json"})
    context, runtime = _runtime()
    runtime.record.outputs["earlier"] = 1
    result = await step.run({"summary": "done", "score": 7}, context, runtime)

    assert json.loads(result["formatted_output"]) == {"summary": "done", "score": 7}
    assert result["format"] == "json"
    assert result["raw_data"] == {"summary": "done", "score": 7}
    assert runtime.record.outputs == {"earlier": 1, "summary": "done", "score": 7}


@pytest.mark.asyncio
async def test_output_text_uses_template_or_compact_json():
    context, runtime = _runtime()
    templated = OutputStep(id="o", config={"format": "text", "template": "Result: {summary}"})
    assert (await templated.run({"summary": "ok"}, context, runtime))["formatted_output"] == "Result: ok"

    plain = OutputStep(id="o2", config={"format": "text"})
    assert (await plain.run({"a": 1}, context, runtime))["formatted_output"] == '{"a": 1}'


def test_output_markdown_layout():
    step = OutputStep(id="o", config={"format": "markdown"})
    rendered = step.render({"summary": "All good", "details": {"n": 1}})
    assert rendered.startswith("# Agent Output\n\n## summary\n\nAll good\n\n")
    assert '## details\n\n```json\n{\n  "n": 1\n}\n```' in rendered


def test_output_csv_has_header_and_value_rows():
    step = OutputStep(id="o", config={"format": "csv"})
    rendered = step.render({"name": "ada, lovelace", "count": 3})
    assert rendered.splitlines() == ["name,count", '"ada, lovelace",3']


# ---------------------------------------------------------------------------
# prompt


@pytest.mark.asyncio
async def test_prompt_step_interpolates_and_uses_gateway_defaults(chat):
    config = StepweaverConfig(pricing={"openai/gpt-4o": ModelPricing(input=1.0, output=1.0)})
    context, runtime = _runtime(
        chat=chat, config=config, variables={"topic": "tides"}, system_prompt="Be brief"
    )
    step = PromptStep(id="p", config={"prompt": "Explain {topic}"})

    result = await step.run({}, context, runtime)

    assert chat.calls == [
        {
            "model": "openai/gpt-4o",
            "prompt": "Explain tides",
            "temperature": 0.7,
            "max_tokens": 2000,
            "system_prompt": "Be brief",
        }
    ]
    assert result["response"] == "stub reply"
    assert result["tokens_used"] == 5
    assert result["cost"] == pytest.approx(5 / 1_000_000)
    assert result["model"] == "openai/gpt-4o"
    assert result["prompt"] == "Explain tides"
    assert runtime.record.metrics.total_tokens_used == 5
    assert runtime.record.metrics.total_cost == pytest.approx(5 / 1_000_000)


@pytest.mark.asyncio
async def test_prompt_step_config_overrides(chat):
    context, runtime = _runtime(chat=chat)
    step = PromptStep(
        id="p",
        config={"prompt": "Hi", "model": "mistral/small", "temperature": 0.0, "max_tokens": 50},
    )
    result = await step.run({}, context, runtime)
    assert chat.calls[0]["model"] == "mistral/small"
    assert chat.calls[0]["temperature"] == 0.0
    assert chat.calls[0]["max_tokens"] == 50
    assert result["cost"] == 0.0


@pytest.mark.asyncio
async def test_prompt_step_without_backend_fails():
    context, runtime = _runtime(chat=None)
    with pytest.raises(ModelCallFailed):
        await PromptStep(id="p", config={"prompt": "Hi"}).run({}, context, runtime)


# ---------------------------------------------------------------------------
# tool

DIFF = """--- a/app.py
+++ b/app.py
@@ -1,1 +1,2 @@
 import os
+result = eval(user_input)
"""


def _analyzer_registry():
    registry = ToolRegistry()
    registry.register("code_analyzer", CodeAnalyzerTool())
    return registry


@pytest.mark.asyncio
async def test_tool_step_overlays_inputs_on_parameters():
    context, runtime = _runtime(tools=_analyzer_registry())
    step = ToolStep(
        id="t",
        config={
            "tool_name": "code_analyzer",
            "parameters": {"action": "analyze_diff", "diff": "", "language": "python"},
        },
    )
    result = await step.run({"diff": DIFF, "unused": None}, context, runtime)

    assert result["success"] is True
    assert result["tool_name"] == "code_analyzer"
    assert result["tool_metadata"]["language"] == "python"
    kinds = [issue["type"] for issue in result["tool_result"]["issues"]]
    assert "eval_usage" in kinds


@pytest.mark.asyncio
async def test_tool_step_missing_tool():
    context, runtime = _runtime()
    step = ToolStep(id="t", config={"tool_name": "firecrawl", "action": "scrape_url"})
    with pytest.raises(ToolNotAvailable, match="Tool 'firecrawl' not found"):
        await step.run({}, context, runtime)


@pytest.mark.asyncio
async def test_tool_step_unknown_action():
    context, runtime = _runtime(tools=_analyzer_registry())
    step = ToolStep(id="t", config={"tool_name": "code_analyzer", "action": "format_code"})
    with pytest.raises(UnknownToolAction, match="Unknown code_analyzer action: format_code"):
        await step.run({}, context, runtime)


@pytest.mark.asyncio
async def test_tool_step_unsuccessful_result_raises():
    context, runtime = _runtime(tools=_analyzer_registry())
    step = ToolStep(id="t", config={"tool_name": "code_analyzer", "action": "analyze_diff"})
    with pytest.raises(StepFailure, match="Tool execution failed: A 'diff' parameter is required"):
        await step.run({}, context, runtime)


@pytest.mark.asyncio
async def test_tool_step_requires_action():
    context, runtime = _runtime(tools=_analyzer_registry())
    step = ToolStep(id="t", config={"tool_name": "code_analyzer"})
    with pytest.raises(StepFailure, match="Action is required"):
        await step.run({}, context, runtime)
