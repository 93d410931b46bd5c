"""Tests for agent definition models."""

import pytest
from pydantic import ValidationError

from stepweaver.contracts import WorkflowDefinition
from stepweaver.steps import (
    STEP_TYPES,
    ConditionStep,
    OutputStep,
    PromptStep,
    ToolStep,
    TransformStep,
)


def _definition(**overrides):
    data = {
        "name": "demo",
        "steps": [
            {"id": "p", "type": "prompt", "order": 2, "config": {"prompt": "Hi"}},
            {"id": "t", "type": "tool", "order": 1, "config": {"tool_name": "code_analyzer"}},
            {"id": "c", "type": "condition", "order": 3, "config": {"condition": "true"}},
            {"id": "x", "type": "transform", "order": 1, "config": {"transformation": "to_json"}},
            {"id": "o", "type": "output", "order": 5, "config": {"format": "markdown"}},
        ],
    }
    data.update(overrides)
    return WorkflowDefinition.model_validate(data)


def test_steps_parse_into_typed_variants():
    definition = _definition()
    kinds = {step.id: type(step) for step in definition.steps}
    assert kinds == {
        "p": PromptStep,
        "t": ToolStep,
        "c": ConditionStep,
        "x": TransformStep,
        "o": OutputStep,
    }
    assert set(STEP_TYPES) == {"prompt", "tool", "condition", "transform", "output"}


def test_unknown_step_type_is_rejected():
    with pytest.raises(ValidationError):
        WorkflowDefinition.model_validate(
            {"name": "bad", "steps": [{"id": "s", "type": "teleport"}]}
        )


def test_ordered_steps_is_stable_for_equal_orders():
    definition = _definition()
    assert [s.id for s in definition.ordered_steps()] == ["t", "x", "p", "c", "o"]


def test_duplicate_variable_names_are_rejected():
    with pytest.raises(ValidationError, match="Duplicate variable name"):
        _definition(variables=[{"name": "topic"}, {"name": "topic"}])


def test_invalid_validation_pattern_is_rejected_at_load():
    with pytest.raises(ValidationError, match="Invalid pattern"):
        _definition(variables=[{"name": "topic", "validation": {"pattern": "[unclosed"}}])


def test_valid_validation_pattern_is_kept():
    definition = _definition(variables=[{"name": "topic", "validation": {"pattern": "^[a-z]+$"}}])
    assert definition.variables[0].validation.pattern == "^[a-z]+$"


def test_retry_policy_is_coerced_to_stop():
    definition = _definition(settings={"error_handling": "retry"})
    assert definition.settings.error_handling == "stop"


def test_defaults():
    definition = WorkflowDefinition(name="empty")
    assert definition.id
    assert definition.version == "1.0.0"
    assert definition.settings.max_execution_time == 300_000
    assert definition.settings.error_handling == "stop"
    assert definition.settings.log_level == "info"


def test_json_round_trip_preserves_definition():
    definition = _definition(
        system_prompt="Be terse",
        variables=[{"name": "topic", "type": "string", "required": True}],
        tools=[{"name": "scanner", "capability": "code_analyzer"}],
    )
    restored = WorkflowDefinition.from_json(definition.to_json())
    assert restored == definition
    assert isinstance(restored.steps[0], PromptStep)
