"""Step variants and the discriminated ``Step`` union."""

from __future__ import annotations

from typing import Annotated, Union, get_args

from pydantic import Field

from .base import BaseStep, StepInput, StepOutput
from .condition import ConditionStep, ConditionStepConfig, evaluate_condition
from .output import OutputStep, OutputStepConfig
from .prompt import PromptStep, PromptStepConfig
from .tool import ToolStep, ToolStepConfig
from .transform import TRANSFORMATIONS, TransformStep, TransformStepConfig

STEP_VARIANTS = (PromptStep, ToolStep, ConditionStep, TransformStep, OutputStep)

Step = Annotated[
    Union[PromptStep, ToolStep, ConditionStep, TransformStep, OutputStep],
    Field(discriminator="type"),
]

# every concrete BaseStep subclass must be reachable through the union
_declared = set(get_args(get_args(Step)[0]))
_implemented = {cls for cls in BaseStep.__subclasses__()}
if _declared != _implemented or _declared != set(STEP_VARIANTS):
    raise TypeError(
        f"Step union out of sync with step variants: {sorted(c.__name__ for c in _implemented ^ _declared)}"
    )

STEP_TYPES = tuple(cls.model_fields["type"].default for cls in STEP_VARIANTS)

__all__ = [
    "BaseStep",
    "StepInput",
    "StepOutput",
    "Step",
    "STEP_TYPES",
    "STEP_VARIANTS",
    "PromptStep",
    "PromptStepConfig",
    "ToolStep",
    "ToolStepConfig",
    "ConditionStep",
    "ConditionStepConfig",
    "evaluate_condition",
    "TransformStep",
    "TransformStepConfig",
    "TRANSFORMATIONS",
    "OutputStep",
    "OutputStepConfig",
]
