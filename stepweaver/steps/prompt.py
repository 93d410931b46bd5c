from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

from ..errors import ModelCallFailed
from ..resolver import interpolate
from .base import BaseStep

if TYPE_CHECKING:
    from ..context import ExecutionContext, StepRuntime


class PromptStepConfig(BaseModel):
    prompt: str = ""
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


class PromptStep(BaseStep):
    """Sends an interpolated prompt to the chat-completion backend."""

    type: Literal["prompt"] = "prompt"
    config: PromptStepConfig = Field(default_factory=PromptStepConfig)

    async def run(
        self,
        inputs: Dict[str, Any],
        context: "ExecutionContext",
        runtime: "StepRuntime",
    ) -> Dict[str, Any]:
        if runtime.chat is None:
            raise ModelCallFailed("No chat-completion backend configured")

        gateway = runtime.config.gateway
        prompt = interpolate(self.config.prompt, context.variables)
        model = self.config.model or gateway.default_model
        temperature = (
            self.config.temperature
            if self.config.temperature is not None
            else gateway.temperature
        )
        max_tokens = self.config.max_tokens or gateway.max_tokens

        context.log(
            "info",
            f"Executing prompt with model: {model}",
            {"prompt": prompt[:200]},
        )
        completion = await runtime.chat.complete(
            model,
            prompt,
            temperature=temperature,
            max_tokens=max_tokens,
            system_prompt=runtime.definition.system_prompt,
        )

        usage = completion.usage
        cost = runtime.config.cost_for(model, usage.prompt_tokens, usage.completion_tokens)
        runtime.events.record_usage(usage.total_tokens, cost)

        return {
            "response": completion.content,
            "tokens_used": usage.total_tokens,
            "cost": cost,
            "model": model,
            "prompt": prompt,
        }
