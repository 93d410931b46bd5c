"""Chat-completion backend used by prompt steps."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

from pydantic import BaseModel, Field
from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.settings import ModelSettings

from .config import GatewayConfig
from .errors import ModelCallFailed

logger = logging.getLogger(__name__)


class TokenUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatCompletion(BaseModel):
    """One complete, non-streamed model response."""

    content: str
    usage: TokenUsage = Field(default_factory=TokenUsage)
    model: str = ""


class ChatBackend(Protocol):
    """Single-call chat-completion interface."""

    async def complete(
        self,
        model: str,
        prompt: str,
        temperature: float,
        max_tokens: int,
        system_prompt: Optional[str] = None,
    ) -> ChatCompletion:
        """Send ``prompt`` to ``model`` and await the full response."""


class PydanticAIChatBackend:
    """Calls an OpenAI-compatible gateway through a pydantic-ai agent.

    ``model_factory`` replaces the gateway model, which is how tests plug in
    pydantic-ai's ``TestModel``.
    """

    def __init__(
        self,
        gateway: Optional[GatewayConfig] = None,
        model_factory: Optional[Callable[[str], Model]] = None,
    ) -> None:
        self._gateway = gateway or GatewayConfig()
        self._model_factory = model_factory
        self._provider: Optional[OpenAIProvider] = None

    def _build_model(self, model: str) -> Model:
        if self._model_factory is not None:
            return self._model_factory(model)
        if self._provider is None:
            self._provider = OpenAIProvider(
                base_url=self._gateway.base_url, api_key=self._gateway.api_key
            )
        return OpenAIChatModel(model, provider=self._provider)

    async def complete(
        self,
        model: str,
        prompt: str,
        temperature: float,
        max_tokens: int,
        system_prompt: Optional[str] = None,
    ) -> ChatCompletion:
        logger.debug(f"Sending prompt to {model} via {self._gateway.base_url}")
        try:
            agent = Agent(
                self._build_model(model),
                system_prompt=system_prompt or (),
            )
            result = await agent.run(
                prompt,
                model_settings=ModelSettings(
                    temperature=temperature,
                    max_tokens=max_tokens,
                    timeout=self._gateway.timeout,
                ),
            )
            # 1.x exposes usage() as a method, later releases as an attribute
            usage = result.usage() if callable(result.usage) else result.usage
            content = str(result.output or "")
        except Exception as e:
            raise ModelCallFailed(f"Prompt execution failed: {e}") from e

        prompt_tokens = usage.input_tokens or 0
        completion_tokens = usage.output_tokens or 0
        return ChatCompletion(
            content=content,
            usage=TokenUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=usage.total_tokens or prompt_tokens + completion_tokens,
            ),
            model=model,
        )
