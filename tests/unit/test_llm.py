"""Tests for the pydantic-ai backed chat backend."""

import pytest
from pydantic_ai.messages import ModelResponse, SystemPromptPart, TextPart
from pydantic_ai.models.function import AgentInfo, FunctionModel
from pydantic_ai.models.test import TestModel

from stepweaver.config import GatewayConfig
from stepweaver.errors import ModelCallFailed
from stepweaver.llm import PydanticAIChatBackend


@pytest.mark.asyncio
async def test_complete_returns_text_and_usage():
    requested = []

    def factory(model_name):
        requested.append(model_name)
        return TestModel(custom_output_text="a crisp answer")

    backend = PydanticAIChatBackend(GatewayConfig(), model_factory=factory)
    completion = await backend.complete("openai/gpt-4o", "Say something", 0.3, 100)

    assert requested == ["openai/gpt-4o"]
    assert completion.content == "a crisp answer"
    assert completion.model == "openai/gpt-4o"
    usage = completion.usage
    assert usage.total_tokens == usage.prompt_tokens + usage.completion_tokens
    assert usage.total_tokens > 0


@pytest.mark.asyncio
async def test_system_prompt_reaches_the_model():
    seen = []

    def respond(messages, info: AgentInfo) -> ModelResponse:
        seen.extend(
            part.content
            for message in messages
            for part in message.parts
            if isinstance(part, SystemPromptPart)
        )
        return ModelResponse(parts=[TextPart("ok")])

    backend = PydanticAIChatBackend(model_factory=lambda name: FunctionModel(respond))
    completion = await backend.complete("m", "hello", 0.7, 50, system_prompt="Answer in French")

    assert completion.content == "ok"
    assert seen == ["Answer in French"]


@pytest.mark.asyncio
async def test_model_errors_are_wrapped():
    def respond(messages, info):
        raise RuntimeError("gateway unavailable")

    backend = PydanticAIChatBackend(model_factory=lambda name: FunctionModel(respond))
    with pytest.raises(ModelCallFailed, match="Prompt execution failed: gateway unavailable"):
        await backend.complete("m", "hello", 0.7, 50)


class _Usage:
    input_tokens = 7
    output_tokens = 4
    total_tokens = 11


class _AttributeUsageResult:
    output = "attr"
    usage = _Usage()


class _MethodUsageResult:
    output = "method"

    def usage(self):
        return _Usage()


class _BrokenUsageResult:
    output = "broken"

    @property
    def usage(self):
        raise AttributeError("usage unavailable")


def _fake_agent(result):
    class FakeAgent:
        def __init__(self, model, system_prompt=()):
            pass

        async def run(self, prompt, model_settings=None):
            return result

    return FakeAgent


@pytest.mark.asyncio
@pytest.mark.parametrize("result", [_AttributeUsageResult(), _MethodUsageResult()])
async def test_usage_is_read_from_either_result_shape(monkeypatch, result):
    monkeypatch.setattr("stepweaver.llm.Agent", _fake_agent(result))
    backend = PydanticAIChatBackend(model_factory=lambda name: TestModel())

    completion = await backend.complete("m", "hello", 0.7, 50)

    assert completion.content == result.output
    assert (completion.usage.prompt_tokens, completion.usage.completion_tokens) == (7, 4)
    assert completion.usage.total_tokens == 11


@pytest.mark.asyncio
async def test_unreadable_usage_is_a_model_call_failure(monkeypatch):
    monkeypatch.setattr("stepweaver.llm.Agent", _fake_agent(_BrokenUsageResult()))
    backend = PydanticAIChatBackend(model_factory=lambda name: TestModel())

    with pytest.raises(ModelCallFailed, match="usage unavailable"):
        await backend.complete("m", "hello", 0.7, 50)
