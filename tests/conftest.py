"""Shared fixtures: a scripted chat backend and an executor wired to memory."""

from __future__ import annotations

import asyncio

import pytest

import stepweaver.persistence as persistence
from stepweaver.config import ModelPricing, StepweaverConfig
from stepweaver.executor import AgentExecutor
from stepweaver.llm import ChatCompletion, TokenUsage
from stepweaver.persistence import InMemoryAgentStore


class StubChat:
    """Chat backend returning a fixed reply and recording every call."""

    def __init__(self, content="stub reply", prompt_tokens=3, completion_tokens=2, delay=0.0):
        self.content = content
        self.prompt_tokens = prompt_tokens
        self.completion_tokens = completion_tokens
        self.delay = delay
        self.calls = []

    async def complete(self, model, prompt, temperature, max_tokens, system_prompt=None):
        self.calls.append(
            {
                "model": model,
                "prompt": prompt,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "system_prompt": system_prompt,
            }
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        return ChatCompletion(
            content=self.content,
            usage=TokenUsage(
                prompt_tokens=self.prompt_tokens,
                completion_tokens=self.completion_tokens,
                total_tokens=self.prompt_tokens + self.completion_tokens,
            ),
            model=model,
        )


@pytest.fixture
def config():
    return StepweaverConfig(
        pricing={"openai/gpt-4o": ModelPricing(input=2.5, output=10.0)}
    )


@pytest.fixture
def store():
    return InMemoryAgentStore()


@pytest.fixture
def chat():
    return StubChat()


@pytest.fixture
def executor(store, chat, config):
    return AgentExecutor(store=store, chat=chat, config=config)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep tests away from user config files and the shared store singleton."""
    monkeypatch.delenv("STEPWEAVER_DATABASE_URL", raising=False)
    monkeypatch.delenv("REQUESTY_API_KEY", raising=False)
    monkeypatch.setenv("STEPWEAVER_CONFIG", str(tmp_path / "missing.yaml"))
    monkeypatch.setenv("STEPWEAVER_HOME", str(tmp_path / "home"))
    monkeypatch.setattr(persistence, "_store_instance", None)
    yield


@pytest.fixture
def make_chat():
    """Build a ``StubChat`` with custom replies, usage or latency."""
    return StubChat
