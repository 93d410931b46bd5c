from __future__ import annotations

import os
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, Field

from .constants import (
    DEFAULT_GATEWAY_URL,
    DEFAULT_MAX_TOKENS,
    DEFAULT_MAX_TRACKED_EXECUTIONS,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
)


class GatewayConfig(BaseModel):
    """Connection settings for the chat-completion gateway."""

    base_url: str = DEFAULT_GATEWAY_URL
    api_key: Optional[str] = None
    default_model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    timeout: float = 60.0


class ModelPricing(BaseModel):
    """Price in dollars per million tokens."""

    input: float = 0.0
    output: float = 0.0

    def cost(self, prompt_tokens: int, completion_tokens: int) -> float:
        return (prompt_tokens * self.input + completion_tokens * self.output) / 1_000_000


class StepweaverConfig(BaseModel):
    """Top-level configuration model."""

    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    database_url: Optional[str] = None
    max_tracked_executions: int = DEFAULT_MAX_TRACKED_EXECUTIONS
    pricing: Dict[str, ModelPricing] = Field(default_factory=dict)

    def cost_for(self, model: str, prompt_tokens: int, completion_tokens: int) -> float:
        """Return the dollar cost of a call, or 0 for models without pricing."""
        pricing = self.pricing.get(model)
        if pricing is None:
            return 0.0
        return pricing.cost(prompt_tokens, completion_tokens)


def load_config(path: Optional[str] = None) -> StepweaverConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to STEPWEAVER_CONFIG env
            variable or 'stepweaver.yaml' in the current directory.
    """

    config_path = path or os.getenv("STEPWEAVER_CONFIG", "stepweaver.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = StepweaverConfig(**data)
    else:
        config = StepweaverConfig()

    env_db_url = os.getenv("STEPWEAVER_DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url
    env_api_key = os.getenv("REQUESTY_API_KEY")
    if env_api_key:
        config.gateway.api_key = env_api_key
    return config
