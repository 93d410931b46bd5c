"""Persistence layer for stepweaver agents and executions."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from ..config import StepweaverConfig, load_config
from ..constants import DEFAULT_DATABASE_FILE, DEFAULT_HOME_DIR
from .inmemory import InMemoryAgentStore
from .models import AgentSummary, ExecutionSummary
from .repository import AgentStore
from .sqlite import SQLiteAgentStore

_store_instance: AgentStore | None = None


def default_database_url() -> str:
    """SQLite URL under ``STEPWEAVER_HOME``, or ``~/.stepweaver`` when unset."""
    home = Path(os.getenv("STEPWEAVER_HOME") or DEFAULT_HOME_DIR).expanduser()
    return f"sqlite://{home / DEFAULT_DATABASE_FILE}"


def get_store(
    database_url: Optional[str] = None,
    config: Optional[StepweaverConfig] = None,
    fallback_url: Optional[str] = None,
) -> AgentStore:
    """Factory function to obtain an agent store.

    The backend is selected from ``database_url``, which can be provided
    explicitly, via the ``STEPWEAVER_DATABASE_URL`` environment variable, or
    from loaded configuration. When no database is configured
    ``fallback_url`` is used, and without one an in-memory store is returned.
    """

    global _store_instance
    if _store_instance is not None and database_url is None and config is None:
        return _store_instance

    config = config or load_config()
    database_url = (
        database_url
        or os.getenv("STEPWEAVER_DATABASE_URL")
        or config.database_url
        or fallback_url
    )

    if not database_url:
        _store_instance = InMemoryAgentStore()
    elif database_url.startswith("sqlite://"):
        path = database_url.replace("sqlite://", "", 1)
        _store_instance = SQLiteAgentStore(path)
    else:
        raise ValueError(f"Unsupported database backend: {database_url}")

    return _store_instance


__all__ = [
    "AgentStore",
    "AgentSummary",
    "ExecutionSummary",
    "InMemoryAgentStore",
    "SQLiteAgentStore",
    "default_database_url",
    "get_store",
]
