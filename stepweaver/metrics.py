"""Structured execution logging and metric aggregation."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, Tuple

from .constants import LOG_LEVELS
from .models import ExecutionMetrics, ExecutionRecord, LogEntry

logger = logging.getLogger(__name__)

_STDLIB_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

MASK = "***"


def _scrub(text: str, secrets: Tuple[str, ...]) -> str:
    for secret in secrets:
        text = text.replace(secret, MASK)
    return text


def _mask(data: Any, keys: frozenset, secrets: Tuple[str, ...]) -> Any:
    if isinstance(data, dict):
        return {
            key: MASK if key in keys else _mask(value, keys, secrets)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [_mask(item, keys, secrets) for item in data]
    if isinstance(data, str):
        return _scrub(data, secrets)
    return data


class ExecutionLogger:
    """Appends log entries and running usage totals onto one execution record.

    Entries below ``level`` are mirrored to the module logger but not stored on
    the record. Values stored under a sensitive key are masked, and every
    occurrence of a secret value is masked in messages and data.
    """

    def __init__(
        self,
        record: ExecutionRecord,
        level: str = "info",
        sensitive: Iterable[str] = (),
        secrets: Iterable[str] = (),
    ) -> None:
        self._record = record
        self._threshold = LOG_LEVELS.index(level)
        self._sensitive = frozenset(sensitive)
        # longest first so a secret containing another is masked whole
        self._secrets = tuple(
            sorted({s for s in secrets if s}, key=len, reverse=True)
        )

    def log(
        self,
        level: str,
        message: str,
        data: Optional[Any] = None,
        step_id: Optional[str] = None,
    ) -> None:
        if level not in _STDLIB_LEVELS:
            level = "info"
        if self._secrets:
            message = _scrub(message, self._secrets)
        if data is not None and (self._sensitive or self._secrets):
            data = _mask(data, self._sensitive, self._secrets)

        logger.log(
            _STDLIB_LEVELS[level],
            f"[{self._record.id}] {message}" + (f" {data}" if data is not None else ""),
        )
        if LOG_LEVELS.index(level) < self._threshold:
            return
        self._record.logs.append(
            LogEntry(level=level, message=message, step_id=step_id, data=data)
        )

    def record_usage(self, tokens: int, cost: float) -> None:
        self._record.metrics.total_tokens_used += tokens
        self._record.metrics.total_cost += cost


def finalize_metrics(record: ExecutionRecord) -> ExecutionMetrics:
    """Recompute derived metrics from the record's step executions."""
    metrics = record.metrics
    metrics.total_steps = len(record.steps)
    metrics.completed_steps = sum(1 for s in record.steps if s.status == "completed")
    metrics.failed_steps = sum(1 for s in record.steps if s.status == "failed")
    metrics.skipped_steps = sum(1 for s in record.steps if s.status == "skipped")

    durations = [s.duration for s in record.steps if s.duration is not None]
    metrics.average_step_duration = sum(durations) / len(durations) if durations else 0.0
    metrics.execution_efficiency = (
        metrics.completed_steps / metrics.total_steps * 100 if metrics.total_steps else 0.0
    )
    return metrics
