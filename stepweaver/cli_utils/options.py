"""Parsing helpers for CLI options and definition files."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import yaml

from ..contracts import WorkflowDefinition


def _parse_pairs(pairs: Iterable[str], option: str) -> Dict[str, str]:
    """Turn repeated ``key=value`` options into a dict.

    Raises:
        ValueError: An item has no ``=`` or an empty key.
    """
    parsed: Dict[str, str] = {}
    for item in pairs:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Invalid {option} '{item}', expected KEY=VALUE")
        parsed[key.strip()] = value
    return parsed


def _coerce(value: str) -> Any:
    """Interpret a command line value as JSON when it parses, else as text."""
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


def _build_inputs(pairs: Iterable[str], inputs_json: Optional[str]) -> Dict[str, Any]:
    inputs: Dict[str, Any] = {}
    if inputs_json:
        loaded = json.loads(inputs_json)
        if not isinstance(loaded, dict):
            raise ValueError("--inputs-json must be a JSON object")
        inputs.update(loaded)
    inputs.update({k: _coerce(v) for k, v in _parse_pairs(pairs, "--input").items()})
    return inputs


def _load_definition_file(path: Path) -> WorkflowDefinition:
    """Read an agent definition from a YAML or JSON file."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text) or {}
    return WorkflowDefinition.model_validate(data)
