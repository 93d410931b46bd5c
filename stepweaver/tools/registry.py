"""Per-run registry of initialized tools."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Type

from ..contracts import ToolBinding
from ..errors import ToolNotAvailable
from .base import BaseTool
from .code_analyzer import CodeAnalyzerTool
from .firecrawl import FirecrawlTool

logger = logging.getLogger(__name__)

TOOL_CATALOG: Dict[str, Type[BaseTool]] = {
    CodeAnalyzerTool.name: CodeAnalyzerTool,
    FirecrawlTool.name: FirecrawlTool,
}


class ToolRegistry:
    """Name-keyed tools available to one execution."""

    def __init__(self) -> None:
        self._tools: Dict[str, BaseTool] = {}

    def register(self, name: str, tool: BaseTool) -> None:
        self._tools[name] = tool

    def get(self, name: str) -> BaseTool:
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotAvailable(name)
        return tool

    def names(self) -> List[str]:
        return sorted(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)


def _default_bindings(catalog: Mapping[str, Type[BaseTool]]) -> Dict[str, ToolBinding]:
    return {
        name: ToolBinding(name=name, capability=name)
        for name in catalog
    }


def build_registry(
    bindings: Iterable[ToolBinding] = (),
    credentials: Optional[Mapping[str, str]] = None,
    catalog: Optional[Mapping[str, Type[BaseTool]]] = None,
) -> ToolRegistry:
    """Construct a fresh registry for one run.

    Every catalog tool is bound under its own name; ``bindings`` add aliases or
    override those defaults. A tool is left out when any credential it needs is
    absent from ``credentials``.
    """

    catalog = TOOL_CATALOG if catalog is None else catalog
    credentials = dict(credentials or {})
    resolved = _default_bindings(catalog)
    for binding in bindings:
        resolved[binding.name] = binding

    registry = ToolRegistry()
    for name, binding in resolved.items():
        tool_cls = catalog.get(binding.capability)
        if tool_cls is None:
            logger.warning(f"Tool '{name}' refers to unknown capability '{binding.capability}'")
            continue
        needed = binding.required_credentials or tool_cls.required_credentials
        missing = sorted(key for key in needed if not credentials.get(key))
        if missing:
            logger.debug(f"Tool '{name}' not initialized, missing credentials: {missing}")
            continue
        registry.register(name, tool_cls.from_binding(binding, credentials))
        logger.debug(f"Initialized tool '{name}' ({binding.capability})")
    return registry
