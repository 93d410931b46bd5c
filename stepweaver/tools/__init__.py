from .base import BaseTool, ToolResult
from .code_analyzer import CodeAnalyzerTool
from .firecrawl import FirecrawlTool
from .registry import TOOL_CATALOG, ToolRegistry, build_registry

__all__ = [
    "BaseTool",
    "ToolResult",
    "CodeAnalyzerTool",
    "FirecrawlTool",
    "TOOL_CATALOG",
    "ToolRegistry",
    "build_registry",
]
