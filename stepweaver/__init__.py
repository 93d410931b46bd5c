"""stepweaver: run user-authored agent workflows step by step."""

from .config import StepweaverConfig, load_config
from .contracts import AgentSettings, ToolBinding, Variable, WorkflowDefinition
from .executor import AgentExecutor
from .models import ExecutionRecord, StepExecution
from .persistence import get_store
from .tools import TOOL_CATALOG

__version__ = "0.1.0"
__all__ = [
    "AgentExecutor",
    "AgentSettings",
    "ExecutionRecord",
    "StepExecution",
    "StepweaverConfig",
    "ToolBinding",
    "Variable",
    "WorkflowDefinition",
    "TOOL_CATALOG",
    "get_store",
    "load_config",
]
