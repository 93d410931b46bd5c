"""Base tool interface and the uniform tool result contract."""

from __future__ import annotations

import abc
import inspect
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Optional, Tuple

from pydantic import BaseModel

from ..errors import UnknownToolAction

if TYPE_CHECKING:
    from ..context import ExecutionContext
    from ..contracts import ToolBinding


class ToolResult(BaseModel):
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class BaseTool(metaclass=abc.ABCMeta):
    """A capability exposing a closed set of named actions.

    Subclasses list their actions in ``actions``; each action is an async
    method of the same name taking ``(params, context)``.
    """

    name: ClassVar[str]
    description: ClassVar[str] = ""
    actions: ClassVar[Tuple[str, ...]] = ()
    required_credentials: ClassVar[Tuple[str, ...]] = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        for action in cls.actions:
            handler = getattr(cls, action, None)
            if handler is None or not inspect.iscoroutinefunction(handler):
                raise TypeError(f"{cls.__name__} declares action '{action}' without an async handler")

    @classmethod
    @abc.abstractmethod
    def from_binding(cls, binding: "ToolBinding", credentials: Dict[str, str]) -> "BaseTool":
        """Build an instance for one run from its binding and credentials."""
        raise NotImplementedError

    async def execute(
        self, action: str, params: Dict[str, Any], context: "ExecutionContext"
    ) -> ToolResult:
        """Dispatch ``action`` to its handler.

        Raises:
            UnknownToolAction: ``action`` is not one of ``actions``.
        """
        if action not in self.actions:
            raise UnknownToolAction(self.name, action)
        handler = getattr(self, action)
        return await handler(params, context)

    @classmethod
    def info(cls) -> Dict[str, Any]:
        return {
            "name": cls.name,
            "description": cls.description,
            "capabilities": list(cls.actions),
            "required_auth": list(cls.required_credentials),
        }
