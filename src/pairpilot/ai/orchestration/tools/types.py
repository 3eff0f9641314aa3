"""Declarations and the structural interface shared by client tools."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping, Protocol, cast, runtime_checkable

from openai.types.chat import ChatCompletionToolParam

if TYPE_CHECKING:
    from ...ai_types import ChatHistoryUpdater, CompletionCallback, ToolCallRequest

__all__ = [
    "ToolSpec",
    "Tool",
    "ToolCategory",
]


class ToolCategory(str, Enum):
    """Coarse grouping of tools, used for listing and permissions."""

    READ = "read"
    WRITE = "write"
    WORKSPACE = "workspace"
    UTILITY = "utility"


@dataclass(slots=True, frozen=True)
class ToolSpec:
    """What a tool tells the backend about itself.

    ``parameters`` is the JSON Schema of the call arguments; an empty mapping
    is declared as an object without properties. ``is_write`` marks tools
    that change files on disk.
    """

    name: str
    description: str
    parameters: Mapping[str, Any] = field(default_factory=dict)
    category: ToolCategory = ToolCategory.UTILITY
    is_write: bool = False

    @property
    def input_schema(self) -> dict[str, Any]:
        if not self.parameters:
            return {"type": "object", "properties": {}}
        return dict(self.parameters)

    def to_openai_tool(self) -> ChatCompletionToolParam:
        function = {"name": self.name, "description": self.description, "parameters": self.input_schema}
        return cast(ChatCompletionToolParam, {"type": "function", "function": function})

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": dict(self.parameters),
            "category": ToolCategory(self.category).value,
            "is_write": self.is_write,
        }


@runtime_checkable
class Tool(Protocol):
    """Anything the registry can hold.

    ``invoke`` answers ``False`` when the request is addressed to another
    tool. Otherwise it completes the call exactly once through ``completion``
    and answers ``True``.
    """

    @property
    def name(self) -> str: ...

    @property
    def spec(self) -> ToolSpec: ...

    def invoke(
        self,
        request: "ToolCallRequest",
        completion: "CompletionCallback",
        history_updater: "ChatHistoryUpdater | None" = None,
        context_provider: Any = None,
    ) -> bool: ...
