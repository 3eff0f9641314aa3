"""Shared typing contracts for tool calls, rounds and file edits."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Mapping, Sequence

__all__ = [
    "ToolCallStatus",
    "ToolCallRequest",
    "ToolInvocationResult",
    "FileEditRecord",
    "ToolCallSummary",
    "AgentRound",
    "ChatHistoryUpdater",
    "CompletionCallback",
]


class ToolCallStatus(str, Enum):
    """Final status reported for a tool call."""

    COMPLETED = "completed"
    ERROR = "error"


def _freeze(mapping: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(slots=True, frozen=True)
class ToolCallRequest:
    """A tool invocation issued by the model backend.

    Attributes:
        tool_call_id: Identifier correlating the call with its single result.
        tool_name: Registered name of the tool to run.
        round_id: Round of model activity the call belongs to.
        turn_id: Turn owning the round.
        conversation_id: Conversation owning the turn.
        input: Tool arguments as JSON-typed values (read-only).
    """

    tool_call_id: str
    tool_name: str
    round_id: int | str = 0
    turn_id: str = ""
    conversation_id: str = ""
    input: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "input", _freeze(self.input))

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "ToolCallRequest":
        """Build a request from the backend's camelCase parameter payload."""

        raw_input = params.get("input")
        return cls(
            tool_call_id=str(params.get("toolCallId") or ""),
            tool_name=str(params.get("name") or ""),
            round_id=params.get("roundId", 0),
            turn_id=str(params.get("turnId") or ""),
            conversation_id=str(params.get("conversationId") or ""),
            input=raw_input if isinstance(raw_input, Mapping) else {},
        )

    def to_params(self) -> dict[str, Any]:
        return {
            "toolCallId": self.tool_call_id,
            "name": self.tool_name,
            "roundId": self.round_id,
            "turnId": self.turn_id,
            "conversationId": self.conversation_id,
            "input": dict(self.input),
        }


@dataclass(slots=True, frozen=True)
class ToolInvocationResult:
    """Terminal outcome of a tool call, reported back to the backend once."""

    tool_call_id: str
    status: ToolCallStatus
    message: str

    @property
    def ok(self) -> bool:
        return self.status is ToolCallStatus.COMPLETED

    def to_dict(self) -> dict[str, Any]:
        return {
            "toolCallId": self.tool_call_id,
            "status": self.status.value,
            "content": [{"type": "text", "value": self.message}],
        }


@dataclass(slots=True, frozen=True)
class FileEditRecord:
    """Before/after content of one verified, tool-caused file mutation."""

    file_url: Path
    original_content: str
    modified_content: str
    tool_name: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "file_url", Path(self.file_url))

    @property
    def created_file(self) -> bool:
        return self.original_content == ""


@dataclass(slots=True, frozen=True)
class ToolCallSummary:
    """Tool call entry displayed inside an agent round."""

    id: str
    name: str
    status: ToolCallStatus
    invoke_params: ToolCallRequest | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"id": self.id, "name": self.name, "status": self.status.value}
        if self.invoke_params is not None:
            payload["invokeParams"] = self.invoke_params.to_params()
        return payload


@dataclass(slots=True, frozen=True)
class AgentRound:
    """One unit of model activity within a turn: a reply plus its tool calls."""

    round_id: int | str
    reply: str = ""
    tool_calls: tuple[ToolCallSummary, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "tool_calls", tuple(self.tool_calls))

    def to_dict(self) -> dict[str, Any]:
        return {
            "roundId": self.round_id,
            "reply": self.reply,
            "toolCalls": [call.to_dict() for call in self.tool_calls],
        }


# Sink receiving rounds produced for a turn: ``(turn_id, rounds)``.
ChatHistoryUpdater = Callable[[str, Sequence[AgentRound]], None]

# Channel back to the backend protocol layer for one tool call.
CompletionCallback = Callable[[ToolInvocationResult], None]
