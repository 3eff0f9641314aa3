"""Shared test doubles.

Import from here instead of redefining these in individual test files::

    from tests.helpers import CompletionRecorder, FakeConnection
"""

from __future__ import annotations

from typing import Any, Mapping

from pairpilot.ai.ai_types import AgentRound, ToolCallRequest, ToolInvocationResult
from pairpilot.ai.conversation.types import ConversationRating
from pairpilot.workspace.models import WorkspaceInfo


class CompletionRecorder:
    """Collects every result handed to a completion callback."""

    def __init__(self) -> None:
        self.results: list[ToolInvocationResult] = []

    def __call__(self, result: ToolInvocationResult) -> None:
        self.results.append(result)

    @property
    def only(self) -> ToolInvocationResult:
        assert len(self.results) == 1, self.results
        return self.results[0]


class HistoryRecorder:
    """Collects ``(turn_id, rounds)`` updates."""

    def __init__(self) -> None:
        self.updates: list[tuple[str, list[AgentRound]]] = []

    def __call__(self, turn_id: str, rounds) -> None:
        self.updates.append((turn_id, list(rounds)))


class FakeConnection:
    """Backend connection double recording every call it receives."""

    def __init__(
        self,
        *,
        conversation_id: str | None = "conv-1",
        templates: list[Any] | None = None,
        models: list[Any] | None = None,
        agents: list[Any] | None = None,
    ) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.conversation_id = conversation_id
        self._templates = templates
        self._models = models
        self._agents = agents
        self.fail_with: Exception | None = None

    def _record(self, name: str, payload: Any) -> None:
        self.calls.append((name, payload))
        if self.fail_with is not None:
            raise self.fail_with

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    async def create_conversation(self, params: Mapping[str, Any]) -> Any:
        self._record("create_conversation", dict(params))
        if self.conversation_id is None:
            return None
        return {"conversationId": self.conversation_id}

    async def create_turn(self, params: Mapping[str, Any]) -> Any:
        self._record("create_turn", dict(params))
        return {"turnId": "backend-turn"}

    async def cancel_progress(self, token: str) -> None:
        self._record("cancel_progress", token)

    async def rate_conversation(self, turn_id: str, rating: ConversationRating) -> None:
        self._record("rate_conversation", (turn_id, rating))

    async def copy_code(self, params: Mapping[str, Any]) -> None:
        self._record("copy_code", dict(params))

    async def templates(self):
        self._record("templates", None)
        return self._templates

    async def models(self):
        self._record("models", None)
        return self._models

    async def agents(self):
        self._record("agents", None)
        return self._agents

    async def notify_did_change_watched_files(self, params: Mapping[str, Any]) -> None:
        self._record("notify_did_change_watched_files", dict(params))


class FakeLocator:
    """Workspace → connection map; ``asynchronous`` makes lookups awaitable."""

    def __init__(self, connections: dict[WorkspaceInfo, FakeConnection] | None = None, *, asynchronous: bool = False):
        self.connections = dict(connections or {})
        self.asynchronous = asynchronous

    def get_service(self, workspace: WorkspaceInfo):
        connection = self.connections.get(workspace)
        if not self.asynchronous:
            return connection

        async def _lookup():
            return connection

        return _lookup()


def make_request(tool_name: str = "create_file", tool_call_id: str = "call-1", **params: Any) -> ToolCallRequest:
    round_id = params.pop("round_id", 1)
    turn_id = params.pop("turn_id", "turn-1")
    return ToolCallRequest(
        tool_call_id=tool_call_id,
        tool_name=tool_name,
        round_id=round_id,
        turn_id=turn_id,
        conversation_id="conv-1",
        input=params,
    )


