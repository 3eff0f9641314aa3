"""Errors raised by the conversation session manager."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ...workspace.models import WorkspaceInfo

__all__ = [
    "ConversationError",
    "ConnectionUnavailableError",
    "ConversationNotFoundError",
    "ConversationStateError",
]


class ConversationError(Exception):
    """Base error for conversation operations."""

    def __init__(
        self,
        message: str,
        *,
        conversation_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.conversation_id = conversation_id


class ConnectionUnavailableError(ConversationError):
    """No backend connection resolves for the workspace.

    Raised for conversation and turn creation only; read and notify paths
    treat a missing connection as a no-op.
    """

    def __init__(
        self,
        workspace: "WorkspaceInfo",
        *,
        operation: str,
        conversation_id: str | None = None,
    ) -> None:
        super().__init__(
            f"No backend connection for workspace {workspace.workspace_url} ({operation})",
            conversation_id=conversation_id,
        )
        self.workspace = workspace
        self.operation = operation


class ConversationNotFoundError(ConversationError):
    """The conversation id is not known to this service."""

    def __init__(self, conversation_id: str) -> None:
        super().__init__(f"Conversation '{conversation_id}' not found", conversation_id=conversation_id)


class ConversationStateError(ConversationError):
    """The operation is not allowed in the conversation's current state."""

    def __init__(self, message: str, *, conversation_id: str | None = None, state: str | None = None) -> None:
        super().__init__(message, conversation_id=conversation_id)
        self.state = state
