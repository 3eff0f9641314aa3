"""Conversation, turn and backend payload types."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Any, Mapping, Sequence

from ...workspace.models import FileReference, WorkspaceInfo
from ..ai_types import AgentRound

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..orchestration.round_history import RoundHistory

__all__ = [
    "ConversationState",
    "ConversationRating",
    "CopyKind",
    "TurnSchema",
    "ConversationRequest",
    "CopyCodeRequest",
    "ChatTemplate",
    "ChatAgent",
    "FileChangeType",
    "FileChange",
    "DidChangeWatchedFilesEvent",
    "Turn",
    "Conversation",
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


class ConversationState(str, Enum):
    """Lifecycle of one conversation."""

    NO_CONVERSATION = "no_conversation"
    ACTIVE = "active"
    TURN_IN_FLIGHT = "turn_in_flight"
    TERMINATED = "terminated"


class ConversationRating(IntEnum):
    UNHELPFUL = -1
    UNRATED = 0
    HELPFUL = 1


class CopyKind(IntEnum):
    TOOLBAR = 1
    KEYBOARD = 2


@dataclass(slots=True, frozen=True)
class TurnSchema:
    """A prior exchange replayed when resuming a conversation."""

    request: str
    response: str | None = None
    turn_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"request": self.request}
        if self.response is not None:
            payload["response"] = self.response
        if self.turn_id is not None:
            payload["turnId"] = self.turn_id
        return payload


@dataclass(slots=True)
class ConversationRequest:
    """A user message bound for the backend.

    Attributes:
        content: The message text.
        turn_id: Caller-supplied turn id; minted when omitted.
        work_done_token: Cancellation token for the backend call; minted when
            omitted.
        active_doc: Description of the document open in the editor.
        skills: Context skills the backend may use.
        ignored_skills: Skills the backend must not use.
        references: Files attached as context.
        model: Selected model family.
        turns: Prior turns, when resuming.
        agent_mode: Whether the backend may issue tool calls.
    """

    content: str
    turn_id: str | None = None
    work_done_token: str | None = None
    active_doc: Mapping[str, Any] | None = None
    skills: Sequence[str] = ()
    ignored_skills: Sequence[str] | None = None
    references: Sequence[FileReference] | None = None
    model: str | None = None
    turns: Sequence[TurnSchema] = ()
    agent_mode: bool = False


@dataclass(slots=True, frozen=True)
class CopyCodeRequest:
    turn_id: str
    code_block_index: int
    copy_type: CopyKind
    copied_characters: int
    total_characters: int
    copied_text: str

    def to_params(self) -> dict[str, Any]:
        return {
            "turnId": self.turn_id,
            "codeBlockIndex": self.code_block_index,
            "copyType": int(self.copy_type),
            "copiedCharacters": self.copied_characters,
            "totalCharacters": self.total_characters,
            "copiedText": self.copied_text,
        }


@dataclass(slots=True, frozen=True)
class ChatTemplate:
    id: str
    description: str = ""
    short_description: str = ""
    scopes: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ChatTemplate":
        return cls(
            id=str(payload.get("id", "")),
            description=str(payload.get("description", "")),
            short_description=str(payload.get("shortDescription", "")),
            scopes=tuple(str(scope) for scope in payload.get("scopes") or ()),
        )


@dataclass(slots=True, frozen=True)
class ChatAgent:
    slug: str
    name: str = ""
    description: str = ""
    avatar_url: str | None = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ChatAgent":
        return cls(
            slug=str(payload.get("slug", "")),
            name=str(payload.get("name", "")),
            description=str(payload.get("description", "")),
            avatar_url=payload.get("avatarUrl"),
        )


class FileChangeType(IntEnum):
    CREATED = 1
    CHANGED = 2
    DELETED = 3


@dataclass(slots=True, frozen=True)
class FileChange:
    uri: str
    type: FileChangeType

    def to_dict(self) -> dict[str, Any]:
        return {"uri": self.uri, "type": int(self.type)}


@dataclass(slots=True, frozen=True)
class DidChangeWatchedFilesEvent:
    """A batch of file-change events, already coalesced by the file watcher."""

    workspace_uri: str
    changes: tuple[FileChange, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "changes", tuple(self.changes))

    def to_params(self) -> dict[str, Any]:
        return {"workspaceUri": self.workspace_uri, "changes": [change.to_dict() for change in self.changes]}


@dataclass(slots=True)
class Turn:
    """One request/response exchange; its rounds live in the round history."""

    turn_id: str
    request: ConversationRequest
    response: Any = None
    work_done_token: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    history: "RoundHistory | None" = field(default=None, repr=False, compare=False)

    @property
    def rounds(self) -> tuple[AgentRound, ...]:
        if self.history is None:
            return ()
        return self.history.rounds_for(self.turn_id)


@dataclass(slots=True)
class Conversation:
    conversation_id: str
    workspace: WorkspaceInfo
    turns: list[Turn] = field(default_factory=list)
    state: ConversationState = ConversationState.NO_CONVERSATION
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def last_turn(self) -> Turn | None:
        return self.turns[-1] if self.turns else None

    def turn(self, turn_id: str) -> Turn | None:
        for candidate in self.turns:
            if candidate.turn_id == turn_id:
                return candidate
        return None
