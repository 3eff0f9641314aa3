"""Conversation session manager.

Owns conversation identity, turn sequencing and cancellation tokens, and
forwards every call to the backend connection bound to the workspace. The
connection is resolved per call through a service locator.

A missing connection is a hard failure when creating a conversation or a
turn (the message would otherwise be dropped) and a silent no-op for every
read or notify path.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Mapping, Protocol, Sequence, TypeVar

from ...services.settings import Settings
from ...workspace.context import ContextResolver, get_workspace_folders
from ...workspace.models import FileReference, WorkspaceInfo
from ..ai_types import ChatHistoryUpdater, ToolCallRequest
from ..orchestration.edit_ledger import FileEditLedger, FileRevealer, SessionToolContext
from ..orchestration.round_history import RoundHistory
from ..orchestration.tool_dispatcher import ToolDispatcher
from ..orchestration.tools.registry import ToolRegistry
from .errors import ConnectionUnavailableError, ConversationNotFoundError, ConversationStateError
from .model_catalog import LanguageModel
from .types import (
    ChatAgent,
    ChatTemplate,
    Conversation,
    ConversationRating,
    ConversationRequest,
    ConversationState,
    CopyCodeRequest,
    DidChangeWatchedFilesEvent,
    Turn,
    new_id,
)

__all__ = [
    "ConversationConnection",
    "ServiceLocator",
    "ConversationService",
]

LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")


# -----------------------------------------------------------------------------
# Collaborator protocols
# -----------------------------------------------------------------------------


class ConversationConnection(Protocol):
    """Backend connection scoped to one workspace."""

    async def create_conversation(self, params: Mapping[str, Any]) -> Any: ...

    async def create_turn(self, params: Mapping[str, Any]) -> Any: ...

    async def cancel_progress(self, token: str) -> None: ...

    async def rate_conversation(self, turn_id: str, rating: ConversationRating) -> None: ...

    async def copy_code(self, params: Mapping[str, Any]) -> None: ...

    async def templates(self) -> Sequence[Any] | None: ...

    async def models(self) -> Sequence[Any] | None: ...

    async def agents(self) -> Sequence[Any] | None: ...

    async def notify_did_change_watched_files(self, params: Mapping[str, Any]) -> None: ...


class ServiceLocator(Protocol):
    """Maps a workspace to its connection; may answer synchronously or not."""

    def get_service(
        self, workspace: WorkspaceInfo
    ) -> ConversationConnection | None | Awaitable[ConversationConnection | None]: ...


# -----------------------------------------------------------------------------
# Conversation Service
# -----------------------------------------------------------------------------


class ConversationService:
    """Creates conversations and turns and relays session calls to the backend.

    Example:
        service = ConversationService(locator)
        conversation = await service.create_conversation(ConversationRequest("hi"), workspace)
        turn = await service.create_turn(conversation.conversation_id, ConversationRequest("more"), workspace)
    """

    def __init__(
        self,
        service_locator: ServiceLocator,
        *,
        context_resolver: ContextResolver | None = None,
        history: RoundHistory | None = None,
        dispatcher: ToolDispatcher | None = None,
        ledger: FileEditLedger | None = None,
        revealer: FileRevealer | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._locator = service_locator
        self._context_resolver = context_resolver or ContextResolver()
        self._history = history if history is not None else RoundHistory()
        self._dispatcher = dispatcher
        self._ledger = ledger
        self._revealer = revealer
        self._settings = settings
        self._conversations: dict[str, Conversation] = {}
        self._tokens: dict[WorkspaceInfo, set[str]] = {}

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def history(self) -> RoundHistory:
        return self._history

    @property
    def history_updater(self) -> ChatHistoryUpdater:
        return self._history.update

    @property
    def ledger(self) -> FileEditLedger:
        if self._ledger is None:
            from ..tools import DEFAULT_UNDO_PROCEDURES

            self._ledger = FileEditLedger(DEFAULT_UNDO_PROCEDURES)
        return self._ledger

    @property
    def dispatcher(self) -> ToolDispatcher:
        if self._dispatcher is None:
            self._dispatcher = ToolDispatcher(registry=ToolRegistry.with_defaults(settings=self._settings))
        return self._dispatcher

    def get_conversation(self, conversation_id: str) -> Conversation:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        return conversation

    def conversations(self) -> list[Conversation]:
        return list(self._conversations.values())

    def in_flight_tokens(self, workspace: WorkspaceInfo | None = None) -> frozenset[str]:
        """Cancellation tokens of backend calls still awaiting an answer."""
        if workspace is not None:
            return frozenset(self._tokens.get(workspace, ()))
        tokens: set[str] = set()
        for bucket in self._tokens.values():
            tokens.update(bucket)
        return frozenset(tokens)

    def context_files(self, workspace: WorkspaceInfo) -> list[FileReference]:
        """Candidate context files for ``workspace``; empty on failure."""
        return self._context_resolver.files_in_workspace(workspace)

    # ------------------------------------------------------------------
    # Conversation lifecycle
    # ------------------------------------------------------------------
    async def create_conversation(self, request: ConversationRequest, workspace: WorkspaceInfo) -> Conversation:
        """Start a conversation with ``request`` as its first turn.

        Raises:
            ConnectionUnavailableError: No backend is bound to ``workspace``.
        """

        connection = await self._require_connection(workspace, "create_conversation")
        token = request.work_done_token or new_id()
        params = {
            "content": request.content,
            "workDoneToken": token,
            "workspaceFolder": workspace.project_uri,
            "workspaceFolders": [folder.to_dict() for folder in get_workspace_folders(workspace)],
            "activeDoc": _plain(request.active_doc),
            "skills": list(request.skills),
            "ignoredSkills": list(request.ignored_skills) if request.ignored_skills is not None else None,
            "references": [reference.to_dict() for reference in request.references or ()],
            "model": request.model,
            "turns": [turn.to_dict() for turn in request.turns],
            "agentMode": request.agent_mode,
        }

        response = await self._tracked(workspace, token, connection.create_conversation(params))

        conversation_id = _response_field(response, "conversationId") or new_id()
        turn_id = request.turn_id or _response_field(response, "turnId") or new_id()
        conversation = Conversation(conversation_id=conversation_id, workspace=workspace)
        conversation.turns.append(
            Turn(turn_id=turn_id, request=request, response=response, work_done_token=token, history=self._history)
        )
        conversation.state = ConversationState.ACTIVE
        self._conversations[conversation_id] = conversation
        LOGGER.info("Created conversation %s for %s", conversation_id, workspace.workspace_url)
        return conversation

    async def create_turn(self, conversation_id: str, request: ConversationRequest, workspace: WorkspaceInfo) -> Turn:
        """Append a turn to an active conversation.

        Raises:
            ConversationNotFoundError: Unknown ``conversation_id``.
            ConversationStateError: The conversation is terminated or already
                has a turn in flight.
            ConnectionUnavailableError: No backend is bound to ``workspace``.
        """

        conversation = self.get_conversation(conversation_id)
        if conversation.state is ConversationState.TERMINATED:
            raise ConversationStateError(
                f"Conversation '{conversation_id}' is terminated",
                conversation_id=conversation_id,
                state=conversation.state.value,
            )
        if conversation.state is ConversationState.TURN_IN_FLIGHT:
            raise ConversationStateError(
                f"Conversation '{conversation_id}' already has a turn in flight",
                conversation_id=conversation_id,
                state=conversation.state.value,
            )

        connection = await self._require_connection(workspace, "create_turn", conversation_id=conversation_id)
        token = request.work_done_token or new_id()
        params = {
            "content": request.content,
            "workDoneToken": token,
            "conversationId": conversation_id,
            "activeDoc": _plain(request.active_doc),
            "ignoredSkills": list(request.ignored_skills) if request.ignored_skills is not None else None,
            "references": [reference.to_dict() for reference in request.references or ()],
            "model": request.model,
            "workspaceFolder": workspace.project_uri,
            "workspaceFolders": [folder.to_dict() for folder in get_workspace_folders(workspace)],
            "agentMode": request.agent_mode,
        }

        conversation.state = ConversationState.TURN_IN_FLIGHT
        try:
            response = await self._tracked(workspace, token, connection.create_turn(params))
        finally:
            if conversation.state is ConversationState.TURN_IN_FLIGHT:
                conversation.state = ConversationState.ACTIVE

        turn_id = request.turn_id or _response_field(response, "turnId") or new_id()
        turn = Turn(turn_id=turn_id, request=request, response=response, work_done_token=token, history=self._history)
        conversation.turns.append(turn)
        LOGGER.debug("Appended turn %s to conversation %s", turn_id, conversation_id)
        return turn

    def terminate_conversation(self, conversation_id: str) -> Conversation:
        conversation = self.get_conversation(conversation_id)
        conversation.state = ConversationState.TERMINATED
        LOGGER.debug("Terminated conversation %s", conversation_id)
        return conversation

    async def cancel_progress(self, token: str, workspace: WorkspaceInfo) -> None:
        """Ask the backend to cancel the call tracked by ``token``; best effort."""

        try:
            connection = await self._resolve(workspace)
            if connection is None:
                LOGGER.debug("No connection for %s; nothing to cancel for %s", workspace.workspace_url, token)
                return
            try:
                await connection.cancel_progress(token)
            except Exception as exc:
                LOGGER.warning("Cancelling %s failed: %s", token, exc)
        finally:
            self._forget_token(workspace, token)

    # ------------------------------------------------------------------
    # Telemetry
    # ------------------------------------------------------------------
    async def rate_conversation(self, turn_id: str, rating: ConversationRating, workspace: WorkspaceInfo) -> None:
        connection = await self._resolve(workspace)
        if connection is None:
            return
        await connection.rate_conversation(turn_id, rating)

    async def copy_code(self, request: CopyCodeRequest, workspace: WorkspaceInfo) -> None:
        connection = await self._resolve(workspace)
        if connection is None:
            return
        await connection.copy_code(request.to_params())

    # ------------------------------------------------------------------
    # Catalog queries
    # ------------------------------------------------------------------
    async def templates(self, workspace: WorkspaceInfo) -> list[ChatTemplate] | None:
        connection = await self._resolve(workspace)
        if connection is None:
            return None
        return _coerce_list(await connection.templates(), ChatTemplate, ChatTemplate.from_dict)

    async def models(self, workspace: WorkspaceInfo) -> list[LanguageModel] | None:
        connection = await self._resolve(workspace)
        if connection is None:
            return None
        return _coerce_list(await connection.models(), LanguageModel, LanguageModel.from_dict)

    async def agents(self, workspace: WorkspaceInfo) -> list[ChatAgent] | None:
        connection = await self._resolve(workspace)
        if connection is None:
            return None
        return _coerce_list(await connection.agents(), ChatAgent, ChatAgent.from_dict)

    async def notify_did_change_watched_files(self, event: DidChangeWatchedFilesEvent, workspace: WorkspaceInfo) -> None:
        connection = await self._resolve(workspace)
        if connection is None:
            return
        await connection.notify_did_change_watched_files(event.to_params())

    # ------------------------------------------------------------------
    # Client tools
    # ------------------------------------------------------------------
    async def invoke_client_tool(self, params: Mapping[str, Any], workspace: WorkspaceInfo) -> dict[str, Any]:
        """Run a backend-issued tool call and return the outbound result payload.

        Edits land in :attr:`ledger` and the round in :attr:`history`.
        """

        request = ToolCallRequest.from_params(params)
        context = SessionToolContext(workspace_path=workspace.project_url, ledger=self.ledger, revealer=self._revealer)
        result = await self.dispatcher.invoke(request, history_updater=self.history_updater, context_provider=context)
        return result.to_dict()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    async def _resolve(self, workspace: WorkspaceInfo) -> ConversationConnection | None:
        connection = self._locator.get_service(workspace)
        if inspect.isawaitable(connection):
            connection = await connection
        return connection

    async def _require_connection(
        self,
        workspace: WorkspaceInfo,
        operation: str,
        *,
        conversation_id: str | None = None,
    ) -> ConversationConnection:
        connection = await self._resolve(workspace)
        if connection is None:
            LOGGER.error("No backend connection for %s; %s failed", workspace.workspace_url, operation)
            raise ConnectionUnavailableError(workspace, operation=operation, conversation_id=conversation_id)
        return connection

    async def _tracked(self, workspace: WorkspaceInfo, token: str, call: Awaitable[_T]) -> _T:
        self._tokens.setdefault(workspace, set()).add(token)
        try:
            return await call
        finally:
            self._forget_token(workspace, token)

    def _forget_token(self, workspace: WorkspaceInfo, token: str) -> None:
        bucket = self._tokens.get(workspace)
        if bucket is None:
            return
        bucket.discard(token)
        if not bucket:
            self._tokens.pop(workspace, None)


def _plain(value: Mapping[str, Any] | None) -> dict[str, Any] | None:
    return dict(value) if value is not None else None


def _response_field(response: Any, key: str) -> str | None:
    if isinstance(response, Mapping):
        value = response.get(key)
        return str(value) if value else None
    return None


def _coerce_list(
    items: Sequence[Any] | None,
    item_type: type[_T],
    factory: Callable[[Mapping[str, Any]], _T],
) -> list[_T] | None:
    if items is None:
        return None
    return [item if isinstance(item, item_type) else factory(item) for item in items]
