"""Conversation session management and model preferences."""

from .errors import (
    ConnectionUnavailableError,
    ConversationError,
    ConversationNotFoundError,
    ConversationStateError,
)
from .model_catalog import (
    ChatMode,
    LanguageModel,
    LLMModel,
    ModelCatalog,
    PromptTemplateScope,
    SessionPreferences,
)
from .service import ConversationConnection, ConversationService, ServiceLocator
from .types import (
    ChatAgent,
    ChatTemplate,
    Conversation,
    ConversationRating,
    ConversationRequest,
    ConversationState,
    CopyCodeRequest,
    CopyKind,
    DidChangeWatchedFilesEvent,
    FileChange,
    FileChangeType,
    Turn,
    TurnSchema,
)

__all__ = [
    # errors.py
    "ConversationError",
    "ConnectionUnavailableError",
    "ConversationNotFoundError",
    "ConversationStateError",
    # model_catalog.py
    "ChatMode",
    "PromptTemplateScope",
    "LanguageModel",
    "LLMModel",
    "ModelCatalog",
    "SessionPreferences",
    # service.py
    "ConversationService",
    "ConversationConnection",
    "ServiceLocator",
    # types.py
    "ConversationState",
    "ConversationRequest",
    "ConversationRating",
    "CopyCodeRequest",
    "CopyKind",
    "ChatTemplate",
    "ChatAgent",
    "FileChange",
    "FileChangeType",
    "DidChangeWatchedFilesEvent",
    "Turn",
    "TurnSchema",
    "Conversation",
]
