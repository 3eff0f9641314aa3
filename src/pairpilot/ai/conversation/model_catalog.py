"""Model catalog and per-session chat preferences.

:class:`SessionPreferences` is constructed by the session and passed to the
code that needs it; observers subscribe to it for change notifications.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping

from ...services.settings import Settings

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ...workspace.models import WorkspaceInfo
    from .service import ConversationService

__all__ = [
    "ChatMode",
    "PromptTemplateScope",
    "LanguageModel",
    "LLMModel",
    "ModelCatalog",
    "SessionPreferences",
    "PreferencesListener",
    "FALLBACK_MODEL_FAMILY",
    "DEFAULT_REFRESH_INTERVAL",
]

LOGGER = logging.getLogger(__name__)

FALLBACK_MODEL_FAMILY = "gpt-4.1"
DEFAULT_REFRESH_INTERVAL = 60.0


class PromptTemplateScope(str, Enum):
    CHAT_PANEL = "chat-panel"
    AGENT_PANEL = "agent-panel"


class ChatMode(str, Enum):
    ASK = "Ask"
    AGENT = "Agent"

    @classmethod
    def parse(cls, value: "ChatMode | str | None") -> "ChatMode":
        """Interpret a stored mode; anything but ``"Agent"`` means :attr:`ASK`."""
        if isinstance(value, ChatMode):
            return value
        return cls.AGENT if value == cls.AGENT.value else cls.ASK

    @property
    def scope(self) -> PromptTemplateScope:
        return PromptTemplateScope.AGENT_PANEL if self is ChatMode.AGENT else PromptTemplateScope.CHAT_PANEL


@dataclass(slots=True, frozen=True)
class LLMModel:
    """A model selection as persisted by the picker."""

    model_name: str
    model_family: str

    def to_dict(self) -> dict[str, str]:
        return {"modelName": self.model_name, "modelFamily": self.model_family}


@dataclass(slots=True, frozen=True)
class LanguageModel:
    """Catalog entry reported by the backend."""

    model_name: str
    model_family: str
    scopes: frozenset[PromptTemplateScope] = frozenset()
    is_chat_default: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "scopes", frozenset(self.scopes))

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "LanguageModel":
        scopes = []
        for raw in payload.get("scopes") or ():
            try:
                scopes.append(PromptTemplateScope(raw))
            except ValueError:
                LOGGER.debug("Ignoring unknown model scope %r", raw)
        return cls(
            model_name=str(payload.get("modelName", "")),
            model_family=str(payload.get("modelFamily", "")),
            scopes=frozenset(scopes),
            is_chat_default=bool(payload.get("isChatDefault", False)),
        )

    def to_llm(self) -> LLMModel:
        return LLMModel(model_name=self.model_name, model_family=self.model_family)


class ModelCatalog:
    """Models the backend offers, queried per prompt scope."""

    def __init__(self, models: Iterable[LanguageModel] = ()) -> None:
        self._models: tuple[LanguageModel, ...] = tuple(models)

    def update(self, models: Iterable[LanguageModel]) -> None:
        self._models = tuple(models)

    def models(self) -> tuple[LanguageModel, ...]:
        return self._models

    def available(self, scope: PromptTemplateScope = PromptTemplateScope.CHAT_PANEL) -> list[LLMModel]:
        return [model.to_llm() for model in self._in_scope(scope)]

    def default_model(self, scope: PromptTemplateScope = PromptTemplateScope.CHAT_PANEL) -> LLMModel | None:
        """Flagged default, else the fallback family, else the first model in scope."""
        in_scope = self._in_scope(scope)
        for model in in_scope:
            if model.is_chat_default:
                return model.to_llm()
        for model in in_scope:
            if model.model_family == FALLBACK_MODEL_FAMILY:
                return model.to_llm()
        return in_scope[0].to_llm() if in_scope else None

    def _in_scope(self, scope: PromptTemplateScope) -> list[LanguageModel]:
        return [model for model in self._models if scope in model.scopes]

    def __len__(self) -> int:
        return len(self._models)


PreferencesListener = Callable[["SessionPreferences"], None]


class SessionPreferences:
    """Chat mode, model selection and the model catalog of one session."""

    def __init__(
        self,
        *,
        catalog: ModelCatalog | None = None,
        chat_mode: ChatMode | str = ChatMode.ASK,
        selected_model: LLMModel | None = None,
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._catalog = catalog or ModelCatalog()
        self._chat_mode = ChatMode.parse(chat_mode)
        self._selected_model = selected_model
        self._refresh_interval = refresh_interval
        self._clock = clock
        self._last_refresh: float | None = None
        self._listeners: list[PreferencesListener] = []

    @classmethod
    def from_settings(cls, settings: Settings, *, catalog: ModelCatalog | None = None) -> "SessionPreferences":
        selected = None
        if settings.selected_model_name and settings.selected_model_family:
            selected = LLMModel(settings.selected_model_name, settings.selected_model_family)
        return cls(
            catalog=catalog,
            chat_mode=settings.chat_mode,
            selected_model=selected,
            refresh_interval=settings.model_refresh_interval,
        )

    def apply_to(self, settings: Settings) -> Settings:
        """Return ``settings`` updated with the current mode and model."""
        selected = self._selected_model
        return replace(
            settings,
            chat_mode=self._chat_mode.value,
            selected_model_name=selected.model_name if selected else None,
            selected_model_family=selected.model_family if selected else None,
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def catalog(self) -> ModelCatalog:
        return self._catalog

    @property
    def chat_mode(self) -> ChatMode:
        return self._chat_mode

    @property
    def is_agent_mode(self) -> bool:
        return self._chat_mode is ChatMode.AGENT

    @property
    def scope(self) -> PromptTemplateScope:
        return self._chat_mode.scope

    @property
    def selected_model(self) -> LLMModel | None:
        return self._selected_model

    def available_models(self) -> list[LLMModel]:
        return self._catalog.available(self.scope)

    def current_model_name(self) -> str | None:
        if self._selected_model is not None:
            return self._selected_model.model_name
        default = self._catalog.default_model(self.scope)
        return default.model_name if default else None

    def set_chat_mode(self, mode: ChatMode | str) -> None:
        """Switch mode; a selected model missing from the new scope is replaced."""

        new_mode = ChatMode.parse(mode)
        if new_mode is self._chat_mode:
            return
        self._chat_mode = new_mode
        current = self._selected_model
        in_scope = self._catalog.available(new_mode.scope)
        if current is not None and in_scope and all(model.model_name != current.model_name for model in in_scope):
            replacement = self._catalog.default_model(new_mode.scope) or in_scope[0]
            LOGGER.debug("Model %s unavailable in %s; switching to %s", current.model_name, new_mode.value, replacement.model_name)
            self._selected_model = replacement
        self._notify()

    def select_model(self, model: LLMModel | None) -> None:
        if model == self._selected_model:
            return
        self._selected_model = model
        self._notify()

    # ------------------------------------------------------------------
    # Catalog refresh
    # ------------------------------------------------------------------
    async def refresh_models(
        self,
        service: "ConversationService",
        workspace: "WorkspaceInfo",
        now: float | None = None,
    ) -> bool:
        """Re-query the backend's models at most once per refresh interval.

        Returns ``True`` when the catalog was replaced. An empty or missing
        answer leaves the catalog as it was.
        """

        moment = self._clock() if now is None else now
        if self._last_refresh is not None and moment - self._last_refresh < self._refresh_interval:
            return False
        self._last_refresh = moment
        models = await service.models(workspace)
        if not models:
            LOGGER.debug("Model refresh for %s returned nothing", workspace.workspace_url)
            return False
        self._catalog.update(models)
        self._notify()
        return True

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------
    def subscribe(self, listener: PreferencesListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                LOGGER.warning("Preferences listener failed", exc_info=True)
