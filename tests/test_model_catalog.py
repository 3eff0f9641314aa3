"""Tests for the model catalog and session preferences."""

from __future__ import annotations

import pytest

from pairpilot.ai.conversation import (
    ChatMode,
    ConversationService,
    LanguageModel,
    LLMModel,
    ModelCatalog,
    PromptTemplateScope,
    SessionPreferences,
)
from pairpilot.services.settings import Settings
from tests.helpers import FakeConnection, FakeLocator

CHAT = PromptTemplateScope.CHAT_PANEL
AGENT = PromptTemplateScope.AGENT_PANEL


def _model(name: str, family: str, *scopes: PromptTemplateScope, default: bool = False) -> LanguageModel:
    return LanguageModel(model_name=name, model_family=family, scopes=frozenset(scopes), is_chat_default=default)


@pytest.fixture
def catalog() -> ModelCatalog:
    return ModelCatalog(
        [
            _model("GPT-4o", "gpt-4o", CHAT),
            _model("GPT-4.1", "gpt-4.1", CHAT, AGENT),
            _model("Claude", "claude-sonnet", CHAT, AGENT, default=True),
            _model("o3-mini", "o3-mini", CHAT),
        ]
    )


class TestChatMode:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("Agent", ChatMode.AGENT), ("Ask", ChatMode.ASK), ("agent", ChatMode.ASK), ("", ChatMode.ASK), (None, ChatMode.ASK), ("garbage", ChatMode.ASK)],
    )
    def test_parse_defaults_to_ask(self, raw, expected):
        assert ChatMode.parse(raw) is expected

    def test_scope(self):
        assert ChatMode.ASK.scope is CHAT
        assert ChatMode.AGENT.scope is AGENT


class TestModelCatalog:
    def test_available_filters_by_scope(self, catalog):
        assert [model.model_name for model in catalog.available(AGENT)] == ["GPT-4.1", "Claude"]
        assert len(catalog.available(CHAT)) == 4

    def test_flagged_default_wins(self, catalog):
        assert catalog.default_model(CHAT) == LLMModel("Claude", "claude-sonnet")

    def test_fallback_family_then_first(self):
        catalog = ModelCatalog([_model("A", "a", CHAT), _model("B", "gpt-4.1", CHAT)])
        assert catalog.default_model(CHAT) == LLMModel("B", "gpt-4.1")

        catalog.update([_model("A", "a", CHAT), _model("C", "c", CHAT)])
        assert catalog.default_model(CHAT) == LLMModel("A", "a")

    def test_empty_scope_has_no_default(self):
        assert ModelCatalog([_model("A", "a", CHAT)]).default_model(AGENT) is None

    def test_from_dict_drops_unknown_scopes(self):
        model = LanguageModel.from_dict({"modelName": "X", "modelFamily": "x", "scopes": ["chat-panel", "inline"]})

        assert model.scopes == frozenset({CHAT})
        assert model.is_chat_default is False


class TestSessionPreferences:
    def test_current_model_falls_back_to_scope_default(self, catalog):
        preferences = SessionPreferences(catalog=catalog)

        assert preferences.current_model_name() == "Claude"

        preferences.select_model(LLMModel("o3-mini", "o3-mini"))
        assert preferences.current_model_name() == "o3-mini"

    def test_switching_mode_replaces_unavailable_model(self, catalog):
        preferences = SessionPreferences(catalog=catalog, selected_model=LLMModel("o3-mini", "o3-mini"))

        preferences.set_chat_mode(ChatMode.AGENT)

        assert preferences.is_agent_mode
        assert preferences.scope is AGENT
        assert preferences.selected_model == LLMModel("Claude", "claude-sonnet")

    def test_switching_mode_keeps_available_model(self, catalog):
        preferences = SessionPreferences(catalog=catalog, selected_model=LLMModel("GPT-4.1", "gpt-4.1"))

        preferences.set_chat_mode("Agent")

        assert preferences.selected_model == LLMModel("GPT-4.1", "gpt-4.1")

    def test_switching_mode_without_models_keeps_selection(self):
        preferences = SessionPreferences(selected_model=LLMModel("o3-mini", "o3-mini"))

        preferences.set_chat_mode(ChatMode.AGENT)

        assert preferences.selected_model == LLMModel("o3-mini", "o3-mini")

    def test_subscribers_are_notified(self, catalog):
        preferences = SessionPreferences(catalog=catalog)
        events: list[ChatMode] = []
        unsubscribe = preferences.subscribe(lambda prefs: events.append(prefs.chat_mode))

        preferences.set_chat_mode(ChatMode.AGENT)
        preferences.set_chat_mode(ChatMode.AGENT)
        unsubscribe()
        preferences.set_chat_mode(ChatMode.ASK)

        assert events == [ChatMode.AGENT]

    def test_settings_round_trip(self):
        settings = Settings(chat_mode="Agent", selected_model_name="GPT-4.1", selected_model_family="gpt-4.1", model_refresh_interval=5.0)

        preferences = SessionPreferences.from_settings(settings)
        preferences.set_chat_mode("bogus")
        updated = preferences.apply_to(settings)

        assert updated.chat_mode == "Ask"
        assert updated.selected_model_name == "GPT-4.1"
        assert updated.selected_model_family == "gpt-4.1"
        assert updated.model_refresh_interval == 5.0

    def test_corrupt_stored_mode_reads_as_ask(self):
        preferences = SessionPreferences.from_settings(Settings(chat_mode="AGENT!!"))

        assert preferences.chat_mode is ChatMode.ASK


class TestRefreshModels:
    @pytest.mark.asyncio
    async def test_refresh_is_throttled(self, workspace):
        connection = FakeConnection(models=[{"modelName": "Fresh", "modelFamily": "fresh", "scopes": ["chat-panel"]}])
        service = ConversationService(FakeLocator({workspace: connection}))
        preferences = SessionPreferences(refresh_interval=60.0)

        assert await preferences.refresh_models(service, workspace, now=1000.0) is True
        assert await preferences.refresh_models(service, workspace, now=1030.0) is False
        assert await preferences.refresh_models(service, workspace, now=1061.0) is True

        assert connection.names() == ["models", "models"]
        assert preferences.current_model_name() == "Fresh"

    @pytest.mark.asyncio
    async def test_empty_answer_keeps_catalog(self, workspace, catalog):
        service = ConversationService(FakeLocator({workspace: FakeConnection(models=[])}))
        preferences = SessionPreferences(catalog=catalog)

        assert await preferences.refresh_models(service, workspace, now=0.0) is False
        assert len(preferences.catalog) == 4

    @pytest.mark.asyncio
    async def test_offline_refresh_keeps_catalog(self, workspace, catalog):
        preferences = SessionPreferences(catalog=catalog, clock=lambda: 10.0)

        assert await preferences.refresh_models(ConversationService(FakeLocator()), workspace) is False
        assert len(preferences.catalog) == 4
