"""Tests for orchestration/tools/registry.py."""

from __future__ import annotations

import pytest

from pairpilot.ai.orchestration.tools import (
    DuplicateToolError,
    Tool,
    ToolCategory,
    ToolNotFoundError,
    ToolRegistration,
    ToolRegistry,
    ToolSpec,
)
from pairpilot.ai.tools import CREATE_FILE_SPEC, CreateFileTool
from pairpilot.services.settings import Settings


# -----------------------------------------------------------------------------
# Test Fixtures and Helpers
# -----------------------------------------------------------------------------


def make_spec(name: str = "test_tool", description: str = "A test tool") -> ToolSpec:
    """Helper to create a ToolSpec."""
    return ToolSpec(
        name=name,
        description=description,
        parameters={"type": "object", "properties": {"arg": {"type": "string"}}},
        category=ToolCategory.UTILITY,
    )


class MockTool:
    """Mock tool implementation for testing."""

    def __init__(self, name: str = "mock_tool") -> None:
        self._name = name
        self._spec = make_spec(name, f"Mock tool: {name}")

    @property
    def name(self) -> str:
        return self._name

    @property
    def spec(self) -> ToolSpec:
        return self._spec

    def invoke(self, request, completion, history_updater=None, context_provider=None) -> bool:
        return False


# -----------------------------------------------------------------------------
# Tests: ToolSpec
# -----------------------------------------------------------------------------


class TestToolSpec:
    """Tests for ToolSpec dataclass."""

    def test_to_openai_tool(self):
        declaration = make_spec("reader").to_openai_tool()

        assert declaration["type"] == "function"
        assert declaration["function"]["name"] == "reader"
        assert declaration["function"]["description"] == "A test tool"
        assert declaration["function"]["parameters"]["properties"] == {"arg": {"type": "string"}}

    def test_empty_parameters_become_empty_object(self):
        declaration = ToolSpec(name="bare", description="No args").to_openai_tool()

        assert declaration["function"]["parameters"] == {"type": "object", "properties": {}}

    def test_to_dict(self):
        data = CREATE_FILE_SPEC.to_dict()

        assert data["name"] == "create_file"
        assert data["category"] == ToolCategory.WRITE
        assert data["is_write"] is True
        assert data["parameters"]["required"] == ["filePath", "content"]


# -----------------------------------------------------------------------------
# Tests: ToolRegistry
# -----------------------------------------------------------------------------


class TestToolRegistry:
    """Tests for ToolRegistry."""

    def test_register_and_get(self):
        registry = ToolRegistry()
        tool = MockTool("alpha")

        registration = registry.register(tool)

        assert isinstance(registration, ToolRegistration)
        assert registry.get("alpha") is tool
        assert registry.has("alpha")
        assert "alpha" in registry
        assert len(registry) == 1

    def test_mock_tool_satisfies_protocol(self):
        assert isinstance(MockTool(), Tool)
        assert isinstance(CreateFileTool(), Tool)

    def test_duplicate_registration_raises(self):
        registry = ToolRegistry([MockTool("alpha")])

        with pytest.raises(DuplicateToolError) as excinfo:
            registry.register(MockTool("alpha"))
        assert excinfo.value.name == "alpha"

    def test_allow_override_replaces(self):
        registry = ToolRegistry([MockTool("alpha")])
        replacement = MockTool("alpha")

        registry.register(replacement, allow_override=True)

        assert registry.get("alpha") is replacement

    def test_get_required_missing_raises(self):
        with pytest.raises(ToolNotFoundError):
            ToolRegistry().get_required("missing")

    def test_unregister(self):
        registry = ToolRegistry([MockTool("alpha")])

        assert registry.unregister("alpha") is True
        assert registry.unregister("alpha") is False
        assert registry.get("alpha") is None

    def test_disable_and_enable(self):
        registry = ToolRegistry([MockTool("alpha"), MockTool("beta")])

        assert registry.disable("alpha") is True
        assert registry.get("alpha") is None
        assert not registry.has("alpha")
        assert registry.list_names() == ["beta"]
        assert registry.list_names(include_disabled=True) == ["alpha", "beta"]
        assert [tool.name for tool in registry.enabled_tools()] == ["beta"]

        assert registry.enable("alpha") is True
        assert registry.has("alpha")
        assert registry.enable("missing") is False
        assert registry.disable("missing") is False

    def test_get_required_rejects_disabled(self):
        registry = ToolRegistry([MockTool("alpha")])
        registry.disable("alpha")

        with pytest.raises(ToolNotFoundError):
            registry.get_required("alpha")

    def test_list_specs(self):
        registry = ToolRegistry([MockTool("alpha"), MockTool("beta")])

        assert [spec.name for spec in registry.list_specs()] == ["alpha", "beta"]

    def test_declarations_filter(self):
        registry = ToolRegistry([MockTool("alpha"), MockTool("beta"), MockTool("gamma")])
        registry.disable("gamma")

        names = [item["function"]["name"] for item in registry.declarations()]
        filtered = [item["function"]["name"] for item in registry.declarations(filter_names=["beta"])]

        assert names == ["alpha", "beta"]
        assert filtered == ["beta"]

    def test_metadata_is_copied(self):
        metadata = {"owner": "tests"}
        registration = ToolRegistry().register(MockTool("alpha"), metadata=metadata)
        metadata["owner"] = "changed"

        assert registration.metadata == {"owner": "tests"}

    def test_with_defaults_registers_builtin_tools(self):
        registry = ToolRegistry.with_defaults()

        assert registry.list_names() == ["create_file"]
        assert isinstance(registry.get_required("create_file"), CreateFileTool)

    def test_with_defaults_applies_settings(self):
        registry = ToolRegistry.with_defaults(settings=Settings(text_encoding="utf-16"))

        tool = registry.get_required("create_file")
        assert isinstance(tool, CreateFileTool)
        assert tool.encoding == "utf-16"
        assert ToolRegistry.with_defaults().get_required("create_file").encoding == "utf-8"

    def test_clear(self):
        registry = ToolRegistry([MockTool("alpha")])

        registry.clear()

        assert len(registry) == 0
