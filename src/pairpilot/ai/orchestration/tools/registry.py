"""Tool registry for the dispatcher.

The registry is the name→implementation map tool calls are resolved
against. It is filled once at startup; lookups go by name only, never by
inspecting a tool's type.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Mapping, Sequence

from openai.types.chat import ChatCompletionToolParam

from .types import Tool, ToolSpec

if TYPE_CHECKING:
    from ....services.settings import Settings

__all__ = [
    "ToolRegistry",
    "ToolRegistration",
    "DuplicateToolError",
    "ToolNotFoundError",
]

LOGGER = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Exceptions
# -----------------------------------------------------------------------------


class DuplicateToolError(Exception):
    """A second tool was registered under a taken name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool '{name}' is already registered")


class ToolNotFoundError(Exception):
    """No enabled tool is registered under the requested name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool '{name}' not found")


# -----------------------------------------------------------------------------
# Tool Registration
# -----------------------------------------------------------------------------


@dataclass(slots=True)
class ToolRegistration:
    """A registered tool with its declaration and switch state."""

    name: str
    tool: Tool
    spec: ToolSpec
    enabled: bool = True
    metadata: dict[str, Any] = field(default_factory=dict)

    def declaration(self) -> ChatCompletionToolParam:
        return self.spec.to_openai_tool()


# -----------------------------------------------------------------------------
# Tool Registry
# -----------------------------------------------------------------------------


class ToolRegistry:
    """Name-keyed set of client tools, in registration order.

    Example:
        registry = ToolRegistry([CreateFileTool()])
        tool = registry.get("create_file")
        declarations = registry.declarations()
    """

    def __init__(self, tools: Iterable[Tool] | None = None) -> None:
        self._registrations: dict[str, ToolRegistration] = {}
        for tool in tools or ():
            self.register(tool)

    @classmethod
    def with_defaults(cls, *, settings: "Settings | None" = None) -> "ToolRegistry":
        """A registry holding every built-in client tool.

        With ``settings`` each tool is configured from the user's preferences.
        """
        from ...tools import BUILTIN_TOOLS

        if settings is None:
            return cls(tool_cls() for tool_cls in BUILTIN_TOOLS)
        return cls(tool_cls.from_settings(settings) for tool_cls in BUILTIN_TOOLS)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def register(
        self,
        tool: Tool,
        *,
        enabled: bool = True,
        allow_override: bool = False,
        metadata: Mapping[str, Any] | None = None,
    ) -> ToolRegistration:
        """Add ``tool`` under its own name.

        Raises:
            DuplicateToolError: The name is taken and ``allow_override`` is off.
        """
        if tool.name in self._registrations and not allow_override:
            raise DuplicateToolError(tool.name)

        registration = ToolRegistration(
            name=tool.name,
            tool=tool,
            spec=tool.spec,
            enabled=enabled,
            metadata=dict(metadata or {}),
        )
        self._registrations[tool.name] = registration
        LOGGER.debug("Registered tool %s (enabled=%s)", tool.name, enabled)
        return registration

    def unregister(self, name: str) -> bool:
        if self._registrations.pop(name, None) is None:
            return False
        LOGGER.debug("Unregistered tool %s", name)
        return True

    def clear(self) -> None:
        self._registrations.clear()

    def enable(self, name: str) -> bool:
        return self._set_enabled(name, True)

    def disable(self, name: str) -> bool:
        return self._set_enabled(name, False)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def get(self, name: str) -> Tool | None:
        """The enabled tool registered as ``name``, else ``None``."""
        registration = self._registrations.get(name)
        return registration.tool if registration is not None and registration.enabled else None

    def get_required(self, name: str) -> Tool:
        """Like :meth:`get` but raises :class:`ToolNotFoundError` instead of returning ``None``."""
        tool = self.get(name)
        if tool is None:
            raise ToolNotFoundError(name)
        return tool

    def get_registration(self, name: str) -> ToolRegistration | None:
        return self._registrations.get(name)

    def has(self, name: str) -> bool:
        return self.get(name) is not None

    def enabled_tools(self) -> list[Tool]:
        return [registration.tool for registration in self._iter(include_disabled=False)]

    def list_specs(self, *, include_disabled: bool = False) -> list[ToolSpec]:
        return [registration.spec for registration in self._iter(include_disabled=include_disabled)]

    def list_names(self, *, include_disabled: bool = False) -> list[str]:
        return [registration.name for registration in self._iter(include_disabled=include_disabled)]

    def declarations(self, *, filter_names: Sequence[str] | None = None) -> list[ChatCompletionToolParam]:
        """Function-tool declarations of the enabled tools, as sent to the backend."""
        return [
            registration.declaration()
            for registration in self._iter(include_disabled=False)
            if filter_names is None or registration.name in filter_names
        ]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _iter(self, *, include_disabled: bool) -> Iterator[ToolRegistration]:
        for registration in self._registrations.values():
            if include_disabled or registration.enabled:
                yield registration

    def _set_enabled(self, name: str, enabled: bool) -> bool:
        registration = self._registrations.get(name)
        if registration is None:
            return False
        registration.enabled = enabled
        return True

    def __len__(self) -> int:
        """Number of registered tools, disabled ones included."""
        return len(self._registrations)

    def __contains__(self, name: object) -> bool:
        return name in self._registrations
