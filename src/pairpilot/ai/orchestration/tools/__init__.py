"""Tool declarations and registry used by the dispatcher.

Example:
    from pairpilot.ai.orchestration.tools import ToolRegistry

    registry = ToolRegistry.with_defaults()
    tool = registry.get_required("create_file")
"""

from .types import (
    Tool,
    ToolCategory,
    ToolSpec,
)

from .registry import (
    DuplicateToolError,
    ToolNotFoundError,
    ToolRegistration,
    ToolRegistry,
)

__all__ = [
    # types.py
    "Tool",
    "ToolSpec",
    "ToolCategory",
    # registry.py
    "ToolRegistry",
    "ToolRegistration",
    "DuplicateToolError",
    "ToolNotFoundError",
]
