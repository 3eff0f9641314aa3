"""Client-side tools the model backend can call."""

from .base import BaseTool, ToolCompletion, ToolContextProvider, ToolOutcome
from .create_file import CREATE_FILE_SPEC, CreateFileTool
from .errors import (
    DuplicateCompletionError,
    ErrorCode,
    InvalidInputError,
    IOFailureError,
    PreconditionFailedError,
    ToolError,
    UnknownToolError,
    VerificationFailedError,
)

BUILTIN_TOOLS: tuple[type[BaseTool], ...] = (CreateFileTool,)

# Undo procedure for each tool that records file edits, keyed by tool name.
DEFAULT_UNDO_PROCEDURES = {
    CreateFileTool.name: CreateFileTool.undo,
}

__all__ = [
    "BaseTool",
    "ToolCompletion",
    "ToolContextProvider",
    "ToolOutcome",
    "CreateFileTool",
    "CREATE_FILE_SPEC",
    "BUILTIN_TOOLS",
    "DEFAULT_UNDO_PROCEDURES",
    "ToolError",
    "ErrorCode",
    "InvalidInputError",
    "PreconditionFailedError",
    "IOFailureError",
    "VerificationFailedError",
    "UnknownToolError",
    "DuplicateCompletionError",
]
