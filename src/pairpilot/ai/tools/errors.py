"""Failure taxonomy for client tool calls.

A tool reports every failure by raising a :class:`ToolError`. The base
tool in :mod:`pairpilot.ai.tools.base` catches it and completes the call
with an ``error`` result carrying :attr:`ToolError.message`, so these
exceptions stop at ``invoke``.
"""

from __future__ import annotations

from typing import Any, ClassVar, Mapping

__all__ = [
    "ErrorCode",
    "ToolError",
    "InvalidInputError",
    "PreconditionFailedError",
    "IOFailureError",
    "VerificationFailedError",
    "UnknownToolError",
    "DuplicateCompletionError",
]


class ErrorCode:
    """Machine-readable failure identifiers."""

    INVALID_INPUT = "invalid_input"
    PRECONDITION_FAILED = "precondition_failed"
    IO_FAILURE = "io_failure"
    VERIFICATION_FAILED = "verification_failed"
    UNKNOWN_TOOL = "unknown_tool"
    INTERNAL_ERROR = "internal_error"


class ToolError(Exception):
    """A tool call that could not be carried out.

    ``message`` is what the backend sees. ``details`` and ``suggestion`` are
    for logs only.
    """

    code: ClassVar[str] = ErrorCode.INTERNAL_ERROR
    default_message: ClassVar[str] = "Tool call failed"
    default_suggestion: ClassVar[str] = ""
    # Tool calls are never retried by the client.
    retryable: ClassVar[bool] = False

    def __init__(
        self,
        message: str | None = None,
        *,
        error_code: str | None = None,
        details: Mapping[str, Any] | None = None,
        suggestion: str | None = None,
    ) -> None:
        self.error_code = error_code or self.code
        self.message = message or self.default_message
        self.details = dict(details or {})
        self.suggestion = self.default_suggestion if suggestion is None else suggestion
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error_code, "message": self.message}
        if self.details:
            payload["details"] = dict(self.details)
        if self.suggestion:
            payload["suggestion"] = self.suggestion
        return payload

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class InvalidInputError(ToolError):
    """Arguments missing, mistyped or otherwise unusable."""

    code = ErrorCode.INVALID_INPUT
    default_message = "Invalid parameters"
    default_suggestion = "Check the tool's parameter schema and retry with valid arguments"

    def __init__(self, message: str | None = None, *, parameter: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.parameter = parameter


class PreconditionFailedError(ToolError):
    """Refused before anything on disk changed."""

    code = ErrorCode.PRECONDITION_FAILED
    default_message = "Precondition failed"


class IOFailureError(ToolError):
    """A read or write failed part way; the target may be left half written."""

    code = ErrorCode.IO_FAILURE
    default_message = "Filesystem operation failed"

    def __init__(self, message: str | None = None, *, cause: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.cause = cause


class VerificationFailedError(ToolError):
    """The action ran but its result could not be confirmed. Nothing is rolled back."""

    code = ErrorCode.VERIFICATION_FAILED
    default_message = "Failed to verify the operation"


class UnknownToolError(ToolError):
    code = ErrorCode.UNKNOWN_TOOL
    default_message = "Unknown tool"

    def __init__(self, message: str | None = None, *, tool_name: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.tool_name = tool_name


class DuplicateCompletionError(RuntimeError):
    """A tool call's completion was fired a second time."""

    def __init__(self, tool_call_id: str) -> None:
        self.tool_call_id = tool_call_id
        super().__init__(f"Tool call '{tool_call_id}' was already completed")
