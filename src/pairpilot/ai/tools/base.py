"""Base classes for client-side tools.

Every tool runs the same fixed protocol, implemented once in
:meth:`BaseTool.invoke`:

1. validate the input (JSON Schema plus tool-specific checks),
2. perform the guarded side effect,
3. verify the observable postcondition,
4. record the resulting file edits through the context provider,
5. run a best-effort secondary action (revealing the file in the IDE),
6. append one round to the turn history,
7. complete the call exactly once.

Subclasses only implement :meth:`BaseTool.perform` (steps 2 and 3) and may
extend :meth:`BaseTool.validate`.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Mapping, Protocol, Sequence, runtime_checkable

from jsonschema import Draft202012Validator

from ..ai_types import (
    AgentRound,
    ChatHistoryUpdater,
    CompletionCallback,
    FileEditRecord,
    ToolCallRequest,
    ToolCallStatus,
    ToolCallSummary,
    ToolInvocationResult,
)
from ..orchestration.tools.types import ToolSpec
from .errors import DuplicateCompletionError, ErrorCode, InvalidInputError, ToolError

if TYPE_CHECKING:
    from ...services.settings import Settings

LOGGER = logging.getLogger(__name__)

MAX_SCHEMA_ERRORS = 5


@runtime_checkable
class ToolContextProvider(Protocol):
    """Session services a tool may use; every member is optional to rely on."""

    @property
    def workspace_path(self) -> Path | None:
        """Root of the workspace the conversation is bound to."""
        ...

    def update_file_edits(self, record: FileEditRecord) -> None:
        """Record a verified file edit so it can be undone later."""
        ...

    def reveal_file(self, path: Path) -> None:
        """Surface a changed file in the IDE. May raise; callers log and continue."""
        ...


class ToolCompletion:
    """Single-fire completion channel for one tool call.

    Wraps the callback that releases the backend's wait for a tool result.
    A second ``complete``/``fail`` raises :class:`DuplicateCompletionError`
    and does not reach the callback.
    """

    def __init__(self, request: ToolCallRequest, callback: CompletionCallback) -> None:
        self._request = request
        self._callback = callback
        self._lock = threading.Lock()
        self._result: ToolInvocationResult | None = None

    @property
    def sent(self) -> bool:
        return self._result is not None

    @property
    def result(self) -> ToolInvocationResult | None:
        return self._result

    def complete(self, message: str) -> ToolInvocationResult:
        return self._send(ToolCallStatus.COMPLETED, message)

    def fail(self, error: ToolError | str) -> ToolInvocationResult:
        message = error.message if isinstance(error, ToolError) else str(error)
        return self._send(ToolCallStatus.ERROR, message)

    def _send(self, status: ToolCallStatus, message: str) -> ToolInvocationResult:
        with self._lock:
            if self._result is not None:
                raise DuplicateCompletionError(self._request.tool_call_id)
            result = ToolInvocationResult(
                tool_call_id=self._request.tool_call_id,
                status=status,
                message=message,
            )
            self._result = result
        self._callback(result)
        return result

    def __call__(self, result: ToolInvocationResult) -> None:
        """Allow a completion to be handed to code expecting a plain callback."""
        self._send(result.status, result.message)


@dataclass(slots=True)
class ToolOutcome:
    """What a successful :meth:`BaseTool.perform` hands back to the protocol.

    Attributes:
        message: Human-readable status for the backend.
        edits: Verified file edits to record in the ledger.
        reveal_path: File to surface in the IDE, if any.
    """

    message: str
    edits: Sequence[FileEditRecord] = field(default_factory=tuple)
    reveal_path: Path | None = None


class BaseTool(ABC):
    """Abstract base class for all client-side tools.

    Subclasses must define:
    - ``name``: tool identifier used by the backend
    - ``spec``: the :class:`ToolSpec` declared to the backend
    - :meth:`perform`: the guarded side effect and its verification

    Example:
        class TouchTool(BaseTool):
            name = "touch"
            spec = ToolSpec(name="touch", description="Touch a file")

            def perform(self, request, params, context_provider):
                ...
                return ToolOutcome(message="done")
    """

    name: ClassVar[str] = ""
    spec: ClassVar[ToolSpec]

    @classmethod
    def from_settings(cls, settings: "Settings") -> "BaseTool":
        """Build the tool from user preferences. Tools without preferences ignore them."""
        return cls()

    def invoke(
        self,
        request: ToolCallRequest,
        completion: CompletionCallback | ToolCompletion,
        history_updater: ChatHistoryUpdater | None = None,
        context_provider: ToolContextProvider | None = None,
    ) -> bool:
        """Run the tool protocol for ``request``.

        Returns ``False`` without touching ``completion`` when the request is
        for another tool; otherwise returns ``True`` after completing exactly
        once, whatever happened.
        """

        if request.tool_name != self.name:
            return False

        channel = completion if isinstance(completion, ToolCompletion) else ToolCompletion(request, completion)
        start_time = time.perf_counter()

        try:
            params = self.validate(request.input)
            outcome = self.perform(request, params, context_provider)
        except ToolError as exc:
            LOGGER.info("Tool %s failed for call %s: %s", self.name, request.tool_call_id, exc)
            channel.fail(exc)
            return True
        except Exception as exc:
            LOGGER.exception("Tool %s failed unexpectedly", self.name)
            channel.fail(ToolError(error_code=ErrorCode.INTERNAL_ERROR, message=f"Internal error: {exc}"))
            return True

        # The change is on disk from here on; the call reports success no
        # matter how the bookkeeping goes.
        try:
            self._guarded("record edits", request, self._record_edits, outcome, context_provider)
            self._reveal(outcome, context_provider)
            self._guarded("append history", request, self._append_round, request, history_updater)
            LOGGER.debug(
                "Tool %s completed call %s in %.1fms",
                self.name,
                request.tool_call_id,
                (time.perf_counter() - start_time) * 1000.0,
            )
        finally:
            channel.complete(outcome.message)
        return True

    def validate(self, params: Mapping[str, Any]) -> dict[str, Any]:
        """Check ``params`` against the ToolSpec's JSON Schema.

        Override to add tool-specific checks; raise :class:`InvalidInputError`.
        """

        schema = self.spec.parameters
        if schema:
            validator = Draft202012Validator(dict(schema))
            problems = sorted(validator.iter_errors(dict(params)), key=lambda issue: list(issue.path))
            if problems:
                details = [_describe_schema_error(issue) for issue in problems[:MAX_SCHEMA_ERRORS]]
                raise InvalidInputError(
                    message=f"Invalid parameters: {'; '.join(details)}",
                    details={"errors": details},
                )
        return dict(params)

    @abstractmethod
    def perform(
        self,
        request: ToolCallRequest,
        params: dict[str, Any],
        context_provider: ToolContextProvider | None,
    ) -> ToolOutcome:
        """Perform the side effect and verify it.

        Raises:
            ToolError: For every expected failure (precondition, IO, verification).
        """
        ...

    # ------------------------------------------------------------------
    # Protocol steps
    # ------------------------------------------------------------------
    def _guarded(self, step: str, request: ToolCallRequest, action: Callable[..., None], *args: Any) -> None:
        try:
            action(*args)
        except Exception:
            LOGGER.exception("Tool %s could not %s for call %s", self.name, step, request.tool_call_id)

    def _record_edits(self, outcome: ToolOutcome, context_provider: ToolContextProvider | None) -> None:
        if context_provider is None:
            return
        for edit in outcome.edits:
            context_provider.update_file_edits(edit)

    def _reveal(self, outcome: ToolOutcome, context_provider: ToolContextProvider | None) -> None:
        if context_provider is None or outcome.reveal_path is None:
            return
        try:
            context_provider.reveal_file(outcome.reveal_path)
        except Exception as exc:
            LOGGER.info("Failed to open %s in the IDE: %s", outcome.reveal_path, exc)

    def _append_round(self, request: ToolCallRequest, history_updater: ChatHistoryUpdater | None) -> None:
        if history_updater is None:
            return
        summary = ToolCallSummary(
            id=request.tool_call_id,
            name=request.tool_name,
            status=ToolCallStatus.COMPLETED,
            invoke_params=request,
        )
        history_updater(request.turn_id, [AgentRound(round_id=request.round_id, reply="", tool_calls=(summary,))])


def _describe_schema_error(issue: Any) -> str:
    path = ".".join(str(part) for part in issue.absolute_path)
    return f"{path}: {issue.message}" if path else issue.message


__all__ = [
    "BaseTool",
    "ToolCompletion",
    "ToolContextProvider",
    "ToolOutcome",
]
