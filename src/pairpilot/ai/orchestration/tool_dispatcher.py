"""Tool Dispatcher for backend-issued tool calls.

Routes each :class:`ToolCallRequest` to the registered tool with the same
name and guarantees that the call is completed exactly once, whatever the
tool does. Unknown names are answered with an ``unknown_tool`` error.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
from typing import Protocol

from ..ai_types import ChatHistoryUpdater, CompletionCallback, ToolCallRequest, ToolInvocationResult
from ..tools.base import ToolCompletion, ToolContextProvider
from ..tools.errors import DuplicateCompletionError, ErrorCode, ToolError, UnknownToolError
from .tools.registry import ToolRegistry
from .tools.types import Tool

LOGGER = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Dispatch Listener
# -----------------------------------------------------------------------------


class DispatchListener(Protocol):
    """Callback protocol for dispatch events."""

    def on_tool_start(self, request: ToolCallRequest) -> None:
        """Called before a tool call is routed."""
        ...

    def on_tool_complete(self, result: ToolInvocationResult) -> None:
        """Called once the call's result has been reported."""
        ...


# -----------------------------------------------------------------------------
# Tool Dispatcher
# -----------------------------------------------------------------------------


class ToolDispatcher:
    """Dispatches tool calls to registered implementations.

    Example:
        dispatcher = ToolDispatcher(registry=ToolRegistry.with_defaults())
        result = await dispatcher.invoke(request, context_provider=session_context)
    """

    def __init__(
        self,
        *,
        registry: ToolRegistry | None = None,
        listener: DispatchListener | None = None,
    ) -> None:
        self._registry = registry if registry is not None else ToolRegistry.with_defaults()
        self._listener = listener

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def set_listener(self, listener: DispatchListener | None) -> None:
        """Set or replace the dispatch event listener."""
        self._listener = listener

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(
        self,
        request: ToolCallRequest,
        completion: CompletionCallback,
        history_updater: ChatHistoryUpdater | None = None,
        context_provider: ToolContextProvider | None = None,
    ) -> bool:
        """Route ``request`` to its tool; returns whether any tool handled it.

        ``completion`` is invoked exactly once in every case, including for
        unknown tools (``False`` is returned then).
        """

        self._notify_start(request)
        channel = ToolCompletion(request, self._reporting(completion))

        handled = False
        for tool in self._candidates(request.tool_name):
            try:
                handled = tool.invoke(request, channel, history_updater, context_provider)
            except DuplicateCompletionError:
                LOGGER.error("Tool %s completed call %s more than once", tool.name, request.tool_call_id)
                handled = True
            except Exception as exc:
                LOGGER.exception("Tool %s raised while handling call %s", tool.name, request.tool_call_id)
                if not channel.sent:
                    channel.fail(ToolError(error_code=ErrorCode.INTERNAL_ERROR, message=f"Internal error: {exc}"))
                handled = True
            if handled:
                break

        if not handled:
            LOGGER.warning("No tool registered for %s (call %s)", request.tool_name, request.tool_call_id)
            channel.fail(UnknownToolError(message=f"Unknown tool: {request.tool_name}", tool_name=request.tool_name))
            return False

        if not channel.sent:
            LOGGER.error("Tool %s returned without completing call %s", request.tool_name, request.tool_call_id)
            channel.fail(
                ToolError(error_code=ErrorCode.INTERNAL_ERROR, message="Internal error: tool did not report a result")
            )
        return True

    async def invoke(
        self,
        request: ToolCallRequest,
        *,
        history_updater: ChatHistoryUpdater | None = None,
        context_provider: ToolContextProvider | None = None,
    ) -> ToolInvocationResult:
        """Run a tool call off the event loop and await its single result.

        Cancelling the awaiting task abandons the report only; a side effect
        that already happened (and its ledger record) stays in place.
        """

        future: concurrent.futures.Future[ToolInvocationResult] = concurrent.futures.Future()
        await asyncio.to_thread(self.dispatch, request, future.set_result, history_updater, context_provider)
        return await asyncio.wrap_future(future)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _candidates(self, tool_name: str) -> list[Tool]:
        primary = self._registry.get(tool_name)
        others = [tool for tool in self._registry.enabled_tools() if tool is not primary]
        return [primary, *others] if primary is not None else others

    def _reporting(self, completion: CompletionCallback) -> CompletionCallback:
        def _report(result: ToolInvocationResult) -> None:
            completion(result)
            if self._listener is None:
                return
            try:
                self._listener.on_tool_complete(result)
            except Exception:
                LOGGER.debug("Listener on_tool_complete failed", exc_info=True)

        return _report

    def _notify_start(self, request: ToolCallRequest) -> None:
        if self._listener is None:
            return
        try:
            self._listener.on_tool_start(request)
        except Exception:
            LOGGER.debug("Listener on_tool_start failed", exc_info=True)


__all__ = ["ToolDispatcher", "DispatchListener"]
