"""Tool-call orchestration: edit ledger, round history, registry and dispatch.

The dispatcher lives in :mod:`pairpilot.ai.orchestration.tool_dispatcher`
and is imported from there; the tool base classes depend on this package's
``tools.types`` module.
"""

from .edit_ledger import FileEditLedger, FileRevealer, SessionToolContext, UndoProcedure, UndoReport
from .round_history import HistoryListener, RoundHistory, fold_rounds

__all__ = [
    # edit_ledger.py
    "FileEditLedger",
    "SessionToolContext",
    "UndoReport",
    "UndoProcedure",
    "FileRevealer",
    # round_history.py
    "RoundHistory",
    "HistoryListener",
    "fold_rounds",
]
