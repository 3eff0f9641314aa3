"""File-edit ledger backing undo of tool-caused mutations.

The ledger is an append-only log of :class:`FileEditRecord` entries. It does
no filesystem I/O of its own: undo replays records newest-first through the
undo procedure registered for the tool that produced each record.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator, Mapping

from ..ai_types import FileEditRecord

LOGGER = logging.getLogger(__name__)

UndoProcedure = Callable[[Path], None]
FileRevealer = Callable[[Path], None]


@dataclass(slots=True)
class UndoReport:
    """Outcome of replaying the ledger backwards."""

    undone: list[FileEditRecord] = field(default_factory=list)
    skipped: list[FileEditRecord] = field(default_factory=list)
    failed: list[tuple[FileEditRecord, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class FileEditLedger:
    """Append-only record of tool-caused file edits.

    Repeated edits to the same file produce separate records; nothing is
    merged or deduplicated.
    """

    def __init__(self, undo_procedures: Mapping[str, UndoProcedure] | None = None) -> None:
        self._records: list[FileEditRecord] = []
        self._lock = threading.Lock()
        self._undo_procedures: dict[str, UndoProcedure] = dict(undo_procedures or {})

    def record(self, edit: FileEditRecord) -> None:
        with self._lock:
            self._records.append(edit)
        LOGGER.debug("Recorded %s edit for %s", edit.tool_name, edit.file_url)

    def records(self) -> tuple[FileEditRecord, ...]:
        with self._lock:
            return tuple(self._records)

    def records_for(self, path: Path | str) -> tuple[FileEditRecord, ...]:
        target = Path(path)
        return tuple(record for record in self.records() if record.file_url == target)

    def register_undo(self, tool_name: str, procedure: UndoProcedure) -> None:
        self._undo_procedures[tool_name] = procedure

    def undo_all(self) -> UndoReport:
        """Replay every record newest-first through its tool's undo procedure.

        A failing procedure is logged and reported; the replay continues.
        """

        report = UndoReport()
        for record in reversed(self.records()):
            procedure = self._undo_procedures.get(record.tool_name)
            if procedure is None:
                LOGGER.warning("No undo procedure registered for tool %s; skipping %s", record.tool_name, record.file_url)
                report.skipped.append(record)
                continue
            try:
                procedure(record.file_url)
            except Exception as exc:
                LOGGER.error("Undo of %s edit to %s failed: %s", record.tool_name, record.file_url, exc)
                report.failed.append((record, str(exc)))
                continue
            report.undone.append(record)
        return report

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __iter__(self) -> Iterator[FileEditRecord]:
        return iter(self.records())


class SessionToolContext:
    """Context provider handed to tools for one chat session.

    Records edits in a :class:`FileEditLedger` and forwards reveal requests
    to an optional IDE hook.
    """

    def __init__(
        self,
        *,
        workspace_path: Path | str | None,
        ledger: FileEditLedger,
        revealer: FileRevealer | None = None,
    ) -> None:
        self._workspace_path = Path(workspace_path) if workspace_path is not None else None
        self._ledger = ledger
        self._revealer = revealer

    @property
    def workspace_path(self) -> Path | None:
        return self._workspace_path

    @property
    def ledger(self) -> FileEditLedger:
        return self._ledger

    def update_file_edits(self, record: FileEditRecord) -> None:
        self._ledger.record(record)

    def reveal_file(self, path: Path) -> None:
        if self._revealer is None:
            return
        self._revealer(path)


__all__ = [
    "FileEditLedger",
    "SessionToolContext",
    "UndoReport",
    "UndoProcedure",
    "FileRevealer",
]
