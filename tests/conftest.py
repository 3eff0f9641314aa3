"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from pairpilot.ai.orchestration.edit_ledger import FileEditLedger, SessionToolContext
from pairpilot.ai.tools import DEFAULT_UNDO_PROCEDURES
from pairpilot.workspace.models import WorkspaceInfo
from tests.helpers import CompletionRecorder, FakeConnection, HistoryRecorder


@pytest.fixture
def completion() -> CompletionRecorder:
    return CompletionRecorder()


@pytest.fixture
def history() -> HistoryRecorder:
    return HistoryRecorder()


@pytest.fixture
def ledger() -> FileEditLedger:
    return FileEditLedger(DEFAULT_UNDO_PROCEDURES)


@pytest.fixture
def tool_context(tmp_path: Path, ledger: FileEditLedger) -> SessionToolContext:
    return SessionToolContext(workspace_path=tmp_path, ledger=ledger)


@pytest.fixture
def workspace(tmp_path: Path) -> WorkspaceInfo:
    project = tmp_path / "App"
    project.mkdir()
    return WorkspaceInfo(workspace_url=project / "App.xcodeproj", project_url=project)


@pytest.fixture
def connection() -> FakeConnection:
    return FakeConnection()
