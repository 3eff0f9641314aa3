"""Workspace context resolution.

Collects the source files of the active workspace that may be offered to the
model as context. Multi-project containers are expanded through their
manifest; each sub-project directory is walked on its own.
"""

from __future__ import annotations

import fnmatch
import logging
import os
from pathlib import Path
from typing import Iterable, Sequence

from .manifest import is_project_bundle, is_workspace_container, resolve_subprojects
from .models import FileReference, WorkspaceFolder, WorkspaceInfo

__all__ = [
    "SUPPORTED_FILE_EXTENSIONS",
    "SKIP_PATTERNS",
    "ContextResolver",
    "matches_patterns",
    "subproject_dirs",
    "get_workspace_folders",
    "relative_to_root",
]

LOGGER = logging.getLogger(__name__)

SUPPORTED_FILE_EXTENSIONS: frozenset[str] = frozenset(
    {
        "swift",
        "m",
        "mm",
        "h",
        "cpp",
        "c",
        "js",
        "py",
        "rb",
        "java",
        "applescript",
        "scpt",
        "plist",
        "entitlements",
    }
)

SKIP_PATTERNS: tuple[str, ...] = (
    ".git",
    ".svn",
    ".hg",
    "CVS",
    ".DS_Store",
    "Thumbs.db",
    "node_modules",
    "bower_components",
)


def matches_patterns(name: str, patterns: Iterable[str] = SKIP_PATTERNS) -> bool:
    """Glob-match ``name`` (a last path component) against ``patterns``."""
    return any(fnmatch.fnmatchcase(name, pattern) for pattern in patterns)


def subproject_dirs(workspace: WorkspaceInfo) -> list[Path]:
    """Directories making up ``workspace``: the container's projects, or the project root."""
    if is_workspace_container(workspace.workspace_url):
        return resolve_subprojects(workspace.workspace_url)
    return [workspace.project_url]


def get_workspace_folders(workspace: WorkspaceInfo) -> list[WorkspaceFolder]:
    return [WorkspaceFolder.from_path(path) for path in subproject_dirs(workspace)]


def relative_to_root(path: Path, root: Path) -> str:
    """``path`` relative to ``root`` in POSIX form, without a leading separator.

    Paths outside ``root`` are returned whole.
    """
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


class ContextResolver:
    """Enumerates candidate context files for a workspace.

    Hidden entries, anything matching ``skip_patterns`` and the contents of
    nested workspace containers or project bundles are never visited. Only
    regular files whose extension is in ``extensions`` are returned.
    """

    def __init__(
        self,
        *,
        extensions: Iterable[str] = SUPPORTED_FILE_EXTENSIONS,
        skip_patterns: Sequence[str] = SKIP_PATTERNS,
    ) -> None:
        self._extensions = frozenset(ext.lower().lstrip(".") for ext in extensions)
        self._skip_patterns = tuple(skip_patterns)

    def files_in_workspace(self, workspace: WorkspaceInfo) -> list[FileReference]:
        """Return the context files of ``workspace``; never raises."""

        root = workspace.project_url
        files: list[FileReference] = []
        try:
            for subproject in subproject_dirs(workspace):
                if not subproject.is_dir():
                    LOGGER.debug("Skipping missing sub-project %s", subproject)
                    continue
                files.extend(self._walk(subproject, root))
        except OSError as exc:
            LOGGER.error("Failed to get files in workspace %s: %s", workspace.workspace_url, exc)
        return files

    def _walk(self, subproject: Path, root: Path) -> list[FileReference]:
        found: list[FileReference] = []
        for dirpath, dirnames, filenames in os.walk(subproject, onerror=self._log_walk_error):
            current = Path(dirpath)
            dirnames[:] = sorted(name for name in dirnames if self._should_descend(current / name))
            for name in sorted(filenames):
                if self._is_skipped(name):
                    continue
                path = current / name
                if not self._is_candidate(path):
                    continue
                found.append(FileReference(url=path, relative_path=relative_to_root(path, root), file_name=name))
        return found

    def _is_skipped(self, name: str) -> bool:
        return name.startswith(".") or matches_patterns(name, self._skip_patterns)

    def _should_descend(self, directory: Path) -> bool:
        if self._is_skipped(directory.name):
            return False
        if is_workspace_container(directory) or is_project_bundle(directory):
            return False
        return not directory.is_symlink()

    def _is_candidate(self, path: Path) -> bool:
        if path.is_symlink() or not path.is_file():
            return False
        return path.suffix[1:].lower() in self._extensions

    @staticmethod
    def _log_walk_error(error: OSError) -> None:
        LOGGER.warning("Failed to enumerate %s: %s", error.filename, error)
