"""Workspace identity, manifest parsing and context-file resolution."""

from .context import (
    SKIP_PATTERNS,
    SUPPORTED_FILE_EXTENSIONS,
    ContextResolver,
    get_workspace_folders,
    matches_patterns,
    relative_to_root,
    subproject_dirs,
)
from .manifest import is_project_bundle, is_workspace_container, parse_subprojects, resolve_subprojects
from .models import FileReference, WorkspaceFolder, WorkspaceInfo

__all__ = [
    "WorkspaceInfo",
    "WorkspaceFolder",
    "FileReference",
    "ContextResolver",
    "SUPPORTED_FILE_EXTENSIONS",
    "SKIP_PATTERNS",
    "matches_patterns",
    "relative_to_root",
    "subproject_dirs",
    "get_workspace_folders",
    "is_workspace_container",
    "is_project_bundle",
    "parse_subprojects",
    "resolve_subprojects",
]
