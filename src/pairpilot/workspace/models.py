"""Value types describing an IDE workspace and the files it exposes."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

__all__ = ["WorkspaceInfo", "WorkspaceFolder", "FileReference"]


@dataclass(slots=True, frozen=True)
class WorkspaceInfo:
    """Identity of an open workspace.

    Attributes:
        workspace_url: The ``.xcworkspace`` container or project file the IDE
            has open.
        project_url: Root directory of the active project.
    """

    workspace_url: Path
    project_url: Path

    def __post_init__(self) -> None:
        object.__setattr__(self, "workspace_url", Path(self.workspace_url))
        object.__setattr__(self, "project_url", Path(self.project_url))

    @property
    def project_uri(self) -> str:
        return self.project_url.absolute().as_uri()


@dataclass(slots=True, frozen=True)
class WorkspaceFolder:
    """One sub-project folder announced to the backend."""

    uri: str
    name: str

    @classmethod
    def from_path(cls, path: Path) -> "WorkspaceFolder":
        return cls(uri=Path(path).absolute().as_uri(), name=Path(path).name)

    def to_dict(self) -> dict[str, Any]:
        return {"uri": self.uri, "name": self.name}


@dataclass(slots=True, frozen=True)
class FileReference:
    """A candidate context file; recomputed on every request."""

    url: Path
    relative_path: str
    file_name: str

    def to_dict(self) -> dict[str, Any]:
        return {"url": str(self.url), "relativePath": self.relative_path, "fileName": self.file_name}
