"""Create File Tool.

Creates a new file on disk with the content supplied by the model. The tool
never overwrites: if anything already exists at the target path the call is
refused before any mutation happens.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar

from ...services.settings import Settings
from ...utils.file_io import DEFAULT_ENCODING, file_exists, is_regular_file, read_text, remove_file, write_text
from ..ai_types import FileEditRecord, ToolCallRequest
from ..orchestration.tools.types import ToolCategory, ToolSpec
from .base import BaseTool, ToolContextProvider, ToolOutcome
from .errors import InvalidInputError, IOFailureError, PreconditionFailedError, VerificationFailedError

LOGGER = logging.getLogger(__name__)

CREATE_FILE_SPEC = ToolSpec(
    name="create_file",
    description=(
        "Create a new file with the given content. Fails if a file already "
        "exists at the path; use an edit tool to change existing files."
    ),
    parameters={
        "type": "object",
        "properties": {
            "filePath": {
                "type": "string",
                "description": "Path of the file to create.",
            },
            "content": {
                "type": "string",
                "description": "Full content of the new file.",
            },
        },
        "required": ["filePath", "content"],
    },
    category=ToolCategory.WRITE,
    is_write=True,
)


@dataclass
class CreateFileTool(BaseTool):
    """Tool for creating new files.

    Parameters:
        filePath: Target path. Relative paths resolve against the workspace
            path of the context provider when there is one.
        content: Text to write.

    The file is written atomically with ``encoding`` and read back to verify
    that it exists, is non-empty and holds exactly ``content``.
    """

    name: ClassVar[str] = "create_file"
    spec: ClassVar[ToolSpec] = CREATE_FILE_SPEC

    encoding: str = DEFAULT_ENCODING

    @classmethod
    def from_settings(cls, settings: Settings) -> "CreateFileTool":
        return cls(encoding=settings.text_encoding)

    def validate(self, params: Any) -> dict[str, Any]:
        validated = super().validate(params)
        if not validated["filePath"].strip():
            raise InvalidInputError(
                message="Invalid parameters: filePath must not be empty",
                parameter="filePath",
            )
        return validated

    def perform(
        self,
        request: ToolCallRequest,
        params: dict[str, Any],
        context_provider: ToolContextProvider | None,
    ) -> ToolOutcome:
        file_path = self._resolve_path(params["filePath"], context_provider)
        content: str = params["content"]

        if file_exists(file_path):
            raise PreconditionFailedError(
                message=f"File already exists at {file_path}",
                details={"path": str(file_path)},
                suggestion="Edit the existing file instead of creating it",
            )

        try:
            write_text(file_path, content, encoding=self.encoding)
        except (OSError, UnicodeError) as exc:
            raise IOFailureError(
                message=f"Failed to write content to file: {exc}",
                details={"path": str(file_path)},
                cause=str(exc),
            ) from exc

        if not self._verify(file_path, content):
            raise VerificationFailedError(
                message="Failed to verify file creation.",
                details={"path": str(file_path)},
            )

        LOGGER.info("Created %s (%d chars)", file_path, len(content))
        return ToolOutcome(
            message=f"File created at {file_path}.",
            edits=(
                FileEditRecord(
                    file_url=file_path,
                    original_content="",
                    modified_content=content,
                    tool_name=self.name,
                ),
            ),
            reveal_path=file_path,
        )

    @staticmethod
    def undo(file_url: Path | str) -> None:
        """Delete a file this tool created; no-op if it is gone or is a directory."""
        path = Path(file_url)
        if not file_exists(path) or path.is_dir():
            return
        remove_file(path)
        LOGGER.info("Undo create_file: removed %s", path)

    def _resolve_path(self, raw_path: str, context_provider: ToolContextProvider | None) -> Path:
        path = Path(os.path.expanduser(raw_path))
        if path.is_absolute():
            return path
        workspace_path = getattr(context_provider, "workspace_path", None) if context_provider else None
        if workspace_path is not None:
            return Path(workspace_path) / path
        return path.absolute()

    def _verify(self, file_path: Path, content: str) -> bool:
        if not is_regular_file(file_path):
            return False
        try:
            written = read_text(file_path, encoding=self.encoding)
        except (OSError, UnicodeError):
            LOGGER.warning("Could not read back %s for verification", file_path, exc_info=True)
            return False
        return bool(written) and written == content


__all__ = ["CreateFileTool", "CREATE_FILE_SPEC"]
