"""Parsing of ``.xcworkspace`` manifests into sub-project directories.

A workspace container lists its projects as ``FileRef`` elements::

    <Workspace version = "1.0">
       <FileRef location = "group:App/App.xcodeproj"></FileRef>
       <FileRef location = "container:Kit"></FileRef>
    </Workspace>

Only ``group:`` and ``container:`` locations are followed; both resolve
relative to the directory holding the container. Other kinds (for example
``absolute:``) are skipped.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path, PurePosixPath

__all__ = [
    "WORKSPACE_EXTENSION",
    "WORKSPACE_MANIFEST",
    "PROJECT_EXTENSION",
    "PROJECT_MANIFEST",
    "is_workspace_container",
    "is_project_bundle",
    "parse_subprojects",
    "resolve_subprojects",
]

LOGGER = logging.getLogger(__name__)

WORKSPACE_EXTENSION = "xcworkspace"
WORKSPACE_MANIFEST = "contents.xcworkspacedata"
PROJECT_EXTENSION = "xcodeproj"
PROJECT_MANIFEST = "project.pbxproj"

_RELATIVE_PREFIXES = ("group:", "container:")


def _has_extension(path: Path, extension: str) -> bool:
    return path.suffix == f".{extension}"


def is_workspace_container(path: Path | str) -> bool:
    """True for an ``.xcworkspace`` directory that holds its manifest."""
    candidate = Path(path)
    return _has_extension(candidate, WORKSPACE_EXTENSION) and (candidate / WORKSPACE_MANIFEST).exists()


def is_project_bundle(path: Path | str) -> bool:
    """True for an ``.xcodeproj`` directory that holds its project file."""
    candidate = Path(path)
    return _has_extension(candidate, PROJECT_EXTENSION) and (candidate / PROJECT_MANIFEST).exists()


def parse_subprojects(container_path: Path | str, data: bytes | str) -> list[Path]:
    """Return the sub-project directories referenced by manifest ``data``.

    Order of first appearance is kept and duplicates are dropped. Malformed
    XML is logged and yields an empty list.
    """

    base_dir = Path(container_path).parent
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        LOGGER.error("Failed to parse workspace file for %s: %s", container_path, exc)
        return []

    subprojects: list[Path] = []
    for file_ref in root.iter("FileRef"):
        location = file_ref.get("location")
        if not location:
            continue
        relative = _strip_location_prefix(location)
        if relative is None:
            LOGGER.debug("Skipping workspace reference %s", location)
            continue
        if relative.endswith(f".{PROJECT_EXTENSION}"):
            relative = str(PurePosixPath(relative).parent)
            if relative == ".":
                relative = ""
        subproject = base_dir / relative if relative else base_dir
        if subproject not in subprojects:
            subprojects.append(subproject)
    return subprojects


def resolve_subprojects(container_path: Path | str) -> list[Path]:
    """Read the container's manifest and return its sub-project directories."""

    manifest = Path(container_path) / WORKSPACE_MANIFEST
    try:
        data = manifest.read_bytes()
    except OSError as exc:
        LOGGER.error("Failed to read workspace file at %s: %s", manifest, exc)
        return []
    return parse_subprojects(container_path, data)


def _strip_location_prefix(location: str) -> str | None:
    for prefix in _RELATIVE_PREFIXES:
        if location.startswith(prefix):
            return location[len(prefix):]
    return None
