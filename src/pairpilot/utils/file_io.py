"""Text file helpers used by the tool implementations."""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path

__all__ = [
    "DEFAULT_ENCODING",
    "read_text",
    "write_text",
    "file_exists",
    "is_regular_file",
    "remove_file",
]

DEFAULT_ENCODING = "utf-8"


def read_text(path: Path | str, *, encoding: str = DEFAULT_ENCODING, errors: str = "strict") -> str:
    """Read a whole text file, keeping its line endings as they are."""

    with Path(path).open("r", encoding=encoding, errors=errors, newline="") as handle:
        return handle.read()


def write_text(
    path: Path | str,
    content: str,
    *,
    encoding: str = DEFAULT_ENCODING,
    atomic: bool = True,
) -> Path:
    """Store ``content`` at ``path`` byte for byte in ``encoding``.

    The text is encoded before anything touches the disk, so an
    unencodable string leaves no trace. The parent directory is not
    created. With ``atomic`` the bytes land in a hidden sibling first and
    are renamed over the target.
    """

    target = Path(path)
    data = content.encode(encoding)
    if atomic:
        _replace_atomically(target, data)
    else:
        with target.open("wb") as handle:
            _write_synced(handle.fileno(), data)
    return target


def file_exists(path: Path | str) -> bool:
    """``True`` for anything at ``path``, dangling symlinks included."""

    return os.path.lexists(path)


def is_regular_file(path: Path | str) -> bool:
    return Path(path).is_file()


def remove_file(path: Path | str) -> None:
    os.unlink(path)


def _replace_atomically(target: Path, data: bytes) -> None:
    descriptor, staging = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    try:
        try:
            _write_synced(descriptor, data)
        finally:
            os.close(descriptor)
        os.replace(staging, target)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(staging)
        raise


def _write_synced(descriptor: int, data: bytes) -> None:
    view = memoryview(data)
    while view:
        written = os.write(descriptor, view)
        view = view[written:]
    os.fsync(descriptor)
