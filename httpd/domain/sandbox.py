"""Filesystem sandbox utilities for safe path resolution."""

import errno
from pathlib import Path
from typing import Union


class ForbiddenPath(Exception):
    """Raised when a requested path escapes the document root."""


def resolve_sandbox_path(directory: Union[str, Path], relative_path: str) -> Path:
    """Resolve a request path inside the document root or raise ForbiddenPath.

    A symlink cycle under the root surfaces as OSError(ELOOP), the same error
    reading through the cycle would raise.
    """
    if "\x00" in relative_path:
        raise ForbiddenPath(relative_path)

    directory_root = Path(directory).resolve()
    candidate = Path(relative_path)
    if candidate.is_absolute() or ".." in candidate.parts:
        raise ForbiddenPath(relative_path)

    try:
        target = (directory_root / candidate).resolve()
    except RuntimeError as error:
        raise OSError(errno.ELOOP, "Symlink loop", relative_path) from error
    if not (target == directory_root or directory_root in target.parents):
        raise ForbiddenPath(relative_path)

    return target
