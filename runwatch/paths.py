"""
Path helpers shared by the log recorder, the analysis step and the CLI.

rename_aside is the one primitive that keeps old data when something new
must take its name: the target is renamed with a suffix, and if that name
is taken the older copy is pushed further down the chain first.

    workflow-log.txt          -> workflow-log.txt.old
    workflow-log.txt.old      -> workflow-log.txt.old.old
    ...
"""

import logging
import os
from pathlib import Path

from .errors import PathValidationError, RenameDepthError

logger = logging.getLogger(__name__)

DEFAULT_SUFFIX = ".old"
DEFAULT_MAX_DEPTH = 64


def validate_directory(path: str) -> Path:
    """
    Make sure a path is a readable, searchable directory.

    Args:
        path: Operator-supplied path (may be relative)

    Returns:
        Absolute, symlink-resolved path

    Raises:
        PathValidationError: If the path is missing, not a directory,
            or lacks read/execute permission
    """
    candidate = Path(path)
    if not candidate.exists():
        raise PathValidationError(path, "does not exist")
    if not candidate.is_dir():
        raise PathValidationError(path, "is not a directory")
    if not os.access(candidate, os.R_OK | os.X_OK):
        raise PathValidationError(path, "is not readable and searchable")
    return candidate.resolve()


def rename_aside(
    path: Path,
    suffix: str = DEFAULT_SUFFIX,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Path:
    """
    Rename a file or directory by appending a suffix, without losing data.

    If the suffixed name already exists it is renamed aside first, so the
    oldest copy ends up with the most suffixes. Nothing is ever deleted or
    overwritten.

    Args:
        path: Existing file or directory to move out of the way
        suffix: Suffix to append (default ".old")
        max_depth: Maximum number of older copies tolerated

    Returns:
        The new path of the renamed entry

    Raises:
        RenameDepthError: If the chain of older copies exceeds max_depth
        OSError: If a rename fails
    """
    return _rename_aside(path, suffix, max_depth, depth=0)


def _rename_aside(path: Path, suffix: str, max_depth: int, depth: int) -> Path:
    if depth >= max_depth:
        raise RenameDepthError(str(path), max_depth)

    target = path.with_name(path.name + suffix)
    if os.path.lexists(target):
        _rename_aside(target, suffix, max_depth, depth + 1)

    os.rename(path, target)
    logger.debug(f"Renamed {path} -> {target}")
    return target
