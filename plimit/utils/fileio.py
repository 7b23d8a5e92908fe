"""
Directory and file primitives used by the cgroup engine.

Every mutating primitive takes `dry_run` and `verbose`: under dry-run the
filesystem is never touched and the action is logged instead, so the
caller's control flow is identical in both modes.
"""

import errno
import os
from pathlib import Path
from typing import List, Union

from ..constants import Permissions
from ..exceptions import CgroupIOError, CgroupRemovalError
from ..logging_config import get_logger
from .error_handling import normalize_os_error

logger = get_logger(__name__)

PathLike = Union[str, Path]

# rmdir errnos meaning the cgroup still has members or children
_BUSY_ERRNOS = frozenset({errno.EBUSY, errno.ENOTEMPTY, errno.EEXIST})


def ensure_directory(
    path: PathLike,
    mode: int = Permissions.CGROUP_DIR,
    dry_run: bool = False,
    verbose: bool = False,
    parents: bool = False,
) -> bool:
    """
    Create `path` as a directory unless it already is one.

    Args:
        path: Directory to create
        mode: Permission bits for a newly created directory
        dry_run: Log the action without executing it
        verbose: Log the action when executed
        parents: Also create missing ancestors

    Returns:
        True if a directory was created, False if it already existed
        (or under dry-run)

    Raises:
        CgroupIOError: `path` exists but is not a directory, or mkdir failed
        PermissionDeniedError: mkdir was refused
    """
    path = Path(path)
    if dry_run:
        logger.action("ensure directory", dry_run=True, path=path, mode=oct(mode))
        return False

    if path.exists():
        if not path.is_dir():
            raise CgroupIOError("ensure directory: path exists and is not a directory",
                                path=str(path))
        return False

    try:
        path.mkdir(mode=mode, parents=parents, exist_ok=True)
    except FileExistsError as e:
        # Something other than a directory appeared concurrently
        raise CgroupIOError("ensure directory: path exists and is not a directory",
                            path=str(path)) from e
    except OSError as e:
        raise normalize_os_error(e, "ensure directory", path, missing=CgroupIOError) from e

    logger.action("ensure directory", enabled=verbose, path=path, mode=oct(mode))
    return True


def write_text(
    path: PathLike,
    content: str,
    dry_run: bool = False,
    verbose: bool = False,
    mode: int = Permissions.CONTROL_FILE,
) -> None:
    """
    Truncate `path` and write `content` with a single write call.

    A short write is reported as an I/O failure; cgroup control files
    accept a value in one write or not at all.

    Raises:
        CgroupIOError: open or write failed, or the write was short
        PermissionDeniedError: open or write was refused
    """
    path = Path(path)
    if dry_run:
        logger.action("write file", dry_run=True, path=path, data=content)
        return

    data = content.encode('utf-8')
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC | os.O_CLOEXEC, mode)
        try:
            written = os.write(fd, data)
        finally:
            os.close(fd)
    except OSError as e:
        raise normalize_os_error(e, "write file", path, missing=CgroupIOError) from e

    if written != len(data):
        raise CgroupIOError(
            f"write file: short write ({written} of {len(data)} bytes)", path=str(path)
        )

    logger.action("write file", enabled=verbose, path=path, data=content)


def read_lines(path: PathLike) -> List[str]:
    """
    Read `path` and return its non-empty lines, stripped, in file order.

    Raises:
        NotFoundError: `path` does not exist
        PermissionDeniedError: read was refused
        CgroupIOError: any other read failure
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return [line.strip() for line in f if line.strip()]
    except OSError as e:
        raise normalize_os_error(e, "read file", path) from e


def remove_directory(
    path: PathLike,
    dry_run: bool = False,
    verbose: bool = False,
) -> None:
    """
    Remove the (empty) directory `path`. Never recursive.

    Raises:
        CgroupRemovalError: the kernel refused because members or children remain
        NotFoundError: `path` does not exist
        PermissionDeniedError: removal was refused
        CgroupIOError: any other failure
    """
    path = Path(path)
    if dry_run:
        logger.action("delete cgroup directory", dry_run=True, path=path)
        return

    try:
        os.rmdir(path)
    except OSError as e:
        default = CgroupRemovalError if e.errno in _BUSY_ERRNOS else CgroupIOError
        raise normalize_os_error(e, "delete cgroup directory", path, default=default) from e

    logger.action("delete cgroup directory", enabled=verbose, path=path)


__all__ = [
    'ensure_directory',
    'write_text',
    'read_lines',
    'remove_directory',
]
