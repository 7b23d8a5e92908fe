"""
Process membership of a cgroup (`cgroup.procs`).
"""

from pathlib import Path
from typing import List, Union

from ..constants import Paths
from ..exceptions import ArgumentError
from ..logging_config import get_logger
from ..utils.fileio import read_lines
from .controllers import ActionKind, CgroupAction, write_controller

logger = get_logger(__name__)


def attach(
    cgroup_path: Union[str, Path],
    pid: int,
    dry_run: bool = False,
    verbose: bool = False,
) -> CgroupAction:
    """
    Move process `pid` into the cgroup.

    The kernel decides whether the move is legal; a refusal surfaces as
    the error raised by the write.
    """
    if pid <= 0:
        raise ArgumentError(f"pid must be a positive integer, got {pid}")

    action = write_controller(cgroup_path, Paths.PROCS_FILE, str(pid),
                              dry_run=dry_run, verbose=verbose, kind=ActionKind.ATTACH)
    if not dry_run:
        logger.action("move pid", enabled=verbose, path=cgroup_path, pid=pid)
    return action


def list_members(cgroup_path: Union[str, Path]) -> List[str]:
    """
    PIDs currently in the cgroup, one string per process, in file order.

    The kernel does not sort `cgroup.procs`; neither does this function.

    Raises:
        NotFoundError: the cgroup does not exist
    """
    return read_lines(Path(cgroup_path) / Paths.PROCS_FILE)


def clear_members(
    cgroup_path: Union[str, Path],
    dry_run: bool = False,
    verbose: bool = False,
) -> CgroupAction:
    """Truncate `cgroup.procs` by writing empty content."""
    return write_controller(cgroup_path, Paths.PROCS_FILE, "",
                            dry_run=dry_run, verbose=verbose, kind=ActionKind.CLEAR)


__all__ = [
    'attach',
    'list_members',
    'clear_members',
]
