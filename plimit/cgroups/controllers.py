"""
Controller file writes.

The atomic unit of interaction with the kernel interface is one
(file, value) pair written into a cgroup directory. Controller activation
on a parent is the same operation aimed at `cgroup.subtree_control`.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from ..constants import Paths
from ..logging_config import get_logger
from ..utils.fileio import write_text

logger = get_logger(__name__)


class ActionKind(Enum):
    """Kinds of filesystem actions performed by the engine."""
    ENSURE_DIRECTORY = "ensure_directory"
    ENABLE_CONTROLLERS = "enable_controllers"
    WRITE = "write"
    ATTACH = "attach"
    CLEAR = "clear"
    REMOVE_DIRECTORY = "remove_directory"


@dataclass(frozen=True)
class CgroupAction:
    """One action performed (or simulated under dry-run) by the engine."""
    kind: ActionKind
    path: Path
    value: Optional[str] = None

    @property
    def file(self) -> str:
        """Name of the file or directory acted upon."""
        return self.path.name

    def to_dict(self):
        """Convert to dictionary."""
        return {
            'kind': self.kind.value,
            'path': str(self.path),
            'value': self.value,
        }


def write_controller(
    cgroup_path: Union[str, Path],
    file: str,
    value: str,
    dry_run: bool = False,
    verbose: bool = False,
    kind: ActionKind = ActionKind.WRITE,
) -> CgroupAction:
    """
    Write `value` to `{cgroup_path}/{file}`.

    Args:
        cgroup_path: Cgroup directory
        file: Controller file name (e.g. "cpu.max")
        value: Exact value in the controller's format
        dry_run: Log instead of writing
        verbose: Log the write when performed
        kind: Action kind recorded for the caller

    Returns:
        The CgroupAction describing the write
    """
    path = Path(cgroup_path) / file
    write_text(path, value, dry_run=dry_run, verbose=verbose)
    return CgroupAction(kind=kind, path=path, value=value)


def enable_controllers(
    parent_path: Union[str, Path],
    controllers: str,
    dry_run: bool = False,
    verbose: bool = False,
) -> CgroupAction:
    """
    Activate `controllers` (e.g. "+cpu +memory +io") for the children of
    `parent_path`.

    Must run before any limit file is written in a child: the kernel only
    exposes cpu.max, memory.max and io.max once the controller is enabled
    on the parent.
    """
    path = Path(parent_path) / Paths.SUBTREE_CONTROL_FILE
    if dry_run:
        logger.action("enable controllers", dry_run=True, path=path, controllers=controllers)
    write_text(path, controllers, dry_run=dry_run, verbose=False)
    if not dry_run:
        logger.action("controllers enabled", enabled=verbose, path=path, controllers=controllers)
    return CgroupAction(kind=ActionKind.ENABLE_CONTROLLERS, path=path, value=controllers)


__all__ = [
    'ActionKind',
    'CgroupAction',
    'write_controller',
    'enable_controllers',
]
