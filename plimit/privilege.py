"""
Privilege and platform checks.

plimit writes into the kernel's cgroup hierarchy, which requires root or
CAP_SYS_ADMIN in the effective capability set, and a mounted cgroup v2
unified hierarchy.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from .constants import Paths

logger = logging.getLogger(__name__)

# Bit number of CAP_SYS_ADMIN in the capability sets (linux/capability.h)
CAP_SYS_ADMIN = 21

PROC_STATUS = Path('/proc/self/status')


def get_effective_uid() -> int:
    """Get effective user ID."""
    return os.geteuid()


def get_effective_capabilities(status_path: Path = PROC_STATUS) -> Optional[int]:
    """
    Read the effective capability mask of this process.

    Returns:
        CapEff as an integer, or None if it cannot be determined
    """
    try:
        with open(status_path, 'r') as f:
            for line in f:
                if line.startswith('CapEff:'):
                    return int(line.split(':', 1)[1].strip(), 16)
    except (OSError, ValueError) as e:
        logger.debug(f"Could not read capabilities from {status_path}: {e}")
    return None


def has_capability(cap: int, status_path: Path = PROC_STATUS) -> bool:
    """Check whether capability bit `cap` is in the effective set."""
    caps = get_effective_capabilities(status_path)
    if caps is None:
        return False
    return bool(caps & (1 << cap))


def is_privileged() -> bool:
    """Check for root or CAP_SYS_ADMIN."""
    return get_effective_uid() == 0 or has_capability(CAP_SYS_ADMIN)


def has_cgroup_v2(root: Union[str, Path] = Paths.CGROUP_ROOT) -> bool:
    """Check for the unified hierarchy's root controllers file."""
    return (Path(root) / Paths.CONTROLLERS_FILE).exists()


__all__ = [
    'CAP_SYS_ADMIN',
    'get_effective_uid',
    'get_effective_capabilities',
    'has_capability',
    'is_privileged',
    'has_cgroup_v2',
]
