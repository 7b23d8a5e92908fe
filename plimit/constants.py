"""
Centralized Constants Module for plimit.

Consolidates the paths, permissions, kernel limits and exit codes used by the
cgroup engine and the CLI so that they can be audited in one place and
overridden from the environment where that makes sense.

Usage:
    from plimit.constants import Paths, Permissions, Limits, ExitCode

    cgroup_root = Paths.CGROUP_ROOT
    os.mkdir(path, Permissions.CGROUP_DIR)
"""

import logging
import os
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)


# =============================================================================
# ENVIRONMENT VARIABLE OVERRIDE UTILITIES
# =============================================================================

T = TypeVar('T')

ENV_PREFIX = "PLIMIT_"


def _env_override(
    env_var: str,
    default: T,
    converter: Callable[[str], T] = str,
    validator: Optional[Callable[[T], bool]] = None,
) -> T:
    """Get a configuration value with environment variable override.

    Args:
        env_var: Environment variable name (will be prefixed with PLIMIT_)
        default: Default value if env var not set
        converter: Function to convert string to target type
        validator: Optional validation function

    Returns:
        Configured value (from env var if valid, otherwise default)
    """
    full_env_var = f"{ENV_PREFIX}{env_var}"
    env_value = os.environ.get(full_env_var)

    if env_value is None:
        return default

    try:
        converted = converter(env_value)

        if validator is not None and not validator(converted):
            logger.warning(f"{full_env_var}={env_value} failed validation, using default")
            return default

        logger.debug(f"Using {full_env_var}={converted} (override)")
        return converted

    except (ValueError, TypeError) as e:
        logger.warning(f"Invalid value for {full_env_var}: {e}, using default")
        return default


def _env_override_list(
    env_var: str,
    default: Tuple[str, ...],
    separator: str = ",",
    validator: Optional[Callable[[str], bool]] = None,
) -> Tuple[str, ...]:
    """Get a list configuration value with environment variable override.

    Args:
        env_var: Environment variable name (will be prefixed with PLIMIT_)
        default: Default tuple of values
        separator: Separator for parsing list values
        validator: Optional validation function for each item

    Returns:
        Configured tuple (from env var if valid, otherwise default)
    """
    full_env_var = f"{ENV_PREFIX}{env_var}"
    env_value = os.environ.get(full_env_var)

    if env_value is None:
        return default

    items = tuple(item.strip() for item in env_value.split(separator) if item.strip())

    if not items:
        logger.warning(f"Empty list for {full_env_var}, using default")
        return default

    if validator is not None:
        invalid_items = [item for item in items if not validator(item)]
        if invalid_items:
            logger.warning(f"Invalid items in {full_env_var}: {invalid_items}, using default")
            return default

    logger.debug(f"Using {full_env_var}={items} (override)")
    return items


def _is_controller_name(name: str) -> bool:
    """Controller names are short lowercase identifiers (cpu, memory, io, pids)."""
    return name.isascii() and name.isalpha() and name.islower()


# =============================================================================
# PATHS
# =============================================================================

@dataclass(frozen=True)
class Paths:
    """Filesystem locations used by the engine."""
    CGROUP_ROOT: str = "/sys/fs/cgroup"
    CONTROLLERS_FILE: str = "cgroup.controllers"
    SUBTREE_CONTROL_FILE: str = "cgroup.subtree_control"
    PROCS_FILE: str = "cgroup.procs"

    # Collection that groups cgroup names given without a '/'
    DEFAULT_PARENT: str = "plimit"

    DEFAULT_CONFIG: str = "/etc/plimit/profiles.yaml"


@dataclass(frozen=True)
class ControllerFiles:
    """Limit files written inside a cgroup directory."""
    CPU_MAX: str = "cpu.max"
    MEMORY_MAX: str = "memory.max"
    IO_MAX: str = "io.max"


# Controllers enabled on the parent when --force is given
DEFAULT_CONTROLLERS: Tuple[str, ...] = ("cpu", "memory", "io")


# =============================================================================
# PERMISSIONS
# =============================================================================

class Permissions(IntEnum):
    """File and directory modes."""
    CGROUP_DIR = 0o755
    CONTROL_FILE = 0o644


# =============================================================================
# LIMITS
# =============================================================================

@dataclass(frozen=True)
class Limits:
    """Kernel and format limits."""
    PATH_MAX: int = 4096
    NAME_MAX: int = 255

    CPU_PERIOD_US: int = 100000
    CPU_PERCENT_MIN: int = 1
    CPU_PERCENT_MAX: int = 100

    # Largest value representable by the kernel's signed 64-bit counters
    BYTES_MAX: int = 2 ** 63 - 1


# =============================================================================
# EXIT CODES
# =============================================================================

class ExitCode(IntEnum):
    """Process exit codes returned by the CLI."""
    OK = 0
    GENERIC = 1
    ARG = 2
    PERM = 3
    NOTFOUND = 4
    EXISTS = 5
    IO = 6
    PARSE = 8
    CGROUP = 9


# =============================================================================
# VERSION
# =============================================================================

class Version:
    """Version information."""
    VERSION = "1.0.0"
    NAME = "plimit"


# =============================================================================
# RUNTIME SETTINGS
# =============================================================================

@dataclass(frozen=True)
class PlimitSettings:
    """
    Engine settings resolved once per invocation.

    Values come from the defaults above, then environment variables, then
    whatever the caller passes explicitly.
    """
    cgroup_root: str = Paths.CGROUP_ROOT
    default_parent: str = Paths.DEFAULT_PARENT
    controllers: Tuple[str, ...] = DEFAULT_CONTROLLERS
    dir_mode: int = int(Permissions.CGROUP_DIR)

    @classmethod
    def from_environment(cls, **overrides) -> 'PlimitSettings':
        """Build settings from PLIMIT_* environment variables."""
        values = {
            'cgroup_root': _env_override(
                'CGROUP_ROOT', Paths.CGROUP_ROOT,
                validator=lambda p: os.path.isabs(p),
            ),
            'default_parent': _env_override(
                'DEFAULT_PARENT', Paths.DEFAULT_PARENT,
                validator=lambda p: bool(p) and '/' not in p and p not in ('.', '..'),
            ),
            'controllers': _env_override_list(
                'CONTROLLERS', DEFAULT_CONTROLLERS,
                separator=',',
                validator=_is_controller_name,
            ),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @property
    def controller_list(self) -> str:
        """Activation string written to cgroup.subtree_control."""
        return ' '.join(f'+{c}' for c in self.controllers)


__all__ = [
    'Paths',
    'ControllerFiles',
    'DEFAULT_CONTROLLERS',
    'Permissions',
    'Limits',
    'ExitCode',
    'Version',
    'PlimitSettings',
]
