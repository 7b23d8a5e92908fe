"""
plimit - cgroup v2 Resource Limits for Processes
"""

# Installs the custom logger class before any module creates its logger
from . import logging_config

from .constants import (
    Paths,
    ControllerFiles,
    Permissions,
    Limits,
    ExitCode,
    Version,
    PlimitSettings,
)

from .exceptions import (
    PlimitError,
    ArgumentError,
    PermissionDeniedError,
    NotFoundError,
    CgroupIOError,
    CgroupRemovalError,
    ParseError,
    ConfigError,
)

from .cgroups import (
    CgroupManager,
    CgroupPaths,
    LimitSpec,
    ApplyResult,
    apply_limits,
)

from .utils.parsing import parse_byte_size

__version__ = Version.VERSION

__all__ = [
    # Constants
    'Paths',
    'ControllerFiles',
    'Permissions',
    'Limits',
    'ExitCode',
    'Version',
    'PlimitSettings',
    # Errors
    'PlimitError',
    'ArgumentError',
    'PermissionDeniedError',
    'NotFoundError',
    'CgroupIOError',
    'CgroupRemovalError',
    'ParseError',
    'ConfigError',
    # Engine
    'CgroupManager',
    'CgroupPaths',
    'LimitSpec',
    'ApplyResult',
    'apply_limits',
    'parse_byte_size',
]
