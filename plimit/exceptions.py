"""
Exception hierarchy for plimit.

Every failure the engine can report is a PlimitError subclass carrying the
exit code the CLI returns for it. The engine raises, the CLI catches once.
"""

from typing import Optional

from .constants import ExitCode


class PlimitError(Exception):
    """Base error for all plimit failures."""

    exit_code: ExitCode = ExitCode.GENERIC
    category: str = "generic"

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} (path: {self.path})"
        return self.message


class ArgumentError(PlimitError):
    """Malformed or contradictory request."""
    exit_code = ExitCode.ARG
    category = "argument"


class PermissionDeniedError(PlimitError):
    """Caller is not privileged, or the filesystem refused access."""
    exit_code = ExitCode.PERM
    category = "permission"


class NotFoundError(PlimitError):
    """cgroup v2 missing, cgroup absent, or no such process."""
    exit_code = ExitCode.NOTFOUND
    category = "not_found"


class CgroupIOError(PlimitError):
    """Open, write or remove failure not explained by the above."""
    exit_code = ExitCode.IO
    category = "io"


class CgroupRemovalError(CgroupIOError):
    """The kernel refused to remove a cgroup that still has members or children."""
    exit_code = ExitCode.CGROUP
    category = "cgroup"


class ParseError(PlimitError):
    """Malformed numeric input."""
    exit_code = ExitCode.PARSE
    category = "parse"


class ConfigError(PlimitError):
    """Unreadable or malformed profile configuration."""
    exit_code = ExitCode.ARG
    category = "configuration"


__all__ = [
    'PlimitError',
    'ArgumentError',
    'PermissionDeniedError',
    'NotFoundError',
    'CgroupIOError',
    'CgroupRemovalError',
    'ParseError',
    'ConfigError',
]
