"""
Error Handling Utilities for plimit

Provides consistent error handling across the engine and the CLI:
1. Translation of OS errors into the plimit error taxonomy
2. Detailed error logging with context
3. A single place that decides the exit code of a failed invocation

USAGE:
    from plimit.utils.error_handling import handle_error, normalize_os_error

    try:
        os.rmdir(path)
    except OSError as e:
        raise normalize_os_error(e, "remove cgroup directory", path) from e

    # Top-level handler
    try:
        manager.apply(spec)
    except PlimitError as e:
        context = handle_error(e, "apply")
        return context.exit_code
"""

import errno
import logging
import traceback
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Type

from ..constants import ExitCode
from ..exceptions import (
    ArgumentError,
    CgroupIOError,
    CgroupRemovalError,
    ConfigError,
    NotFoundError,
    ParseError,
    PermissionDeniedError,
    PlimitError,
)

logger = logging.getLogger(__name__)


class ErrorCategory(Enum):
    """Categories of errors for reporting."""
    ARGUMENT = "argument"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    IO = "io"
    CGROUP = "cgroup"
    PARSE = "parse"
    CONFIG = "configuration"
    UNKNOWN = "unknown"


_CATEGORY_BY_ERROR: Dict[Type[PlimitError], ErrorCategory] = {
    ArgumentError: ErrorCategory.ARGUMENT,
    PermissionDeniedError: ErrorCategory.PERMISSION,
    NotFoundError: ErrorCategory.NOT_FOUND,
    CgroupRemovalError: ErrorCategory.CGROUP,
    CgroupIOError: ErrorCategory.IO,
    ParseError: ErrorCategory.PARSE,
    ConfigError: ErrorCategory.CONFIG,
}


def categorize(error: Exception) -> ErrorCategory:
    """Map an exception to its reporting category."""
    # Most specific class first
    for klass in type(error).__mro__:
        if klass in _CATEGORY_BY_ERROR:
            return _CATEGORY_BY_ERROR[klass]
    return ErrorCategory.UNKNOWN


@dataclass
class ErrorContext:
    """Detailed context information for an error."""
    error: Exception
    category: ErrorCategory
    operation: str
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    stack_trace: str = ""
    additional_context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.stack_trace:
            self.stack_trace = traceback.format_exc()

    @property
    def exit_code(self) -> ExitCode:
        """Exit code the CLI returns for this error."""
        if isinstance(self.error, PlimitError):
            return self.error.exit_code
        return ExitCode.GENERIC

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            'error_type': type(self.error).__name__,
            'error_message': str(self.error),
            'category': self.category.value,
            'operation': self.operation,
            'exit_code': int(self.exit_code),
            'timestamp': self.timestamp,
            'additional_context': self.additional_context,
        }

    def format_log_message(self, include_trace: bool = False) -> str:
        """Format a detailed log message."""
        lines = [
            f"{self.operation} failed: {self.error}",
            f"  Category: {self.category.value}",
            f"  Type: {type(self.error).__name__}",
        ]

        if self.additional_context:
            lines.append("  Context:")
            for key, value in self.additional_context.items():
                lines.append(f"    {key}: {value}")

        if include_trace and self.stack_trace.strip() != 'NoneType: None':
            lines.append("  Stack Trace:")
            for line in self.stack_trace.split('\n'):
                if line.strip():
                    lines.append(f"    {line}")

        return '\n'.join(lines)


def handle_error(
    error: Exception,
    operation: str,
    additional_context: Optional[Dict[str, Any]] = None,
    include_trace: bool = False,
    log_level: int = logging.ERROR,
) -> ErrorContext:
    """
    Log an error with context and return the ErrorContext.

    Args:
        error: The exception that occurred
        operation: Name of the operation that failed
        additional_context: Additional context information
        include_trace: Append the stack trace to the log entry
        log_level: Level to log at

    Returns:
        ErrorContext with full error details
    """
    context = ErrorContext(
        error=error,
        category=categorize(error),
        operation=operation,
        additional_context=additional_context or {},
    )
    logger.log(log_level, context.format_log_message(include_trace=include_trace))
    return context


_PERMISSION_ERRNOS = frozenset({errno.EACCES, errno.EPERM, errno.EROFS})


def normalize_os_error(
    error: OSError,
    operation: str,
    path: Optional[str] = None,
    default: Type[PlimitError] = CgroupIOError,
    missing: Type[PlimitError] = NotFoundError,
) -> PlimitError:
    """
    Translate an OSError into the plimit error taxonomy.

    Permission problems become PermissionDeniedError, ENOENT becomes
    `missing`, everything else becomes `default`.
    """
    if error.errno in _PERMISSION_ERRNOS:
        error_class: Type[PlimitError] = PermissionDeniedError
    elif error.errno == errno.ENOENT:
        error_class = missing
    else:
        error_class = default
    reason = error.strerror or str(error)
    return error_class(f"{operation}: {reason}", path=str(path or error.filename or '') or None)


__all__ = [
    'ErrorCategory',
    'ErrorContext',
    'categorize',
    'handle_error',
    'normalize_os_error',
]
