"""
Utility modules for plimit.

Provides common utilities including:
- Error handling and OS error normalization
- Directory and file primitives with dry-run support
- Numeric literal parsing
"""

from .error_handling import (
    ErrorCategory,
    ErrorContext,
    categorize,
    handle_error,
    normalize_os_error,
)
from .fileio import (
    ensure_directory,
    write_text,
    read_lines,
    remove_directory,
)
from .parsing import (
    parse_byte_size,
    parse_integer,
)

__all__ = [
    # Error handling
    'ErrorCategory',
    'ErrorContext',
    'categorize',
    'handle_error',
    'normalize_os_error',
    # File primitives
    'ensure_directory',
    'write_text',
    'read_lines',
    'remove_directory',
    # Parsing
    'parse_byte_size',
    'parse_integer',
]
