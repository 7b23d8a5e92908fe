"""
Logging Configuration for plimit.

Provides centralized logging configuration with a verbose mode toggle,
dry-run action reporting, and structured log formatting.

Usage:
    from plimit.logging_config import setup_logging, get_logger

    # Setup at CLI startup
    setup_logging(verbose=True)

    logger = get_logger('plimit.cgroups.manager')
    logger.action("write file", dry_run=True, path="/sys/fs/cgroup/x/cpu.max")
"""

import json
import logging
import os
import sys
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional


# =============================================================================
# LOGGING LEVELS
# =============================================================================

class LogLevel(Enum):
    """Extended logging levels for plimit."""
    DEBUG = 10      # Debug information
    VERBOSE = 15    # Per-action progress (--verbose)
    INFO = 20       # Standard information
    NOTICE = 25     # Dry-run actions and notable events
    WARNING = 30    # Warning conditions
    ERROR = 40      # Error conditions
    CRITICAL = 50   # Critical conditions


logging.addLevelName(LogLevel.VERBOSE.value, 'VERBOSE')
logging.addLevelName(LogLevel.NOTICE.value, 'NOTICE')


# =============================================================================
# CONFIGURATION STATE
# =============================================================================

@dataclass
class LoggingState:
    """Logging configuration state."""
    verbose: bool = False
    log_file: Optional[str] = None
    console_enabled: bool = True
    json_format: bool = False
    initialized: bool = False
    _lock: threading.RLock = field(default_factory=threading.RLock)


_state = LoggingState()


# =============================================================================
# CUSTOM FORMATTER
# =============================================================================

class PlimitFormatter(logging.Formatter):
    """Formatter with color support and structured output."""

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'VERBOSE': '\033[94m',    # Light blue
        'INFO': '\033[32m',       # Green
        'NOTICE': '\033[33m',     # Yellow
        'WARNING': '\033[33;1m',  # Bold yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[31;1m', # Bold red
        'RESET': '\033[0m',
    }

    def __init__(self, use_colors: bool = True, json_format: bool = False):
        self.use_colors = use_colors and sys.stdout.isatty()
        self.json_format = json_format
        super().__init__()

    def format(self, record: logging.LogRecord) -> str:
        if self.json_format:
            return self._format_json(record)
        return self._format_text(record)

    def _format_text(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S.%f')[:-3]
        level_name = record.levelname

        if self.use_colors:
            color = self.COLORS.get(level_name, '')
            reset = self.COLORS['RESET']
            level_str = f"{color}{level_name:8}{reset}"
        else:
            level_str = f"{level_name:8}"

        component = self._extract_component(record.name)
        component_str = f"[{component}]" if component else ""

        msg = record.getMessage()

        extra_str = ""
        extra_data = getattr(record, 'extra_data', None)
        if extra_data:
            extra_items = [f"{k.upper()}: '{v}'" for k, v in extra_data.items()]
            extra_str = f" | {' | '.join(extra_items)}"

        text = f"{timestamp} {level_str} {component_str:10} {msg}{extra_str}"
        if record.exc_info:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return text

    def _format_json(self, record: logging.LogRecord) -> str:
        data = {
            'timestamp': datetime.now().isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'component': self._extract_component(record.name),
        }

        extra_data = getattr(record, 'extra_data', None)
        if extra_data:
            data['extra'] = extra_data

        if record.exc_info:
            data['exception'] = self.formatException(record.exc_info)

        return json.dumps(data, default=str)

    def _extract_component(self, logger_name: str) -> str:
        """Extract component from logger name."""
        parts = logger_name.split('.')
        if len(parts) >= 2:
            # plimit.cgroups.manager -> cgroups
            return parts[1] if parts[0] == 'plimit' else parts[0]
        return parts[0] if parts else 'core'


# =============================================================================
# CUSTOM LOGGER CLASS
# =============================================================================

class PlimitLogger(logging.Logger):
    """Logger with verbose/notice levels and action reporting."""

    def verbose(self, msg: str, *args, **kwargs):
        """Log at VERBOSE level."""
        if self.isEnabledFor(LogLevel.VERBOSE.value):
            self._log(LogLevel.VERBOSE.value, msg, args, **kwargs)

    def notice(self, msg: str, *args, **kwargs):
        """Log at NOTICE level."""
        if self.isEnabledFor(LogLevel.NOTICE.value):
            self._log(LogLevel.NOTICE.value, msg, args, **kwargs)

    def log_with_data(self, level: int, msg: str, data: Dict[str, Any], **kwargs):
        """Log with structured extra data."""
        extra = kwargs.get('extra', {})
        extra['extra_data'] = data
        kwargs['extra'] = extra
        if self.isEnabledFor(level):
            self._log(level, msg, (), **kwargs)

    def action(self, action: str, dry_run: bool = False, enabled: bool = True, **data):
        """
        Report a filesystem action.

        Dry-run actions are always reported at NOTICE so the simulated
        sequence is visible. Performed actions are reported at VERBOSE
        when `enabled` (the request's verbose flag) is set.
        """
        if dry_run:
            self.log_with_data(LogLevel.NOTICE.value, f"[dry-run] ACTION: {action}", data)
        elif enabled:
            self.log_with_data(LogLevel.VERBOSE.value, f"ACTION: {action}", data)


logging.setLoggerClass(PlimitLogger)


# =============================================================================
# SETUP AND CONFIGURATION
# =============================================================================

def setup_logging(
    verbose: bool = False,
    log_file: Optional[str] = None,
    console: bool = True,
    json_format: bool = False,
    use_colors: bool = True,
) -> None:
    """
    Initialize the logging system.

    Args:
        verbose: Enable verbose logging (VERBOSE level)
        log_file: Optional file path for log output
        console: Enable console output
        json_format: Use JSON format for logs
        use_colors: Colorize console output when attached to a TTY
    """
    with _state._lock:
        _state.verbose = verbose
        _state.log_file = log_file
        _state.console_enabled = console
        _state.json_format = json_format

        base_level = LogLevel.VERBOSE.value if verbose else logging.INFO

        root = logging.getLogger()
        root.setLevel(base_level)

        for handler in root.handlers[:]:
            root.removeHandler(handler)

        if console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(base_level)
            console_handler.setFormatter(PlimitFormatter(
                use_colors=use_colors,
                json_format=json_format,
            ))
            root.addHandler(console_handler)

        if log_file:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(base_level)
            file_handler.setFormatter(PlimitFormatter(
                use_colors=False,
                json_format=json_format,
            ))
            root.addHandler(file_handler)

        _state.initialized = True


def get_logger(name: str) -> PlimitLogger:
    """
    Get a plimit logger.

    Args:
        name: Logger name (e.g., 'plimit.cgroups.manager')

    Returns:
        PlimitLogger instance
    """
    logger = logging.getLogger(name)
    if not isinstance(logger, PlimitLogger):
        # Created before this module installed the logger class
        logger.__class__ = PlimitLogger
    return logger


def set_verbose(enabled: bool) -> None:
    """Toggle verbose mode at runtime."""
    with _state._lock:
        _state.verbose = enabled
        level = LogLevel.VERBOSE.value if enabled else logging.INFO

        root = logging.getLogger()
        root.setLevel(level)

        for handler in root.handlers:
            handler.setLevel(level)


def is_verbose() -> bool:
    """Check if verbose mode is enabled."""
    return _state.verbose


def get_logging_state() -> Dict[str, Any]:
    """Get current logging configuration state."""
    with _state._lock:
        return {
            'verbose': _state.verbose,
            'log_file': _state.log_file,
            'console_enabled': _state.console_enabled,
            'json_format': _state.json_format,
            'initialized': _state.initialized,
        }


# =============================================================================
# ENVIRONMENT VARIABLE CONFIGURATION
# =============================================================================

def _env_flag(name: str) -> bool:
    return os.environ.get(name, '').lower() in ('1', 'true', 'yes')


def configure_from_environment(
    verbose: bool = False,
    log_file: Optional[str] = None,
    json_format: bool = False,
    use_colors: bool = True,
) -> None:
    """Configure logging from PLIMIT_* environment variables and explicit flags."""
    setup_logging(
        verbose=verbose or _env_flag('PLIMIT_VERBOSE'),
        log_file=log_file or os.environ.get('PLIMIT_LOG_FILE'),
        console=not _env_flag('PLIMIT_LOG_NO_CONSOLE'),
        json_format=json_format or _env_flag('PLIMIT_LOG_JSON'),
        use_colors=use_colors,
    )


__all__ = [
    'LogLevel',
    'setup_logging',
    'configure_from_environment',
    'get_logger',
    'set_verbose',
    'is_verbose',
    'get_logging_state',
    'PlimitLogger',
    'PlimitFormatter',
]
