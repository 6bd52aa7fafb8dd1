"""
Logging configuration and utilities for dbrunner.

This module provides centralized logging configuration and utilities
to ensure consistent logging behavior across the application.
"""

import logging
import sys
from datetime import datetime
from enum import IntEnum
from pathlib import Path
from typing import Any, List, Optional

from dbrunner.core.types import VerbosityLevel, sanitize_command


class LogLevel(IntEnum):
    """Custom log levels matching dbrunner verbosity."""

    TRACE = 5  # Most verbose (-vvv)
    DEBUG = 10  # Debug info (-vv)
    INFO = 20  # Normal output (-v)
    WARN = 30  # Warnings (default)
    ERROR = 40  # Errors
    FATAL = 50  # Fatal errors


class DbRunnerFormatter(logging.Formatter):
    """
    Custom formatter for dbrunner log messages.

    Plain messages by default, with optional timestamps and level
    prefixes for warnings and above.
    """

    def __init__(self, show_timestamps: bool = False, show_level: bool = False) -> None:
        """
        Initialize formatter.

        Args:
            show_timestamps: Whether to include timestamps in output
            show_level: Whether to include log level in output
        """
        self.show_timestamps = show_timestamps
        self.show_level = show_level
        super().__init__()

    def format(self, record: logging.LogRecord) -> str:
        parts = []

        if self.show_timestamps:
            timestamp = datetime.fromtimestamp(record.created).strftime(
                "%Y-%m-%d %H:%M:%S"
            )
            parts.append(f"[{timestamp}]")

        if self.show_level and record.levelno >= logging.WARNING:
            parts.append(f"{record.levelname.lower()}:")

        parts.append(record.getMessage())

        return " ".join(parts)


class ColoredFormatter(DbRunnerFormatter):
    """
    Colored formatter for terminal output.

    Adds ANSI color codes to log messages based on their level.
    """

    COLORS = {
        LogLevel.TRACE: "\033[90m",  # Dark gray
        LogLevel.DEBUG: "\033[36m",  # Cyan
        LogLevel.INFO: "\033[0m",  # Default
        LogLevel.WARN: "\033[33m",  # Yellow
        LogLevel.ERROR: "\033[31m",  # Red
        LogLevel.FATAL: "\033[91m",  # Bright red
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.use_colors = use_colors and self._supports_color()

    def _supports_color(self) -> bool:
        """Check if terminal supports colors."""
        return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)

        if self.use_colors and record.levelno in self.COLORS:
            return f"{self.COLORS[record.levelno]}{message}{self.RESET}"

        return message


class DbRunnerLogger:
    """
    Main logger class for dbrunner operations.

    Provides a centralized logging interface with verbosity control
    and consistent formatting across the application.
    """

    def __init__(self, name: str = "dbrunner", verbosity: VerbosityLevel = 0) -> None:
        """
        Initialize dbrunner logger.

        Args:
            name: Logger name
            verbosity: Verbosity level (-2 to 3)
        """
        self.logger = logging.getLogger(name)
        self.verbosity = verbosity
        self._setup_logger()

    def _setup_logger(self) -> None:
        """Set up logger configuration based on verbosity."""
        for handler in self.logger.handlers:
            handler.close()
        self.logger.handlers.clear()

        level = self._verbosity_to_level(self.verbosity)
        self.logger.setLevel(level)

        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(level)
        handler.setFormatter(ColoredFormatter(show_level=self.verbosity >= 1))
        self.logger.addHandler(handler)

        self.logger.propagate = False

    def _verbosity_to_level(self, verbosity: VerbosityLevel) -> int:
        mapping = {
            -2: LogLevel.FATAL,
            -1: LogLevel.ERROR,
            0: LogLevel.WARN,
            1: LogLevel.INFO,
            2: LogLevel.DEBUG,
            3: LogLevel.TRACE,
        }
        return mapping.get(verbosity, LogLevel.WARN)

    def set_verbosity(self, verbosity: VerbosityLevel) -> None:
        """
        Update logger verbosity.

        Args:
            verbosity: New verbosity level
        """
        self.verbosity = verbosity
        level = self._verbosity_to_level(verbosity)
        self.logger.setLevel(level)

        for handler in self.logger.handlers:
            handler.setLevel(level)

    def trace(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log trace message (most verbose)."""
        self.logger.log(LogLevel.TRACE, message, *args, **kwargs)

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.debug(message, *args, **kwargs)

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.info(message, *args, **kwargs)

    def warn(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.warning(message, *args, **kwargs)

    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.error(message, *args, **kwargs)

    def fatal(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.log(LogLevel.FATAL, message, *args, **kwargs)

    def emit(self, message: str) -> None:
        """Emit a message directly to stdout (for command output)."""
        print(message)


# Global logger instance
_global_logger: Optional[DbRunnerLogger] = None


def get_logger(name: str = "dbrunner") -> DbRunnerLogger:
    """
    Get or create global logger instance.

    Args:
        name: Logger name

    Returns:
        Global logger instance
    """
    global _global_logger
    if _global_logger is None:
        _global_logger = DbRunnerLogger(name)
    return _global_logger


def configure_logging(
    verbosity: VerbosityLevel = 0, log_file: Optional[Path] = None
) -> DbRunnerLogger:
    """
    Configure global logging settings.

    Args:
        verbosity: Verbosity level
        log_file: Optional log file path

    Returns:
        Configured logger instance
    """
    global _global_logger
    _global_logger = DbRunnerLogger("dbrunner", verbosity)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(LogLevel.TRACE)
        file_handler.setFormatter(
            DbRunnerFormatter(show_timestamps=True, show_level=True)
        )
        _global_logger.logger.addHandler(file_handler)
        # File gets everything regardless of console verbosity
        _global_logger.logger.setLevel(LogLevel.TRACE)

    return _global_logger


def log_command_execution(command: List[str], cwd: Optional[Path] = None) -> None:
    """
    Log a script-runner command with credentials masked.

    Args:
        command: Argument vector being executed
        cwd: Working directory of the process
    """
    logger = get_logger()
    logger.debug("Executing command: %s", " ".join(sanitize_command(command)))
    if cwd:
        logger.trace("Working directory: %s", cwd)
