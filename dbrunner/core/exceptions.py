"""
Custom exception hierarchy for dbrunner.

This module defines all custom exceptions used throughout dbrunner,
providing clear error categorization and consistent error handling for
connection, session and script-execution failures.
"""

import sys
from typing import Any, List, Optional


class DbRunnerError(Exception):
    """
    Base exception for all dbrunner errors.

    This is the root exception class that all other dbrunner-specific
    exceptions inherit from. It provides consistent error formatting
    and an exit value used by the command-line interface.
    """

    def __init__(
        self, message: str, ident: str = "dbrunner", exitval: int = 2, **kwargs: Any
    ) -> None:
        """
        Initialize dbrunner error.

        Args:
            message: Human-readable error message
            ident: Error identifier
            exitval: Exit value to use when this error causes program termination
            **kwargs: Additional error context
        """
        super().__init__(message)
        self.message = message
        self.ident = ident
        self.exitval = exitval
        self.context = kwargs

    def __str__(self) -> str:
        """Format error message for display."""
        return self.message

    def details_string(self) -> str:
        """
        Return the exception this error was raised from.

        Returns:
            Text of the chained cause, empty when there is none
        """
        cause = self.__cause__
        if cause is None:
            return ""
        return str(cause) or type(cause).__name__


class ConfigurationError(DbRunnerError):
    """
    Configuration-related errors.

    Raised when there are issues with configuration file parsing,
    invalid configuration values, or missing required configuration.
    """

    def __init__(
        self,
        message: str,
        config_file: Optional[str] = None,
        config_key: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        """
        Initialize configuration error.

        Args:
            message: Error description
            config_file: Path to problematic config file
            config_key: Specific configuration key that caused the error
            **kwargs: Additional context
        """
        super().__init__(message, ident="config", exitval=2, **kwargs)
        self.config_file = config_file
        self.config_key = config_key


class EngineError(DbRunnerError):
    """
    Database engine errors.

    Base class for all dialect-related errors including unsupported
    dialects, connection issues and statement failures.
    """

    def __init__(
        self,
        message: str,
        dialect: Optional[str] = None,
        sql_state: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        """
        Initialize engine error.

        Args:
            message: Error description
            dialect: Name of the database dialect
            sql_state: SQL state code if applicable
            **kwargs: Additional context
        """
        super().__init__(message, ident="engine", exitval=2, **kwargs)
        self.dialect = dialect
        self.sql_state = sql_state


class UnsupportedDialectError(EngineError):
    """Raised when a dialect-specific operation is attempted on an unknown dialect."""

    def __init__(
        self, message: str, operation: Optional[str] = None, **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)
        self.operation = operation


class ConnectionError(EngineError):
    """
    Database connection errors.

    Raised when unable to establish a database connection,
    including authentication failures and network issues.
    """

    def __init__(
        self, message: str, connection_string: Optional[str] = None, **kwargs: Any
    ) -> None:
        """
        Initialize connection error.

        Args:
            message: Error description
            connection_string: Sanitized connection string (no passwords)
            **kwargs: Additional context
        """
        dialect = kwargs.pop("dialect", None)
        sql_state = kwargs.pop("sql_state", None)
        DbRunnerError.__init__(self, message, ident="connection", exitval=2, **kwargs)
        self.connection_string = connection_string
        self.dialect = dialect
        self.sql_state = sql_state


class DatabaseError(EngineError):
    """Raised when a statement issued through a session fails."""

    def __init__(self, message: str, sql: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.sql = sql


class ScriptError(DbRunnerError):
    """
    Script handling errors.

    Base class for failures while preparing or running a SQL script
    through a dialect's script runner.
    """

    def __init__(
        self, message: str, script_file: Optional[str] = None, **kwargs: Any
    ) -> None:
        """
        Initialize script error.

        Args:
            message: Error description
            script_file: Path to the script being processed
            **kwargs: Additional context
        """
        super().__init__(message, ident="script", exitval=2, **kwargs)
        self.script_file = script_file


class ScriptNotFoundError(ScriptError):
    """Raised when the script to prepare does not exist."""


class ScriptExecutionError(ScriptError):
    """
    Script runner failure.

    Raised when the script runner exits with a non-zero code. The message
    is the captured stderr, or the captured stdout when stderr was empty.
    """

    def __init__(
        self,
        message: str,
        returncode: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
        **kwargs: Any,
    ) -> None:
        """
        Initialize script execution error.

        Args:
            message: Diagnostic text from the script runner
            returncode: Exit code of the script runner
            stdout: Captured standard output
            stderr: Captured standard error
            **kwargs: Additional context
        """
        super().__init__(message, **kwargs)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class ProcessSpawnError(ScriptError):
    """Raised when the script runner binary cannot be launched."""

    def __init__(
        self, message: str, command: Optional[List[str]] = None, **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)
        self.command = command


def handle_exception(exc: Exception, logger=None) -> int:
    """
    Handle exceptions and return appropriate exit codes.

    Args:
        exc: Exception to handle
        logger: Optional DbRunnerLogger used to report details

    Returns:
        Exit code for the application
    """
    if isinstance(exc, DbRunnerError):
        print(f"dbrunner: {exc}", file=sys.stderr)
        if logger is not None:
            details = exc.details_string()
            if details:
                logger.trace(details)
        return exc.exitval

    print(f"dbrunner: unexpected error: {exc}", file=sys.stderr)
    return 2

