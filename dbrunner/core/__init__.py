"""
Core functionality for dbrunner.

This package contains connection string parsing, configuration, sessions,
script preparation, process execution and the Database facade.
"""

from dbrunner.core.exceptions import (
    ConfigurationError,
    ConnectionError,
    DatabaseError,
    DbRunnerError,
    EngineError,
    ProcessSpawnError,
    ScriptError,
    ScriptExecutionError,
    ScriptNotFoundError,
    UnsupportedDialectError,
)

__all__ = [
    "DbRunnerError",
    "ConfigurationError",
    "EngineError",
    "UnsupportedDialectError",
    "ConnectionError",
    "DatabaseError",
    "ScriptError",
    "ScriptNotFoundError",
    "ScriptExecutionError",
    "ProcessSpawnError",
]
