"""
dbrunner - run SQL scripts against PostgreSQL or Oracle through one interface.

The Database facade parses a JDBC connection string, opens initialized
sessions and runs scripts with the dialect's command-line client.
"""

from dbrunner.core.config import Config, DatabaseConfig
from dbrunner.core.connection_string import (
    format_connection_string,
    parse_connection_string,
)
from dbrunner.core.database import Database
from dbrunner.core.types import ConnectionIdentity, Credentials, Dialect, ExecutionResult

__version__ = "1.0.0"

__all__ = [
    "Config",
    "ConnectionIdentity",
    "Credentials",
    "Database",
    "DatabaseConfig",
    "Dialect",
    "ExecutionResult",
    "format_connection_string",
    "parse_connection_string",
]
