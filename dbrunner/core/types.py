"""
Type system for dbrunner.

This module defines the dialect enumeration, the value objects shared by
the parser, the dialect policies and the database facade, and small helpers
for keeping passwords out of logs.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Literal, Optional

# Verbosity levels
VerbosityLevel = Literal[-2, -1, 0, 1, 2, 3]

LOCAL_HOSTS = ("localhost", "127.0.0.1")


class Dialect(Enum):
    """Database dialects dbrunner knows how to talk to."""

    UNKNOWN = "unknown"
    POSTGRES = "postgres"
    ORACLE = "oracle"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ConnectionIdentity:
    """Resolved location of a database, derived from a connection string."""

    dialect: Dialect = Dialect.UNKNOWN
    host: Optional[str] = None
    port: Optional[int] = None
    database: Optional[str] = None

    @property
    def is_known(self) -> bool:
        """Whether the connection string was recognized."""
        return self.dialect is not Dialect.UNKNOWN


@dataclass(frozen=True)
class Credentials:
    """Username and password used to log in."""

    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)

    def __repr__(self) -> str:
        masked = "***" if self.password else None
        return f"Credentials(username={self.username!r}, password={masked!r})"


@dataclass
class ExecutionResult:
    """Outcome of one script-runner process."""

    returncode: int
    stdout: str = ""
    stderr: str = ""
    command: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


def is_local_host(host: Optional[str]) -> bool:
    """Check whether a host name points at the local machine."""
    return host in LOCAL_HOSTS


def sanitize_connection_string(connection_string: str) -> str:
    """
    Sanitize connection string for logging (remove passwords).

    Args:
        connection_string: Database connection string

    Returns:
        Sanitized connection string
    """
    patterns = [
        (r"(password=)[^;&]+", r"\1***"),
        (r"(pwd=)[^;&]+", r"\1***"),
        (r"(://[^:/@]+:)[^@]+@", r"\1***@"),
        # sqlplus-style user/password@host, up to the last @ so a password
        # holding @ stays masked
        (r"^([^/@\s]+/).+@", r"\1***@"),
    ]

    sanitized = connection_string
    for pattern, replacement in patterns:
        sanitized = re.sub(pattern, replacement, sanitized, flags=re.IGNORECASE)

    return sanitized


def sanitize_command(command: List[str]) -> List[str]:
    """
    Mask credentials embedded in a script-runner argument vector.

    Args:
        command: Argument vector

    Returns:
        Copy of the argument vector safe for logging
    """
    return [sanitize_connection_string(str(arg)) for arg in command]
