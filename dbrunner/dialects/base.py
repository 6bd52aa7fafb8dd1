"""
Dialect policy base class and registry.

Every dialect-specific decision (session setup, script rewriting, the
script-runner command line, truncate rewriting and how to open a driver
connection) lives on one policy object per dialect. Supporting a new dialect
means registering one more policy.
"""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..core.exceptions import UnsupportedDialectError
from ..core.session import Session
from ..core.types import ConnectionIdentity, Credentials, Dialect

if TYPE_CHECKING:
    from ..core.database import Database


@dataclass
class RunnerCommand:
    """Argument vector and environment for a script-runner process."""

    argv: List[str]
    env: Optional[Dict[str, str]] = None  # None inherits the current environment
    cwd: Optional[Path] = None


class DialectPolicy(ABC):
    """
    Abstract per-dialect behavior table.

    Subclasses describe how a dialect initializes sessions, prepares
    scripts for its command-line client, invokes that client and
    rewrites truncate targets.
    """

    dialect: Dialect = Dialect.UNKNOWN
    default_port: int = 0
    client: str = ""

    @abstractmethod
    def connect(self, identity: ConnectionIdentity, credentials: Credentials) -> Any:
        """
        Open a DB-API connection with the dialect's driver.

        Raises:
            EngineError: If the driver package is not installed
            ConnectionError: If the connection cannot be established
        """
        ...

    @abstractmethod
    def session_init_statements(self, database: "Database") -> List[str]:
        """Statements executed on every new session."""
        ...

    @abstractmethod
    def prepare_script(self, content: str, database: "Database") -> str:
        """Rewrite raw script text so the dialect's client accepts it."""
        ...

    @abstractmethod
    def runner_command(self, database: "Database", prepared_script: Path) -> RunnerCommand:
        """Build the command that runs a prepared script."""
        ...

    def resolve_truncate_target(self, session: Session, table_name: str) -> str:
        """Return the name to use in a truncate statement."""
        return table_name

    def truncate_statement(self, session: Session, table_name: str) -> str:
        return f"truncate table {self.resolve_truncate_target(session, table_name)}"

    def client_for(self, database: "Database") -> str:
        """Script-runner binary, honoring a configured override."""
        return database.config.client or self.client

    @staticmethod
    def inherited_env(**extra: str) -> Dict[str, str]:
        """Current environment extended with extra variables."""
        env = dict(os.environ)
        env.update(extra)
        return env


class DialectRegistry:
    """Registry of dialect policies."""

    _policies: Dict[Dialect, DialectPolicy] = {}

    @classmethod
    def register(cls, dialect: Dialect, policy_class: type) -> None:
        """
        Register a policy class.

        Args:
            dialect: Dialect the policy handles
            policy_class: Policy class to instantiate and register
        """
        cls._policies[dialect] = policy_class()

    @classmethod
    def get_policy(cls, dialect: Dialect, operation: Optional[str] = None) -> DialectPolicy:
        """
        Get the policy for a dialect.

        Args:
            dialect: Dialect to look up
            operation: Name of the operation being attempted, for the error

        Returns:
            Registered policy

        Raises:
            UnsupportedDialectError: If no policy handles the dialect
        """
        policy = cls._policies.get(dialect)
        if policy is None:
            action = f"{operation} for" if operation else "handle"
            raise UnsupportedDialectError(
                f"Can't {action} database: {dialect}",
                operation=operation,
                dialect=str(dialect),
            )
        return policy

    @classmethod
    def list_supported_dialects(cls) -> List[Dialect]:
        return list(cls._policies.keys())


def register_dialect(dialect: Dialect):
    """
    Decorator to register policy classes.

    Args:
        dialect: Dialect the decorated policy handles

    Returns:
        Decorator function
    """

    def decorator(policy_class: type) -> type:
        DialectRegistry.register(dialect, policy_class)
        return policy_class

    return decorator


def get_policy(dialect: Dialect, operation: Optional[str] = None) -> DialectPolicy:
    """Shortcut for ``DialectRegistry.get_policy``."""
    return DialectRegistry.get_policy(dialect, operation)
