"""
Database facade.

``Database`` owns a connection configuration and the identity parsed from
its JDBC connection string, and exposes session creation, table truncation
and script execution. Every dialect-specific decision is delegated to the
dialect policies.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator, Mapping, Optional, TypeVar, Union

from ..dialects import DialectPolicy, get_policy
from ..dialects.pg import PostgresPolicy
from .config import DatabaseConfig
from .connection_string import parse_connection_string
from .exceptions import UnsupportedDialectError
from .process import ProcessRunner
from .script import ScriptPreparer, TempFileProvider, TempStorage
from .session import Session
from .types import (
    ConnectionIdentity,
    Credentials,
    Dialect,
    ExecutionResult,
    is_local_host,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# (identity, credentials) -> DB-API connection
Connector = Callable[[ConnectionIdentity, Credentials], Any]


class Database:
    """
    Uniform access to a PostgreSQL or Oracle database.

    The dialect, host, port and database name are derived once from the
    configured JDBC connection string. Unrecognized connection strings
    leave the dialect UNKNOWN; dialect-specific operations then raise
    ``UnsupportedDialectError``.
    """

    def __init__(
        self,
        config: Union[DatabaseConfig, Mapping[str, Any]],
        temp_storage: Optional[TempFileProvider] = None,
        runner: Optional[ProcessRunner] = None,
        connector: Optional[Connector] = None,
    ) -> None:
        """
        Initialize database facade.

        Args:
            config: Database configuration or a mapping with
                ``jdbcConnectionString``, ``username``, ``password`` and ``jdbcDriver``
            temp_storage: Provider for prepared script files
            runner: Process runner for script execution
            connector: Callable opening a DB-API connection; the dialect's
                driver is used when omitted
        """
        if not isinstance(config, DatabaseConfig):
            config = DatabaseConfig.from_mapping(config)
        self.config = config
        self.identity = parse_connection_string(config.jdbc_connection_string)
        self.schema: Optional[str] = None
        self.search_path: Optional[str] = None
        self.temp_storage = temp_storage or TempStorage()
        self.runner = runner or ProcessRunner()
        self.connector = connector

    @property
    def dialect(self) -> Dialect:
        return self.identity.dialect

    @property
    def host(self) -> Optional[str]:
        return self.identity.host

    @property
    def port(self) -> Optional[int]:
        return self.identity.port

    @property
    def database(self) -> Optional[str]:
        return self.identity.database

    @property
    def credentials(self) -> Credentials:
        return self.config.credentials

    def policy(self, operation: Optional[str] = None) -> DialectPolicy:
        """
        Get the dialect policy for this database.

        Raises:
            UnsupportedDialectError: If the dialect is unknown
        """
        return get_policy(self.dialect, operation)

    def with_credentials(self, username: Optional[str], password: Optional[str]) -> "Database":
        """
        Copy of this database that logs in with other credentials.

        Schema and search path are carried over; this instance is unchanged.

        Args:
            username: User to log in as
            password: Password for that user

        Returns:
            New Database instance
        """
        database = Database(
            self.config.with_credentials(username, password),
            temp_storage=self.temp_storage,
            runner=self.runner,
            connector=self.connector,
        )
        database.schema = self.schema
        database.search_path = self.search_path
        return database

    def new_session(self) -> Session:
        """
        Open a session with the dialect's initialization applied.

        The caller owns the returned session and must close it.

        Raises:
            UnsupportedDialectError: If the dialect is unknown
            ConnectionError: If the connection cannot be established
        """
        policy = self.policy("open a session")
        connect = self.connector or policy.connect
        session = Session(connect(self.identity, self.credentials), dialect=str(self.dialect))
        try:
            for statement in policy.session_init_statements(self):
                session.execute(statement)
        except Exception:
            session.close()
            raise
        logger.debug("Opened %s session on %s:%s", self.dialect, self.host, self.port)
        return session

    @contextmanager
    def scoped_session(self) -> Iterator[Session]:
        """
        Session as context manager, closed exactly once on every exit path.

        Yields:
            Initialized session
        """
        session = self.new_session()
        try:
            yield session
        finally:
            session.close()

    def with_session(self, block: Callable[[Session], T]) -> T:
        """
        Run a callable with a scoped session.

        Args:
            block: Callable receiving the session

        Returns:
            Whatever the callable returns
        """
        with self.scoped_session() as session:
            return block(session)

    def truncate_table(self, session: Session, table_name: str) -> None:
        """
        Truncate a table, resolving dialect-specific naming first.

        Args:
            session: Open session on this database
            table_name: Table to truncate

        Raises:
            UnsupportedDialectError: If the dialect is unknown
        """
        policy = self.policy("truncate table")
        session.execute(policy.truncate_statement(session, table_name))

    def run_script(
        self, script: Union[str, Path], show_output: bool = False
    ) -> ExecutionResult:
        """
        Run a SQL script with the dialect's command-line client.

        The script is prepared into a temporary copy, run from the
        script's own directory, and the copy is removed afterwards.

        Args:
            script: Path to the SQL script
            show_output: Stream the client's output live as well as capturing it

        Returns:
            Result of the successful run

        Raises:
            UnsupportedDialectError: If the dialect is unknown
            ScriptExecutionError: If the client exits with a non-zero code
            ProcessSpawnError: If the client cannot be launched
        """
        policy = self.policy("run script")
        script = Path(script)
        prepared = ScriptPreparer(policy, self.temp_storage).prepare(script, self)
        try:
            command = policy.runner_command(self, prepared)
            return self.runner.run(
                command.argv,
                cwd=command.cwd or script.resolve().parent,
                env=command.env,
                show_output=show_output,
            )
        finally:
            prepared.unlink(missing_ok=True)

    def run_psql_command(
        self,
        *additional_args: str,
        cwd: Optional[Union[str, Path]] = None,
        show_output: bool = False,
    ) -> ExecutionResult:
        """
        Run ``psql`` against this database with extra arguments.

        Raises:
            UnsupportedDialectError: If this is not a PostgreSQL database
        """
        policy = self.policy("run psql")
        if not isinstance(policy, PostgresPolicy):
            raise UnsupportedDialectError(
                f"Can't run psql for database: {self.dialect}",
                operation="run psql",
                dialect=str(self.dialect),
            )
        command = policy.psql_command(self, *additional_args)
        return self.runner.run(
            command.argv, cwd=cwd, env=command.env, show_output=show_output
        )

    def is_local(self) -> bool:
        """Whether the database host is this machine."""
        return is_local_host(self.host)

    def __repr__(self) -> str:
        return (
            f"Database(dialect={self.dialect}, host={self.host!r}, port={self.port!r}, "
            f"database={self.database!r}, schema={self.schema!r}, "
            f"search_path={self.search_path!r})"
        )
