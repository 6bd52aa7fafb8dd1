"""
PostgreSQL dialect policy.

Sessions get the configured search path, scripts are prefixed with a
``SET SEARCH_PATH`` line and executed by ``psql`` with the password passed
through ``PGPASSWORD``.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Any, List

from ..core.connection_string import POSTGRES_DEFAULT_PORT
from ..core.exceptions import ConnectionError, EngineError
from ..core.types import ConnectionIdentity, Credentials, Dialect
from .base import DialectPolicy, RunnerCommand, register_dialect

try:
    import psycopg2
except ImportError:
    psycopg2 = None

if TYPE_CHECKING:
    from ..core.database import Database


@register_dialect(Dialect.POSTGRES)
class PostgresPolicy(DialectPolicy):
    """PostgreSQL behavior table."""

    dialect = Dialect.POSTGRES
    default_port = POSTGRES_DEFAULT_PORT
    client = "psql"

    def connect(self, identity: ConnectionIdentity, credentials: Credentials) -> Any:
        if psycopg2 is None:
            raise EngineError(
                "psycopg2 is required for PostgreSQL support. "
                "Install with: pip install psycopg2-binary",
                dialect=str(self.dialect),
            )

        try:
            connection = psycopg2.connect(
                host=identity.host,
                port=identity.port,
                dbname=identity.database,
                user=credentials.username,
                password=credentials.password,
            )
            connection.autocommit = True
            return connection
        except psycopg2.Error as e:
            raise ConnectionError(
                f"Failed to connect to PostgreSQL database: {e}",
                connection_string=f"{identity.host}:{identity.port}/{identity.database}",
                dialect=str(self.dialect),
            ) from e

    def session_init_statements(self, database: "Database") -> List[str]:
        if not database.search_path:
            return []
        return [f"SET SEARCH_PATH={database.search_path};"]

    def prepare_script(self, content: str, database: "Database") -> str:
        if not database.search_path:
            return content
        return f"SET SEARCH_PATH={database.search_path};\n{content}"

    def runner_command(self, database: "Database", prepared_script: Path) -> RunnerCommand:
        return self.psql_command(database, "-f", str(prepared_script))

    def psql_command(self, database: "Database", *additional_args: str) -> RunnerCommand:
        """
        Build a ``psql`` invocation against the database.

        Args:
            database: Database to connect to
            *additional_args: Extra arguments appended after the connection ones

        Returns:
            Command with the password exported as PGPASSWORD. Without
            configured credentials ``-U`` and PGPASSWORD are left out so
            the caller's environment and ``.pgpass`` apply.
        """
        credentials = database.credentials
        argv = [self.client_for(database), "-h", database.host]
        if credentials.username:
            argv.extend(["-U", credentials.username])
        argv.extend(["-d", database.database, "-p", str(database.port)])
        argv.extend(additional_args)

        extra = {}
        if credentials.password:
            extra["PGPASSWORD"] = credentials.password
        return RunnerCommand(argv=argv, env=self.inherited_env(**extra))
