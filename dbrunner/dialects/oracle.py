"""
Oracle dialect policy.

Sessions get a long DDL lock timeout and the cartesian-join optimizer
disabled. Scripts are re-emitted block by block with ``/`` terminators and
an exit trailer so ``sqlplus`` reports failures through its exit code.
"""

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any, List, Pattern

from ..core.connection_string import ORACLE_DEFAULT_PORT
from ..core.exceptions import ConfigurationError, ConnectionError, EngineError
from ..core.session import Session
from ..core.types import ConnectionIdentity, Credentials, Dialect
from .base import DialectPolicy, RunnerCommand, register_dialect

try:
    import cx_Oracle
except ImportError:
    cx_Oracle = None

if TYPE_CHECKING:
    from ..core.database import Database

logger = logging.getLogger(__name__)

# A line holding nothing but the SQL*Plus block terminator
TERMINATOR_PATTERN: Pattern[str] = re.compile(r"^[ \t]*/[ \t]*\r?$", re.MULTILINE)

TERMINATOR = "/"
EXIT_TRAILER = "exit SQL.SQLCODE;"

SYNONYM_QUERY = (
    "select table_owner || '.' || table_name from user_synonyms "
    "where synonym_name = :name"
)


def split_statements(content: str) -> List[str]:
    """
    Split script text into blocks on terminator lines.

    Blank blocks are dropped; a bare ``/`` would re-run the previous
    buffer in SQL*Plus.

    Args:
        content: Raw script text

    Returns:
        Non-blank blocks without their terminators
    """
    blocks = []
    for segment in TERMINATOR_PATTERN.split(content):
        if segment.strip():
            blocks.append(segment.lstrip("\r\n").rstrip())
    return blocks


@register_dialect(Dialect.ORACLE)
class OraclePolicy(DialectPolicy):
    """Oracle behavior table."""

    dialect = Dialect.ORACLE
    default_port = ORACLE_DEFAULT_PORT
    client = "sqlplus"

    def connect(self, identity: ConnectionIdentity, credentials: Credentials) -> Any:
        if cx_Oracle is None:
            raise EngineError(
                "cx_Oracle package is required for Oracle support. "
                "Install it with: pip install cx_Oracle",
                dialect=str(self.dialect),
            )

        try:
            dsn = cx_Oracle.makedsn(
                identity.host, identity.port, service_name=identity.database
            )
            connection = cx_Oracle.connect(
                user=credentials.username, password=credentials.password, dsn=dsn
            )
            connection.autocommit = True
            return connection
        except cx_Oracle.DatabaseError as e:
            raise ConnectionError(
                f"Failed to connect to Oracle database: {e}",
                connection_string=f"{identity.host}:{identity.port}/{identity.database}",
                dialect=str(self.dialect),
            ) from e

    def session_init_statements(self, database: "Database") -> List[str]:
        return [
            "ALTER SESSION SET DDL_LOCK_TIMEOUT=1000000",
            'ALTER SESSION SET "_optimizer_cartesian_enabled"=FALSE',
        ]

    def prepare_script(self, content: str, database: "Database") -> str:
        lines = []
        if database.schema:
            lines.append(f"ALTER SESSION SET CURRENT_SCHEMA={database.schema};")
            lines.append(TERMINATOR)

        for block in split_statements(content):
            lines.append(block)
            lines.append(TERMINATOR)

        lines.append(EXIT_TRAILER)
        return "\n".join(lines) + "\n"

    def runner_command(self, database: "Database", prepared_script: Path) -> RunnerCommand:
        credentials = database.credentials
        if not credentials.username:
            raise ConfigurationError(
                "A username is required to run scripts with sqlplus",
                config_key="username",
            )
        # Quoted so '@' and '/' in the password don't split the logon
        user = credentials.username
        if credentials.password:
            user = f'{user}/"{credentials.password}"'
        logon = f"{user}@{database.host}:{database.port}/{database.database}"
        return RunnerCommand(
            argv=[self.client_for(database), "-l", logon, f"@{prepared_script}"]
        )

    def resolve_truncate_target(self, session: Session, table_name: str) -> str:
        table_name = table_name.upper()
        row = session.first_row(SYNONYM_QUERY, {"name": table_name})
        if row:
            logger.debug("Resolved synonym %s to %s", table_name, row[0])
            return row[0]
        return table_name
