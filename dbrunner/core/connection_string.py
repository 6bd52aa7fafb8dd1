"""
JDBC connection string parsing.

Recognizes the PostgreSQL and Oracle thin-driver URL forms and extracts the
host, port and database from them. Anything else is accepted silently and
yields an identity whose dialect is ``Dialect.UNKNOWN``.
"""

import logging
import re
from typing import Optional, Pattern

from .types import ConnectionIdentity, Dialect

logger = logging.getLogger(__name__)

POSTGRES_PREFIX = "jdbc:postgresql:"
ORACLE_PREFIX = "jdbc:oracle:thin:@"

DEFAULT_HOST = "localhost"
POSTGRES_DEFAULT_PORT = 5432
ORACLE_DEFAULT_PORT = 1521

_HOST = r"(?P<host>[\w.-]+)"

POSTGRES_PATTERN: Pattern[str] = re.compile(
    r"^jdbc:postgresql:(?://" + _HOST + r"(?::(?P<port>\d+))?/)?(?P<database>\w+)(?:\?.*)?$"
)

# host:port:SID or host:port/service
ORACLE_SID_PATTERN: Pattern[str] = re.compile(
    r"^jdbc:oracle:thin:@" + _HOST + r"?(?::(?P<port>\d+))?[:/](?P<database>[\w.]+)$"
)

# EZCONNECT: //host:port/service
ORACLE_SERVICE_PATTERN: Pattern[str] = re.compile(
    r"^jdbc:oracle:thin:@//" + _HOST + r"?(?::(?P<port>\d+))?/(?P<database>[\w.]+)$"
)

ORACLE_PATTERNS = (ORACLE_SID_PATTERN, ORACLE_SERVICE_PATTERN)


def parse_connection_string(connection_string: Optional[str]) -> ConnectionIdentity:
    """
    Parse a JDBC connection string into a connection identity.

    PostgreSQL URLs are only considered when the string starts with
    ``jdbc:postgresql:``; any other string is tried against the Oracle
    forms in order and the first match wins.

    Args:
        connection_string: JDBC-style connection string

    Returns:
        Parsed identity; dialect is UNKNOWN when nothing matched
    """
    if not connection_string:
        return ConnectionIdentity()

    if connection_string.startswith(POSTGRES_PREFIX):
        match = POSTGRES_PATTERN.match(connection_string)
        if match:
            return _identity_from_match(match, Dialect.POSTGRES, POSTGRES_DEFAULT_PORT)
    else:
        for pattern in ORACLE_PATTERNS:
            match = pattern.match(connection_string)
            if match:
                return _identity_from_match(match, Dialect.ORACLE, ORACLE_DEFAULT_PORT)

    logger.debug("Unrecognized connection string, dialect left unknown")
    return ConnectionIdentity()


def _identity_from_match(
    match: "re.Match[str]", dialect: Dialect, default_port: int
) -> ConnectionIdentity:
    port = match.group("port")
    return ConnectionIdentity(
        dialect=dialect,
        host=match.group("host") or DEFAULT_HOST,
        port=int(port) if port else default_port,
        database=match.group("database"),
    )


def format_connection_string(identity: ConnectionIdentity) -> Optional[str]:
    """
    Build a canonical connection string for an identity.

    Parsing the returned string yields the same identity.

    Args:
        identity: Identity to format

    Returns:
        Connection string, or None for an unknown dialect
    """
    if identity.dialect is Dialect.POSTGRES:
        return f"{POSTGRES_PREFIX}//{identity.host}:{identity.port}/{identity.database}"
    if identity.dialect is Dialect.ORACLE:
        return f"{ORACLE_PREFIX}{identity.host}:{identity.port}:{identity.database}"
    return None
