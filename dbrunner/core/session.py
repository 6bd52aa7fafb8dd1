"""
Database session wrapper.

A session wraps one DB-API connection and exposes the small "run one
statement, get rows" surface the dialect policies and the database facade
rely on.
"""

import logging
from typing import Any, List, Optional, Sequence, Tuple, Union

from .exceptions import DatabaseError

logger = logging.getLogger(__name__)

Params = Optional[Union[Sequence[Any], dict]]


class Session:
    """Wrapper for a DB-API connection with dialect initialization applied."""

    def __init__(self, connection: Any, dialect: Optional[str] = None) -> None:
        """
        Initialize session wrapper.

        Args:
            connection: DB-API 2.0 connection object
            dialect: Dialect name used in error reports
        """
        self._connection = connection
        self._cursor: Optional[Any] = None
        self.dialect = dialect
        self.closed = False

    @property
    def connection(self) -> Any:
        """The underlying DB-API connection."""
        return self._connection

    def execute(self, sql: str, params: Params = None) -> Any:
        """
        Execute SQL statement.

        Args:
            sql: SQL statement to execute
            params: Optional bind parameters in the driver's paramstyle

        Raises:
            DatabaseError: If the driver rejects the statement
        """
        cursor = self._get_cursor()
        logger.debug("Executing SQL: %s", sql)
        try:
            if params:
                return cursor.execute(sql, params)
            return cursor.execute(sql)
        except Exception as e:
            raise DatabaseError(
                f"SQL execution failed: {e}",
                sql=sql,
                dialect=self.dialect,
                sql_state=getattr(e, "pgcode", None),
            ) from e

    def first_row(self, sql: str, params: Params = None) -> Optional[Tuple[Any, ...]]:
        """
        Execute a query and return its first row.

        Returns:
            First row as a tuple, or None if the query returned nothing
        """
        self.execute(sql, params)
        row = self._get_cursor().fetchone()
        return tuple(row) if row is not None else None

    def fetchall(self) -> List[Tuple[Any, ...]]:
        """Fetch all remaining rows of the last query."""
        rows = self._get_cursor().fetchall()
        return [tuple(row) for row in rows] if rows else []

    def commit(self) -> None:
        """Commit current transaction."""
        self._connection.commit()

    def rollback(self) -> None:
        """Rollback current transaction."""
        self._connection.rollback()

    def close(self) -> None:
        """Close the session. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        try:
            if self._cursor is not None:
                self._cursor.close()
                self._cursor = None
        finally:
            self._connection.close()

    def _get_cursor(self) -> Any:
        if self._cursor is None:
            self._cursor = self._connection.cursor()
        return self._cursor

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
