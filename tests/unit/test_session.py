"""Unit tests for the Session wrapper."""

from unittest.mock import Mock

import pytest

from dbrunner.core.exceptions import DatabaseError
from dbrunner.core.session import Session


class TestSession:
    """Test statement execution and lifecycle."""

    def test_execute_without_params(self, mock_connection):
        Session(mock_connection).execute("select 1")
        assert mock_connection.executed == [("select 1", None)]

    def test_execute_with_params(self, mock_connection):
        Session(mock_connection).execute("select :name", {"name": "X"})
        assert mock_connection.executed == [("select :name", {"name": "X"})]

    def test_first_row(self, mock_connection):
        mock_connection.results["select a, b from t"] = [["a", "b"], ["c", "d"]]
        session = Session(mock_connection)

        assert session.first_row("select a, b from t") == ("a", "b")
        assert session.first_row("select nothing") is None

    def test_fetchall(self, mock_connection):
        mock_connection.results["select id from t"] = [[1], [2]]
        session = Session(mock_connection)
        session.execute("select id from t")
        assert session.fetchall() == [(1,), (2,)]

    def test_driver_error_is_wrapped(self):
        error = RuntimeError("relation does not exist")
        error.pgcode = "42P01"
        cursor = Mock()
        cursor.execute.side_effect = error
        connection = Mock()
        connection.cursor.return_value = cursor

        with pytest.raises(DatabaseError) as exc_info:
            Session(connection, dialect="postgres").execute("select * from missing")

        assert exc_info.value.sql == "select * from missing"
        assert exc_info.value.sql_state == "42P01"
        assert exc_info.value.dialect == "postgres"
        assert exc_info.value.__cause__ is error

    def test_commit_and_rollback(self, mock_connection):
        session = Session(mock_connection)
        session.commit()
        session.rollback()
        assert mock_connection.committed
        assert mock_connection.rolled_back

    def test_close_is_idempotent(self, mock_connection):
        session = Session(mock_connection)
        session.execute("select 1")
        session.close()
        session.close()
        assert session.closed
        assert mock_connection.close_count == 1

    def test_context_manager(self, mock_connection):
        with Session(mock_connection) as session:
            assert session.connection is mock_connection
        assert mock_connection.closed
