"""Shared test fixtures and configuration for dbrunner tests."""

import os
import tempfile
from pathlib import Path
from typing import Dict, Generator
from unittest.mock import Mock

import pytest

from dbrunner.core.database import Database
from dbrunner.core.process import ProcessRunner
from dbrunner.core.script import TempStorage
from dbrunner.core.types import ExecutionResult


class MockCursor:
    """Mock DB-API cursor recording executed statements."""

    def __init__(self, connection: "MockConnection"):
        self.connection = connection
        self.closed = False

    def execute(self, sql, params=None):
        self.connection.executed.append((sql, params))
        self.connection.last_sql = sql
        return self

    def fetchone(self):
        rows = self.connection.results.get(self.connection.last_sql, [])
        return rows[0] if rows else None

    def fetchall(self):
        return list(self.connection.results.get(self.connection.last_sql, []))

    def close(self):
        self.closed = True


class MockConnection:
    """Mock DB-API connection; ``results`` maps SQL text to returned rows."""

    def __init__(self):
        self.executed = []
        self.results: Dict[str, list] = {}
        self.last_sql = None
        self.committed = False
        self.rolled_back = False
        self.close_count = 0

    @property
    def closed(self) -> bool:
        return self.close_count > 0

    @property
    def statements(self):
        return [sql for sql, _ in self.executed]

    def cursor(self):
        return MockCursor(self)

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.close_count += 1


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep the caller's database settings out of the tests."""
    for var in ["DBRUNNER_PASSWORD", "PGPASSWORD", "PGUSER", "PGHOST", "PGDATABASE"]:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def isolated_filesystem(temp_dir: Path, monkeypatch):
    """Change to a temporary directory with no user or project config visible."""
    home = temp_dir / "home"
    home.mkdir()
    work = temp_dir / "work"
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    original_cwd = Path.cwd()
    os.chdir(work)
    try:
        yield work
    finally:
        os.chdir(original_cwd)


@pytest.fixture
def pg_config() -> Dict[str, str]:
    return {
        "jdbcConnectionString": "jdbc:postgresql://db.example.com:6543/orders",
        "username": "deploy",
        "password": "s3cret",
        "jdbcDriver": "org.postgresql.Driver",
    }


@pytest.fixture
def oracle_config() -> Dict[str, str]:
    return {
        "jdbcConnectionString": "jdbc:oracle:thin:@10.0.0.5:1522:PRODDB",
        "username": "scott",
        "password": "tiger",
        "jdbcDriver": "oracle.jdbc.OracleDriver",
    }


@pytest.fixture
def mock_connection() -> MockConnection:
    return MockConnection()


@pytest.fixture
def connector(mock_connection: MockConnection) -> Mock:
    """Connector handing out the shared mock connection."""
    return Mock(return_value=mock_connection)


@pytest.fixture
def mock_runner() -> Mock:
    """Process runner that records commands and succeeds."""
    runner = Mock(spec=ProcessRunner)
    runner.run.return_value = ExecutionResult(returncode=0, stdout="ok\n")
    return runner


@pytest.fixture
def temp_storage(temp_dir: Path) -> TempStorage:
    return TempStorage(temp_dir / "prepared")


@pytest.fixture
def pg_database(pg_config, temp_storage, mock_runner, connector) -> Database:
    return Database(
        pg_config, temp_storage=temp_storage, runner=mock_runner, connector=connector
    )


@pytest.fixture
def oracle_database(oracle_config, temp_storage, mock_runner, connector) -> Database:
    return Database(
        oracle_config, temp_storage=temp_storage, runner=mock_runner, connector=connector
    )


@pytest.fixture
def script_file(temp_dir: Path) -> Path:
    """A two-block script with SQL*Plus terminators."""
    scripts = temp_dir / "scripts"
    scripts.mkdir()
    script = scripts / "deploy.sql"
    script.write_text(
        "create table orders (id number);\n"
        "/\n"
        "begin\n"
        "  null;\n"
        "end;\n"
        "/\n",
        encoding="utf-8",
    )
    return script
