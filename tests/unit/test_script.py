"""Unit tests for script preparation and temporary storage."""

from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from dbrunner.core.exceptions import ScriptError, ScriptNotFoundError
from dbrunner.core.script import ScriptPreparer, TempStorage
from dbrunner.dialects.oracle import OraclePolicy
from dbrunner.dialects.pg import PostgresPolicy


class TestTempStorage:
    """Test the default temporary file provider."""

    def test_creates_distinct_files(self, temp_dir):
        storage = TempStorage(temp_dir / "nested" / "dir")

        first = storage.create_temp_file("script", ".sql")
        second = storage.create_temp_file("script", ".sql")

        assert first != second
        assert first.exists() and second.exists()
        assert first.parent == temp_dir / "nested" / "dir"
        assert first.name.startswith("script")
        assert first.suffix == ".sql"
        assert first.read_text() == ""

    def test_cleanup_removes_remaining_files(self, temp_dir):
        storage = TempStorage(temp_dir)
        kept = storage.create_temp_file("script", ".sql")
        removed = storage.create_temp_file("script", ".sql")
        removed.unlink()

        storage.cleanup()

        assert not kept.exists()

    def test_system_temp_dir_by_default(self):
        storage = TempStorage()
        path = storage.create_temp_file("script", ".sql")
        try:
            assert path.exists()
        finally:
            storage.cleanup()
        assert not path.exists()


class TestScriptPreparer:
    """Test writing prepared script copies."""

    def test_oracle_prepared_copy(self, oracle_database, temp_storage, script_file):
        original = script_file.read_text()

        prepared = ScriptPreparer(OraclePolicy(), temp_storage).prepare(
            script_file, oracle_database
        )

        assert prepared != script_file
        assert prepared.parent == temp_storage.base_dir
        assert prepared.read_text() == (
            "create table orders (id number);\n"
            "/\n"
            "begin\n"
            "  null;\n"
            "end;\n"
            "/\n"
            "exit SQL.SQLCODE;\n"
        )
        assert script_file.read_text() == original

    def test_postgres_prepared_copy(self, pg_database, temp_storage, temp_dir):
        script = temp_dir / "query.sql"
        script.write_text("select * from orders;\n")
        pg_database.search_path = "sales"

        prepared = ScriptPreparer(PostgresPolicy(), temp_storage).prepare(
            str(script), pg_database
        )

        assert prepared.read_text() == "SET SEARCH_PATH=sales;\nselect * from orders;\n"

    def test_each_prepare_gets_a_fresh_file(self, pg_database, temp_storage, script_file):
        preparer = ScriptPreparer(PostgresPolicy(), temp_storage)
        assert preparer.prepare(script_file, pg_database) != preparer.prepare(
            script_file, pg_database
        )

    def test_missing_script(self, pg_database, temp_dir):
        storage = Mock()
        missing = temp_dir / "missing.sql"

        with pytest.raises(ScriptNotFoundError) as exc_info:
            ScriptPreparer(PostgresPolicy(), storage).prepare(missing, pg_database)

        assert exc_info.value.script_file == str(missing)
        assert exc_info.value.ident == "script"
        storage.create_temp_file.assert_not_called()

    def test_directory_is_not_a_script(self, pg_database, temp_storage, temp_dir):
        with pytest.raises(ScriptNotFoundError):
            ScriptPreparer(PostgresPolicy(), temp_storage).prepare(temp_dir, pg_database)

    def test_unwritable_prepared_file(self, pg_database, script_file, temp_dir):
        storage = Mock()
        storage.create_temp_file.return_value = temp_dir / "no-such-dir" / "script1.sql"

        with pytest.raises(ScriptError, match="Cannot write"):
            ScriptPreparer(PostgresPolicy(), storage).prepare(script_file, pg_database)

    def test_failed_write_removes_temp_file(self, pg_database, script_file, temp_storage):
        with patch.object(Path, "write_text", side_effect=OSError("No space left on device")):
            with pytest.raises(ScriptError, match="No space left") as exc_info:
                ScriptPreparer(PostgresPolicy(), temp_storage).prepare(
                    script_file, pg_database
                )

        assert isinstance(exc_info.value.__cause__, OSError)
        assert list(temp_storage.base_dir.iterdir()) == []

    def test_custom_provider_receives_prefix_and_suffix(
        self, pg_database, script_file, temp_dir
    ):
        target = temp_dir / "custom.sql"
        target.touch()
        storage = Mock()
        storage.create_temp_file.return_value = target

        prepared = ScriptPreparer(PostgresPolicy(), storage).prepare(
            script_file, pg_database
        )

        assert prepared == target
        storage.create_temp_file.assert_called_once_with("script", ".sql")
        assert isinstance(prepared, Path)
