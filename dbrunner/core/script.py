"""
Script preparation.

Rewrites a raw ``.sql`` script into a temporary file whose content the
target dialect's command-line client accepts. The original script is never
modified; the prepared copy belongs to the caller.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Protocol, Union

from .exceptions import ScriptError, ScriptNotFoundError

if TYPE_CHECKING:
    from ..dialects.base import DialectPolicy
    from .database import Database

logger = logging.getLogger(__name__)

PREPARED_PREFIX = "script"
PREPARED_SUFFIX = ".sql"


class TempFileProvider(Protocol):
    """Protocol for temporary file allocation."""

    def create_temp_file(self, prefix: str, suffix: str) -> Path:
        """Create a fresh, empty file and return its path."""
        ...


class TempStorage:
    """
    Default temporary file provider.

    Files are created with ``tempfile.mkstemp`` under ``base_dir`` (the
    system temp directory when not given). The host application owns the
    storage's lifetime and may call ``cleanup`` to remove what is left.
    """

    def __init__(self, base_dir: Optional[Union[str, Path]] = None) -> None:
        self.base_dir = Path(base_dir) if base_dir else None
        self._created: List[Path] = []

    def create_temp_file(self, prefix: str, suffix: str) -> Path:
        if self.base_dir is not None:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(
            prefix=prefix,
            suffix=suffix,
            dir=str(self.base_dir) if self.base_dir else None,
        )
        os.close(fd)
        path = Path(name)
        self._created.append(path)
        return path

    def cleanup(self) -> None:
        """Remove every file this storage created that still exists."""
        while self._created:
            path = self._created.pop()
            try:
                path.unlink()
            except FileNotFoundError:
                pass


class ScriptPreparer:
    """Applies a dialect's script-wrapping rule to a script file."""

    def __init__(self, policy: "DialectPolicy", temp_storage: TempFileProvider) -> None:
        self.policy = policy
        self.temp_storage = temp_storage

    def prepare(self, script: Union[str, Path], database: "Database") -> Path:
        """
        Write a dialect-correct copy of a script to a temporary file.

        Args:
            script: Path to the raw SQL script
            database: Database supplying schema and search path

        Returns:
            Path to the prepared file; the caller is responsible for removing it

        Raises:
            ScriptNotFoundError: If the script does not exist
            ScriptError: If the script cannot be read or the copy written
        """
        script = Path(script)
        if not script.is_file():
            raise ScriptNotFoundError(
                f"SQL script not found: {script}", script_file=str(script)
            )

        try:
            content = script.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ScriptError(
                f"Cannot read {script}: {e}", script_file=str(script)
            ) from e

        prepared = self.temp_storage.create_temp_file(PREPARED_PREFIX, PREPARED_SUFFIX)
        try:
            prepared.write_text(
                self.policy.prepare_script(content, database), encoding="utf-8"
            )
        except OSError as e:
            prepared.unlink(missing_ok=True)
            raise ScriptError(
                f"Cannot write {prepared}: {e}", script_file=str(script)
            ) from e

        logger.debug("Prepared %s as %s", script, prepared)
        return prepared
