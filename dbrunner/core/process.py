"""
Script-runner process execution.

Runs a dialect's command-line client, drains its stdout and stderr on two
threads so neither pipe can fill up and block the child, and classifies the
outcome from the exit code and the captured streams.
"""

import io
import subprocess
import sys
import threading
from pathlib import Path
from typing import IO, Dict, List, Optional, TextIO, Union

from ..utils.logging import get_logger, log_command_execution
from .exceptions import ProcessSpawnError, ScriptExecutionError
from .types import ExecutionResult, sanitize_command


class BroadcastWriter:
    """Writes everything it receives to each of its sinks."""

    def __init__(self, *sinks: TextIO) -> None:
        self.sinks: List[TextIO] = list(sinks)

    def add_sink(self, sink: TextIO) -> None:
        self.sinks.append(sink)

    def write(self, text: str) -> int:
        for sink in self.sinks:
            sink.write(text)
        return len(text)

    def flush(self) -> None:
        for sink in self.sinks:
            flush = getattr(sink, "flush", None)
            if flush is not None:
                flush()


def _drain(stream: IO[str], writer: BroadcastWriter) -> None:
    try:
        for line in iter(stream.readline, ""):
            writer.write(line)
        writer.flush()
    finally:
        stream.close()


class ProcessRunner:
    """
    Runs external commands and applies the exit-code policy.

    A non-zero exit code raises ``ScriptExecutionError`` carrying stderr
    (stdout when stderr is empty). A zero exit code with stderr output
    succeeds and prints that output as information.
    """

    def __init__(self, logger=None) -> None:
        self._logger = logger

    @property
    def logger(self):
        return self._logger or get_logger()

    def run(
        self,
        command: List[str],
        cwd: Optional[Union[str, Path]] = None,
        env: Optional[Dict[str, str]] = None,
        show_output: bool = False,
    ) -> ExecutionResult:
        """
        Run a command to completion.

        Args:
            command: Argument vector; no shell is involved
            cwd: Working directory for the process
            env: Full environment for the process, None to inherit
            show_output: Also stream stdout/stderr live to this process's streams

        Returns:
            Result of a successful run

        Raises:
            ProcessSpawnError: If the command cannot be launched
            ScriptExecutionError: If the command exits with a non-zero code
        """
        result = self.execute(command, cwd=cwd, env=env, show_output=show_output)
        return self.check(result)

    def execute(
        self,
        command: List[str],
        cwd: Optional[Union[str, Path]] = None,
        env: Optional[Dict[str, str]] = None,
        show_output: bool = False,
    ) -> ExecutionResult:
        """Run a command and capture its streams without judging the outcome."""
        log_command_execution(command, Path(cwd) if cwd else None)

        try:
            process = subprocess.Popen(
                command,
                cwd=str(cwd) if cwd else None,
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            raise ProcessSpawnError(
                f"Cannot run {command[0]}: {e}",
                command=sanitize_command(command),
            ) from e

        out = io.StringIO()
        err = io.StringIO()
        stdout = BroadcastWriter(out)
        stderr = BroadcastWriter(err)
        if show_output:
            stdout.add_sink(sys.stdout)
            stderr.add_sink(sys.stderr)

        readers = [
            threading.Thread(target=_drain, args=(process.stdout, stdout), daemon=True),
            threading.Thread(target=_drain, args=(process.stderr, stderr), daemon=True),
        ]
        for reader in readers:
            reader.start()

        returncode = process.wait()
        for reader in readers:
            reader.join()

        self.logger.debug("%s exited with code %d", command[0], returncode)
        return ExecutionResult(
            returncode=returncode,
            stdout=out.getvalue(),
            stderr=err.getvalue(),
            command=sanitize_command(command),
        )

    def check(self, result: ExecutionResult) -> ExecutionResult:
        """
        Apply the exit-code policy to a finished run.

        Raises:
            ScriptExecutionError: If the run exited with a non-zero code
        """
        if result.returncode != 0:
            message = result.stderr or result.stdout
            if not message:
                program = result.command[0] if result.command else "command"
                message = f"{program} exited with code {result.returncode}"
            raise ScriptExecutionError(
                message,
                returncode=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
            )

        if result.stderr:
            self.logger.emit(result.stderr.rstrip("\n"))

        return result
