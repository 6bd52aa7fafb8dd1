"""
Unit tests for the logging utilities.

This module tests the logging configuration, formatters, and utilities
used throughout the dbrunner application.
"""

import logging
from unittest.mock import patch

import pytest

from dbrunner.utils import logging as dbrunner_logging
from dbrunner.utils.logging import (
    ColoredFormatter,
    DbRunnerFormatter,
    DbRunnerLogger,
    LogLevel,
    configure_logging,
    get_logger,
    log_command_execution,
)


@pytest.fixture(autouse=True)
def reset_global_logger():
    saved = dbrunner_logging._global_logger
    dbrunner_logging._global_logger = None
    yield
    dbrunner_logging._global_logger = saved


def make_record(level=logging.INFO, msg="Test message"):
    return logging.LogRecord(
        name="test", level=level, pathname="", lineno=0, msg=msg, args=(), exc_info=None
    )


class TestLogLevel:
    """Test LogLevel enum."""

    def test_log_level_ordering(self):
        assert LogLevel.TRACE < LogLevel.DEBUG < LogLevel.INFO
        assert LogLevel.INFO < LogLevel.WARN < LogLevel.ERROR < LogLevel.FATAL
        assert LogLevel.TRACE == 5


class TestFormatters:
    """Test message formatting."""

    def test_plain_message(self):
        assert DbRunnerFormatter().format(make_record()) == "Test message"

    def test_level_prefix_for_warnings(self):
        formatter = DbRunnerFormatter(show_level=True)
        assert formatter.format(make_record(logging.WARNING, "careful")) == "warning: careful"
        assert formatter.format(make_record(logging.INFO, "fine")) == "fine"

    def test_timestamp(self):
        formatted = DbRunnerFormatter(show_timestamps=True).format(make_record())
        assert formatted.startswith("[")
        assert formatted.endswith("] Test message")

    def test_no_colors_without_tty(self):
        with patch.object(ColoredFormatter, "_supports_color", return_value=False):
            formatter = ColoredFormatter()
        assert not formatter.use_colors
        assert formatter.format(make_record(logging.ERROR, "bad")) == "bad"

    def test_colors_on_tty(self):
        with patch.object(ColoredFormatter, "_supports_color", return_value=True):
            formatter = ColoredFormatter()
        assert formatter.format(make_record(logging.ERROR, "bad")) == "\033[31mbad\033[0m"


class TestDbRunnerLogger:
    """Test the logger wrapper."""

    @pytest.mark.parametrize(
        "verbosity, level",
        [(-2, LogLevel.FATAL), (-1, LogLevel.ERROR), (0, LogLevel.WARN),
         (1, LogLevel.INFO), (2, LogLevel.DEBUG), (3, LogLevel.TRACE)],
    )
    def test_verbosity_levels(self, verbosity, level):
        logger = DbRunnerLogger("dbrunner.test.levels", verbosity)
        assert logger.logger.level == level
        assert logger.logger.handlers[0].level == level

    def test_set_verbosity(self):
        logger = DbRunnerLogger("dbrunner.test.set", 0)
        logger.set_verbosity(2)
        assert logger.logger.level == LogLevel.DEBUG
        assert logger.logger.handlers[0].level == LogLevel.DEBUG

    def test_single_handler_after_reinit(self):
        DbRunnerLogger("dbrunner.test.handlers", 0)
        logger = DbRunnerLogger("dbrunner.test.handlers", 1)
        assert len(logger.logger.handlers) == 1

    def test_trace_and_fatal(self):
        logger = DbRunnerLogger("dbrunner.test.custom", 3)
        with patch.object(logger.logger, "log") as log:
            logger.trace("tracing %s", "x")
            logger.fatal("dying")
        log.assert_any_call(LogLevel.TRACE, "tracing %s", "x")
        log.assert_any_call(LogLevel.FATAL, "dying")

    def test_emit_prints_to_stdout(self, capsys):
        DbRunnerLogger("dbrunner.test.emit").emit("NOTICE: done")
        assert capsys.readouterr().out == "NOTICE: done\n"


class TestGlobalLogger:
    """Test global logger management."""

    def test_get_logger_is_shared(self):
        assert get_logger() is get_logger()

    def test_configure_logging_replaces_global(self):
        first = get_logger()
        configured = configure_logging(2)
        assert configured is not first
        assert get_logger() is configured
        assert configured.verbosity == 2

    def test_configure_logging_with_file(self, temp_dir):
        log_file = temp_dir / "dbrunner.log"
        logger = configure_logging(0, log_file)

        logger.trace("only in the file")
        for handler in logger.logger.handlers:
            handler.flush()

        assert "only in the file" in log_file.read_text()
        for handler in list(logger.logger.handlers):
            if isinstance(handler, logging.FileHandler):
                handler.close()
                logger.logger.removeHandler(handler)


class TestLogCommandExecution:
    """Test command logging."""

    def test_password_masked(self):
        logger = configure_logging(3)
        with patch.object(logger, "debug") as debug, patch.object(logger, "trace") as trace:
            log_command_execution(
                ["sqlplus", "-l", "scott/tiger@db:1521/XE", "@/tmp/script1.sql"], "/tmp"
            )

        message = debug.call_args[0][0] % debug.call_args[0][1:]
        assert "tiger" not in message
        assert "scott/***@db:1521/XE" in message
        trace.assert_called_once_with("Working directory: %s", "/tmp")

    def test_quoted_password_with_at_sign_masked(self):
        logger = configure_logging(3)
        with patch.object(logger, "debug") as debug:
            log_command_execution(["sqlplus", "-l", 'scott/"p@ss/w0rd"@db:1521/XE'])

        message = debug.call_args[0][0] % debug.call_args[0][1:]
        assert "w0rd" not in message
        assert message.endswith("scott/***@db:1521/XE")
