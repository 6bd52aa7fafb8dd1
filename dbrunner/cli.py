"""
Main CLI entry point for dbrunner.

This module provides the Click-based command-line interface for dbrunner:
inspecting connection strings, running SQL scripts and truncating tables
against configured or ad hoc databases.
"""

import sys
from pathlib import Path
from typing import List, Optional, Tuple

import click

from . import __version__
from .core.config import Config, DatabaseConfig
from .core.connection_string import parse_connection_string
from .core.database import Database
from .core.exceptions import DbRunnerError, handle_exception
from .utils.logging import DbRunnerLogger, configure_logging, get_logger


class CliContext:
    """Context object for CLI commands."""

    def __init__(self):
        self.config_files: List[Path] = []
        self.verbosity: int = 0
        self.logger: Optional[DbRunnerLogger] = None
        self._config: Optional[Config] = None

    @property
    def config(self) -> Config:
        """Load configuration on first use."""
        if self._config is None:
            self._config = Config(self.config_files or None)
        return self._config

    def create_database(
        self,
        target: Optional[str],
        url: Optional[str],
        username: Optional[str],
        password: Optional[str],
        schema: Optional[str],
        search_path: Optional[str],
    ) -> Database:
        """Build a Database from --url or from a configured target."""
        if url:
            database = Database(DatabaseConfig(
                jdbc_connection_string=url, username=username, password=password
            ))
        else:
            database = self.config.get_target(target)
            if username or password:
                database = database.with_credentials(
                    username or database.credentials.username,
                    password or database.credentials.password,
                )

        if schema:
            database.schema = schema
        if search_path:
            database.search_path = search_path
        return database


def validate_config_file(ctx, param, value):
    """Validate config file paths."""
    if not value:
        return []

    config_files = []
    for path_str in value:
        path = Path(path_str)
        if not path.exists():
            raise click.BadParameter(f"Configuration file does not exist: {path}")
        if not path.is_file():
            raise click.BadParameter(f"Configuration path is not a file: {path}")
        config_files.append(path)

    return config_files


def database_options(func):
    """Options selecting the database to work on."""
    options = [
        click.option('--target', '-t', help='Configured database name'),
        click.option('--url', '-u', help='JDBC connection string (overrides --target)'),
        click.option('--username', '-U', help='User to log in as'),
        click.option('--password', '-P', envvar='DBRUNNER_PASSWORD',
                     help='Password (or set DBRUNNER_PASSWORD)'),
        click.option('--schema', help='Oracle schema to switch to'),
        click.option('--search-path', help='PostgreSQL search path'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group(invoke_without_command=True)
@click.option(
    '--config', '-c',
    multiple=True,
    callback=validate_config_file,
    help='Configuration file to read (can be used multiple times)'
)
@click.option(
    '--verbose', '-v',
    count=True,
    help='Increase verbosity (can be used multiple times)'
)
@click.option(
    '--quiet', '-q',
    count=True,
    help='Decrease verbosity (can be used multiple times)'
)
@click.option(
    '--log-file',
    type=click.Path(dir_okay=False, path_type=Path),
    help='Also write a full trace log to this file'
)
@click.version_option(version=__version__, prog_name='dbrunner')
@click.pass_context
def cli(ctx: click.Context, config: Tuple[Path, ...], verbose: int, quiet: int,
        log_file: Optional[Path]) -> None:
    """
    Run SQL scripts against PostgreSQL or Oracle.

    Connection details come from a JDBC connection string, given with
    --url or read from a [database "<name>"] section of dbrunner.conf.
    """
    cli_ctx = CliContext()
    cli_ctx.config_files = list(config)
    cli_ctx.verbosity = max(-2, min(3, verbose - quiet))
    cli_ctx.logger = configure_logging(cli_ctx.verbosity, log_file)
    ctx.obj = cli_ctx

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command('parse')
@click.argument('connection_string')
def parse_command(connection_string: str) -> None:
    """Show the dialect, host, port and database of a connection string."""
    identity = parse_connection_string(connection_string)
    click.echo(f"dialect:  {identity.dialect}")
    if identity.is_known:
        click.echo(f"host:     {identity.host}")
        click.echo(f"port:     {identity.port}")
        click.echo(f"database: {identity.database}")


@cli.command('run')
@click.argument('scripts', nargs=-1, required=True,
                type=click.Path(exists=True, dir_okay=False, path_type=Path))
@database_options
@click.option('--show-output', '-o', is_flag=True, help="Stream the client's output")
@click.pass_obj
def run_command(cli_ctx: CliContext, scripts: Tuple[Path, ...], target, url,
                username, password, schema, search_path, show_output: bool) -> None:
    """Run one or more SQL scripts, stopping at the first failure."""
    database = cli_ctx.create_database(target, url, username, password, schema, search_path)
    for script in scripts:
        cli_ctx.logger.info("Running %s", script)
        database.run_script(script, show_output=show_output)


@cli.command('truncate')
@click.argument('tables', nargs=-1, required=True)
@database_options
@click.pass_obj
def truncate_command(cli_ctx: CliContext, tables: Tuple[str, ...], target, url,
                     username, password, schema, search_path) -> None:
    """Truncate tables in one session."""
    database = cli_ctx.create_database(target, url, username, password, schema, search_path)
    with database.scoped_session() as session:
        for table in tables:
            cli_ctx.logger.info("Truncating %s", table)
            database.truncate_table(session, table)


@cli.command('targets')
@click.pass_obj
def targets_command(cli_ctx: CliContext) -> None:
    """List configured databases."""
    default = cli_ctx.config.default_database
    for name in cli_ctx.config.list_databases():
        marker = '*' if name == default else ' '
        section = cli_ctx.config.get(f'database.{name}', {})
        url = DatabaseConfig.from_mapping(section).jdbc_connection_string or ''
        click.echo(f"{marker} {name}\t{url}")


# Main entry point
def main(args: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    try:
        cli(args=args, standalone_mode=False)
        return 0
    except click.exceptions.Abort:
        click.echo("\ndbrunner: Operation cancelled by user", err=True)
        return 130
    except click.ClickException as e:
        e.show()
        return e.exit_code
    except DbRunnerError as e:
        return handle_exception(e, get_logger())
    except KeyboardInterrupt:
        click.echo("\ndbrunner: Operation cancelled by user", err=True)
        return 130
    except Exception as e:
        return handle_exception(e, get_logger())


if __name__ == '__main__':
    sys.exit(main())
