"""
Configuration management for dbrunner.

This module provides the database configuration record consumed by the
``Database`` facade and an INI-style configuration file hierarchy holding
named database definitions.
"""

import configparser
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Tuple

from .exceptions import ConfigurationError
from .types import Credentials

if TYPE_CHECKING:
    from .database import Database

CONFIG_FILENAME = 'dbrunner.conf'
PASSWORD_ENV_VAR = 'DBRUNNER_PASSWORD'


def _normalize_key(key: str) -> str:
    return key.replace('_', '').replace('-', '').lower()


@dataclass
class DatabaseConfig:
    """Connection settings for one database."""

    jdbc_connection_string: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    jdbc_driver: Optional[str] = None
    client: Optional[str] = None

    # Normalized mapping key -> attribute
    KEYS = {
        'jdbcconnectionstring': 'jdbc_connection_string',
        'url': 'jdbc_connection_string',
        'username': 'username',
        'user': 'username',
        'password': 'password',
        'jdbcdriver': 'jdbc_driver',
        'driver': 'jdbc_driver',
        'client': 'client',
    }

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> 'DatabaseConfig':
        """
        Build a configuration from a mapping.

        Accepts ``jdbcConnectionString``/``username``/``password``/``jdbcDriver``
        as well as their snake_case spellings. Unrelated keys are ignored.

        Args:
            values: Mapping of configuration keys to values

        Returns:
            Database configuration
        """
        kwargs: Dict[str, Any] = {}
        for key, value in values.items():
            attribute = cls.KEYS.get(_normalize_key(str(key)))
            if attribute and value is not None:
                kwargs[attribute] = value
        return cls(**kwargs)

    @property
    def credentials(self) -> Credentials:
        return Credentials(username=self.username, password=self.password)

    def with_credentials(self, username: Optional[str], password: Optional[str]) -> 'DatabaseConfig':
        """Copy of this configuration with other credentials."""
        return DatabaseConfig(
            jdbc_connection_string=self.jdbc_connection_string,
            username=username,
            password=password,
            jdbc_driver=self.jdbc_driver,
            client=self.client,
        )

    def __repr__(self) -> str:
        masked = '***' if self.password else None
        return (
            f"DatabaseConfig(jdbc_connection_string={self.jdbc_connection_string!r}, "
            f"username={self.username!r}, password={masked!r}, "
            f"jdbc_driver={self.jdbc_driver!r}, client={self.client!r})"
        )


@dataclass
class ConfigSource:
    """Represents a configuration source with its priority and path."""
    path: Optional[Path]
    priority: int
    source_type: str  # 'system', 'global', 'local', 'explicit'
    parser: Optional[configparser.ConfigParser] = None


class Config:
    """
    Configuration file hierarchy for dbrunner.

    Loads and merges configuration from multiple sources in priority
    order: system < global < local, or from an explicit list of files.
    Databases are defined in ``[database "<name>"]`` sections.
    """

    def __init__(self, config_files: Optional[List[Path]] = None) -> None:
        """
        Initialize configuration manager.

        Args:
            config_files: Explicit list of config files to load
        """
        self._sources: List[ConfigSource] = []
        self._merged_config: Dict[str, Any] = {}

        if config_files:
            self._load_explicit_configs(config_files)
        else:
            self._load_default_configs()

        self._merge_configurations()

    def _load_explicit_configs(self, config_files: List[Path]) -> None:
        for i, config_file in enumerate(config_files):
            config_file = Path(config_file)
            if not config_file.exists():
                raise ConfigurationError(
                    f"Configuration file does not exist: {config_file}",
                    config_file=str(config_file)
                )
            self._sources.append(ConfigSource(
                path=config_file,
                priority=100 + i,
                source_type='explicit',
                parser=self._load_config_file(config_file)
            ))

    def _load_default_configs(self) -> None:
        for path in self._get_system_config_paths():
            if path.exists():
                self._sources.append(ConfigSource(
                    path=path, priority=10, source_type='system',
                    parser=self._load_config_file(path)
                ))

        global_path = self._get_global_config_path()
        if global_path.exists():
            self._sources.append(ConfigSource(
                path=global_path, priority=20, source_type='global',
                parser=self._load_config_file(global_path)
            ))

        local_path = self._get_local_config_path()
        if local_path:
            self._sources.append(ConfigSource(
                path=local_path, priority=30, source_type='local',
                parser=self._load_config_file(local_path)
            ))

    def _get_system_config_paths(self) -> List[Path]:
        if sys.platform.startswith('win'):
            if 'PROGRAMFILES' in os.environ:
                return [Path(os.environ['PROGRAMFILES']) / 'dbrunner' / CONFIG_FILENAME]
            return []
        return [
            Path('/etc/dbrunner') / CONFIG_FILENAME,
            Path('/usr/local/etc/dbrunner') / CONFIG_FILENAME,
        ]

    def _get_global_config_path(self) -> Path:
        home = Path.home()
        if sys.platform.startswith('win'):
            return home / '.dbrunner' / CONFIG_FILENAME
        xdg_config = os.environ.get('XDG_CONFIG_HOME')
        if xdg_config:
            return Path(xdg_config) / 'dbrunner' / CONFIG_FILENAME
        return home / '.config' / 'dbrunner' / CONFIG_FILENAME

    def _get_local_config_path(self) -> Optional[Path]:
        """Nearest dbrunner.conf in the current directory or its parents."""
        current = Path.cwd()
        while True:
            candidate = current / CONFIG_FILENAME
            if candidate.exists():
                return candidate
            if current == current.parent:
                return None
            current = current.parent

    def _load_config_file(self, config_path: Path) -> configparser.ConfigParser:
        """
        Load and parse a configuration file.

        Raises:
            ConfigurationError: If file cannot be read or parsed
        """
        # No interpolation: passwords may contain '$' or '%'
        parser = configparser.ConfigParser(
            interpolation=None,
            delimiters=('=',),
            comment_prefixes=('#', ';'),
            strict=False
        )

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                parser.read_file(f, source=str(config_path))
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read configuration file: {e}",
                config_file=str(config_path)
            ) from e
        except configparser.Error as e:
            raise ConfigurationError(
                f"Invalid configuration syntax: {e}",
                config_file=str(config_path)
            ) from e

        return parser

    def _merge_configurations(self) -> None:
        self._sources.sort(key=lambda s: s.priority)
        merged: Dict[str, Any] = {}
        for source in self._sources:
            if source.parser:
                self._merge_parser_into_dict(source.parser, merged)
        self._merged_config = merged

    def _merge_parser_into_dict(self, parser: configparser.ConfigParser,
                                target: Dict[str, Any]) -> None:
        for section_name in parser.sections():
            if ' ' in section_name and '"' in section_name:
                # Subsection like [database "prod"]
                main_section, sub_section = self._parse_subsection(section_name)
                section = target.setdefault(main_section, {}).setdefault(sub_section, {})
            else:
                section = target.setdefault(section_name, {})

            for key, value in parser.items(section_name):
                section[key] = value

    def _parse_subsection(self, section_name: str) -> Tuple[str, str]:
        main, sub = section_name.split(' ', 1)
        return main, sub.strip().strip('"')

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value with dot notation.

        Args:
            key: Configuration key in dot notation (e.g., 'core.database')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        current: Any = self._merged_config
        for part in key.split('.'):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current

    @property
    def default_database(self) -> Optional[str]:
        """Name of the default database from ``[core] database``."""
        return self.get('core.database')

    def list_databases(self) -> List[str]:
        """List all configured database names."""
        return sorted(self.get('database', {}).keys())

    def _database_section(self, name: Optional[str]) -> Tuple[str, Dict[str, Any]]:
        name = name or self.default_database
        if not name:
            raise ConfigurationError(
                "No database named and no default configured",
                config_key='core.database'
            )
        section = self.get(f'database.{name}')
        if not section:
            raise ConfigurationError(
                f"Database '{name}' not found",
                config_key=f'database.{name}'
            )
        return name, section

    def get_database_config(self, name: Optional[str] = None) -> DatabaseConfig:
        """
        Get connection settings for a named database.

        Args:
            name: Database name; the configured default when omitted

        Returns:
            Database configuration

        Raises:
            ConfigurationError: If the database is unknown or has no connection string
        """
        name, section = self._database_section(name)
        config = DatabaseConfig.from_mapping(section)
        if not config.jdbc_connection_string:
            raise ConfigurationError(
                f"Database '{name}' missing required 'jdbcConnectionString'",
                config_key=f'database.{name}.jdbcConnectionString'
            )
        if config.password is None:
            config.password = os.environ.get(PASSWORD_ENV_VAR)
        return config

    def get_target(self, name: Optional[str] = None, **kwargs: Any) -> 'Database':
        """
        Build a Database for a named definition.

        The section's ``schema`` and ``searchPath`` values are applied to
        the returned object.

        Args:
            name: Database name; the configured default when omitted
            **kwargs: Passed through to the Database constructor

        Returns:
            Database facade
        """
        from .database import Database

        _, section = self._database_section(name)
        database = Database(self.get_database_config(name), **kwargs)
        settings = {_normalize_key(key): value for key, value in section.items()}
        database.schema = settings.get('schema') or None
        database.search_path = settings.get('searchpath') or None
        return database

    def get_config_sources(self) -> List[ConfigSource]:
        """Get list of configuration sources in priority order."""
        return self._sources.copy()

    def to_dict(self) -> Dict[str, Any]:
        return self._merged_config.copy()

    def __repr__(self) -> str:
        sources = [s.source_type for s in self._sources]
        return f"Config(sources={sources})"
