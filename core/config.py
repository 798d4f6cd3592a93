"""
==================================================
Configuration management for sqlmock.
==================================================

Loads settings from environment variables (.env file) and exposes a
centralized Config singleton. Settings cover the mock database defaults
(dialect, server version, statement tagging, script strictness) and the
identifier quoting policy used when rendering expressions.

Example:
    >>> from core.config import config
    >>>
    >>> # Default mock URL
    >>> url = config.get_mock_url()
    >>>
    >>> # Access individual settings
    >>> print(f"Dialect: {config.mock_dialect}, version: {config.server_version}")
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy.engine import URL

# Load environment variables from .env file
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(dotenv_path=env_path)

_TRUE_VALUES = ('1', 'true', 'yes', 'on')


def _env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean flag from the environment."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_int(name: str) -> Optional[int]:
    """Read an optional integer from the environment."""
    value = os.getenv(name)
    if value is None or value.strip() == '':
        return None
    return int(value)


@dataclass
class MockConfig:
    """Mock database defaults.

    Attributes:
        dialect: Shared dialect the mock imitates ('postgres' or empty)
        server_version: Reported server version (e.g. 140000), None if unknown
        append: Tag appended to every logged statement, None to disable
        strict_scripts: Raise instead of falling back when a queue runs dry
        pool_size: Logical connections kept per shard
    """

    dialect: str
    server_version: Optional[int]
    append: Optional[str]
    strict_scripts: bool
    pool_size: int

    def get_url(self) -> str:
        """Get the mock connection URL for these defaults.

        Returns:
            URL understood by utils.database_utils.connect()
        """
        query = {'append': self.append} if self.append else {}
        url = URL.create(drivername='mock', host=self.dialect or None, query=query)
        return url.render_as_string(hide_password=False)

    def get_options(self) -> dict:
        """Get database options as dictionary.

        Returns:
            Dictionary with keys: host, server_version, append, strict, pool_size
        """
        return {
            'host': self.dialect or None,
            'server_version': self.server_version,
            'append': self.append,
            'strict': self.strict_scripts,
            'pool_size': self.pool_size
        }


@dataclass
class RenderConfig:
    """Expression rendering settings.

    Attributes:
        quote_identifiers: Quote identifiers in standalone render contexts
    """

    quote_identifiers: bool


class Config:
    """Centralized configuration manager.

    Attributes:
        mock: MockConfig instance with mock database defaults
        render: RenderConfig instance with rendering defaults
        log_level: Default logging level name

    Example:
        >>> config = Config()
        >>> opts = config.get_mock_options()
        >>> print(opts['server_version'])
    """

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.mock = MockConfig(
            dialect=os.getenv('MOCK_DIALECT', ''),
            server_version=_env_int('MOCK_SERVER_VERSION'),
            append=os.getenv('MOCK_APPEND') or None,
            strict_scripts=_env_flag('MOCK_STRICT_SCRIPTS'),
            pool_size=int(os.getenv('MOCK_POOL_SIZE', '4'))
        )

        self.render = RenderConfig(
            quote_identifiers=_env_flag('SQL_QUOTE_IDENTIFIERS')
        )

        self.log_level = os.getenv('LOG_LEVEL', 'INFO')

    @property
    def mock_dialect(self) -> str:
        """Get the shared dialect name."""
        return self.mock.dialect

    @property
    def server_version(self) -> Optional[int]:
        """Get the configured server version."""
        return self.mock.server_version

    @property
    def strict_scripts(self) -> bool:
        """Get whether exhausted queues raise."""
        return self.mock.strict_scripts

    @property
    def quote_identifiers(self) -> bool:
        """Get the default identifier quoting policy."""
        return self.render.quote_identifiers

    def get_mock_url(self) -> str:
        """Get the default mock connection URL."""
        return self.mock.get_url()

    def get_mock_options(self) -> dict:
        """Get the default mock database options.

        Example:
            >>> from mockdb.database import MockDatabase
            >>> db = MockDatabase(**config.get_mock_options())
        """
        return self.mock.get_options()


# Global configuration instance
config = Config()
