"""
==================================================
Connection helpers for mock databases.
==================================================

Builds and parses ``mock://`` connection URLs and creates MockDatabase
instances from them, merging in the defaults from core.config.

URL format:
    mock://<dialect>?append=<tag>&server_version=<int>&strict=<bool>&pool_size=<int>

    The host part names the shared dialect to imitate ('postgres'); an
    empty host gives a generic database with unquoted identifiers.

Example:
    >>> from utils.database_utils import connect, get_connection_string
    >>>
    >>> url = get_connection_string(dialect='postgres', server_version=140000)
    >>> db = connect(url, fetch={'id': 1})
    >>> db.server_version
    140000
"""

from typing import Any, Dict, Optional

from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from core.config import config
from core.logger import get_logger
from mockdb.database import MockDatabase
from mockdb.responses import MockConfigurationError

logger = get_logger(__name__)

MOCK_SCHEME = 'mock'

_TRUE_VALUES = ('1', 'true', 'yes', 'on')


class DatabaseConnectionError(MockConfigurationError):
    """Exception raised when a mock connection URL can't be used."""
    pass


def get_connection_string(
    dialect: Optional[str] = None,
    append: Optional[str] = None,
    server_version: Optional[int] = None,
    strict: Optional[bool] = None
) -> str:
    """
    Build a mock connection URL.

    Args:
        dialect: Shared dialect to imitate (defaults to config.mock_dialect)
        append: Tag appended to every recorded statement
        server_version: Reported server version
        strict: Raise when scripted queues run out

    Returns:
        Mock connection URL string

    Example:
        >>> get_connection_string(dialect='postgres', append='test')
        'mock://postgres?append=test'
    """
    query: Dict[str, str] = {}
    if append:
        query['append'] = append
    if server_version is not None:
        query['server_version'] = str(server_version)
    if strict is not None:
        query['strict'] = 'true' if strict else 'false'

    url = URL.create(
        drivername=MOCK_SCHEME,
        host=dialect if dialect is not None else (config.mock_dialect or None),
        query=query
    )
    return url.render_as_string(hide_password=False)


def parse_connection_string(url: str) -> Dict[str, Any]:
    """
    Parse a mock connection URL into MockDatabase options.

    Args:
        url: Connection URL using the mock:// scheme

    Returns:
        Dictionary of options (host, append, server_version, strict,
        pool_size) present in the URL

    Raises:
        DatabaseConnectionError: If the URL is malformed, uses another
            scheme, or carries invalid values
    """
    try:
        parsed = make_url(url)
    except ArgumentError as e:
        raise DatabaseConnectionError(f"Invalid connection URL {url!r}: {e}") from e

    if parsed.drivername != MOCK_SCHEME:
        raise DatabaseConnectionError(
            f"Unsupported scheme {parsed.drivername!r}, expected {MOCK_SCHEME!r}"
        )

    opts: Dict[str, Any] = {}
    if parsed.host:
        opts['host'] = parsed.host

    query = parsed.query
    try:
        if 'append' in query:
            opts['append'] = query['append']
        if 'server_version' in query:
            opts['server_version'] = int(query['server_version'])
        if 'pool_size' in query:
            opts['pool_size'] = int(query['pool_size'])
    except (TypeError, ValueError) as e:
        raise DatabaseConnectionError(f"Invalid option in {url!r}: {e}") from e
    if 'strict' in query:
        opts['strict'] = str(query['strict']).lower() in _TRUE_VALUES

    return opts


def connect(url: Optional[str] = None, **opts) -> MockDatabase:
    """
    Create a MockDatabase from a URL and explicit options.

    Options are merged in increasing priority: config defaults, URL
    options, keyword arguments.

    Args:
        url: Mock connection URL (defaults to config.get_mock_url())
        **opts: MockDatabase keyword arguments (autoid, fetch, numrows, ...)

    Returns:
        Configured MockDatabase

    Example:
        >>> db = connect('mock://postgres', numrows=1)
        >>> db.execute_dui("DELETE FROM t")
        1
    """
    options = {k: v for k, v in config.get_mock_options().items() if v is not None}
    options.update(parse_connection_string(url or config.get_mock_url()))
    options.update(opts)

    logger.debug(f"Connecting mock database with options: {sorted(options)}")
    return MockDatabase(**options)


def get_database_connection_info(db: MockDatabase) -> dict:
    """
    Describe a mock database for display.

    Returns:
        Dictionary with dialect, server version, quoting, state and shards

    Example:
        >>> info = get_database_connection_info(db)
        >>> print(f"{info['dialect']} {info['server_version']}")
    """
    return {
        'dialect': db.shared_dialect or 'generic',
        'server_version': db.server_version,
        'quote_identifiers': db.quote_identifiers,
        'strict': db.strict,
        'state': db.state.value,
        'servers': db.pool.servers
    }
