"""
=======================================
Scripted mock database.
=======================================

MockDatabase stands in for a real database connection. It records every
statement it is asked to execute and answers from scripted response
specs (see mockdb.responses) instead of querying anything:

    autoid   -> id returned by inserts (an int starts an incrementing
                sequence)
    fetch    -> rows returned by queries
    numrows  -> row count returned by updates and deletes
    columns  -> column names set on the dataset when rows are fetched

A dataset can override autoid, fetch and numrows (see mockdb.dataset);
an override that is not None replaces the database spec entirely.

Lifecycle:
    UNINITIALIZED -> CONFIGURED once the specs, dialect and extension are
    installed; CONFIGURED -> SERVING on the first executed statement.

Thread safety:
    One lock per database guards the statement log, queue consumption and
    the autoid sequence. Callbacks and row delivery run outside the lock.

Example:
    >>> db = MockDatabase(autoid=1, numrows=[3, 0], fetch={'id': 1})
    >>> db.execute_insert("INSERT INTO t VALUES (1)")
    1
    >>> db.execute_dui("DELETE FROM t")
    3
    >>> db.fetch_rows("SELECT * FROM t")
    [{'id': 1}]
    >>> db.sqls()
    ['INSERT INTO t VALUES (1)', 'DELETE FROM t', 'SELECT * FROM t']
"""

import itertools
import threading
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from core.config import config
from core.logger import get_logger
from mockdb.pool import DEFAULT_SERVER, MockConnection, MockConnectionPool
from mockdb.responses import (
    MockConfigurationError,
    MockDatabaseError,
    ResponseResolver,
)

logger = get_logger(__name__)

FETCH = 'fetch'
NUMROWS = 'numrows'
AUTOID = 'autoid'


class DatabaseState(Enum):
    UNINITIALIZED = 'uninitialized'
    CONFIGURED = 'configured'
    SERVING = 'serving'


def _postgres_setup(db: 'MockDatabase') -> None:
    db.quote_identifiers = True
    db.server_version = 150000


# Shared dialects the mock can imitate, keyed by the ``host`` option
SHARED_DIALECTS: Dict[str, Callable[['MockDatabase'], None]] = {
    'postgres': _postgres_setup,
    'postgresql': _postgres_setup,
}


class MockDatabase:
    """In-memory database replaying scripted responses.

    Attributes:
        opts: Options the database was created with
        server_version: Reported server version, None if unknown
        quote_identifiers: Whether datasets quote identifiers by default
        shared_dialect: Name of the imitated dialect, None when generic
        state: Current DatabaseState
        pool: MockConnectionPool handing out per-shard connections
        resolver: ResponseResolver used for every spec
    """

    def __init__(
        self,
        autoid: Any = None,
        fetch: Any = None,
        numrows: Any = None,
        columns: Any = None,
        append: Optional[str] = None,
        extend: Optional[Callable[['MockDatabase'], None]] = None,
        sqls: Optional[List[str]] = None,
        server_version: Optional[int] = None,
        host: Optional[str] = None,
        strict: Optional[bool] = None,
        pool_size: Optional[int] = None,
        servers: Optional[Dict[Any, Dict[str, Any]]] = None
    ):
        """Create and configure a mock database.

        Args:
            autoid: Insert id spec; an int starts an incrementing sequence
            fetch: Row spec for queries
            numrows: Row count spec for updates and deletes
            columns: Column name spec applied to datasets on fetch
            append: Tag appended to every recorded statement
            extend: Callable run with the database once it is configured
            sqls: List to record statements in (a new list by default)
            server_version: Reported server version, overriding the dialect
            host: Shared dialect to imitate ('postgres')
            strict: Raise when a queued spec runs out (config default)
            pool_size: Connections per shard (config default)
            servers: Per-shard option overrides

        Raises:
            MockConfigurationError: If extend is not callable
        """
        self.state = DatabaseState.UNINITIALIZED
        self._lock = threading.Lock()
        self._sqls: List[str] = sqls if sqls is not None else []

        self.opts: Dict[str, Any] = {
            'append': append,
            'host': host,
            'extend': extend,
        }
        self.servers: Dict[Any, Dict[str, Any]] = dict(servers or {})

        self.server_version: Optional[int] = None
        self.quote_identifiers = False
        self.shared_dialect: Optional[str] = None

        self.resolver = ResponseResolver(
            self._lock,
            strict=config.strict_scripts if strict is None else strict
        )
        self.pool = MockConnectionPool(
            self,
            pool_size=pool_size if pool_size is not None else config.mock.pool_size
        )

        self._apply_dialect(host)
        if server_version is not None:
            self.server_version = server_version

        self.autoid = autoid
        self.fetch = fetch
        self.numrows = numrows
        self.columns = columns

        if extend is not None:
            if not callable(extend):
                raise MockConfigurationError(f"extend must be callable, got {extend!r}")
            extend(self)

        self.state = DatabaseState.CONFIGURED
        logger.info(
            f"Mock database configured (dialect={self.shared_dialect or 'generic'}, "
            f"server_version={self.server_version})"
        )

    def _apply_dialect(self, host: Optional[str]) -> None:
        if not host:
            return
        setup = SHARED_DIALECTS.get(str(host).lower())
        if setup is None:
            logger.warning(f"No shared dialect for {host!r}, using unmodified identifiers")
            return
        setup(self)
        self.shared_dialect = str(host).lower()

    @property
    def autoid(self) -> Any:
        return self._autoid

    @autoid.setter
    def autoid(self, value: Any) -> None:
        """Set the insert id spec; an int starts a sequence at that value."""
        if isinstance(value, int) and not isinstance(value, bool):
            counter = itertools.count(value)

            def next_id(sql):
                with self._lock:
                    return next(counter)

            self._autoid = next_id
        else:
            self._autoid = value

    @property
    def strict(self) -> bool:
        return self.resolver.strict

    @strict.setter
    def strict(self, value: bool) -> None:
        self.resolver.strict = value

    def server_opts(self, server: Any) -> Dict[str, Any]:
        """Options for server: database options updated with the shard's."""
        opts = dict(self.opts)
        opts.update(self.servers.get(server, {}))
        return opts

    def connect(self, server: Any = DEFAULT_SERVER) -> MockConnection:
        """Return a new logical connection to server."""
        return MockConnection(self, server, self.server_opts(server))

    def disconnect(self) -> None:
        """Release all pooled connections."""
        self.pool.disconnect()

    def dataset(self, **opts):
        """Return a MockDataset bound to this database."""
        from mockdb.dataset import MockDataset
        return MockDataset(self, **opts)

    def execute(
        self,
        sql: str,
        server: Any = DEFAULT_SERVER,
        arguments: Any = None,
        dataset=None,
        kind: Optional[str] = None
    ) -> Any:
        """Record sql and return the scripted response for kind.

        Args:
            sql: Statement to record
            server: Shard to run on
            arguments: Bound arguments, recorded as a suffix
            dataset: MockDataset whose overrides take precedence
            kind: 'fetch', 'numrows', 'autoid', or None for no result

        Returns:
            List of rows for 'fetch', row count for 'numrows', id for
            'autoid', None otherwise

        Raises:
            MockDatabaseError: If resolving the response fails; .orig holds
                the cause (ScriptedError for scripted exceptions, a
                MockConfigurationError for unusable specs or an exhausted
                queue in strict mode)
        """
        with self.pool.hold(server) as conn:
            return self._execute(conn, sql, arguments=arguments, dataset=dataset, kind=kind)

    execute_ddl = execute

    def execute_dui(self, sql: str, **opts) -> int:
        """Record an UPDATE/DELETE and return the scripted row count."""
        return self.execute(sql, kind=NUMROWS, **opts)

    def execute_insert(self, sql: str, **opts) -> Any:
        """Record an INSERT and return the scripted id."""
        return self.execute(sql, kind=AUTOID, **opts)

    def fetch_rows(self, sql: str, **opts) -> List[Dict[str, Any]]:
        """Record a query and return the scripted rows."""
        return self.execute(sql, kind=FETCH, **opts)

    def sqls(self) -> List[str]:
        """Return every statement recorded since the last call, clearing the log."""
        with self._lock:
            statements = list(self._sqls)
            self._sqls.clear()
        return statements

    def supports_savepoints(self) -> bool:
        return True

    def _execute(
        self,
        conn: MockConnection,
        sql: str,
        arguments: Any = None,
        dataset=None,
        kind: Optional[str] = None,
        log: bool = True
    ) -> Any:
        if arguments is not None:
            sql += f" -- args: {arguments!r}"
        append = conn.opts.get('append')
        if append:
            sql += f" -- {append}"
        if conn.server != DEFAULT_SERVER:
            sql += f" -- {conn.server if isinstance(conn.server, str) else repr(conn.server)}"

        if log:
            logger.debug(sql)
        with self._lock:
            self._sqls.append(sql)
            self.state = DatabaseState.SERVING

        try:
            if kind == FETCH:
                if dataset is not None:
                    self._apply_columns(dataset, sql)
                return self.resolver.rows(self._spec(dataset, FETCH, self.fetch), sql)
            if kind == NUMROWS:
                return self.resolver.next_value(self._spec(dataset, NUMROWS, self.numrows), sql, 0)
            if kind == AUTOID:
                return self._next_autoid(dataset, sql)
            return None
        except MockDatabaseError:
            raise
        except Exception as e:
            raise MockDatabaseError(sql, arguments, e) from e

    def _spec(self, dataset, name: str, default: Any) -> Any:
        if dataset is not None:
            override = getattr(dataset, name)
            if override is not None:
                return override
        return default

    def _next_autoid(self, dataset, sql: str) -> Any:
        if dataset is not None:
            with self._lock:
                value = dataset.autoid
                if isinstance(value, int) and not isinstance(value, bool):
                    dataset._set_next_autoid(value + 1)
                    return value
            if value is not None:
                return self.resolver.next_value(value, sql, None)
        return self.resolver.next_value(self._autoid, sql, None)

    def _apply_columns(self, dataset, sql: str) -> None:
        columns = self.resolver.columns(self.columns, sql)
        if columns is not None:
            dataset.set_columns(*columns)

    def __repr__(self):
        return f"<MockDatabase dialect={self.shared_dialect or 'generic'} state={self.state.value}>"
