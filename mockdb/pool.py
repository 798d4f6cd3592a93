"""
=======================================
Logical connections for mock databases.
=======================================

A MockConnection is a logical handle bound to one shard of a mock
database; executing through it records the statement on the owning
database. MockConnectionPool keeps a SQLAlchemy QueuePool per shard, so
concurrent callers each check out their own connection just as they
would against a real driver.

Example:
    >>> pool = MockConnectionPool(db, pool_size=2)
    >>> with pool.hold('read_only') as conn:
    ...     conn.execute('SELECT 1')
    >>> pool.servers
    ['read_only']
"""

import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List

from sqlalchemy.pool import QueuePool

from core.logger import get_logger

logger = get_logger(__name__)

DEFAULT_SERVER = 'default'


class MockConnection:
    """A logical connection to one shard of a mock database.

    Attributes:
        db: MockDatabase that created this connection
        server: Shard this connection operates on ('default' unless sharded)
        opts: Database options merged with the shard's options
    """

    def __init__(self, db, server: Any, opts: Dict[str, Any]):
        self.db = db
        self.server = server
        self.opts = opts

    def execute(self, sql: str):
        """Record sql on the owning database without logging it."""
        return self.db._execute(self, sql, log=False)

    # DBAPI connection methods used by the pool; nothing to release
    def close(self) -> None:
        pass

    def commit(self) -> None:
        pass

    def rollback(self) -> None:
        pass

    def __repr__(self):
        return f"<MockConnection server={self.server!r}>"


class MockConnectionPool:
    """Thread-safe per-shard pools of MockConnections.

    Attributes:
        db: Owning MockDatabase
        pool_size: Connections kept open per shard
        max_overflow: Extra connections allowed per shard under load
        timeout: Seconds to wait for a free connection
    """

    def __init__(self, db, pool_size: int = 4, max_overflow: int = 10, timeout: float = 30):
        self.db = db
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.timeout = timeout
        self._pools: Dict[Any, QueuePool] = {}
        self._lock = threading.Lock()

    def _pool_for(self, server: Any) -> QueuePool:
        with self._lock:
            pool = self._pools.get(server)
            if pool is None:
                pool = QueuePool(
                    lambda: self.db.connect(server),
                    pool_size=self.pool_size,
                    max_overflow=self.max_overflow,
                    timeout=self.timeout,
                    reset_on_return=None
                )
                self._pools[server] = pool
                logger.debug(f"Created connection pool for shard {server!r}")
            return pool

    @contextmanager
    def hold(self, server: Any = DEFAULT_SERVER) -> Iterator[MockConnection]:
        """Check out a connection for server for the duration of the block."""
        fairy = self._pool_for(server).connect()
        try:
            yield fairy.dbapi_connection
        finally:
            fairy.close()

    @property
    def servers(self) -> List[Any]:
        with self._lock:
            return list(self._pools)

    def checked_out(self, server: Any = DEFAULT_SERVER) -> int:
        """Number of connections for server currently in use."""
        with self._lock:
            pool = self._pools.get(server)
        return pool.checkedout() if pool is not None else 0

    def disconnect(self) -> None:
        """Drop every pooled connection; new ones are created on demand."""
        with self._lock:
            pools = list(self._pools.values())
            self._pools.clear()
        for pool in pools:
            pool.dispose()
        logger.debug(f"Disconnected {len(pools)} shard pool(s)")
