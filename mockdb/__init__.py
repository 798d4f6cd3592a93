"""
=============================================================
Scripted mock database package.
=============================================================

A database simulator for tests: statements are recorded instead of
executed, and results (rows, row counts, insert ids, errors) come from
scripted response specs.

Modules:
    database: MockDatabase, the statement log and execute dispatch
    dataset: MockDataset, rendering plus per-dataset response overrides
    pool: MockConnection and the per-shard MockConnectionPool
    responses: ResponseResolver and the mock error classes

Example:
    >>> from mockdb import MockDatabase
    >>>
    >>> db = MockDatabase(host='postgres', numrows=[1, 0])
    >>> ds = db.dataset()
    >>> ds.update("UPDATE t SET a = 1")
    1
    >>> db.sqls()
    ['UPDATE t SET a = 1']
"""

__version__ = "0.1.0"
__all__ = [
    'MockDatabase', 'DatabaseState', 'MockDataset',
    'MockConnection', 'MockConnectionPool',
    'ResponseResolver', 'MockConfigurationError', 'ScriptExhaustedError',
    'MockDatabaseError', 'ScriptedError',
]

from .database import DatabaseState, MockDatabase
from .dataset import MockDataset
from .pool import MockConnection, MockConnectionPool
from .responses import (
    MockConfigurationError,
    MockDatabaseError,
    ResponseResolver,
    ScriptedError,
    ScriptExhaustedError,
)
