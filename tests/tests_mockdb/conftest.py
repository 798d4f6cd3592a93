"""
Shared fixtures for mockdb/ package tests.

Key fixtures:
- db: generic MockDatabase with no specs and non-strict queues
- pg_db: MockDatabase imitating PostgreSQL (quoted identifiers, version 150000)
- make_db: factory building a MockDatabase with explicit strictness and pool size

Every database is created with explicit strict/pool_size values so tests
don't depend on MOCK_* environment variables.
"""

import pytest

from mockdb.database import MockDatabase


@pytest.fixture
def make_db():
    """Factory for MockDatabase instances independent of the environment."""
    created = []

    def factory(**opts):
        opts.setdefault('strict', False)
        opts.setdefault('pool_size', 4)
        db = MockDatabase(**opts)
        created.append(db)
        return db

    yield factory

    for db in created:
        db.disconnect()


@pytest.fixture
def db(make_db):
    return make_db()


@pytest.fixture
def pg_db(make_db):
    return make_db(host='postgres')
