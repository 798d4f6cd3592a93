"""
Shared fixtures for sql/ package tests.

Key fixtures:
- providers: empty CapabilityRegistry, so conversions are opt-in per test
- full_providers: registry with the array and hstore providers installed
- ctx / ctx14 / quoted_ctx: render contexts for old, new and quoting servers
- h: hstore_op on identifier 'h' bound to the empty registry
"""

import pytest

from sql import pg_array, pg_hstore
from sql.expressions import identifier
from sql.hstore_ops import hstore_op
from sql.providers import CapabilityRegistry
from sql.render import RenderContext


@pytest.fixture
def providers():
    return CapabilityRegistry()


@pytest.fixture
def full_providers():
    registry = CapabilityRegistry()
    pg_array.register(registry)
    pg_hstore.register(registry)
    return registry


@pytest.fixture
def ctx():
    """Context for a server with unknown version and no quoting."""
    return RenderContext(server_version=None, quote_identifiers=False)


@pytest.fixture
def ctx14():
    """Context for a PostgreSQL 14 server without quoting."""
    return RenderContext(server_version=140000, quote_identifiers=False)


@pytest.fixture
def quoted_ctx():
    return RenderContext(server_version=140000, quote_identifiers=True)


@pytest.fixture
def h(providers):
    return hstore_op(identifier('h'), providers=providers)


@pytest.fixture
def hp(full_providers):
    """hstore_op on 'h' with every capability provider available."""
    return hstore_op(identifier('h'), providers=full_providers)
