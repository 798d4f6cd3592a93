"""
========================================================
Pytest suite for utils/database_utils.py
========================================================

Sections:
---------
1. Unit tests - URL building and parsing
2. Integration tests - connect() option merging
3. Edge case tests - malformed URLs and values

Test Coverage:
--------------
- get_connection_string: mock:// URL building with config defaults
- parse_connection_string: option extraction and validation
- connect: MockDatabase creation with config < URL < keyword priority
- get_database_connection_info: database description

How to Execute:
---------------
All tests:          pytest tests/tests_utils/test_database_utils.py -v
By category:        pytest tests/tests_utils/test_database_utils.py -m unit
"""

from unittest.mock import patch

import pytest

from mockdb.database import MockDatabase
from utils.database_utils import (
    DatabaseConnectionError,
    connect,
    get_connection_string,
    get_database_connection_info,
    parse_connection_string,
)

# ====================
# Mock Helper Classes
# ====================


class FakeConfig:
    """Mock config object for testing."""
    def __init__(self, dialect='', options=None):
        self.mock_dialect = dialect
        self._options = options or {
            'host': dialect or None,
            'server_version': None,
            'append': None,
            'strict': False,
            'pool_size': 2
        }

    def get_mock_url(self):
        return f"mock://{self.mock_dialect}"

    def get_mock_options(self):
        return dict(self._options)


# ====================
# Fixtures
# ====================

@pytest.fixture
def mock_config():
    """Provide a generic mock configuration."""
    fake = FakeConfig()
    with patch('utils.database_utils.config', fake):
        yield fake


@pytest.fixture
def postgres_config():
    """Provide a configuration defaulting to the postgres dialect."""
    fake = FakeConfig(dialect='postgres')
    with patch('utils.database_utils.config', fake):
        yield fake


# ===============
# 1. UNIT TESTS
# ===============

@pytest.mark.unit
def test_get_connection_string_defaults(mock_config):
    assert get_connection_string() == 'mock://'


@pytest.mark.unit
def test_get_connection_string_dialect_from_config(postgres_config):
    assert get_connection_string() == 'mock://postgres'


@pytest.mark.unit
def test_get_connection_string_options(mock_config):
    url = get_connection_string(dialect='postgres', append='test')
    assert url == 'mock://postgres?append=test'


@pytest.mark.unit
def test_get_connection_string_round_trips(mock_config):
    url = get_connection_string(dialect='postgres', append='t', server_version=140000, strict=True)
    assert parse_connection_string(url) == {
        'host': 'postgres',
        'append': 't',
        'server_version': 140000,
        'strict': True
    }


@pytest.mark.unit
def test_parse_connection_string_generic():
    assert parse_connection_string('mock://') == {}


@pytest.mark.unit
@pytest.mark.parametrize("flag, expected", [
    ('true', True), ('1', True), ('YES', True), ('false', False), ('0', False),
])
def test_parse_strict_flag(flag, expected):
    assert parse_connection_string(f'mock://?strict={flag}')['strict'] is expected


@pytest.mark.unit
def test_parse_pool_size():
    assert parse_connection_string('mock://postgres?pool_size=8') == {'host': 'postgres', 'pool_size': 8}


@pytest.mark.unit
def test_get_database_connection_info(mock_config):
    db = connect('mock://postgres', server_version=140000)
    db.execute("SELECT 1", server='ro')
    assert get_database_connection_info(db) == {
        'dialect': 'postgres',
        'server_version': 140000,
        'quote_identifiers': True,
        'strict': False,
        'state': 'serving',
        'servers': ['ro']
    }


@pytest.mark.unit
def test_get_database_connection_info_generic(mock_config):
    info = get_database_connection_info(connect())
    assert info['dialect'] == 'generic'
    assert info['state'] == 'configured'


# ======================
# 2. INTEGRATION TESTS
# ======================

@pytest.mark.integration
def test_connect_uses_config_defaults(postgres_config):
    db = connect()
    assert isinstance(db, MockDatabase)
    assert db.shared_dialect == 'postgres'
    assert db.pool.pool_size == 2


@pytest.mark.integration
def test_connect_url_overrides_config(postgres_config):
    db = connect('mock://?server_version=120000&append=url')
    assert db.server_version == 120000
    assert db.opts['append'] == 'url'


@pytest.mark.integration
def test_connect_keywords_override_url(mock_config):
    db = connect('mock://postgres?append=url&strict=true', append='kw', strict=False, numrows=[2])
    assert db.opts['append'] == 'kw'
    assert db.strict is False
    assert db.execute_dui("UPDATE t") == 2
    assert db.sqls() == ["UPDATE t -- kw"]


@pytest.mark.integration
def test_connect_passes_specs(mock_config):
    db = connect('mock://', autoid=3, fetch={'id': 1})
    assert db.execute_insert("INSERT") == 3
    assert db.fetch_rows("SELECT") == [{'id': 1}]


# ====================
# 3. EDGE CASE TESTS
# ====================

@pytest.mark.edge_case
def test_parse_rejects_other_schemes():
    with pytest.raises(DatabaseConnectionError, match="Unsupported scheme"):
        parse_connection_string('postgresql://localhost/db')


@pytest.mark.edge_case
def test_parse_rejects_malformed_url():
    with pytest.raises(DatabaseConnectionError, match="Invalid connection URL"):
        parse_connection_string('not a url')


@pytest.mark.edge_case
def test_parse_rejects_bad_integer():
    with pytest.raises(DatabaseConnectionError, match="Invalid option"):
        parse_connection_string('mock://?server_version=fourteen')


@pytest.mark.edge_case
def test_connect_rejects_bad_url(mock_config):
    with pytest.raises(DatabaseConnectionError):
        connect('sqlite://')


@pytest.mark.edge_case
def test_connection_error_is_configuration_error():
    from mockdb.responses import MockConfigurationError
    assert issubclass(DatabaseConnectionError, MockConfigurationError)
