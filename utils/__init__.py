"""
==========================
Utility Functions Package.
==========================

Reusable helpers for creating mock databases from connection URLs.

Modules:
    database_utils: mock:// URL building/parsing and connect()
"""

__version__ = "1.0.0"
__all__ = [
    'DatabaseConnectionError',
    'connect',
    'get_connection_string',
    'parse_connection_string',
    'get_database_connection_info'
]

from .database_utils import (
    DatabaseConnectionError,
    connect,
    get_connection_string,
    get_database_connection_info,
    parse_connection_string,
)
