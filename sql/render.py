"""
=================================
SQL rendering context.
=================================

A RenderContext turns expression trees into SQL text. Every expression
node exposes ``sql_append(ctx, buf)``, which appends its SQL fragments
to ``buf`` (a list of strings) and calls back into the context for
child values; the context knows how to render plain Python values,
how to quote identifiers, and which server version it targets.

Mock datasets (mockdb.dataset.MockDataset) are render contexts bound to
a mock database, so their server version follows the database.

Example:
    >>> from sql.render import RenderContext
    >>> from sql.hstore_ops import hstore_op
    >>> from sql.expressions import identifier
    >>>
    >>> ctx = RenderContext(server_version=140000)
    >>> ctx.literal(hstore_op(identifier('h'))['a'])
    "h['a']"
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy.dialects import postgresql

from core.config import config

_PREPARER = postgresql.dialect().identifier_preparer


class RenderError(Exception):
    """Exception raised when a value cannot be expressed as SQL."""
    pass


class RenderContext:
    """Render expression trees and plain values to SQL text.

    Attributes:
        server_version: Target server version (e.g. 140000), None if unknown
        quote_identifiers: Whether identifiers are double-quoted
    """

    def __init__(
        self,
        server_version: Optional[int] = None,
        quote_identifiers: Optional[bool] = None
    ):
        self._server_version = server_version
        self.quote_identifiers = (
            config.quote_identifiers if quote_identifiers is None else quote_identifiers
        )

    @property
    def server_version(self) -> Optional[int]:
        """Server version consulted by version-conditional nodes."""
        return self._server_version

    def literal(self, obj: Any) -> str:
        """Return the SQL text for obj."""
        buf: List[str] = []
        self.literal_append(buf, obj)
        return ''.join(buf)

    def literal_append(self, buf: List[str], obj: Any) -> None:
        """Append the SQL text for obj to buf.

        Raises:
            RenderError: If obj has no SQL representation
        """
        if hasattr(obj, 'sql_append'):
            obj.sql_append(self, buf)
        elif obj is None:
            buf.append('NULL')
        elif isinstance(obj, bool):
            buf.append('true' if obj else 'false')
        elif isinstance(obj, str):
            buf.append(self.quote_string(obj))
        elif isinstance(obj, (int, float, Decimal)):
            buf.append(str(obj))
        elif isinstance(obj, datetime):
            buf.append(self.quote_string(obj.isoformat(sep=' ')))
        elif isinstance(obj, (date, time)):
            buf.append(self.quote_string(obj.isoformat()))
        elif isinstance(obj, (bytes, bytearray)):
            buf.append(f"'\\x{bytes(obj).hex()}'")
        elif isinstance(obj, (list, tuple)):
            self.expression_list_append(buf, obj)
        else:
            raise RenderError(f"can't express {obj!r} as a SQL literal")

    def expression_list_append(self, buf: List[str], items) -> None:
        """Append a parenthesized, comma separated list of values."""
        if not items:
            buf.append('(NULL)')
            return
        buf.append('(')
        for i, item in enumerate(items):
            if i:
                buf.append(', ')
            self.literal_append(buf, item)
        buf.append(')')

    def quote_string(self, value: str) -> str:
        """Return value as a single-quoted SQL string."""
        return "'" + value.replace("'", "''") + "'"

    def quote_identifier(self, name: str) -> str:
        """Return name quoted according to the quoting policy."""
        if self.quote_identifiers:
            return _PREPARER.quote_identifier(name)
        return name
