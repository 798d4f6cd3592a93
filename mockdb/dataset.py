"""
=======================================
Datasets bound to a mock database.
=======================================

A MockDataset renders expressions for its database (it is a
RenderContext whose server version and quoting follow the database)
and executes statements with optional per-dataset response overrides.

Example:
    >>> ds = db.dataset().with_fetch([{'id': 1}, {'id': 2}])
    >>> ds.all("SELECT id FROM t")
    [{'id': 1}, {'id': 2}]
    >>> ds.with_autoid(10).insert("INSERT INTO t DEFAULT VALUES")
    10
"""

from typing import Any, Dict, Iterator, List, Optional

import pandas as pd

from sql.render import RenderContext


class MockDataset(RenderContext):
    """Render and execute statements against a MockDatabase.

    Attributes:
        db: Owning MockDatabase
        opts: Response overrides (autoid, fetch, numrows); None entries
            fall back to the database specs
    """

    def __init__(
        self,
        db,
        autoid: Any = None,
        fetch: Any = None,
        numrows: Any = None,
        columns: Optional[List[str]] = None,
        quote_identifiers: Optional[bool] = None
    ):
        super().__init__(
            quote_identifiers=db.quote_identifiers if quote_identifiers is None else quote_identifiers
        )
        self.db = db
        self.opts: Dict[str, Any] = {'autoid': autoid, 'fetch': fetch, 'numrows': numrows}
        self._next_autoid: Optional[int] = None
        self._columns: List[str] = list(columns or [])

    @property
    def server_version(self) -> Optional[int]:
        return self.db.server_version

    @property
    def autoid(self) -> Any:
        """The autoid override, advanced past ids already handed out."""
        if self._next_autoid is not None:
            return self._next_autoid
        return self.opts['autoid']

    @property
    def fetch(self) -> Any:
        return self.opts['fetch']

    @property
    def numrows(self) -> Any:
        return self.opts['numrows']

    @property
    def columns(self) -> List[str]:
        return list(self._columns)

    def set_columns(self, *columns: str) -> 'MockDataset':
        """Set the column names reported by this dataset."""
        self._columns = list(columns)
        return self

    def clone(self, **changes) -> 'MockDataset':
        """Return a copy of this dataset with the given overrides changed."""
        opts = dict(self.opts)
        opts.update(changes)
        return MockDataset(
            self.db,
            columns=self._columns,
            quote_identifiers=self.quote_identifiers,
            **opts
        )

    def with_autoid(self, autoid: Any) -> 'MockDataset':
        return self.clone(autoid=autoid)

    def with_fetch(self, fetch: Any) -> 'MockDataset':
        return self.clone(fetch=fetch)

    def with_numrows(self, numrows: Any) -> 'MockDataset':
        return self.clone(numrows=numrows)

    def sql_for(self, statement: Any) -> str:
        """Return the SQL for statement.

        Strings are taken as SQL text; anything else is rendered with
        this dataset as the render context.
        """
        if isinstance(statement, str):
            return str(statement)
        return self.literal(statement)

    def fetch_rows(self, statement: Any, **opts) -> Iterator[Dict[str, Any]]:
        """Record a query and return an iterator over its scripted rows.

        The statement is logged and its response resolved before this returns.
        """
        rows = self.db.fetch_rows(self.sql_for(statement), dataset=self, **opts)
        return iter(rows)

    def all(self, statement: Any, **opts) -> List[Dict[str, Any]]:
        return list(self.fetch_rows(statement, **opts))

    def first(self, statement: Any, **opts) -> Optional[Dict[str, Any]]:
        for row in self.fetch_rows(statement, **opts):
            return row
        return None

    def insert(self, statement: Any, **opts) -> Any:
        """Execute an INSERT and return the scripted id."""
        return self.db.execute_insert(self.sql_for(statement), dataset=self, **opts)

    def update(self, statement: Any, **opts) -> int:
        """Execute an UPDATE and return the scripted row count."""
        return self.db.execute_dui(self.sql_for(statement), dataset=self, **opts)

    def delete(self, statement: Any, **opts) -> int:
        """Execute a DELETE and return the scripted row count."""
        return self.db.execute_dui(self.sql_for(statement), dataset=self, **opts)

    def to_dataframe(self, statement: Any, **opts) -> pd.DataFrame:
        """Fetch the scripted rows into a DataFrame.

        Scripted columns, if any, set the column order; otherwise the
        columns come from the row keys.
        """
        rows = self.all(statement, **opts)
        if self._columns:
            return pd.DataFrame(rows, columns=self._columns)
        return pd.DataFrame(rows)

    def _set_next_autoid(self, value: int) -> None:
        # Called by the database with its lock held
        self._next_autoid = value

    def __repr__(self):
        return f"<MockDataset db={self.db!r} opts={self.opts!r}>"
