"""
=======================================
Scripted response resolution.
=======================================

A mock database answers statements from response specs. Every spec is
one of:

    None                 absent: use the caller's default
    int                  fixed value (row counts, ids)
    dict                 fixed single row (fetch)
    list/tuple of dicts  fixed rows (fetch)
    list (otherwise)     queue: each resolution pops the first entry and
                         resolves it; an empty queue gives the default
    callable             called with the SQL; its result is resolved again
    exception class      instantiated without arguments and raised,
                         wrapped in ScriptedError
    exception instance   raised, wrapped in ScriptedError

Queues are consumed under the owning database's lock, so each entry is
used by exactly one statement even when statements run concurrently.
Callbacks run outside the lock.

Exceptions:
    MockConfigurationError: a spec (or option) has an unrecognized shape
    ScriptExhaustedError: a queue ran dry while strict mode is on
    MockDatabaseError: envelope for errors raised while resolving
    ScriptedError: the spec named an exception to raise
"""

import threading
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import DatabaseError

from core.logger import get_logger

logger = get_logger(__name__)

# Returned by _pop when the queue was already empty
_EXHAUSTED = object()


class MockConfigurationError(Exception):
    """Exception raised for response specs or options the mock can't use."""
    pass


class ScriptExhaustedError(MockConfigurationError):
    """Exception raised when a queued spec runs out in strict mode."""
    pass


class MockDatabaseError(DatabaseError):
    """Database error raised by the mock in place of a driver error.

    Attributes:
        statement: The logged SQL statement
        params: Bound arguments, if any
        orig: The underlying exception
    """
    pass


class ScriptedError(MockDatabaseError):
    """Database error raised because a spec named an exception class or instance."""
    pass


def is_exception_class(value: Any) -> bool:
    return isinstance(value, type) and issubclass(value, BaseException)


def is_scripted_exception(value: Any) -> bool:
    """True for exception classes and exception instances."""
    return is_exception_class(value) or isinstance(value, BaseException)


def _all_rows(spec) -> bool:
    return all(isinstance(row, dict) for row in spec)


def _all_names(spec) -> bool:
    return all(isinstance(name, str) for name in spec)


class ResponseResolver:
    """Resolve response specs into rows, counts, ids and column lists.

    A fetch or columns list is classified once, on first use: a list of
    rows (or of names) is a fixed answer, anything else is a queue. A
    list classified as a queue stays a queue until it is exhausted, even
    when its remaining entries look like a fixed answer.

    Attributes:
        strict: Raise ScriptExhaustedError instead of falling back to the
            default when a queue is empty

    Example:
        >>> resolver = ResponseResolver(threading.Lock())
        >>> spec = [1, 2]
        >>> [resolver.next_value(spec, 'UPDATE t', 0) for _ in range(3)]
        [1, 2, 0]
    """

    def __init__(self, lock: Optional[threading.Lock] = None, strict: bool = False):
        self._lock = lock or threading.Lock()
        self.strict = strict
        # id -> list for every list classified as a queue; holding the
        # list keeps its id from being reused
        self._queues: Dict[int, list] = {}

    def next_value(self, spec: Any, sql: str, default: Any) -> Any:
        """Resolve a row count or insert id spec.

        Args:
            spec: Response spec
            sql: Statement being answered, passed to callbacks
            default: Value used for an absent spec or an empty queue

        Raises:
            ScriptedError: If the spec is an exception class or instance
            ScriptExhaustedError: If the queue is empty in strict mode
            MockConfigurationError: If the spec has an unrecognized shape
        """
        if spec is None:
            return default
        if isinstance(spec, bool):
            raise MockConfigurationError(f"Invalid autoid/numrows spec: {spec!r}")
        if isinstance(spec, int):
            return spec
        if isinstance(spec, list):
            item = self._pop(spec)
            if item is _EXHAUSTED:
                return self._exhausted(sql, default)
            return self.next_value(item, sql, default)
        if is_scripted_exception(spec):
            self._raise_scripted(spec, sql)
        if callable(spec):
            return self.next_value(spec(sql), sql, default)
        raise MockConfigurationError(f"Invalid autoid/numrows spec: {spec!r}")

    def rows(self, spec: Any, sql: str) -> List[Dict[str, Any]]:
        """Resolve a fetch spec into a list of row dicts.

        Fixed rows are copied, so callers can modify what they receive
        without changing the script. A list made only of dicts is a fixed
        set of rows (an empty list yields no rows); any other list is a
        queue. An exhausted queue yields no rows, in strict mode too.

        Raises:
            ScriptedError: If the spec is an exception class or instance
            MockConfigurationError: If the spec has an unrecognized shape
        """
        if spec is None:
            return []
        if isinstance(spec, dict):
            return [dict(spec)]
        if isinstance(spec, list) and self._is_queue(spec, _all_rows):
            item = self._pop(spec)
            if item is _EXHAUSTED:
                return []
            return self.rows(item, sql)
        if isinstance(spec, (list, tuple)):
            if _all_rows(spec):
                return [dict(row) for row in spec]
            raise MockConfigurationError(f"Invalid fetch spec: {spec!r}")
        if is_scripted_exception(spec):
            self._raise_scripted(spec, sql)
        if callable(spec):
            return self.rows(spec(sql), sql)
        raise MockConfigurationError(f"Invalid fetch spec: {spec!r}")

    def columns(self, spec: Any, sql: str) -> Optional[List[str]]:
        """Resolve a columns spec into a list of column names.

        A list or tuple of strings is fixed and a single string is one
        column; any other list is a queue. Returns None when no columns
        should be set.

        Raises:
            ScriptedError: If the spec is an exception class or instance
            ScriptExhaustedError: If the queue is empty in strict mode
            MockConfigurationError: If the spec has an unrecognized shape
        """
        if spec is None:
            return None
        if isinstance(spec, str):
            return [spec]
        if isinstance(spec, list) and self._is_queue(spec, _all_names):
            item = self._pop(spec)
            if item is _EXHAUSTED:
                return self._exhausted(sql, None)
            return self.columns(item, sql)
        if isinstance(spec, (list, tuple)):
            if not _all_names(spec):
                raise MockConfigurationError(f"Invalid columns spec: {spec!r}")
            return list(spec) or None
        if is_scripted_exception(spec):
            self._raise_scripted(spec, sql)
        if callable(spec):
            return self.columns(spec(sql), sql)
        raise MockConfigurationError(f"Invalid columns spec: {spec!r}")

    def _is_queue(self, spec: list, is_fixed) -> bool:
        with self._lock:
            if id(spec) in self._queues:
                return True
            if is_fixed(spec):
                return False
            self._queues[id(spec)] = spec
            return True

    def _pop(self, queue: list) -> Any:
        with self._lock:
            if not queue:
                return _EXHAUSTED
            return queue.pop(0)

    def _exhausted(self, sql: str, default: Any) -> Any:
        if self.strict:
            raise ScriptExhaustedError(f"Scripted responses exhausted at: {sql}")
        logger.debug(f"Scripted responses exhausted, using default {default!r}")
        return default

    def _raise_scripted(self, spec: Any, sql: str) -> None:
        # Classes are instantiated without arguments; exceptions whose
        # constructor needs arguments are scripted as instances
        exc = spec() if is_exception_class(spec) else spec
        logger.debug(f"Raising scripted {type(exc).__name__} for: {sql}")
        raise ScriptedError(sql, None, exc)
