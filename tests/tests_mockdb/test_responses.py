"""
==============================================
Pytest suite for mockdb/responses.py
==============================================

Sections:
---------
1. Unit tests - resolution of each spec shape
2. Edge case tests - queue exhaustion, strict mode, invalid specs

How to Execute:
---------------
All tests:          pytest tests/tests_mockdb/test_responses.py -v
"""

import threading

import pytest
from sqlalchemy.exc import DatabaseError, IntegrityError

from mockdb.responses import (
    MockConfigurationError,
    MockDatabaseError,
    ResponseResolver,
    ScriptedError,
    ScriptExhaustedError,
    is_exception_class,
)


@pytest.fixture
def resolver():
    return ResponseResolver(threading.Lock())


@pytest.fixture
def strict_resolver():
    return ResponseResolver(threading.Lock(), strict=True)


# ===============
# 1. UNIT TESTS
# ===============


@pytest.mark.unit
def test_next_value_fixed_and_default(resolver):
    assert resolver.next_value(None, 'SQL', 0) == 0
    assert resolver.next_value(7, 'SQL', 0) == 7


@pytest.mark.unit
def test_next_value_queue(resolver):
    spec = [1, 2]
    assert [resolver.next_value(spec, 'SQL', 0) for _ in range(3)] == [1, 2, 0]
    assert spec == []


@pytest.mark.unit
def test_next_value_callable_receives_sql(resolver):
    seen = []

    def spec(sql):
        seen.append(sql)
        return 3 if 'DELETE' in sql else 1

    assert resolver.next_value(spec, 'DELETE FROM t', 0) == 3
    assert resolver.next_value(spec, 'UPDATE t', 0) == 1
    assert seen == ['DELETE FROM t', 'UPDATE t']


@pytest.mark.unit
def test_next_value_nested_specs(resolver):
    """Queue entries and callback results are resolved again."""
    spec = [lambda sql: [5], None, 4]
    assert resolver.next_value(spec, 'SQL', 0) == 5
    assert resolver.next_value(spec, 'SQL', 0) == 0
    assert resolver.next_value(spec, 'SQL', 0) == 4


@pytest.mark.unit
def test_next_value_exception_class(resolver):
    with pytest.raises(ScriptedError) as exc_info:
        resolver.next_value(ValueError, 'UPDATE t', 0)
    assert isinstance(exc_info.value.orig, ValueError)
    assert exc_info.value.statement == 'UPDATE t'


@pytest.mark.unit
def test_scripted_error_is_database_error():
    assert issubclass(ScriptedError, MockDatabaseError)
    assert issubclass(MockDatabaseError, DatabaseError)
    assert issubclass(ScriptExhaustedError, MockConfigurationError)


@pytest.mark.unit
def test_queued_exception_raised_once(resolver):
    spec = [KeyError, 2]
    with pytest.raises(ScriptedError):
        resolver.next_value(spec, 'SQL', 0)
    assert resolver.next_value(spec, 'SQL', 0) == 2


@pytest.mark.unit
def test_rows_fixed(resolver):
    assert resolver.rows(None, 'SQL') == []
    assert resolver.rows({'id': 1}, 'SQL') == [{'id': 1}]
    assert resolver.rows([{'id': 1}, {'id': 2}], 'SQL') == [{'id': 1}, {'id': 2}]
    assert resolver.rows(({'id': 1},), 'SQL') == [{'id': 1}]


@pytest.mark.unit
def test_rows_empty_list_is_no_rows(resolver):
    spec = []
    assert resolver.rows(spec, 'SQL') == []
    assert resolver.rows(spec, 'SQL') == []


@pytest.mark.unit
def test_rows_are_copies(resolver):
    spec = {'id': 1}
    rows = resolver.rows(spec, 'SQL')
    rows[0]['id'] = 99
    assert spec == {'id': 1}


@pytest.mark.unit
def test_rows_queue(resolver):
    spec = [[{'id': 1}], {'id': 2}, lambda sql: [{'sql': sql}]]
    assert resolver.rows(spec, 'A') == [{'id': 1}]
    assert resolver.rows(spec, 'B') == [{'id': 2}]
    assert resolver.rows(spec, 'C') == [{'sql': 'C'}]
    assert resolver.rows(spec, 'D') == []


@pytest.mark.unit
def test_columns(resolver):
    assert resolver.columns(None, 'SQL') is None
    assert resolver.columns([], 'SQL') is None
    assert resolver.columns(['id', 'name'], 'SQL') == ['id', 'name']
    assert resolver.columns(('id',), 'SQL') == ['id']
    assert resolver.columns(lambda sql: ['x'], 'SQL') == ['x']


@pytest.mark.unit
def test_columns_queue(resolver):
    spec = [['a'], ['b', 'c']]
    assert resolver.columns(spec, 'SQL') == ['a']
    assert resolver.columns(spec, 'SQL') == ['b', 'c']
    assert resolver.columns(spec, 'SQL') is None


@pytest.mark.unit
def test_columns_single_name(resolver):
    assert resolver.columns('id', 'SQL') == ['id']
    assert resolver.columns(lambda sql: 'x', 'SQL') == ['x']


@pytest.mark.unit
def test_rows_queue_stays_a_queue(resolver):
    """Draining a queue down to dict entries keeps popping them."""
    spec = [[{'id': 1}], {'id': 2}]
    results = [resolver.rows(spec, 'SQL') for _ in range(4)]
    assert results == [[{'id': 1}], [{'id': 2}], [], []]
    assert spec == []


@pytest.mark.unit
def test_columns_queue_stays_a_queue(resolver):
    spec = [['a', 'b'], 'c']
    assert resolver.columns(spec, 'SQL') == ['a', 'b']
    assert resolver.columns(spec, 'SQL') == ['c']
    assert resolver.columns(spec, 'SQL') is None
    assert spec == []


@pytest.mark.unit
def test_fixed_rows_not_consumed(resolver):
    spec = [{'id': 1}]
    assert resolver.rows(spec, 'A') == [{'id': 1}]
    assert resolver.rows(spec, 'B') == [{'id': 1}]
    assert spec == [{'id': 1}]


@pytest.mark.unit
def test_exception_instance_raised(resolver):
    error = IntegrityError("INSERT INTO t", None, Exception("duplicate key"))
    with pytest.raises(ScriptedError) as exc_info:
        resolver.next_value(error, 'INSERT INTO t', None)
    assert exc_info.value.orig is error


@pytest.mark.unit
def test_queued_exception_instances(resolver):
    error = ValueError('bad row')
    spec = [[{'id': 1}], error]
    assert resolver.rows(spec, 'SQL') == [{'id': 1}]
    with pytest.raises(ScriptedError) as exc_info:
        resolver.rows(spec, 'SQL')
    assert exc_info.value.orig is error


@pytest.mark.unit
def test_is_exception_class():
    assert is_exception_class(ValueError)
    assert not is_exception_class(ValueError())
    assert not is_exception_class(int)
    assert not is_exception_class(None)


# ====================
# 2. EDGE CASE TESTS
# ====================


@pytest.mark.edge_case
def test_strict_next_value_raises_when_exhausted(strict_resolver):
    spec = [1]
    assert strict_resolver.next_value(spec, 'SQL', 0) == 1
    with pytest.raises(ScriptExhaustedError, match='UPDATE t'):
        strict_resolver.next_value(spec, 'UPDATE t', 0)


@pytest.mark.edge_case
def test_strict_columns_raise_when_exhausted(strict_resolver):
    spec = [['a']]
    strict_resolver.columns(spec, 'SQL')
    with pytest.raises(ScriptExhaustedError):
        strict_resolver.columns(spec, 'SQL')


@pytest.mark.edge_case
def test_strict_mode_keeps_empty_fetch_as_no_rows(strict_resolver):
    assert strict_resolver.rows([], 'SQL') == []


@pytest.mark.edge_case
def test_strict_mode_ignores_absent_specs(strict_resolver):
    assert strict_resolver.next_value(None, 'SQL', 0) == 0


@pytest.mark.edge_case
@pytest.mark.parametrize("spec", ['3', 1.5, True, {'a': 1}, object()])
def test_invalid_number_specs(resolver, spec):
    with pytest.raises(MockConfigurationError):
        resolver.next_value(spec, 'SQL', 0)


@pytest.mark.edge_case
@pytest.mark.parametrize("spec", [1, 'rows', ('a', 'b')])
def test_invalid_fetch_specs(resolver, spec):
    with pytest.raises(MockConfigurationError):
        resolver.rows(spec, 'SQL')


@pytest.mark.edge_case
@pytest.mark.parametrize("spec", [3, ('a', 1), ['a', 1.5]])
def test_invalid_columns_specs(resolver, spec):
    with pytest.raises(MockConfigurationError):
        resolver.columns(spec, 'SQL')


@pytest.mark.edge_case
def test_callback_errors_propagate(resolver):
    """The resolver doesn't wrap callback errors; the database does."""
    with pytest.raises(ZeroDivisionError):
        resolver.next_value(lambda sql: 1 / 0, 'SQL', 0)


@pytest.mark.concurrency
def test_rows_queue_popped_once_per_call(resolver):
    spec = [{'n': i} for i in range(200)] + [[]]
    results = []

    def worker():
        for _ in range(50):
            results.extend(resolver.rows(spec, 'SQL'))

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(row['n'] for row in results) == list(range(200))
