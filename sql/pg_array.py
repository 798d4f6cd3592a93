"""
==================================
PostgreSQL array literals and operators.
==================================

PGArray renders a Python sequence as ``ARRAY[...]`` and ArrayOp adds
array operators to an expression. Calling ``register()`` installs both
as capability providers, so hstore builders convert list arguments to
array literals and wrap array-valued results in ArrayOp.

Example:
    >>> from sql import pg_array
    >>> pg_array.register()
    >>> pg_array.pg_array([1, 2]).sql()
    'ARRAY[1,2]'
"""

from dataclasses import dataclass, replace
from typing import Any, List, Optional, Tuple

from sql.expressions import (
    BooleanExpression,
    Expression,
    Function,
    Operator,
    OperatorExpression,
    Wrapper,
)
from sql.providers import ARRAY_LITERAL, ARRAY_OPS, CapabilityRegistry, registry
from sql.render import RenderContext


@dataclass(frozen=True)
class PGArray(Expression):
    """An array literal, optionally cast to ``array_type[]``."""

    items: Tuple[Any, ...]
    array_type: Optional[str] = None

    composite = True
    is_array = True

    def __post_init__(self):
        object.__setattr__(self, 'items', tuple(self.items))

    def sql_append(self, ctx: RenderContext, buf: List[str]) -> None:
        if self.items:
            buf.append('ARRAY[')
            for i, item in enumerate(self.items):
                if i:
                    buf.append(',')
                ctx.literal_append(buf, item)
            buf.append(']')
        else:
            buf.append("'{}'")
        if self.array_type:
            buf.append(f'::{self.array_type}[]')

    def transform(self, fn):
        return replace(self, items=tuple(fn(i) for i in self.items))

    def op(self) -> 'ArrayOp':
        return ArrayOp(self)


@dataclass(frozen=True)
class ArrayOp(Wrapper):
    """Array operators and functions on a wrapped array expression."""

    is_array = True

    def contains(self, other) -> BooleanExpression:
        """``(array @> other)``"""
        return self._bool_op(Operator.CONTAINS, other)

    def contained_by(self, other) -> BooleanExpression:
        """``(array <@ other)``"""
        return self._bool_op(Operator.CONTAINED_BY, other)

    def overlaps(self, other) -> BooleanExpression:
        """``(array && other)``"""
        return self._bool_op(Operator.OVERLAPS, other)

    def length(self, dimension: int = 1) -> Function:
        """``array_length(array, dimension)``"""
        return Function('array_length', (self, dimension))

    def unnest(self) -> Function:
        return Function('unnest', (self,))

    def any(self) -> Function:
        """``ANY(array)``, for use on the right side of a comparison."""
        return Function('ANY', (self,))

    def _bool_op(self, op: Operator, other) -> BooleanExpression:
        if isinstance(other, (list, tuple)):
            other = pg_array(other)
        return BooleanExpression('NOOP', (OperatorExpression(op, (self, other)),))


def pg_array(items, array_type: Optional[str] = None) -> PGArray:
    """Return items as a PGArray; a PGArray is returned unchanged."""
    if isinstance(items, PGArray):
        return items
    return PGArray(tuple(items), array_type)


def pg_array_op(value) -> ArrayOp:
    """Wrap value in an ArrayOp; an ArrayOp is returned unchanged."""
    if isinstance(value, ArrayOp):
        return value
    return ArrayOp(value)


def register(target: CapabilityRegistry = registry) -> None:
    """Install array literal and array operator providers."""
    target.register(ARRAY_LITERAL, pg_array)
    target.register(ARRAY_OPS, pg_array_op)
