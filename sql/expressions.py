"""
==================================
SQL expression node model.
==================================

Immutable building blocks for SQL expressions. Every node is a frozen
dataclass, so nodes compare structurally and can be shared freely
between threads once built.

Nodes:
- Identifier / QualifiedIdentifier: column and table references
- LiteralString: pre-escaped SQL inserted verbatim
- Wrapper: a single wrapped operand (base of HStoreOp and ArrayOp)
- Cast: CAST(expr AS type)
- Function: name(arg, ...)
- PlaceholderLiteral: literal fragments interleaved with arguments
- OperatorExpression: (a op b ...), always parenthesized
- BooleanExpression / StringExpression: typed results of other nodes

Rendering goes through ``sql_append(ctx, buf)``, see sql.render.
Composite nodes implement ``transform(fn)``, returning a copy with every
child replaced by ``fn(child)``; leaves return themselves.

Usage:
    from sql.expressions import identifier, function

    expr = function('lower', identifier('name'))
    expr.sql()  # "lower(name)"
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple, Union

from sql.render import RenderContext


class Expression:
    """Base class for all expression nodes."""

    # Composite nodes have children reachable through transform()
    composite = False

    def sql_append(self, ctx: RenderContext, buf: List[str]) -> None:
        raise NotImplementedError

    def transform(self, fn: Callable[[Any], Any]) -> 'Expression':
        return self

    def sql(self, ctx: Optional[RenderContext] = None) -> str:
        """Render this node, using a default context when none is given."""
        return (ctx or RenderContext()).literal(self)

    def hstore(self):
        """Wrap this expression so hstore operators can be used with it."""
        from sql.hstore_ops import HStoreOp
        return HStoreOp(self)


class LiteralString(str, Expression):
    """A string containing SQL that is inserted without escaping."""

    def sql_append(self, ctx: RenderContext, buf: List[str]) -> None:
        buf.append(str(self))


@dataclass(frozen=True)
class Identifier(Expression):
    """An unqualified identifier such as a column name."""

    name: str

    def sql_append(self, ctx: RenderContext, buf: List[str]) -> None:
        buf.append(ctx.quote_identifier(self.name))


@dataclass(frozen=True)
class QualifiedIdentifier(Expression):
    """A table-qualified identifier (``table.column``)."""

    table: Union[str, Identifier]
    column: Union[str, Identifier]

    def sql_append(self, ctx: RenderContext, buf: List[str]) -> None:
        for i, part in enumerate((self.table, self.column)):
            if i:
                buf.append('.')
            if isinstance(part, str):
                buf.append(ctx.quote_identifier(part))
            else:
                ctx.literal_append(buf, part)


@dataclass(frozen=True)
class Wrapper(Expression):
    """Wraps one value; renders as that value."""

    value: Any

    composite = True

    def sql_append(self, ctx: RenderContext, buf: List[str]) -> None:
        ctx.literal_append(buf, self.value)

    def transform(self, fn):
        return replace(self, value=fn(self.value))


@dataclass(frozen=True)
class Cast(Expression):
    """CAST(expr AS type)."""

    expr: Any
    type: str

    composite = True

    def sql_append(self, ctx: RenderContext, buf: List[str]) -> None:
        buf.append('CAST(')
        ctx.literal_append(buf, self.expr)
        buf.append(f' AS {self.type})')

    def transform(self, fn):
        return replace(self, expr=fn(self.expr))


@dataclass(frozen=True)
class Function(Expression):
    """A function call. Method-style calls pass the receiver first."""

    name: str
    args: Tuple[Any, ...] = ()

    composite = True

    def __post_init__(self):
        object.__setattr__(self, 'args', tuple(self.args))

    def sql_append(self, ctx: RenderContext, buf: List[str]) -> None:
        buf.append(f'{self.name}(')
        for i, arg in enumerate(self.args):
            if i:
                buf.append(', ')
            ctx.literal_append(buf, arg)
        buf.append(')')

    def transform(self, fn):
        return replace(self, args=tuple(fn(a) for a in self.args))


@dataclass(frozen=True)
class PlaceholderLiteral(Expression):
    """Literal SQL fragments interleaved with rendered arguments.

    ``fragments`` must hold exactly one more entry than ``args``; the
    output is fragments[0], args[0], fragments[1], ..., fragments[-1].
    """

    fragments: Tuple[str, ...]
    args: Tuple[Any, ...]

    composite = True

    def __post_init__(self):
        object.__setattr__(self, 'fragments', tuple(self.fragments))
        object.__setattr__(self, 'args', tuple(self.args))
        if len(self.fragments) != len(self.args) + 1:
            raise ValueError(
                f"placeholder literal needs {len(self.args) + 1} fragments, "
                f"got {len(self.fragments)}"
            )

    def sql_append(self, ctx: RenderContext, buf: List[str]) -> None:
        for fragment, arg in zip(self.fragments, self.args):
            buf.append(fragment)
            ctx.literal_append(buf, arg)
        buf.append(self.fragments[-1])

    def transform(self, fn):
        return replace(self, args=tuple(fn(a) for a in self.args))


class Operator(Enum):
    """Operator symbols understood by OperatorExpression."""

    CONCAT = '||'
    CONTAINS = '@>'
    CONTAINED_BY = '<@'
    HAS_KEY = '?'
    CONTAIN_ALL = '?&'
    CONTAIN_ANY = '?|'
    LOOKUP = '->'
    RECORD_SET = '#='
    SUBTRACT = '-'
    OVERLAPS = '&&'

    def fragments(self, arity: int = 2) -> Tuple[str, ...]:
        """Template fragments joining ``arity`` arguments with this operator."""
        return ('(',) + (f' {self.value} ',) * (arity - 1) + (')',)


@dataclass(frozen=True)
class OperatorExpression(Expression):
    """An operator applied to two or more arguments: ``(a op b)``."""

    op: Operator
    args: Tuple[Any, ...]

    composite = True

    def __post_init__(self):
        object.__setattr__(self, 'args', tuple(self.args))
        if len(self.args) < 2:
            raise ValueError(f"operator {self.op.value} needs at least 2 arguments")

    def sql_append(self, ctx: RenderContext, buf: List[str]) -> None:
        PlaceholderLiteral(self.op.fragments(len(self.args)), self.args).sql_append(ctx, buf)

    def transform(self, fn):
        return replace(self, args=tuple(fn(a) for a in self.args))


_BOOLEAN_OPS = ('NOOP', 'AND', 'OR', 'NOT')


@dataclass(frozen=True)
class BooleanExpression(Expression):
    """An expression known to produce a boolean.

    NOOP marks a single wrapped expression as boolean; AND/OR join their
    arguments; NOT negates its single argument. ``&``, ``|`` and ``~``
    build new boolean expressions.
    """

    op: str
    args: Tuple[Any, ...]

    composite = True

    def __post_init__(self):
        object.__setattr__(self, 'args', tuple(self.args))
        if self.op not in _BOOLEAN_OPS:
            raise ValueError(f"unknown boolean operator: {self.op}")

    def sql_append(self, ctx: RenderContext, buf: List[str]) -> None:
        if self.op == 'NOOP':
            ctx.literal_append(buf, self.args[0])
        elif self.op == 'NOT':
            buf.append('NOT ')
            ctx.literal_append(buf, self.args[0])
        else:
            buf.append('(')
            for i, arg in enumerate(self.args):
                if i:
                    buf.append(f' {self.op} ')
                ctx.literal_append(buf, arg)
            buf.append(')')

    def transform(self, fn):
        return replace(self, args=tuple(fn(a) for a in self.args))

    def __and__(self, other):
        return BooleanExpression('AND', (self, other))

    def __or__(self, other):
        return BooleanExpression('OR', (self, other))

    def __invert__(self):
        return BooleanExpression('NOT', (self,))


@dataclass(frozen=True)
class StringExpression(Expression):
    """An expression known to produce a string."""

    op: str
    args: Tuple[Any, ...]

    composite = True

    def __post_init__(self):
        object.__setattr__(self, 'args', tuple(self.args))

    def sql_append(self, ctx: RenderContext, buf: List[str]) -> None:
        # Only NOOP is built by this package
        ctx.literal_append(buf, self.args[0])

    def transform(self, fn):
        return replace(self, args=tuple(fn(a) for a in self.args))


def identifier(name: str) -> Identifier:
    """Return an Identifier for name."""
    return Identifier(name)


def qualify(table, column) -> QualifiedIdentifier:
    """Return ``table.column`` as a QualifiedIdentifier."""
    return QualifiedIdentifier(table, column)


def lit(sql: str) -> LiteralString:
    """Mark sql as pre-escaped SQL text."""
    return LiteralString(sql)


def cast(expr, type_name: str) -> Cast:
    """Return CAST(expr AS type_name)."""
    return Cast(expr, type_name)


def cast_string(expr) -> Cast:
    """Return CAST(expr AS text)."""
    return Cast(expr, 'text')


def function(name: str, *args) -> Function:
    """Return a call to the SQL function name with args."""
    return Function(name, args)
