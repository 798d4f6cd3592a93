"""
==================================
Expression tree transformers.
==================================

Generic rewriting of expression trees built on the ``transform(fn)``
protocol every composite node implements. Transformers never need to
know concrete node types: they recurse through composites (and plain
lists, tuples and dicts) and get a chance to replace each leaf and each
rebuilt node.

Transformers:
- ASTTransformer: identity rewrite, the base for the others
- Qualifier: qualify bare identifiers with a table name
- ParameterExtractor: replace literal values with numbered parameters

Functions:
- deep_clone: structurally equal copy of a tree
- qualify_identifiers: shorthand for Qualifier(table).transform(expr)
- extract_parameters: shorthand for ParameterExtractor

Example:
    >>> from sql.transform import extract_parameters
    >>> expr, params = extract_parameters(hstore_op(identifier('h')).has_key('a'))
    >>> expr.sql(), params
    ('(h ? $1)', ['a'])
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, List, Tuple

from sql.expressions import Expression, Identifier, LiteralString, QualifiedIdentifier


class ASTTransformer:
    """Rebuild an expression tree, giving subclasses hooks for each node.

    ``visit_leaf`` receives every non-composite value; ``visit_node``
    receives each composite node after its children were rebuilt. Both
    return their argument unchanged here, so this class alone produces a
    tree equal to its input.
    """

    def transform(self, obj: Any) -> Any:
        return self.visit(obj)

    def visit(self, obj: Any) -> Any:
        if isinstance(obj, Expression) and obj.composite:
            return self.visit_node(obj.transform(self.visit))
        if isinstance(obj, list):
            return [self.visit(o) for o in obj]
        if isinstance(obj, tuple):
            return tuple(self.visit(o) for o in obj)
        if isinstance(obj, dict):
            return {self.visit(k): self.visit(v) for k, v in obj.items()}
        return self.visit_leaf(obj)

    def visit_node(self, node: Expression) -> Any:
        return node

    def visit_leaf(self, obj: Any) -> Any:
        return obj


class Qualifier(ASTTransformer):
    """Qualify every bare Identifier with table."""

    def __init__(self, table):
        self.table = table

    def visit_leaf(self, obj):
        if isinstance(obj, Identifier):
            return QualifiedIdentifier(self.table, obj.name)
        return obj


@dataclass(frozen=True)
class BoundParameter(Expression):
    """A numbered bound parameter placeholder (``$1``, ``$2``, ...)."""

    index: int

    def sql_append(self, ctx, buf):
        buf.append(f'${self.index}')


_PARAMETER_TYPES = (str, int, float, Decimal, datetime, date, time, bytes)


class ParameterExtractor(ASTTransformer):
    """Replace literal values with BoundParameters, collecting the values.

    SQL passed through LiteralString and NULL stay in place. Values are
    numbered in the order they are visited, which is rendering order.
    """

    def __init__(self):
        self.values: List[Any] = []

    def visit_leaf(self, obj):
        if isinstance(obj, LiteralString) or not isinstance(obj, _PARAMETER_TYPES):
            return obj
        self.values.append(obj)
        return BoundParameter(len(self.values))


def deep_clone(expr: Any) -> Any:
    """Return a copy of expr that shares no composite nodes with it."""
    return ASTTransformer().transform(expr)


def qualify_identifiers(expr: Any, table) -> Any:
    """Return expr with bare identifiers qualified by table."""
    return Qualifier(table).transform(expr)


def extract_parameters(expr: Any) -> Tuple[Any, List[Any]]:
    """Return (expr with literals replaced by parameters, parameter values)."""
    extractor = ParameterExtractor()
    return extractor.transform(expr), extractor.values
