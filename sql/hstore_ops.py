"""
=======================================
PostgreSQL hstore operators and functions.
=======================================

HStoreOp wraps an expression (usually a column identifier) and offers
builder methods for the hstore operators and functions. Each method
returns a new immutable node; the receiver is never modified.

    h = hstore_op(identifier('h'))

    h - 'a'                # (h - CAST('a' AS text))
    h['a']                 # (h -> 'a'), or h['a'] on PostgreSQL 14+
    h.merge(other)         # (h || other)
    h.has_key('a')         # (h ? 'a')
    h.contain_all(arr)     # (h ?& arr)
    h.contain_any(arr)     # (h ?| arr)
    h.contains(other)      # (h @> other)
    h.contained_by(other)  # (h <@ other)
    h.defined('a')         # defined(h, 'a')
    h.delete('a')          # delete(h, 'a')
    h.each()               # each(h)
    h.keys()               # akeys(h)
    h.populate(rec)        # populate_record(rec, h)
    h.record_set(rec)      # (rec #= h)
    h.skeys()              # skeys(h)
    h.slice(arr)           # slice(h, arr)
    h.svals()              # svals(h)
    h.to_array()           # hstore_to_array(h)
    h.to_matrix()          # hstore_to_matrix(h)
    h.values()             # avals(h)

Lists and dicts given as arguments are converted to array and hstore
literals when those capabilities are registered (see sql.providers);
array-valued results are wrapped with the array operators when the
ARRAY_OPS capability is registered.

Updating part of an hstore column on PostgreSQL 14+:

    h = hstore_op(identifier('h'))
    ds.literal(h['key1'])  # h['key1'], usable as an UPDATE target
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from sql.expressions import (
    BooleanExpression,
    Cast,
    Expression,
    Function,
    Identifier,
    LiteralString,
    Operator,
    OperatorExpression,
    PlaceholderLiteral,
    QualifiedIdentifier,
    StringExpression,
    Wrapper,
)
from sql.providers import (
    ARRAY_LITERAL,
    ARRAY_OPS,
    MAP_LITERAL,
    CapabilityRegistry,
    registry,
)
from sql.render import RenderContext

# Server version from which hstore subscripts are supported (PostgreSQL 14)
SUBSCRIPT_MIN_VERSION = 140000

SUBSCRIPT = ('', '[', ']')
LOOKUP = Operator.LOOKUP.fragments()


def is_array_like(obj: Any) -> bool:
    """Return True for Python sequences and array literal/operator nodes."""
    return isinstance(obj, (list, tuple)) or getattr(obj, 'is_array', False)


@dataclass(frozen=True)
class HStoreOp(Wrapper):
    """Builder for hstore operators and functions on a wrapped expression.

    Attributes:
        value: The wrapped hstore expression
        providers: Capability registry used for conversions; the module
            default registry when None
    """

    providers: Optional[CapabilityRegistry] = field(default=None, compare=False, repr=False)

    # hstore ops define __getitem__; without this, iter() would probe
    # integer keys forever
    __iter__ = None

    def __sub__(self, other):
        """Delete keys from the hstore: ``(h - other)``.

        A plain string is cast to text so PostgreSQL doesn't have to pick
        between the text, text[] and hstore variants of the operator.
        """
        if isinstance(other, str) and not isinstance(other, LiteralString):
            other = Cast(other, 'text')
        else:
            other = self._wrap_input_array(self._wrap_input_hash(other))
        return self._new(OperatorExpression(Operator.SUBTRACT, (self, other)))

    def __getitem__(self, key):
        """Look up the value for key: ``(h -> key)``.

        Array keys look up several values at once and produce an array.
        When the wrapped value is an identifier, the result is a subscript
        node which renders as ``h[key]`` on servers that support hstore
        subscripts, so it can also be used as an UPDATE target.
        """
        if is_array_like(key):
            return self._wrap_output_array(
                OperatorExpression(Operator.LOOKUP, (self.value, self._wrap_input_array(key)))
            )

        if isinstance(self.value, (Identifier, QualifiedIdentifier)):
            node = HStoreSubscriptOp(self, key)
        else:
            node = OperatorExpression(Operator.LOOKUP, (self.value, key))
        return StringExpression('NOOP', (node,))

    def contain_all(self, other) -> BooleanExpression:
        """Check the receiver has all of the keys in other: ``(h ?& other)``."""
        return self._bool_op(Operator.CONTAIN_ALL, self._wrap_input_array(other))

    def contain_any(self, other) -> BooleanExpression:
        """Check the receiver has any of the keys in other: ``(h ?| other)``."""
        return self._bool_op(Operator.CONTAIN_ANY, self._wrap_input_array(other))

    def contains(self, other) -> BooleanExpression:
        """Check the receiver contains all entries of other: ``(h @> other)``."""
        return self._bool_op(Operator.CONTAINS, self._wrap_input_hash(other))

    def contained_by(self, other) -> BooleanExpression:
        """Check other contains all entries of the receiver: ``(h <@ other)``."""
        return self._bool_op(Operator.CONTAINED_BY, self._wrap_input_hash(other))

    def defined(self, key) -> BooleanExpression:
        """Check the receiver has a non-NULL value for key: ``defined(h, key)``."""
        return BooleanExpression('NOOP', (self._function('defined', key),))

    def delete(self, key) -> 'HStoreOp':
        """Delete the matching entries: ``delete(h, key)``."""
        return self._new(
            self._function('delete', self._wrap_input_array(self._wrap_input_hash(key)))
        )

    def each(self) -> Function:
        """Expand the receiver into a set of key/value rows: ``each(h)``."""
        return self._function('each')

    def has_key(self, key) -> BooleanExpression:
        """Check the receiver contains key: ``(h ? key)``."""
        return self._bool_op(Operator.HAS_KEY, key)

    include = has_key
    key = has_key
    member = has_key
    exist = has_key

    def hstore(self) -> 'HStoreOp':
        return self

    def keys(self):
        """Keys as a PostgreSQL array: ``akeys(h)``."""
        return self._wrap_output_array(self._function('akeys'))

    akeys = keys

    def merge(self, other) -> 'HStoreOp':
        """Merge other into the receiver: ``(h || other)``."""
        return self._new(OperatorExpression(Operator.CONCAT, (self, self._wrap_input_hash(other))))

    concat = merge

    def populate(self, record) -> Function:
        """Build a record from the receiver's entries: ``populate_record(record, h)``."""
        return Function('populate_record', (record, self))

    def record_set(self, record) -> OperatorExpression:
        """Update record fields from the receiver: ``(record #= h)``."""
        return OperatorExpression(Operator.RECORD_SET, (record, self.value))

    def skeys(self) -> Function:
        """Keys as a set: ``skeys(h)``."""
        return self._function('skeys')

    def slice(self, keys) -> 'HStoreOp':
        """Keep only the given keys: ``slice(h, keys)``."""
        return self._new(self._function('slice', self._wrap_input_array(keys)))

    def svals(self) -> Function:
        """Values as a set: ``svals(h)``."""
        return self._function('svals')

    def to_array(self):
        """Flattened array of alternating keys and values: ``hstore_to_array(h)``."""
        return self._wrap_output_array(self._function('hstore_to_array'))

    def to_matrix(self):
        """Array of two-element key/value arrays: ``hstore_to_matrix(h)``."""
        return self._wrap_output_array(self._function('hstore_to_matrix'))

    def values(self):
        """Values as a PostgreSQL array: ``avals(h)``."""
        return self._wrap_output_array(self._function('avals'))

    avals = values

    @property
    def _registry(self) -> CapabilityRegistry:
        return self.providers if self.providers is not None else registry

    def _new(self, value) -> 'HStoreOp':
        return HStoreOp(value, providers=self.providers)

    def _bool_op(self, op: Operator, other) -> BooleanExpression:
        return BooleanExpression('NOOP', (OperatorExpression(op, (self.value, other)),))

    def _function(self, name: str, *args) -> Function:
        return Function(name, (self,) + args)

    def _wrap_input_array(self, obj):
        if isinstance(obj, (list, tuple)) and self._registry.available(ARRAY_LITERAL):
            return self._registry.get(ARRAY_LITERAL)(list(obj))
        return obj

    def _wrap_input_hash(self, obj):
        if isinstance(obj, dict) and self._registry.available(MAP_LITERAL):
            return self._registry.get(MAP_LITERAL)(obj)
        return obj

    def _wrap_output_array(self, obj):
        return self._registry.apply(ARRAY_OPS, obj)


@dataclass(frozen=True)
class HStoreSubscriptOp(Expression):
    """An hstore subscript whose SQL depends on the server version.

    Renders as ``expression[sub]`` when the render context reports a
    server version of at least 140000, and as ``(expression -> sub)``
    otherwise, including when the version is unknown.
    """

    expression: Any
    sub: Any

    composite = True

    def sql_append(self, ctx: RenderContext, buf: List[str]) -> None:
        server_version = ctx.server_version
        if server_version is not None and server_version >= SUBSCRIPT_MIN_VERSION:
            fragments = SUBSCRIPT
        else:
            fragments = LOOKUP
        ctx.literal_append(buf, PlaceholderLiteral(fragments, (self.expression, self.sub)))

    def transform(self, fn):
        return HStoreSubscriptOp(fn(self.expression), fn(self.sub))


def hstore_op(value, providers: Optional[CapabilityRegistry] = None) -> HStoreOp:
    """Wrap value in an HStoreOp; an HStoreOp is returned unchanged."""
    if isinstance(value, HStoreOp):
        return value
    return HStoreOp(value, providers=providers)
