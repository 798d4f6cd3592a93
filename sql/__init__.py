"""
====================================================
SQL expression package.
====================================================

Immutable expression nodes that render to PostgreSQL-flavoured SQL,
with hstore operator builders and tree transformers.

The package follows a clear organization:
    - render.py: RenderContext (literal rendering, identifier quoting,
      target server version)
    - expressions.py: the node model (identifiers, functions, operators,
      placeholder literals, boolean/string expressions)
    - hstore_ops.py: HStoreOp builder methods and the version-conditional
      HStoreSubscriptOp
    - providers.py: optional capability registry (array/hstore literals,
      array operators)
    - pg_array.py / pg_hstore.py: the bundled capability providers
    - transform.py: AST transformers (clone, qualify, extract parameters)

Architecture:
    - Nodes are frozen dataclasses; builders always return new nodes
    - Nodes render through sql_append(ctx, buf); the context supplies
      quoting and the server version
    - hstore_ops.py consults providers.py at call time and never imports
      pg_array.py or pg_hstore.py

Example:
    >>> from sql import hstore_op, identifier, RenderContext
    >>>
    >>> h = hstore_op(identifier('h'))
    >>> RenderContext().literal(h.delete('a'))
    "delete(h, 'a')"
    >>> RenderContext(server_version=140000).literal(h['a'])
    "h['a']"
"""

__version__ = "0.1.0"
__all__ = [
    # Rendering
    'RenderContext', 'RenderError',
    # Nodes
    'Expression', 'Identifier', 'QualifiedIdentifier', 'LiteralString',
    'Wrapper', 'Cast', 'Function', 'PlaceholderLiteral', 'Operator',
    'OperatorExpression', 'BooleanExpression', 'StringExpression',
    'identifier', 'qualify', 'lit', 'cast', 'cast_string', 'function',
    # hstore
    'HStoreOp', 'HStoreSubscriptOp', 'hstore_op',
    # Providers
    'CapabilityRegistry', 'registry',
    # Transformers
    'ASTTransformer', 'deep_clone', 'qualify_identifiers', 'extract_parameters',
]

from .expressions import (
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
    cast,
    cast_string,
    function,
    identifier,
    lit,
    qualify,
)
from .hstore_ops import HStoreOp, HStoreSubscriptOp, hstore_op
from .providers import CapabilityRegistry, registry
from .render import RenderContext, RenderError
from .transform import ASTTransformer, deep_clone, extract_parameters, qualify_identifiers
