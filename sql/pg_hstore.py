"""
==================================
PostgreSQL hstore literals.
==================================

HStore renders a Python dict as an hstore literal:

    hstore({'a': 'b', 'c': None}).sql()  # '"a"=>"b","c"=>NULL'::hstore

Keys and non-NULL values are converted with ``str()``. ``register()``
installs ``hstore`` as the map literal provider, so hstore builders
convert dict arguments automatically.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from sql.expressions import Expression
from sql.hstore_ops import HStoreOp
from sql.providers import MAP_LITERAL, CapabilityRegistry, registry
from sql.render import RenderContext


def _escape(value: str) -> str:
    return '"' + value.replace('\\', '\\\\').replace('"', '\\"') + '"'


@dataclass(frozen=True)
class HStore(Expression):
    """An hstore literal built from ordered key/value pairs."""

    items: Tuple[Tuple[str, Optional[str]], ...]

    def sql_append(self, ctx: RenderContext, buf: List[str]) -> None:
        body = ','.join(
            f'{_escape(k)}=>{"NULL" if v is None else _escape(v)}'
            for k, v in self.items
        )
        buf.append(ctx.quote_string(body))
        buf.append('::hstore')

    def as_dict(self) -> Dict[str, Optional[str]]:
        return dict(self.items)

    def op(self):
        """Wrap the literal in an HStoreOp."""
        return HStoreOp(self)


def hstore(mapping) -> HStore:
    """Return mapping as an HStore literal; an HStore is returned unchanged."""
    if isinstance(mapping, HStore):
        return mapping
    return HStore(tuple(
        (str(k), None if v is None else str(v)) for k, v in mapping.items()
    ))


def register(target: CapabilityRegistry = registry) -> None:
    """Install hstore as the map literal provider."""
    target.register(MAP_LITERAL, hstore)
