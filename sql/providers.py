"""
=====================================
Optional capability provider registry.
=====================================

Some builders convert their inputs or outputs when a companion literal
type is available: Python lists become PostgreSQL array literals,
dicts become hstore literals, and array-valued results gain the array
operator methods. Those conversions are capabilities that have to be
registered explicitly; when a capability is absent, values pass through
unchanged.

Capabilities:
- ARRAY_LITERAL: callable(list) -> array literal expression
- MAP_LITERAL: callable(dict) -> hstore literal expression
- ARRAY_OPS: callable(expression) -> expression with array operators

Example:
    >>> from sql.providers import CapabilityRegistry, ARRAY_LITERAL
    >>> from sql import pg_array
    >>>
    >>> registry = CapabilityRegistry()
    >>> pg_array.register(registry)
    >>> registry.available(ARRAY_LITERAL)
    True
"""

import threading
from typing import Any, Callable, Dict, List

from core.logger import get_logger

logger = get_logger(__name__)

ARRAY_LITERAL = 'array_literal'
MAP_LITERAL = 'map_literal'
ARRAY_OPS = 'array_ops'

CAPABILITIES = (ARRAY_LITERAL, MAP_LITERAL, ARRAY_OPS)


class CapabilityRegistry:
    """Named capability providers consulted by expression builders.

    Registration is guarded by a lock; lookups read a dict and need no
    locking.
    """

    def __init__(self):
        self._providers: Dict[str, Callable[[Any], Any]] = {}
        self._lock = threading.Lock()

    def register(self, capability: str, provider: Callable[[Any], Any]) -> None:
        """Install provider for capability, replacing any previous one.

        Raises:
            ValueError: If capability is not a known capability name
        """
        if capability not in CAPABILITIES:
            raise ValueError(f"unknown capability: {capability}")
        with self._lock:
            self._providers[capability] = provider
        logger.debug(f"Registered {capability} provider: {provider!r}")

    def unregister(self, capability: str) -> None:
        with self._lock:
            self._providers.pop(capability, None)

    def clear(self) -> None:
        with self._lock:
            self._providers.clear()

    def available(self, capability: str) -> bool:
        return capability in self._providers

    def get(self, capability: str) -> Callable[[Any], Any]:
        return self._providers[capability]

    def apply(self, capability: str, value: Any) -> Any:
        """Run value through the provider, or return it unchanged if absent."""
        provider = self._providers.get(capability)
        return provider(value) if provider is not None else value

    def registered(self) -> List[str]:
        return sorted(self._providers)


# Default registry used by builders that were not given one
registry = CapabilityRegistry()
