"""Registry mutation helpers and the static registry provider.

This module exposes:
- `add_event_spec(registry, spec)` → insert one spec (lowercases key)
- `add_many(registry, specs)` → insert multiple
- `EventRegistryProvider` → hands a prepared registry to the indexing service
"""

from __future__ import annotations

from collections.abc import Iterable

from lendind.core.interfaces import IEventRegistryProvider
from lendind.decoding.specs import EventRegistry, EventSpec


def add_event_spec(registry: EventRegistry, spec: EventSpec) -> None:
    """Insert one spec into the registry keyed by lowercased topic0."""
    registry[spec.topic0.lower()] = spec


def add_many(registry: EventRegistry, specs: Iterable[EventSpec]) -> None:
    """Insert many specs into the registry."""
    for s in specs:
        add_event_spec(registry, s)


class EventRegistryProvider(IEventRegistryProvider):
    """
    Simple registry provider that always returns the same EventRegistry.

    This is the bridge between the decoding registry (ABIs/specs)
    and the use case which only depends on the interface.
    """

    def __init__(self, registry: EventRegistry) -> None:
        self._registry = registry

    def get_registry(self) -> EventRegistry:
        return self._registry
