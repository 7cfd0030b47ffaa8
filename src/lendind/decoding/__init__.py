"""Event decoding for LendingPool logs.

This package provides:
- Event specification system (EventSpec, TopicFieldSpec, DataFieldSpec)
- Generic decoder that translates raw logs into ParsedEvent objects
- Conversion of ParsedEvent into typed LendingPoolEvent objects
- Registry management and the pre-built LendingPool registry
"""

from lendind.decoding.decoder import ParsedEvent, decode_event
from lendind.decoding.events import to_lending_pool_event
from lendind.decoding.registries import make_lending_pool_registry
from lendind.decoding.registry import EventRegistryProvider, add_event_spec, add_many
from lendind.decoding.registry_builder import make_registry
from lendind.decoding.specs import (
    DataFieldSpec,
    EventRegistry,
    EventSpec,
    Projection,
    ProjectionRefs,
    TopicFieldSpec,
)

__all__ = [
    "ParsedEvent",
    "decode_event",
    "to_lending_pool_event",
    "make_lending_pool_registry",
    "EventRegistryProvider",
    "add_event_spec",
    "add_many",
    "make_registry",
    "DataFieldSpec",
    "EventRegistry",
    "EventSpec",
    "Projection",
    "ProjectionRefs",
    "TopicFieldSpec",
]
