from __future__ import annotations

from .core.config import IndexerConfig, LoggingConfig, MockEventDefaults
from .core.events import LendingPoolEvent
from .core.models import PositionClosed, PositionCreated, Repaid, entity_id
from .decoding.registries import make_lending_pool_registry
from .decoding.registry import add_event_spec, add_many
from .decoding.registry_builder import make_registry
from .decoding.specs import DataFieldSpec, EventRegistry, EventSpec, TopicFieldSpec
from .mappings import dispatch
from .storage import InMemoryEntityStore, ParquetEntityStore

__all__ = [
    "IndexerConfig",
    "LoggingConfig",
    "MockEventDefaults",
    "LendingPoolEvent",
    "PositionClosed",
    "PositionCreated",
    "Repaid",
    "entity_id",
    "make_lending_pool_registry",
    "make_registry",
    "add_event_spec",
    "add_many",
    "EventSpec",
    "TopicFieldSpec",
    "DataFieldSpec",
    "EventRegistry",
    "dispatch",
    "InMemoryEntityStore",
    "ParquetEntityStore",
]
