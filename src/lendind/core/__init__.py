"""Core data models, events, configuration and errors.

This package provides:
- Entity and raw-log models (PositionClosed, PositionCreated, Repaid, EventLog, ...)
- Typed LendingPool events (LendingPoolEvent, Block, Transaction)
- Configuration classes (IndexerConfig, LoggingConfig, MockEventDefaults)
- The LendindError hierarchy
"""

from lendind.core.config import IndexerConfig, LoggingConfig, MockEventDefaults
from lendind.core.errors import (
    ConfigurationError,
    DecodeError,
    LendindError,
    RPCError,
    UnknownEventError,
)
from lendind.core.events import Block, EventParam, LendingPoolEvent, Transaction
from lendind.core.models import (
    ChunkRecord,
    Entity,
    EventLog,
    Meta,
    PositionClosed,
    PositionCreated,
    Repaid,
    entity_id,
)

__all__ = [
    "IndexerConfig",
    "LoggingConfig",
    "MockEventDefaults",
    "ConfigurationError",
    "DecodeError",
    "LendindError",
    "RPCError",
    "UnknownEventError",
    "Block",
    "EventParam",
    "LendingPoolEvent",
    "Transaction",
    "ChunkRecord",
    "Entity",
    "EventLog",
    "Meta",
    "PositionClosed",
    "PositionCreated",
    "Repaid",
    "entity_id",
]
