from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, List, Protocol, runtime_checkable

from lendind.core.models import E, ChunkRecord, Entity, EventLog

if TYPE_CHECKING:
    from lendind.decoding.specs import EventRegistry


# ---------------------------------------------------------------------------
# IEvmLogsProvider
# ---------------------------------------------------------------------------

@runtime_checkable
class IEvmLogsProvider(Protocol):
    """
    Abstract provider for fetching EVM logs.

    Domain expectations:
    - It returns EventLog objects already mapped into internal domain models.
    - It hides the underlying RPC / DB / archive technology.
    """

    async def get_logs(
        self,
        *,
        address: str,
        topic0s: list[str],
        from_block: int,
        to_block: int,
    ) -> List[EventLog]:
        """Return all logs for (address, topic0s) over the inclusive block range."""
        ...

    async def latest_block(self) -> int:
        """Return the current chain head height."""
        ...

    async def get_block_timestamp(self, block_number: int) -> int:
        """Return the unix timestamp of a block (used when logs lack one)."""
        ...


# ---------------------------------------------------------------------------
# IManifestRepository
# ---------------------------------------------------------------------------

@runtime_checkable
class IManifestRepository(Protocol):
    """
    Append-only manifest repository for chunk status tracking.

    Reading / aggregating coverage is an application-level responsibility.
    """

    async def append(self, record: ChunkRecord) -> None:
        """Append a new ChunkRecord (started/done/failed)."""
        ...


# ---------------------------------------------------------------------------
# IEntityStore
# ---------------------------------------------------------------------------

@runtime_checkable
class IEntityStore(Protocol):
    """
    Sink for entities produced by the mapping handlers.

    Domain expectations:
    - `save` is an upsert keyed by (entity type, id): saving the same key
      twice leaves the latest record.
    - Handlers never read before writing; `get` and `count` exist for
      callers and tests.
    """

    def save(self, entity: Entity) -> None:
        ...

    def get(self, entity_type: type[E], entity_id: str) -> E | None:
        ...

    def count(self, entity_type: type[Entity]) -> int:
        ...

    def flush(self) -> list[Path]:
        """Make every saved entity durable; return the files written."""
        ...

    def close(self) -> Path | None:
        """Flush buffered entities; return the last file written, if any."""
        ...


# ---------------------------------------------------------------------------
# IEventRegistryProvider
# ---------------------------------------------------------------------------

@runtime_checkable
class IEventRegistryProvider(Protocol):
    """Abstract provider of the EventRegistry used for decoding logs."""

    def get_registry(self) -> EventRegistry:
        ...


# ---------------------------------------------------------------------------
# IProgressReporter
# ---------------------------------------------------------------------------

@runtime_checkable
class IProgressReporter(Protocol):
    """Receives progress notifications from the indexing service."""

    def planned(self, total_seeds: int) -> None:
        ...

    def advanced(self, from_block: int, to_block: int) -> None:
        ...
