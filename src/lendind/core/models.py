"""Core records: raw logs, persisted entities and their column buffer.

This module defines:
- `EventLog`: minimal RPC log record used by the decoder.
- `Meta`: provenance of one log while it is being decoded.
- `ChunkRecord`: manifest entry used for resumability and coverage.
- `PositionClosed` / `PositionCreated` / `Repaid`: write-once entities.
- `EntityColumns`: append-only columnar buffer of one entity type.

Design notes
------------
- Entity ids are `tx_hash || int32_le(log_index)` rendered as 0x-hex.
- Base columns are strongly typed and always present.
- Entity-specific fields become dynamic string columns (uint256 safety).
- Sorting is applied on (block_number, id) before write.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Literal, TypeVar

import pyarrow as pa
from eth_utils import decode_hex

# === Base schema (Arrow) ===

_BASE_FIELDS: list[tuple[str, pa.DataType]] = [
    ("id", pa.string()),
    ("block_number", pa.uint64()),
    ("block_timestamp", pa.uint64()),
    ("transaction_hash", pa.string()),
]
_BASE_NAMES = frozenset(n for n, _ in _BASE_FIELDS)

Status = Literal["started", "done", "failed"]


# === RPC record ===


@dataclass(slots=True, frozen=True)
class EventLog:
    """Raw log as fetched from RPC, minimally normalized."""

    address: str  # lowercased 0x...
    topics: tuple[str, ...]  # lowercased 0x...
    data_hex: str  # "0x..."
    block_number: int
    tx_hash: str  # lowercased 0x...
    log_index: int
    block_timestamp: int | None = None


@dataclass(slots=True)
class Meta:
    """Lightweight metadata for a single log used during decoding."""

    block_number: int
    block_timestamp: int | None
    tx_hash: str
    log_index: int
    address: str


# === Manifest record ===


@dataclass(slots=True)
class ChunkRecord:
    """A single chunk execution record persisted to the live manifest."""

    from_block: int
    to_block: int
    status: Status
    attempts: int
    error: str | None
    logs: int  # raw logs fetched
    decoded: int  # events dispatched to handlers
    entities: int  # entities saved for this chunk
    updated_at: float
    filtered: int = 0  # logs skipped by the decoder

    def to_json_line(self) -> str:
        """Serialize as a compact JSON line."""
        return json.dumps(asdict(self), separators=(",", ":")) + "\n"


# === Entities ===


def entity_id(tx_hash: str, log_index: int) -> str:
    """Composite key: transaction hash bytes followed by the little-endian int32 log index."""
    raw = decode_hex(tx_hash) + log_index.to_bytes(4, "little", signed=True)
    return "0x" + raw.hex()


@dataclass(slots=True, frozen=True, kw_only=True)
class Entity:
    """Provenance shared by every LendingPool entity."""

    id: str
    block_number: int
    block_timestamp: int
    transaction_hash: str


@dataclass(slots=True, frozen=True, kw_only=True)
class PositionClosed(Entity):
    user: str


@dataclass(slots=True, frozen=True, kw_only=True)
class PositionCreated(Entity):
    user: str
    timestamp: int


@dataclass(slots=True, frozen=True, kw_only=True)
class Repaid(Entity):
    user: str
    amount: int


E = TypeVar("E", bound=Entity)

ENTITY_TYPES: dict[str, type[Entity]] = {
    cls.__name__: cls for cls in (PositionClosed, PositionCreated, Repaid)
}


def entity_name(entity_type: type[Entity]) -> str:
    return entity_type.__name__


def entity_values(entity: Entity) -> dict[str, Any]:
    """Entity-specific fields (everything but the provenance columns)."""
    return {f.name: getattr(entity, f.name) for f in fields(entity) if f.name not in _BASE_NAMES}


def entity_from_row(entity_type: type[E], row: dict[str, Any]) -> E:
    """Rebuild an entity from one Arrow row; int fields come back from strings."""
    kwargs: dict[str, Any] = {}
    for f in fields(entity_type):
        v = row[f.name]
        kwargs[f.name] = int(v) if f.type == "int" and v is not None else v
    return entity_type(**kwargs)


# === Column buffer ===


@dataclass(slots=True)
class EntityColumns:
    """Columnar buffer for one entity type.

    - Base columns are always present and strongly typed.
    - Dynamic columns are created lazily upon first field appearance.
    - All dynamic values are stored as *strings* (or None) to avoid Arrow
      overflow and preserve exactness (uint256 amounts).
    """

    id: list[str] = field(default_factory=list)
    block_number: list[int] = field(default_factory=list)
    block_timestamp: list[int] = field(default_factory=list)
    transaction_hash: list[str] = field(default_factory=list)

    dyn: dict[str, list[str | None]] = field(default_factory=dict)
    _rows: int = 0

    @staticmethod
    def empty() -> EntityColumns:
        return EntityColumns()

    @staticmethod
    def from_entities(entities: Iterable[Entity]) -> EntityColumns:
        cols = EntityColumns()
        for entity in entities:
            cols.append(entity)
        return cols

    def size(self) -> int:
        """Number of rows currently stored."""
        return self._rows

    def _ensure_dyn_col(self, name: str) -> list[str | None]:
        """Ensure a dynamic column exists and is aligned to current row count."""
        col = self.dyn.get(name)
        if col is None:
            col = [None] * self._rows
            self.dyn[name] = col
        return col

    def append(self, entity: Entity) -> None:
        """Append one entity as a row."""
        self.id.append(entity.id)
        self.block_number.append(entity.block_number)
        self.block_timestamp.append(entity.block_timestamp)
        self.transaction_hash.append(entity.transaction_hash)
        self._rows += 1
        for col in self.dyn.values():
            col.append(None)
        for k, v in entity_values(entity).items():
            self._ensure_dyn_col(k)[-1] = None if v is None else str(v)

    def extend(self, other: EntityColumns) -> int:
        """Merge `other` into self; align dynamic columns by name."""
        n = other.size()
        if n == 0:
            return 0

        old_rows = self._rows

        self.id.extend(other.id)
        self.block_number.extend(other.block_number)
        self.block_timestamp.extend(other.block_timestamp)
        self.transaction_hash.extend(other.transaction_hash)
        self._rows += n

        for k in set(self.dyn) | set(other.dyn):
            if k not in self.dyn:
                self.dyn[k] = [None] * old_rows
            ocol = other.dyn.get(k)
            self.dyn[k].extend([None] * n if ocol is None else ocol)

        return n

    def take_first(self, n: int) -> EntityColumns:
        """Detach and return the first `n` rows as a new buffer slice."""
        out = EntityColumns()
        out.id, self.id = self.id[:n], self.id[n:]
        out.block_number, self.block_number = self.block_number[:n], self.block_number[n:]
        out.block_timestamp, self.block_timestamp = self.block_timestamp[:n], self.block_timestamp[n:]
        out.transaction_hash, self.transaction_hash = self.transaction_hash[:n], self.transaction_hash[n:]
        for k, col in self.dyn.items():
            out.dyn[k] = col[:n]
            self.dyn[k] = col[n:]
        out._rows = min(n, self._rows)
        self._rows -= out._rows
        return out

    def _last_occurrences(self) -> list[int]:
        """Row indices holding the latest write of each id, in arrival order."""
        seen: set[str] = set()
        keep: list[int] = []
        for i in range(self._rows - 1, -1, -1):
            if self.id[i] not in seen:
                seen.add(self.id[i])
                keep.append(i)
        keep.reverse()
        return keep

    def _subset(self, indices: list[int]) -> EntityColumns:
        out = EntityColumns()
        out.id = [self.id[i] for i in indices]
        out.block_number = [self.block_number[i] for i in indices]
        out.block_timestamp = [self.block_timestamp[i] for i in indices]
        out.transaction_hash = [self.transaction_hash[i] for i in indices]
        for k, col in self.dyn.items():
            out.dyn[k] = [col[i] for i in indices]
        out._rows = len(indices)
        return out

    def to_arrow_table(self) -> pa.Table:
        """Convert the buffer to a sorted Arrow table with deterministic schema.

        Repeated ids collapse to their latest row (upsert by key).
        """
        keep = self._last_occurrences()
        if len(keep) != self._rows:
            return self._subset(keep).to_arrow_table()

        schema_fields = [pa.field(n, t) for n, t in _BASE_FIELDS]
        arrays: dict[str, pa.Array] = {
            "id": pa.array(self.id, type=pa.string()),
            "block_number": pa.array(self.block_number, type=pa.uint64()),
            "block_timestamp": pa.array(self.block_timestamp, type=pa.uint64()),
            "transaction_hash": pa.array(self.transaction_hash, type=pa.string()),
        }
        for name in sorted(self.dyn):
            schema_fields.append(pa.field(name, pa.string()))
            arrays[name] = pa.array(self.dyn[name], type=pa.string())
        return pa.Table.from_pydict(arrays, schema=pa.schema(schema_fields)).sort_by(
            [("block_number", "ascending"), ("id", "ascending")]
        )
