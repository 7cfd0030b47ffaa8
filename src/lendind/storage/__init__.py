"""Storage components for entities and manifest tracking.

This package provides:
- InMemoryEntityStore: dict-backed entity store for tests and dry runs
- ParquetEntityStore: per-entity-type Parquet shards with upsert-on-read
- LiveManifest: append-only JSONL manifest writer for chunk status tracking
"""

from lendind.storage.manifest import LiveManifest
from lendind.storage.memory import InMemoryEntityStore
from lendind.storage.shards import ParquetEntityStore, ShardWriter, load_entities, read_entities

__all__ = [
    "InMemoryEntityStore",
    "LiveManifest",
    "ParquetEntityStore",
    "ShardWriter",
    "load_entities",
    "read_entities",
]
