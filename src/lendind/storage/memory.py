from __future__ import annotations

from pathlib import Path
from typing import Any

from lendind.core.interfaces import IEntityStore
from lendind.core.models import E, Entity


class InMemoryEntityStore(IEntityStore):
    """Dict-backed entity store keyed by entity type name, then id.

    Used by tests and dry runs; `save` overwrites an existing key.
    """

    def __init__(self) -> None:
        self._entities: dict[str, dict[str, Entity]] = {}

    def save(self, entity: Entity) -> None:
        self._entities.setdefault(type(entity).__name__, {})[entity.id] = entity

    def get(self, entity_type: type[E], entity_id: str) -> E | None:
        return self._entities.get(entity_type.__name__, {}).get(entity_id)  # type: ignore[return-value]

    def count(self, entity_type: type[Entity]) -> int:
        return len(self._entities.get(entity_type.__name__, {}))

    def all(self, entity_type: type[E]) -> list[E]:
        return list(self._entities.get(entity_type.__name__, {}).values())  # type: ignore[arg-type]

    def clear(self) -> None:
        self._entities.clear()

    def flush(self) -> list[Path]:
        return []

    def close(self) -> Path | None:
        return None

    def assert_field_equals(
        self,
        entity_type: type[Entity],
        entity_id: str,
        field: str,
        expected: Any,
    ) -> None:
        """Raise AssertionError unless the stored entity's `field` equals `expected`."""
        entity = self.get(entity_type, entity_id)
        if entity is None:
            raise AssertionError(f"{entity_type.__name__} {entity_id} not found")
        actual = getattr(entity, field)
        if actual != expected:
            raise AssertionError(
                f"{entity_type.__name__} {entity_id}.{field}: expected {expected!r}, got {actual!r}"
            )
