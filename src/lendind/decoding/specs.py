"""Event specification primitives and registry typing.

Defines lightweight dataclasses to describe how to decode events:
- `TopicFieldSpec` / `DataFieldSpec`: typed sources for indexed topics / data words
- `EventSpec`: one event rule (topic0, fields, projection)
- `EventRegistry`: mapping from topic0 → EventSpec
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any


# ---- Projection mapping ----
# Keys: output parameter names (e.g., "user", "amount")
# Values: references to parsed fields
#   - ProjectionRefs.TopicRef(name="<name>")  → take from parsed indexed topic fields
#   - ProjectionRefs.DataRef(name="<name>")   → take from parsed data words
class ProjectionRefs:
    @dataclass(kw_only=True)
    class TopicRef:
        name: str

    @dataclass(kw_only=True)
    class DataRef:
        name: str


ProjectionRef = ProjectionRefs.TopicRef | ProjectionRefs.DataRef | None

Projection = Mapping[str, ProjectionRef]


def resolve_projection_ref(
    ref: ProjectionRef,
    topic_vals: dict[str, Any],
    data_vals: dict[str, Any],
) -> Any:
    """Resolve a projection reference"""
    if ref is None:
        return None
    match ref:
        case ProjectionRefs.TopicRef():
            return topic_vals.get(ref.name)
        case ProjectionRefs.DataRef():
            return data_vals.get(ref.name)
    raise RuntimeError("Unsupported ProjectionEntry type")


@dataclass(frozen=True)
class TopicFieldSpec:
    """Describe one indexed topic field (by 0-based topic index and ABI type)."""

    name: str
    index: int
    type: str  # e.g., "address", "uint256"


@dataclass(frozen=True)
class DataFieldSpec:
    """Describe one 32-byte ABI word in the data section (0-based word index)."""

    name: str
    word_index: int
    type: str  # e.g., "address", "uint256"


@dataclass(frozen=True)
class EventSpec:
    """One event decoding rule + projection."""

    topic0: str
    name: str
    topic_fields: list[TopicFieldSpec]
    data_fields: list[DataFieldSpec]
    projection: Projection

    def __post_init__(self):
        def _find_matches(ref_name: str, fields: Sequence[TopicFieldSpec | DataFieldSpec]):
            return [field for field in fields if field.name == ref_name]

        for name, projection_ref in self.projection.items():
            if not isinstance(projection_ref, ProjectionRef):
                raise ValueError(f"{name} projection is not a ProjectionRef instance")
            match projection_ref:
                case ProjectionRefs.TopicRef():
                    if not _find_matches(projection_ref.name, self.topic_fields):
                        raise ValueError(f"{name} projection refers to a non-existent topic field")
                case ProjectionRefs.DataRef():
                    if not _find_matches(projection_ref.name, self.data_fields):
                        raise ValueError(f"{name} projection refers to a non-existent data field")

    @property
    def data_words(self) -> int:
        """Number of 32-byte words the data section must hold."""
        if not self.data_fields:
            return 0
        return max(df.word_index for df in self.data_fields) + 1


# The full registry keyed by topic0 (lowercased 0x-hex).
EventRegistry = dict[str, EventSpec]


def get_event_registry_topic0s(registry: EventRegistry) -> list[str]:
    return [event_spec.topic0 for event_spec in registry.values()]
