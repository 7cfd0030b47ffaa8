"""Generic event decoder.

This module translates raw logs into `ParsedEvent` using an `EventRegistry`
defined by `EventSpec` + (topic|data) field specs. Every key of the
spec's `projection` mapping becomes one entry of `ParsedEvent.values`.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from eth_utils import to_checksum_address

from lendind.core.models import Meta
from lendind.decoding.specs import EventRegistry, EventSpec, resolve_projection_ref
from lendind.decoding.utils import parse_data_word, parse_topic_field, word_at


@dataclass(slots=True)
class ParsedEvent:
    """Decoded event with open-ended `values` keyed by projection name."""

    name: str
    address: str
    meta: Meta
    values: dict[str, Any]


def _get_spec(topics: Sequence[str], registry: EventRegistry) -> EventSpec | None:
    if not topics:
        return None
    return registry.get(topics[0].lower())


def decode_event(
    *,
    topics: Sequence[str],
    data: bytes,
    meta: Meta,
    registry: EventRegistry,
) -> ParsedEvent | None:
    """Decode raw log (topics + data) into a `ParsedEvent`.

    Returns None when topic0 is not registered, an indexed topic is missing,
    or the data section is shorter than the spec requires.
    """
    spec = _get_spec(topics, registry)
    if spec is None:
        return None

    topic_vals: dict[str, Any] = {}
    for tf in spec.topic_fields:
        if tf.index >= len(topics):
            return None
        topic_vals[tf.name] = parse_topic_field(topics[tf.index], tf)

    if len(data) < 32 * spec.data_words:
        return None

    data_vals: dict[str, Any] = {
        df.name: parse_data_word(word_at(data, df.word_index), df.type) for df in spec.data_fields
    }

    resolved: dict[str, Any] = {
        out_key: resolve_projection_ref(ref, topic_vals, data_vals)
        for out_key, ref in spec.projection.items()
    }

    return ParsedEvent(
        name=spec.name,
        address=to_checksum_address(meta.address),
        meta=meta,
        values=resolved,
    )
