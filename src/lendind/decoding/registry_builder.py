"""Registry builder utilities for creating event registries from signatures.

This module provides the core tools for building EventRegistry instances:
- Generic `make_registry()` function for single or multiple signatures
- Signature parsing helpers for converting Solidity event signatures to EventSpec
"""

from __future__ import annotations

from eth_utils import keccak

from .registry import add_event_spec
from .specs import DataFieldSpec, EventRegistry, EventSpec, Projection, ProjectionRefs, TopicFieldSpec


def _split_params(params_str: str) -> list[str]:
    """Split the parameter list by commas while respecting nested tuple types."""
    items: list[str] = []
    depth = 0
    buf: list[str] = []
    for ch in params_str:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == "," and depth == 0:
            items.append("".join(buf).strip())
            buf = []
            continue
        buf.append(ch)
    if buf:
        items.append("".join(buf).strip())
    return [i for i in items if i]


def _parse_param(p: str, fallback_name: str) -> tuple[str, str, bool]:
    """Parse one parameter fragment into (name, abi_type, indexed)."""
    s = " ".join(p.strip().split())
    indexed = " indexed " in f" {s} "
    if indexed:
        s = f" {s} ".replace(" indexed ", " ").strip()
    tokens = s.split()
    if len(tokens) == 1:
        # unnamed parameter
        return (fallback_name, tokens[0], indexed)
    return (tokens[-1], " ".join(tokens[:-1]), indexed)


def event_spec_from_signature(signature: str, projection: Projection | None = None) -> EventSpec:
    """Build an EventSpec from a Solidity event signature string.

    Example input:
      "PositionCreated(address indexed user, uint256 timestamp)"
    """
    sig = signature.strip()
    open_paren = sig.find("(")
    close_paren = sig.rfind(")")
    if open_paren == -1 or close_paren == -1 or close_paren < open_paren:
        raise ValueError(f"Invalid event signature: {signature}")
    name = sig[:open_paren].strip()
    params_str = sig[open_paren + 1 : close_paren].strip()

    parsed = [
        _parse_param(part, fallback_name=f"arg{i}") for i, part in enumerate(_split_params(params_str))
    ]
    indexed_params = [(n, t) for n, t, is_indexed in parsed if is_indexed]
    data_params = [(n, t) for n, t, is_indexed in parsed if not is_indexed]

    # topic0 hashes the canonical type list (no names, no 'indexed')
    canonical_signature = f"{name}({','.join(t for _, t, _ in parsed)})"
    topic0 = "0x" + keccak(text=canonical_signature).hex()

    if projection is None:
        projection = {
            n: ProjectionRefs.TopicRef(name=n) if is_indexed else ProjectionRefs.DataRef(name=n)
            for n, _t, is_indexed in parsed
        }

    return EventSpec(
        topic0=topic0,
        name=name,
        topic_fields=[TopicFieldSpec(n, idx + 1, t) for idx, (n, t) in enumerate(indexed_params)],
        data_fields=[DataFieldSpec(n, idx, t) for idx, (n, t) in enumerate(data_params)],
        projection=projection,
    )


def make_registry(signatures: str | list[str]) -> EventRegistry:
    """Create a registry from one or multiple event signatures."""
    reg: EventRegistry = {}
    sig_list = [signatures] if isinstance(signatures, str) else signatures
    for signature in sig_list:
        add_event_spec(reg, event_spec_from_signature(signature))
    return reg
