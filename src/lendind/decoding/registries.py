"""Event registries for the LendingPool contract.

Registries are plain dicts keyed by topic0 and compose with `{**a, **b}`.

Example
-------
>>> from lendind.decoding.registries import make_lending_pool_registry
>>> reg = make_lending_pool_registry()
"""

from __future__ import annotations

from .registry_builder import make_registry
from .specs import EventRegistry

LENDING_POOL_SIGNATURES = [
    "PositionClosed(address indexed user)",
    "PositionCreated(address indexed user, uint256 timestamp)",
    "Repaid(address indexed user, uint256 amount)",
]


def make_lending_pool_registry() -> EventRegistry:
    """Return registry for LendingPool position/repayment events."""
    return make_registry(LENDING_POOL_SIGNATURES)
