"""Mock LendingPool events for handler tests.

Builders take only the parameters a test cares about. Everything else
(block, transaction, log index, contract address) comes from an explicit
`MockEventDefaults`, so tests stay deterministic without shared state.
"""

from __future__ import annotations

from lendind.core.config import MockEventDefaults
from lendind.core.events import (
    Block,
    EventParams,
    LendingPoolEvent,
    P,
    PositionClosedEvent,
    PositionClosedParams,
    PositionCreatedEvent,
    PositionCreatedParams,
    RepaidEvent,
    RepaidParams,
    Transaction,
)


def new_mock_event(name: str, params: P, defaults: MockEventDefaults | None = None) -> LendingPoolEvent[P]:
    """Wrap `params` into an event whose provenance comes from `defaults`."""
    d = defaults or MockEventDefaults()
    return LendingPoolEvent(
        name=name,
        address=d.address,
        log_index=d.log_index,
        transaction_log_index=d.transaction_log_index,
        block=Block(number=d.block_number, timestamp=d.block_timestamp, hash=d.block_hash),
        transaction=Transaction(
            hash=d.transaction_hash,
            from_address=d.transaction_from,
            to_address=d.transaction_to,
        ),
        params=params,
    )


def _event_name(params: EventParams) -> str:
    return type(params).__name__.removesuffix("Params")


def create_position_closed_event(user: str, *, defaults: MockEventDefaults | None = None) -> PositionClosedEvent:
    params = PositionClosedParams(user=user)
    return new_mock_event(_event_name(params), params, defaults)


def create_position_created_event(
    user: str,
    timestamp: int,
    *,
    defaults: MockEventDefaults | None = None,
) -> PositionCreatedEvent:
    params = PositionCreatedParams(user=user, timestamp=timestamp)
    return new_mock_event(_event_name(params), params, defaults)


def create_repaid_event(user: str, amount: int, *, defaults: MockEventDefaults | None = None) -> RepaidEvent:
    params = RepaidParams(user=user, amount=amount)
    return new_mock_event(_event_name(params), params, defaults)
