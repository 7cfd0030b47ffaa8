"""Turn generic `ParsedEvent` values into typed `LendingPoolEvent` objects."""

from __future__ import annotations

from pydantic import ValidationError

from lendind.core.errors import DecodeError, UnknownEventError
from lendind.core.events import PARAMS_BY_EVENT, Block, LendingPoolEvent, Transaction
from lendind.decoding.decoder import ParsedEvent


def to_lending_pool_event(
    parsed: ParsedEvent,
    *,
    transaction: Transaction | None = None,
) -> LendingPoolEvent:
    """Validate `parsed.values` against the event's params model.

    Raises
    ------
    UnknownEventError
        The event name has no params model.
    DecodeError
        Values fail validation or the block timestamp is unknown.
    """
    params_model = PARAMS_BY_EVENT.get(parsed.name)
    if params_model is None:
        raise UnknownEventError(f"no params model for event {parsed.name}", {"event": parsed.name})

    meta = parsed.meta
    details = {"event": parsed.name, "tx_hash": meta.tx_hash, "log_index": meta.log_index}
    try:
        params = params_model.model_validate(parsed.values)
    except ValidationError as e:
        raise DecodeError(f"invalid {parsed.name} parameters: {e.error_count()} error(s)", details) from e

    if meta.block_timestamp is None:
        raise DecodeError("block timestamp is missing", details)

    return LendingPoolEvent(
        name=parsed.name,
        address=parsed.address,
        log_index=meta.log_index,
        block=Block(number=meta.block_number, timestamp=meta.block_timestamp),
        transaction=transaction or Transaction(hash=meta.tx_hash),
        params=params,
    )
