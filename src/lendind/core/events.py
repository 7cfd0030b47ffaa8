"""Typed LendingPool events as handed to the mapping handlers.

A `LendingPoolEvent` bundles the decoded parameters with the block and
transaction that emitted the log. Parameters are pydantic models so the
decoding layer validates them once; handlers read them as plain attributes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from eth_utils import is_hex_address
from pydantic import BaseModel, ConfigDict, NonNegativeInt, field_validator


@dataclass(slots=True, frozen=True)
class Block:
    number: int
    timestamp: int
    hash: str | None = None


@dataclass(slots=True, frozen=True)
class Transaction:
    hash: str
    from_address: str | None = None
    to_address: str | None = None


@dataclass(slots=True, frozen=True)
class EventParam:
    """One named, already-decoded event parameter."""

    name: str
    value: Any


class EventParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: str

    @field_validator("user")
    @classmethod
    def _check_address(cls, v: str) -> str:
        """Addresses are stored lowercase; the 20 bytes are unchanged."""
        if not is_hex_address(v):
            raise ValueError(f"not a hex address: {v!r}")
        return v.lower()

    def to_parameters(self) -> tuple[EventParam, ...]:
        """Parameters in declaration order, like the raw event param list."""
        return tuple(EventParam(name, getattr(self, name)) for name in type(self).model_fields)


class PositionClosedParams(EventParams):
    pass


class PositionCreatedParams(EventParams):
    timestamp: NonNegativeInt


class RepaidParams(EventParams):
    amount: NonNegativeInt


P = TypeVar("P", bound=EventParams)


@dataclass(frozen=True)
class LendingPoolEvent(Generic[P]):
    """A decoded LendingPool log with its provenance."""

    name: str
    address: str
    log_index: int
    block: Block
    transaction: Transaction
    params: P
    transaction_log_index: int | None = None

    @property
    def parameters(self) -> tuple[EventParam, ...]:
        return self.params.to_parameters()


PositionClosedEvent = LendingPoolEvent[PositionClosedParams]
PositionCreatedEvent = LendingPoolEvent[PositionCreatedParams]
RepaidEvent = LendingPoolEvent[RepaidParams]

PARAMS_BY_EVENT: dict[str, type[EventParams]] = {
    "PositionClosed": PositionClosedParams,
    "PositionCreated": PositionCreatedParams,
    "Repaid": RepaidParams,
}
