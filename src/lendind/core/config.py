from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from eth_utils import is_address

from lendind.core.errors import ConfigurationError

# Address used by the usual mock-event helpers for contract, block and tx fields.
MOCK_ADDRESS = "0xa16081f360e3847006db660bae1c6d1b2e17ec2a"

LogFormat = Literal["console", "json"]


@dataclass(frozen=True)
class IndexerConfig:
    """Configuration for indexing one LendingPool deployment."""

    rpc_url: str
    address: str
    start_block: int | str
    end_block: int | str
    step: int = 5_000
    concurrency: int = 16
    out_root: Path = Path("./data")
    rows_per_shard: int = 250_000
    timeout_s: int = 20
    write_final_partial: bool = True

    def __post_init__(self) -> None:
        if not is_address(self.address):
            raise ConfigurationError("address is not a valid EVM address", {"address": self.address})
        for name in ("step", "concurrency", "rows_per_shard", "timeout_s"):
            value = getattr(self, name)
            if value <= 0:
                raise ConfigurationError(f"{name} must be positive", {name: value})


@dataclass(frozen=True)
class LoggingConfig:
    """Logging setup: stdlib level name and renderer."""

    level: str = "INFO"
    fmt: LogFormat = "console"
    log_file: Path | None = None


@dataclass(frozen=True)
class MockEventDefaults:
    """Every field a mock event falls back to when a test does not set it."""

    address: str = MOCK_ADDRESS
    log_index: int = 1
    transaction_log_index: int = 1
    block_number: int = 1
    block_timestamp: int = 1
    block_hash: str = MOCK_ADDRESS
    transaction_hash: str = MOCK_ADDRESS
    transaction_from: str = MOCK_ADDRESS
    transaction_to: str | None = MOCK_ADDRESS
