"""Lightweight JSON-RPC client for Ethereum-compatible nodes.

This module provides:
- `RPC`: an async client with sane timeouts/connection limits
- Helper utilities to format block numbers and topics

It returns `EventLog` records ready for downstream decoding.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx
import structlog

from lendind.core.errors import RPCError
from lendind.core.interfaces import IEvmLogsProvider
from lendind.core.models import EventLog

logger = structlog.get_logger(__name__)


def to_hex_block(x: int) -> str:
    """Return a 0x-prefixed hex block number."""
    return hex(x)


def topics_param(topic0s: Sequence[str]) -> list[list[str]]:
    """Format topic0 signatures for eth_getLogs RPC call."""
    return [[t.lower() for t in topic0s]]


def _parse_timestamp(ts: Any) -> int | None:
    if isinstance(ts, str) and ts.startswith("0x"):
        return int(ts, 16)
    if isinstance(ts, int):
        return ts
    return None


class RPC(IEvmLogsProvider):
    """Minimal async RPC client.

    Parameters
    ----------
    url : str
        RPC endpoint URL.
    timeout_s : int
        Per-operation timeout in seconds (connect/read/write).
    max_connections : int
        Maximum concurrent connections to keep in the pool.
    """

    def __init__(self, url: str, *, timeout_s: int = 20, max_connections: int = 64) -> None:
        self.url = url
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=timeout_s,
                read=timeout_s,
                write=timeout_s,
                pool=max(30, timeout_s * 3),
            ),
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max(1, max_connections // 2),
            ),
            http2=True,
        )
        self._block_timestamps: dict[int, int] = {}

    async def _call(self, method: str, params: list[Any]) -> Any:
        r = await self.client.post(
            self.url,
            json={"jsonrpc": "2.0", "id": 1, "method": method, "params": params},
        )
        r.raise_for_status()
        data = r.json()
        if "error" in data:
            e = data["error"]
            raise RPCError(
                f"RPC error: {e.get('code')} {e.get('message')}",
                {"method": method, "code": e.get("code")},
            )
        return data.get("result")

    async def latest_block(self) -> int:
        """Return the latest block number as an int."""
        return int(await self._call("eth_blockNumber", []), 16)

    async def get_block_timestamp(self, block_number: int) -> int:
        """Return a block's timestamp; results are cached per client."""
        cached = self._block_timestamps.get(block_number)
        if cached is not None:
            return cached
        block = await self._call("eth_getBlockByNumber", [to_hex_block(block_number), False])
        if block is None:
            raise RPCError(f"block {block_number} not found", {"block": block_number})
        ts = int(block["timestamp"], 16)
        self._block_timestamps[block_number] = ts
        return ts

    async def get_logs(
        self,
        *,
        address: str,
        topic0s: Sequence[str],
        from_block: int,
        to_block: int,
    ) -> list[EventLog]:
        """Fetch logs for an address and a set of topic0 signatures within a block range."""
        params = [
            {
                "address": address.lower(),
                "fromBlock": to_hex_block(from_block),
                "toBlock": to_hex_block(to_block),
                "topics": topics_param(topic0s),
            }
        ]
        out: list[EventLog] = []
        for rl in await self._call("eth_getLogs", params) or []:
            if rl.get("removed"):
                continue
            tx_hash = rl.get("transactionHash")
            if not tx_hash:
                # pending logs carry no tx hash and so no stable entity id
                logger.warning(
                    "log without transaction hash skipped",
                    block=rl.get("blockNumber"),
                    log_index=rl.get("logIndex"),
                )
                continue
            out.append(
                EventLog(
                    address=rl["address"].lower(),
                    topics=tuple(t.lower() for t in rl.get("topics", [])),
                    data_hex=str(rl.get("data") or "0x"),
                    block_number=int(rl["blockNumber"], 16),
                    tx_hash=tx_hash.lower(),
                    log_index=int(rl["logIndex"], 16),
                    block_timestamp=_parse_timestamp(rl.get("blockTimestamp")),
                )
            )
        return out

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()
