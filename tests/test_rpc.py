import json
from typing import Any

import httpx
import pytest

from lendind.clients.rpc import RPC
from lendind.core.errors import RPCError

POOL = "0xa16081f360e3847006db660bae1c6d1b2e17ec2a"
TX = "0x" + "ab" * 32


def _raw_log(**kw: Any) -> dict[str, Any]:
    log = {
        "address": POOL,
        "topics": ["0x" + "11" * 32],
        "data": "0x",
        "blockNumber": "0x10",
        "transactionHash": TX,
        "logIndex": "0x2",
        "blockTimestamp": "0x64",
    }
    log.update(kw)
    return log


def _rpc(result: Any = None, error: dict[str, Any] | None = None) -> tuple[RPC, list[dict[str, Any]]]:
    requests: list[dict[str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(json.loads(request.content))
        body: dict[str, Any] = {"jsonrpc": "2.0", "id": 1}
        if error is not None:
            body["error"] = error
        else:
            body["result"] = result
        return httpx.Response(200, json=body)

    rpc = RPC("http://rpc.test")
    rpc.client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return rpc, requests


@pytest.mark.asyncio
async def test_get_logs_parses_fields() -> None:
    rpc, requests = _rpc(result=[_raw_log()])

    logs = await rpc.get_logs(address=POOL, topic0s=["0x" + "11" * 32], from_block=1, to_block=32)
    await rpc.aclose()

    assert len(logs) == 1
    assert (logs[0].block_number, logs[0].log_index, logs[0].block_timestamp) == (16, 2, 100)
    assert logs[0].tx_hash == TX
    params = requests[0]["params"][0]
    assert (params["fromBlock"], params["toBlock"]) == ("0x1", "0x20")


@pytest.mark.asyncio
async def test_get_logs_skips_removed_and_hashless_logs() -> None:
    rpc, _ = _rpc(
        result=[
            _raw_log(removed=True),
            _raw_log(transactionHash=None, logIndex="0x0"),
            _raw_log(transactionHash=None, logIndex="0x1"),
            _raw_log(),
        ]
    )

    logs = await rpc.get_logs(address=POOL, topic0s=[], from_block=0, to_block=16)
    await rpc.aclose()

    assert [(log.tx_hash, log.log_index) for log in logs] == [(TX, 2)]


@pytest.mark.asyncio
async def test_error_payload_raises() -> None:
    rpc, _ = _rpc(error={"code": -32005, "message": "query returned more than 10000 results"})

    with pytest.raises(RPCError) as exc:
        await rpc.latest_block()
    await rpc.aclose()

    assert exc.value.details["code"] == -32005


@pytest.mark.asyncio
async def test_block_timestamp_is_cached() -> None:
    rpc, requests = _rpc(result={"timestamp": "0x5f5e100"})

    assert await rpc.get_block_timestamp(7) == 100_000_000
    assert await rpc.get_block_timestamp(7) == 100_000_000
    await rpc.aclose()

    assert len(requests) == 1
