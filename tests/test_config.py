import asyncio
import json
from pathlib import Path

import pytest

from lendind.core.config import MOCK_ADDRESS, IndexerConfig, MockEventDefaults
from lendind.core.errors import ConfigurationError, LendindError
from lendind.core.models import ChunkRecord
from lendind.storage.directories import get_run_basename, setup_directories
from lendind.storage.manifest import LiveManifest


def _config(**kw) -> IndexerConfig:
    params = dict(rpc_url="http://localhost:8545", address=MOCK_ADDRESS, start_block=0, end_block="latest")
    params.update(kw)
    return IndexerConfig(**params)


def test_invalid_address():
    with pytest.raises(ConfigurationError) as exc:
        _config(address="0x123")
    assert exc.value.code == "CONFIGURATION_ERROR"
    assert isinstance(exc.value, LendindError)


@pytest.mark.parametrize("field", ["step", "concurrency", "rows_per_shard", "timeout_s"])
def test_non_positive_values(field: str):
    with pytest.raises(ConfigurationError):
        _config(**{field: 0})


def test_mock_defaults():
    d = MockEventDefaults()
    assert d.address == d.transaction_hash == d.block_hash == MOCK_ADDRESS
    assert (d.log_index, d.block_number, d.block_timestamp) == (1, 1, 1)


def test_setup_directories(tmp_path: Path):
    config = _config(address="0xA16081F360E3847006DB660BAE1C6D1B2E17EC2A", out_root=tmp_path)
    result = setup_directories(config)

    assert result.key_dir == tmp_path / MOCK_ADDRESS
    assert result.manifests_dir.is_dir()
    assert result.entities_dir.is_dir()
    assert get_run_basename(config).startswith("run_")
    assert get_run_basename(config).endswith(f"_{MOCK_ADDRESS}_0_latest.jsonl")


def test_live_manifest_appends_json_lines(tmp_path: Path):
    manifest = LiveManifest(tmp_path / "manifests" / "run.jsonl")
    record = ChunkRecord(
        from_block=1,
        to_block=2,
        status="done",
        attempts=1,
        error=None,
        logs=3,
        decoded=2,
        entities=2,
        updated_at=0.0,
        filtered=1,
    )

    async def write() -> None:
        await manifest.append(record)
        await manifest.append(record)

    asyncio.run(write())

    lines = (tmp_path / "manifests" / "run.jsonl").read_text().splitlines()
    assert len(lines) == 2
    assert json.loads(lines[0])["filtered"] == 1
