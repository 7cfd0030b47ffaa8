from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from lendind.cli import cli
from lendind.core.config import MOCK_ADDRESS
from lendind.core.models import Repaid, entity_id
from lendind.decoding.registries import make_lending_pool_registry
from lendind.storage.shards import ParquetEntityStore


def test_topics_lists_every_event():
    result = CliRunner().invoke(cli, ["topics"])

    assert result.exit_code == 0
    for topic0, spec in make_lending_pool_registry().items():
        assert spec.name in result.output
        assert topic0 in result.output


def test_index_rejects_bad_address():
    with patch("lendind.cli.setup_logging"):
        result = CliRunner().invoke(cli, ["index", "--rpc", "http://localhost:8545", "--address", "0x123"])

    assert result.exit_code != 0
    assert "not a valid EVM address" in result.output


def test_show_prints_entities(tmp_path: Path):
    store = ParquetEntityStore(root=tmp_path / MOCK_ADDRESS / "entities")
    store.save(
        Repaid(
            id=entity_id(MOCK_ADDRESS, 1),
            user=MOCK_ADDRESS,
            amount=500,
            block_number=1,
            block_timestamp=1,
            transaction_hash=MOCK_ADDRESS,
        )
    )
    store.close()

    result = CliRunner().invoke(
        cli, ["show", "--out", str(tmp_path), "--address", MOCK_ADDRESS, "--entity", "Repaid"]
    )

    assert result.exit_code == 0
    assert "Repaid (1 rows)" in result.output
    assert "500" in result.output


def test_show_without_data(tmp_path: Path):
    result = CliRunner().invoke(
        cli, ["show", "--out", str(tmp_path), "--address", MOCK_ADDRESS, "--entity", "Repaid"]
    )

    assert result.exit_code != 0
    assert "no indexed data" in result.output
