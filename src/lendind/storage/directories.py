from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path

from lendind.core.config import IndexerConfig


@dataclass(kw_only=True)
class SetupDirectoriesResult:
    key_dir: Path
    manifests_dir: Path
    entities_dir: Path


def setup_directories(config: IndexerConfig) -> SetupDirectoriesResult:
    """
    Create the output tree for one contract.

    Layout: <out_root>/<address>/
              manifests/run_*.jsonl
              entities/<EntityType>/shard_*.parquet
    """
    key_dir = config.out_root / config.address.lower()
    manifests_dir = key_dir / "manifests"
    entities_dir = key_dir / "entities"
    manifests_dir.mkdir(exist_ok=True, parents=True)
    entities_dir.mkdir(exist_ok=True, parents=True)
    return SetupDirectoriesResult(
        key_dir=key_dir,
        manifests_dir=manifests_dir,
        entities_dir=entities_dir,
    )


def get_run_basename(config: IndexerConfig) -> str:
    timestamp = time.strftime("%Y%m%d_%H%M%S", time.gmtime())
    return f"run_{timestamp}_{config.address.lower()}_{config.start_block}_{config.end_block}.jsonl"
