"""Streaming orchestrator: fetch → decode → project → store.

This module provides two layers:

1) `index_events(...)`:
   - Pure application-layer use case.
   - Depends ONLY on interfaces (IEvmLogsProvider, IManifestRepository,
     IEntityStore, IEventRegistryProvider).
   - Does NOT instantiate RPC, LiveManifest, ParquetEntityStore, etc.
   - Does NOT manage lifecycle (e.g., closing RPC).

2) `run_indexer(...)`:
   - Wires concrete implementations (RPC, LiveManifest, ParquetEntityStore)
     for CLI / script usage and closes them.
   - Calls `index_events(...)` under the hood.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import structlog

from lendind.clients.rpc import RPC
from lendind.core.config import IndexerConfig
from lendind.core.interfaces import (
    IEntityStore,
    IEventRegistryProvider,
    IEvmLogsProvider,
    IManifestRepository,
    IProgressReporter,
)
from lendind.core.use_cases.index_events import (
    IndexEventsConfig,
    IndexEventsService,
    IndexStats,
    build_work_seeds,
)
from lendind.decoding.registries import make_lending_pool_registry
from lendind.decoding.registry import EventRegistryProvider
from lendind.decoding.specs import EventRegistry, get_event_registry_topic0s
from lendind.orchestration.utils import load_done_coverage
from lendind.storage.directories import get_run_basename, setup_directories
from lendind.storage.manifest import LiveManifest
from lendind.storage.shards import ParquetEntityStore

logger = structlog.get_logger(__name__)

MIN_RPC_CONNECTIONS = 32


async def _resolve_block_range(
    logs_provider: IEvmLogsProvider,
    start_block: int | str,
    end_block: int | str,
) -> tuple[int, int]:
    """Resolve start and end blocks, handling special values like 'latest'."""
    if isinstance(start_block, str) and start_block.lower() in ("earliest", "genesis"):
        start = 0
    else:
        start = int(start_block)

    if isinstance(end_block, str) and end_block.lower() == "latest":
        end = await logs_provider.latest_block()
    else:
        end = int(end_block)

    if start > end:
        raise ValueError("start_block must be <= end_block")

    return start, end


@dataclass(kw_only=True)
class IndexOutput:
    """High-level output of the orchestrator."""

    stats: IndexStats
    key_dir: Path
    manifests_dir: Path
    entities_dir: Path


async def index_events(
    *,
    config: IndexerConfig,
    registry_provider: IEventRegistryProvider,
    logs_provider: IEvmLogsProvider,
    manifest_repo: IManifestRepository,
    store: IEntityStore,
    manifests_dir: Path,
    run_id: str,
    progress: IProgressReporter | None = None,
) -> IndexStats:
    """Pure application-layer orchestrator.

    - Resolves the block range using the injected logs provider.
    - Skips ranges already marked done in earlier manifests.
    - Builds work seeds and invokes `IndexEventsService`.
    """
    start, end = await _resolve_block_range(
        logs_provider=logs_provider,
        start_block=config.start_block,
        end_block=config.end_block,
    )

    covered = load_done_coverage(manifests_dir=manifests_dir, exclude_basename=run_id)

    domain_config = IndexEventsConfig(
        address=config.address,
        topic0s=get_event_registry_topic0s(registry_provider.get_registry()),
        step=config.step,
        concurrency=config.concurrency,
    )

    seeds = build_work_seeds(start=start, end=end, step=domain_config.step, covered=covered)
    logger.info("planned ranges", start=start, end=end, seeds=len(seeds), covered=len(covered))

    service = IndexEventsService(
        logs_provider=logs_provider,
        registry_provider=registry_provider,
    )
    return await service.run(
        config=domain_config,
        store=store,
        manifest_repo=manifest_repo,
        seeds=seeds,
        progress=progress,
    )


async def run_indexer(
    config: IndexerConfig,
    *,
    registry: EventRegistry | None = None,
    progress: IProgressReporter | None = None,
) -> IndexOutput:
    """
    High-level convenience API for the CLI and scripts.

    Entities saved before a failure are still flushed to disk.
    """
    registry_provider = EventRegistryProvider(registry or make_lending_pool_registry())
    setup = setup_directories(config)
    run_id = get_run_basename(config)

    rpc = RPC(
        config.rpc_url,
        timeout_s=config.timeout_s,
        max_connections=max(MIN_RPC_CONNECTIONS, 2 * config.concurrency),
    )
    manifest_repo = LiveManifest(setup.manifests_dir / run_id)
    store = ParquetEntityStore(
        root=setup.entities_dir,
        rows_per_shard=config.rows_per_shard,
        write_final_partial=config.write_final_partial,
    )

    try:
        stats = await index_events(
            config=config,
            registry_provider=registry_provider,
            logs_provider=rpc,
            manifest_repo=manifest_repo,
            store=store,
            manifests_dir=setup.manifests_dir,
            run_id=run_id,
            progress=progress,
        )
    finally:
        store.close()
        await rpc.aclose()

    return IndexOutput(
        stats=stats,
        key_dir=setup.key_dir,
        manifests_dir=setup.manifests_dir,
        entities_dir=setup.entities_dir,
    )
