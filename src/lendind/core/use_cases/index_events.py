from __future__ import annotations

import asyncio
import time
from collections import defaultdict
from dataclasses import dataclass, field, replace
from typing import List, Tuple

import structlog

from lendind.core.errors import DecodeError
from lendind.core.interfaces import (
    IEntityStore,
    IEventRegistryProvider,
    IEvmLogsProvider,
    IManifestRepository,
    IProgressReporter,
)
from lendind.core.models import ChunkRecord, EventLog, Meta
from lendind.decoding.decoder import decode_event
from lendind.decoding.events import to_lending_pool_event
from lendind.decoding.specs import EventRegistry
from lendind.decoding.utils import hex_to_bytes
from lendind.mappings import dispatch
from lendind.orchestration.utils import iter_chunks, subtract_iv

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Domain configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IndexEventsConfig:
    """
    Domain-level configuration for the index-events use case.

    Free of infrastructure concerns (no RPC URL, no filesystem paths).
    """

    address: str
    topic0s: list[str]
    step: int
    concurrency: int


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


@dataclass(kw_only=True)
class IndexStats:
    """Aggregated counters for one indexing run."""

    processed_ok: int = 0
    processed_failed: int = 0
    executed_subranges: int = 0
    total_logs: int = 0
    decoded: int = 0
    filtered: int = 0
    partially_covered_split: int = 0
    entities_by_type: dict[str, int] = field(default_factory=dict)

    @property
    def entities_saved(self) -> int:
        return sum(self.entities_by_type.values())


# ---------------------------------------------------------------------------
# Processing context
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class ProcessContext:
    """
    Shared state for range processing (keeps worker signatures small).

    Fetching is concurrent and bounded by `sem`; projection into `store`
    happens on a single task, in block / log order.
    """

    logs_provider: IEvmLogsProvider
    address: str
    topic0s: list[str]
    registry: EventRegistry
    sem: asyncio.Semaphore
    manifest: IManifestRepository
    store: IEntityStore
    stats: IndexStats


@dataclass(frozen=True)
class WorkSeed:
    """Inclusive block interval to process."""

    start: int
    end: int

    def split(self) -> tuple[WorkSeed, WorkSeed]:
        mid = (self.start + self.end) // 2
        return (
            WorkSeed(self.start, mid),
            WorkSeed(mid + 1, self.end),
        )


@dataclass(slots=True)
class FetchedRange:
    seed: WorkSeed
    logs: list[EventLog]


# ---------------------------------------------------------------------------
# Chunk record helpers
# ---------------------------------------------------------------------------


def _create_started_record(a: int, b: int) -> ChunkRecord:
    return ChunkRecord(
        from_block=a,
        to_block=b,
        status="started",
        attempts=0,
        error=None,
        logs=0,
        decoded=0,
        entities=0,
        updated_at=time.time(),
    )


def _create_done_record(a: int, b: int, logs: int, decoded: int, entities: int, filtered: int) -> ChunkRecord:
    return ChunkRecord(
        from_block=a,
        to_block=b,
        status="done",
        attempts=1,
        error=None,
        logs=logs,
        decoded=decoded,
        entities=entities,
        updated_at=time.time(),
        filtered=filtered,
    )


def _create_failed_record(a: int, b: int, error: str) -> ChunkRecord:
    return ChunkRecord(
        from_block=a,
        to_block=b,
        status="failed",
        attempts=1,
        error=error,
        logs=0,
        decoded=0,
        entities=0,
        updated_at=time.time(),
    )


# ---------------------------------------------------------------------------
# Work seeds builder
# ---------------------------------------------------------------------------


def build_work_seeds(
    start: int,
    end: int,
    step: int,
    covered: List[Tuple[int, int]],
) -> List[WorkSeed]:
    """Split the uncovered part of [start, end] into seeds of at most `step` blocks."""
    seeds: list[WorkSeed] = []
    for uncovered_start, uncovered_end in subtract_iv((start, end), covered):
        for a, b in iter_chunks(uncovered_start, uncovered_end, step):
            seeds.append(WorkSeed(start=a, end=b))
    return seeds


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------


async def _fill_block_timestamps(ctx: ProcessContext, logs: list[EventLog]) -> list[EventLog]:
    """Look up timestamps for logs whose node did not return `blockTimestamp`."""
    missing = sorted({ev.block_number for ev in logs if ev.block_timestamp is None})
    if not missing:
        return logs

    async def _one(n: int) -> tuple[int, int]:
        async with ctx.sem:
            return n, await ctx.logs_provider.get_block_timestamp(n)

    stamps = dict(await asyncio.gather(*(_one(n) for n in missing)))
    return [
        ev if ev.block_timestamp is not None else replace(ev, block_timestamp=stamps[ev.block_number])
        for ev in logs
    ]


async def fetch_range(ctx: ProcessContext, seed: WorkSeed) -> list[FetchedRange]:
    """
    Fetch logs for one seed, halving any sub-range that fails.

    A single-block range that still fails is recorded as failed and the
    error propagates. Returned pieces are ordered by start block.
    """
    stack: list[WorkSeed] = [seed]
    fetched: list[FetchedRange] = []

    while stack:
        current = stack.pop()
        await ctx.manifest.append(_create_started_record(current.start, current.end))
        try:
            async with ctx.sem:
                logs = await ctx.logs_provider.get_logs(
                    address=ctx.address,
                    topic0s=ctx.topic0s,
                    from_block=current.start,
                    to_block=current.end,
                )
            logs = await _fill_block_timestamps(ctx, logs)
        except Exception as e:
            ctx.stats.processed_failed += 1
            await ctx.manifest.append(_create_failed_record(current.start, current.end, str(e)))
            logger.warning(
                "range fetch failed",
                from_block=current.start,
                to_block=current.end,
                error=str(e),
            )
            if current.start == current.end:
                raise
            left, right = current.split()
            stack.extend([right, left])
            ctx.stats.partially_covered_split += 1
            continue

        ctx.stats.executed_subranges += 1
        ctx.stats.total_logs += len(logs)
        fetched.append(FetchedRange(seed=current, logs=logs))

    return sorted(fetched, key=lambda f: f.seed.start)


async def _fetch_window(ctx: ProcessContext, window: list[WorkSeed]) -> list[list[FetchedRange]]:
    """Fetch a window of seeds concurrently; one failure cancels the rest."""
    tasks = [asyncio.create_task(fetch_range(ctx, seed)) for seed in window]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------


def project_logs(ctx: ProcessContext, logs: list[EventLog]) -> tuple[int, int, dict[str, int]]:
    """
    Decode logs and hand each event to its handler, in block / log order.

    Returns
    -------
    (decoded, filtered, entities_by_type)
    """
    decoded = 0
    filtered = 0
    saved: dict[str, int] = defaultdict(int)

    for ev in sorted(logs, key=lambda log: (log.block_number, log.log_index)):
        meta = Meta(
            block_number=ev.block_number,
            block_timestamp=ev.block_timestamp,
            tx_hash=ev.tx_hash,
            log_index=ev.log_index,
            address=ev.address,
        )
        parsed = decode_event(
            topics=ev.topics,
            data=hex_to_bytes(ev.data_hex),
            meta=meta,
            registry=ctx.registry,
        )
        if parsed is None:
            filtered += 1
            continue

        try:
            event = to_lending_pool_event(parsed)
        except DecodeError as e:
            logger.warning("log skipped", code=e.code, reason=e.message, details=e.details)
            filtered += 1
            continue

        entity = dispatch(event, ctx.store)
        decoded += 1
        saved[type(entity).__name__] += 1

    return decoded, filtered, dict(saved)


# ---------------------------------------------------------------------------
# Domain service – IndexEventsService
# ---------------------------------------------------------------------------


class IndexEventsService:
    """
    Orchestrates fetch → decode → project over precomputed block seeds.

    Depends only on abstract providers & repositories. The store is not
    closed here; the caller owns its lifecycle.
    """

    def __init__(
        self,
        logs_provider: IEvmLogsProvider,
        registry_provider: IEventRegistryProvider,
    ) -> None:
        self._logs_provider = logs_provider
        self._registry_provider = registry_provider

    async def run(
        self,
        *,
        config: IndexEventsConfig,
        store: IEntityStore,
        manifest_repo: IManifestRepository,
        seeds: list[WorkSeed],
        progress: IProgressReporter | None = None,
    ) -> IndexStats:
        """
        Index the given seeds.

        Seeds are fetched `concurrency` at a time; each window is projected
        in seed order once all of its fetches complete, so handlers see
        events in chain order.
        """
        stats = IndexStats()
        if progress is not None:
            progress.planned(len(seeds))
        if not seeds:
            return stats

        ctx = ProcessContext(
            logs_provider=self._logs_provider,
            address=config.address,
            topic0s=config.topic0s,
            registry=self._registry_provider.get_registry(),
            sem=asyncio.Semaphore(config.concurrency),
            manifest=manifest_repo,
            store=store,
            stats=stats,
        )

        for i in range(0, len(seeds), config.concurrency):
            window = seeds[i : i + config.concurrency]
            results = await _fetch_window(ctx, window)

            done_records: list[ChunkRecord] = []
            for pieces in results:
                for piece in pieces:
                    decoded, filtered, saved = project_logs(ctx, piece.logs)
                    stats.processed_ok += 1
                    stats.decoded += decoded
                    stats.filtered += filtered
                    for name, n in saved.items():
                        stats.entities_by_type[name] = stats.entities_by_type.get(name, 0) + n
                    done_records.append(
                        _create_done_record(
                            piece.seed.start,
                            piece.seed.end,
                            len(piece.logs),
                            decoded,
                            sum(saved.values()),
                            filtered,
                        )
                    )

            # a range is only marked done once its entities are on disk
            store.flush()
            for record in done_records:
                await manifest_repo.append(record)
            if progress is not None:
                for seed in window:
                    progress.advanced(seed.start, seed.end)

        logger.info(
            "indexing finished",
            ranges=stats.processed_ok,
            logs=stats.total_logs,
            entities=stats.entities_saved,
            splits=stats.partially_covered_split,
        )
        return stats
