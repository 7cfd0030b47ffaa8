from __future__ import annotations

import glob
import os
from pathlib import Path

import pyarrow as pa
import pyarrow.compute as pc
import pyarrow.parquet as pq
import structlog

from lendind.core.interfaces import IEntityStore
from lendind.core.models import E, Entity, EntityColumns, entity_from_row, entity_name

logger = structlog.get_logger(__name__)


class ShardsDir:
    """One directory of `shard_NNNNN.parquet` files."""

    def __init__(self, shards_dir: Path):
        self.shards_dir = shards_dir
        self.shards_dir.mkdir(exist_ok=True, parents=True)

    def shards_files_pattern(self) -> str:
        return (self.shards_dir / "shard_*.parquet").as_posix()

    def list_shards(self) -> list[str]:
        return sorted(glob.glob(self.shards_files_pattern()))

    def shard_path(self, idx: int) -> Path:
        return self.shards_dir / f"shard_{idx:05d}.parquet"


class ShardWriter:
    """
    Parquet shard writer for one entity type.

    - If the last existing shard is not full, we *append to it* (by rewriting) until it
      reaches `rows_per_shard`, even across brand-new runs. Only then do we advance to the
      next shard index.
    """

    def __init__(
        self,
        shards_dir: ShardsDir,
        *,
        rows_per_shard: int = 250_000,
        codec: str = "zstd",
        write_final_partial: bool = True,
    ) -> None:
        self.rows_per_shard = rows_per_shard
        self.codec = codec
        self.write_final_partial = write_final_partial
        self.shards_dir = shards_dir

        self.buf = EntityColumns.empty()

        # Partial-open shard state (if last shard < rows_per_shard)
        self._open_partial_idx: int | None = None
        self._open_partial_tbl: pa.Table | None = None
        self._open_partial_remaining: int = 0

        self.shard_idx = self._init_from_existing()

    # ---------- init & helpers ----------

    def _init_from_existing(self) -> int:
        """Load last shard (if any). If it's partial, keep it open for topping up."""
        existing = self.shards_dir.list_shards()
        if not existing:
            return 0

        last_path = existing[-1]
        last_idx = int(os.path.basename(last_path).split("_")[1].split(".")[0])
        last_rows = pq.ParquetFile(last_path).metadata.num_rows

        if 0 < last_rows < self.rows_per_shard:
            self._open_partial_idx = last_idx
            self._open_partial_tbl = pq.read_table(last_path)
            self._open_partial_remaining = self.rows_per_shard - last_rows
            return last_idx
        return last_idx + 1

    def _atomic_write(self, out_path: Path, table: pa.Table) -> Path | None:
        """Write Parquet atomically (tmp + replace)."""
        if len(table) == 0:
            return None
        tmp = out_path.with_suffix(".tmp")
        pq.write_table(table, tmp, compression=self.codec)
        os.replace(tmp, out_path)
        logger.info("shard written", path=str(out_path), rows=len(table), cols=len(table.schema))
        return out_path

    @property
    def _has_open_partial(self) -> bool:
        return self._open_partial_idx is not None and self._open_partial_remaining > 0

    def _top_up_partial_shard(self, rows_to_take: int) -> Path | None:
        """Top up the currently open partial shard with rows from the buffer."""
        if not self._has_open_partial or rows_to_take == 0:
            return None

        take_n = min(self._open_partial_remaining, rows_to_take)
        new_tbl = self.buf.take_first(take_n).to_arrow_table()

        assert self._open_partial_tbl is not None
        assert self._open_partial_idx is not None
        updated_tbl = pa.concat_tables([self._open_partial_tbl, new_tbl], promote_options="default")

        out_path = self._atomic_write(self.shards_dir.shard_path(self._open_partial_idx), updated_tbl)

        self._open_partial_remaining -= take_n
        self._open_partial_tbl = updated_tbl if self._open_partial_remaining > 0 else None

        if self._open_partial_remaining == 0:
            self.shard_idx = self._open_partial_idx + 1
            self._open_partial_idx = None

        return out_path

    def pending_table(self) -> pa.Table | None:
        """Rows accepted but not yet on disk."""
        return self.buf.to_arrow_table() if self.buf.size() else None

    # ---------- core API ----------

    def add(self, cols: EntityColumns) -> list[Path]:
        """Merge `cols` into the buffer; write shards as they become full."""
        written: list[Path] = []

        if self.buf.extend(cols) == 0:
            return written

        if self._has_open_partial:
            out_path = self._top_up_partial_shard(self.buf.size())
            if out_path:
                written.append(out_path)

        written.extend(self._write_full_shards())
        return written

    def _write_full_shards(self) -> list[Path]:
        written: list[Path] = []
        while self.buf.size() >= self.rows_per_shard:
            tbl = self.buf.take_first(self.rows_per_shard).to_arrow_table()
            out_path = self._atomic_write(self.shards_dir.shard_path(self.shard_idx), tbl)
            if out_path:
                written.append(out_path)
                self.shard_idx += 1
        return written

    def flush(self) -> list[Path]:
        """Put every buffered row on disk now.

        Rows short of a full shard are written as a partial shard that stays
        open, so later rows top it up instead of starting a new file.
        """
        written: list[Path] = []
        if self.buf.size() == 0:
            return written

        if self._has_open_partial:
            out_path = self._top_up_partial_shard(self.buf.size())
            if out_path:
                written.append(out_path)

        written.extend(self._write_full_shards())

        remaining = self.buf.size()
        if remaining:
            tbl = self.buf.take_first(remaining).to_arrow_table()
            out_path = self._atomic_write(self.shards_dir.shard_path(self.shard_idx), tbl)
            if out_path:
                written.append(out_path)
                self._open_partial_idx = self.shard_idx
                self._open_partial_tbl = tbl
                self._open_partial_remaining = self.rows_per_shard - remaining
        return written

    def close(self) -> Path | None:
        """Flush remaining rows.

        - An open partial shard is always topped up; this creates no new shard.
        - Otherwise rows below `rows_per_shard` are dropped when
          `write_final_partial` is False, else written as a short final shard.
        """
        size = self.buf.size()
        if size == 0:
            return None

        last_path: Path | None = None
        if self._has_open_partial:
            last_path = self._top_up_partial_shard(size)

        remaining = self.buf.size()
        if remaining == 0:
            return last_path

        if not self.write_final_partial and remaining < self.rows_per_shard:
            logger.warning("dropping final partial shard", rows=remaining)
            self.buf = EntityColumns.empty()
            return last_path

        tbl = self.buf.take_first(remaining).to_arrow_table()
        out_path = self._atomic_write(self.shards_dir.shard_path(self.shard_idx), tbl)
        if out_path:
            self.shard_idx += 1
            return out_path
        return last_path


# ---------------------------------------------------------------------------
# Readers
# ---------------------------------------------------------------------------


def _concat(tables: list[pa.Table]) -> pa.Table:
    if not tables:
        return EntityColumns.empty().to_arrow_table()
    return pa.concat_tables(tables, promote_options="default")


def latest_by_id(table: pa.Table) -> pa.Table:
    """Keep the last row of every id (later shards and rows win)."""
    if table.num_rows == 0:
        return table
    numbered = table.append_column("_row", pa.array(range(table.num_rows), type=pa.int64()))
    last = numbered.group_by("id").aggregate([("_row", "max")])
    return table.take(last["_row_max"].combine_chunks()).sort_by(
        [("block_number", "ascending"), ("id", "ascending")]
    )


def load_entities(root: Path, entity_type: type[Entity]) -> pa.Table:
    """Read every shard of `entity_type` under `root`, deduplicated by id."""
    shards = ShardsDir(root / entity_name(entity_type)).list_shards()
    return latest_by_id(_concat([pq.read_table(p) for p in shards]))


def read_entities(root: Path, entity_type: type[E]) -> list[E]:
    return [entity_from_row(entity_type, row) for row in load_entities(root, entity_type).to_pylist()]


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class ParquetEntityStore(IEntityStore):
    """
    Entity store that routes each entity type into its own shard directory.

    Layout:
        <root>/
          PositionClosed/shard_00000.parquet
          PositionCreated/shard_00000.parquet
          Repaid/shard_00000.parquet

    Saves are buffered per type and handed to the type's ShardWriter every
    `batch_rows` entities. Upserts are resolved on read: the latest row of
    an id wins.
    """

    def __init__(
        self,
        *,
        root: Path,
        rows_per_shard: int = 250_000,
        batch_rows: int = 10_000,
        codec: str = "zstd",
        write_final_partial: bool = True,
    ) -> None:
        self.root = root
        self.rows_per_shard = rows_per_shard
        self.batch_rows = batch_rows
        self.codec = codec
        self.write_final_partial = write_final_partial
        self.written: list[Path] = []
        self._pending: dict[str, EntityColumns] = {}
        self._writers: dict[str, ShardWriter] = {}

    def _writer_for(self, name: str) -> ShardWriter:
        writer = self._writers.get(name)
        if writer is None:
            writer = ShardWriter(
                ShardsDir(self.root / name),
                rows_per_shard=self.rows_per_shard,
                codec=self.codec,
                write_final_partial=self.write_final_partial,
            )
            self._writers[name] = writer
        return writer

    def _flush_type(self, name: str) -> list[Path]:
        cols = self._pending.pop(name, None)
        if cols is None or cols.size() == 0:
            return []
        written = self._writer_for(name).add(cols)
        self.written.extend(written)
        return written

    def save(self, entity: Entity) -> None:
        name = type(entity).__name__
        cols = self._pending.setdefault(name, EntityColumns.empty())
        cols.append(entity)
        if cols.size() >= self.batch_rows:
            self._flush_type(name)

    def _hand_off_pending(self) -> list[Path]:
        written: list[Path] = []
        for name in list(self._pending):
            written.extend(self._flush_type(name))
        return written

    def flush(self) -> list[Path]:
        """Write every saved entity to disk, including short partial shards."""
        written = self._hand_off_pending()
        for writer in self._writers.values():
            flushed = writer.flush()
            self.written.extend(flushed)
            written.extend(flushed)
        return written

    def table(self, entity_type: type[Entity]) -> pa.Table:
        """Current view of one entity type: disk shards, writer buffer, then pending saves."""
        name = entity_name(entity_type)
        tables = [pq.read_table(p) for p in ShardsDir(self.root / name).list_shards()]
        writer = self._writers.get(name)
        if writer is not None and (pending := writer.pending_table()) is not None:
            tables.append(pending)
        cols = self._pending.get(name)
        if cols is not None and cols.size():
            tables.append(cols.to_arrow_table())
        return latest_by_id(_concat(tables))

    def get(self, entity_type: type[E], entity_id: str) -> E | None:
        rows = (tbl := self.table(entity_type)).filter(pc.equal(tbl["id"], entity_id)).to_pylist()
        return entity_from_row(entity_type, rows[-1]) if rows else None

    def count(self, entity_type: type[Entity]) -> int:
        return self.table(entity_type).num_rows

    def close(self) -> Path | None:
        """Write what is left; unflushed short tails follow `write_final_partial`."""
        self._hand_off_pending()
        last: Path | None = None
        for writer in self._writers.values():
            last_written = writer.close()
            if last_written:
                self.written.append(last_written)
            last = last_written or last
        return last
