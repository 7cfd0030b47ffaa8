import asyncio
import time
from pathlib import Path

import click
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.table import Table

from lendind.core.config import IndexerConfig, LoggingConfig
from lendind.core.errors import LendindError
from lendind.core.logging import setup_logging
from lendind.core.models import ENTITY_TYPES
from lendind.decoding.registries import make_lending_pool_registry
from lendind.orchestration.orchestrator import run_indexer
from lendind.storage.shards import load_entities

console = Console()


def _block_arg(value: str) -> int | str:
    return int(value) if value.isdigit() else value


class RichProgressReporter:
    """Progress bar fed by the indexing service, one tick per block range."""

    def __init__(self, progress: Progress, label: str) -> None:
        self._progress = progress
        self._label = label
        self._task: TaskID | None = None

    def planned(self, total_seeds: int) -> None:
        self._task = self._progress.add_task(description=self._label, total=total_seeds)

    def advanced(self, from_block: int, to_block: int) -> None:
        if self._task is not None:
            self._progress.update(self._task, advance=1, description=f"{from_block:,}-{to_block:,}")


@click.group()
def cli() -> None:
    """lendind: index LendingPool position and repayment events into Parquet."""


@cli.command("index")
@click.option("--rpc", required=True, help="RPC endpoint URL")
@click.option("--address", required=True, help="LendingPool contract address")
@click.option("--from-block", "from_block", default="0", show_default=True, help="Start block (or 'earliest')")
@click.option("--to-block", "to_block", default="latest", show_default=True, help="End block (or 'latest')")
@click.option("--step", type=int, default=5_000, show_default=True, help="Blocks per request")
@click.option("--concurrency", type=int, default=16, show_default=True, help="Max parallel requests")
@click.option("--out", "out_root", type=click.Path(path_type=Path), default=Path("./data"), show_default=True)
@click.option("--rows-per-shard", type=int, default=250_000, show_default=True)
@click.option("--log-level", default="INFO", show_default=True)
@click.option("--log-format", type=click.Choice(["console", "json"]), default="console", show_default=True)
@click.option("--log-file", type=click.Path(path_type=Path), default=None)
def index_cmd(
    rpc: str,
    address: str,
    from_block: str,
    to_block: str,
    step: int,
    concurrency: int,
    out_root: Path,
    rows_per_shard: int,
    log_level: str,
    log_format: str,
    log_file: Path | None,
) -> None:
    """Index PositionClosed, PositionCreated and Repaid events for a contract."""
    setup_logging(LoggingConfig(level=log_level, fmt=log_format, log_file=log_file))

    try:
        config = IndexerConfig(
            rpc_url=rpc,
            address=address,
            start_block=_block_arg(from_block),
            end_block=_block_arg(to_block),
            step=step,
            concurrency=concurrency,
            out_root=out_root,
            rows_per_shard=rows_per_shard,
        )
    except LendindError as e:
        raise click.BadParameter(e.message) from e

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold]indexing[/]"),
        BarColumn(),
        MofNCompleteColumn(),
        TextColumn("•"),
        TimeElapsedColumn(),
        TextColumn("→"),
        TimeRemainingColumn(),
        TextColumn(" • {task.description}"),
        console=console,
        transient=False,
        expand=True,
    )

    t0 = time.time()
    try:
        with progress:
            reporter = RichProgressReporter(progress, f"{from_block}-{to_block}")
            output = asyncio.run(run_indexer(config, progress=reporter))
    except LendindError as e:
        raise click.ClickException(f"{e.code}: {e.message}") from e
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    stats = output.stats
    elapsed = time.time() - t0
    console.print(f"[bold]done[/]: {stats.total_logs} logs • {stats.entities_saved} entities • {elapsed:.2f}s")
    console.print(
        f"[bold]summary[/]: "
        f"[green]ranges_ok[/]={stats.processed_ok}  "
        f"[red]ranges_failed[/]={stats.processed_failed}  "
        f"[yellow]filtered[/]={stats.filtered}  "
        f"splits={stats.partially_covered_split}"
    )
    for name, n in sorted(stats.entities_by_type.items()):
        console.print(f"  {name}: {n}")
    console.print(f"output: {output.key_dir}")


@cli.command("show")
@click.option("--out", "out_root", type=click.Path(path_type=Path), default=Path("./data"), show_default=True)
@click.option("--address", required=True, help="LendingPool contract address")
@click.option("--entity", "entity_name", type=click.Choice(sorted(ENTITY_TYPES)), required=True)
@click.option("--limit", type=int, default=20, show_default=True)
def show_cmd(out_root: Path, address: str, entity_name: str, limit: int) -> None:
    """Print the latest stored entities of one type."""
    entities_dir = out_root / address.lower() / "entities"
    if not entities_dir.is_dir():
        raise click.ClickException(f"no indexed data under {entities_dir}")

    tbl = load_entities(entities_dir, ENTITY_TYPES[entity_name])
    table = Table(title=f"{entity_name} ({tbl.num_rows} rows)")
    for name in tbl.column_names:
        table.add_column(name, overflow="fold")
    for row in tbl.slice(max(0, tbl.num_rows - limit)).to_pylist():
        table.add_row(*(str(v) for v in row.values()))
    console.print(table)


@cli.command("topics")
def topics_cmd() -> None:
    """List the topic0 hash of every indexed event."""
    for topic0, spec in make_lending_pool_registry().items():
        console.print(f"{spec.name:<16} {topic0}", soft_wrap=True)


if __name__ == "__main__":
    cli()
