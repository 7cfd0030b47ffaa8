"""Orchestration for indexing LendingPool logs with resumability.

This package provides:
- `orchestrator`: block-range resolution, coverage-aware planning and the
  `run_indexer` wiring of RPC, manifest and Parquet store
- `utils`: interval helpers and manifest coverage loading
"""

from lendind.orchestration.utils import (
    iter_chunks,
    load_done_coverage,
    merge_intervals,
    subtract_iv,
)

__all__ = [
    "iter_chunks",
    "load_done_coverage",
    "merge_intervals",
    "subtract_iv",
]
