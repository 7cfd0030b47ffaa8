"""Block-range coverage utilities for resumable indexing.

Functions
---------
- iter_chunks: split an inclusive range into chunks of at most `step` blocks.
- merge_intervals: merge overlapping/adjacent [start, end] integer ranges.
- subtract_iv: subtract a set of covered intervals from a target interval.
- load_done_coverage: scan manifest files and collect 'done' ranges.

All intervals are inclusive on both ends: [start, end].
"""

from __future__ import annotations

import json
from collections.abc import Generator
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)


def iter_chunks(a: int, b: int, step: int) -> Generator[tuple[int, int], None, None]:
    """Yield inclusive [start, end] block ranges of size at most `step`."""
    x = a
    while x <= b:
        y = min(b, x + step - 1)
        yield (x, y)
        x = y + 1


def merge_intervals(intervals: list[tuple[int, int]]) -> list[tuple[int, int]]:
    """Merge overlapping/adjacent inclusive intervals.

    Parameters
    ----------
    intervals : list[tuple[int, int]]
        Unordered inclusive ranges.

    Returns
    -------
    list[tuple[int, int]]
        Minimal set of merged inclusive ranges.
    """
    if not intervals:
        return []
    intervals_sorted = sorted(intervals)
    out: list[list[int]] = [[intervals_sorted[0][0], intervals_sorted[0][1]]]
    for s, e in intervals_sorted[1:]:
        if s <= out[-1][1] + 1:
            out[-1][1] = max(out[-1][1], e)
        else:
            out.append([s, e])
    return [(s, e) for s, e in out]


def subtract_iv(iv: tuple[int, int], covered: list[tuple[int, int]]) -> list[tuple[int, int]]:
    """Subtract covered inclusive intervals (sorted, merged) from a target inclusive interval."""
    s, e = iv
    if s > e:
        return []
    if not covered:
        return [iv]
    res: list[tuple[int, int]] = []
    cur = s
    for cs, ce in covered:
        if ce < cur:
            continue
        if cs > e:
            break
        if cs > cur:
            res.append((cur, min(e, cs - 1)))
        cur = max(cur, ce + 1)
        if cur > e:
            break
    if cur <= e:
        res.append((cur, e))
    return res


def load_done_coverage(manifests_dir: Path, exclude_basename: str | None) -> list[tuple[int, int]]:
    """Load all `[from_block, to_block]` ranges with status 'done' from manifests.

    Parameters
    ----------
    manifests_dir : Path
        Directory containing *.jsonl manifest files.
    exclude_basename : str | None
        If provided, skip this single file (the live manifest of the current run).

    Returns
    -------
    list[tuple[int, int]]
        Merged 'done' intervals across all manifests.
    """
    if not manifests_dir.is_dir():
        raise ValueError("manifests_dir should be a directory")

    intervals: list[tuple[int, int]] = []
    for path in sorted(manifests_dir.glob("*.jsonl")):
        if exclude_basename and path.name == exclude_basename:
            continue
        with open(path) as f:
            for lineno, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    rec = json.loads(line)
                except json.JSONDecodeError:
                    # a run killed mid-write leaves a torn last line
                    logger.warning("skipping corrupt manifest line", path=str(path), line=lineno)
                    continue
                if rec.get("status") == "done":
                    intervals.append((int(rec["from_block"]), int(rec["to_block"])))
    return merge_intervals(intervals)
