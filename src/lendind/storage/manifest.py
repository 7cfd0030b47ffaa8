from __future__ import annotations

import asyncio
import os
from pathlib import Path

from lendind.core.interfaces import IManifestRepository
from lendind.core.models import ChunkRecord


class LiveManifest(IManifestRepository):
    """Append-only JSONL manifest of chunk records for one indexing run.

    Appends are serialized with an asyncio lock and fsynced off the event loop.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.touch(exist_ok=True)
        self._lock = asyncio.Lock()

    async def append(self, record: ChunkRecord) -> None:
        line = record.to_json_line()
        async with self._lock:
            await asyncio.to_thread(self._write_line, self.path, line)

    @staticmethod
    def _write_line(path: Path, line: str) -> None:
        with open(path, "a", buffering=1) as f:
            f.write(line)
            f.flush()
            os.fsync(f.fileno())
