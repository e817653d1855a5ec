"""
Staleness-aware session summary cache.

Summaries are keyed by file path and remembered together with the file's
modification time; a summary is recomputed only when the file has changed
since it was cached. The cache lives as long as its owner and is never
written to disk.
"""

from __future__ import annotations

import asyncio
import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from .models import SessionSummary
from .parser import get_session_summary

logger = logging.getLogger("session_index.cache")


@dataclass
class CachedSummary:
    summary: SessionSummary
    mtime_ns: int


class SummaryCache:
    """Maps transcript paths to their most recent summary."""

    def __init__(self, summarize: Callable[[Path], SessionSummary | None] = get_session_summary):
        self._summarize = summarize
        self._entries: dict[str, CachedSummary] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, file_path: object) -> bool:
        with self._lock:
            return str(file_path) in self._entries

    async def get_or_compute(self, file_path: Path | str) -> SessionSummary | None:
        """
        Return the summary for ``file_path``, reparsing only if its mtime changed.

        Filesystem errors evict the entry and yield None.
        """
        key = str(file_path)
        try:
            stat = await asyncio.to_thread(os.stat, key)
            mtime_ns = stat.st_mtime_ns

            with self._lock:
                cached = self._entries.get(key)
            if cached is not None and cached.mtime_ns == mtime_ns:
                return cached.summary

            summary = await asyncio.to_thread(self._summarize, Path(key))
        except OSError as e:
            logger.debug("Evicting %s from summary cache: %s", key, e)
            self._evict(key)
            return None

        with self._lock:
            if summary is not None:
                self._entries[key] = CachedSummary(summary=summary, mtime_ns=mtime_ns)
            else:
                self._entries.pop(key, None)
        return summary

    def clear(self) -> None:
        """Drop every cached summary."""
        with self._lock:
            self._entries.clear()

    def _evict(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)
