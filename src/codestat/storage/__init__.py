"""Persisted state: result cache, usage statistics and analysis history."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Union

from ..config import AnalysisOptions
from .base import Clock, JsonDocument, StateStore, ensure_directory, system_clock
from .cache import CACHE_VERSION, CacheStore, cache_key, directory_fingerprint
from .history import MAX_HISTORY_ENTRIES, HistoryStore
from .stats import MILESTONE_THRESHOLDS, StatsTracker


@dataclass
class Stores:
    """The three stores sharing one base directory."""

    cache: CacheStore
    stats: StatsTracker
    history: HistoryStore

    @classmethod
    def at(
        cls,
        base_dir: Union[str, Path],
        ttl_seconds: float = 24 * 3600,
        max_entries: int = 100,
        clock: Clock = system_clock,
    ) -> "Stores":
        base = Path(base_dir).expanduser()
        return cls(
            cache=CacheStore(base, ttl_seconds=ttl_seconds, max_entries=max_entries, clock=clock),
            stats=StatsTracker(base, clock=clock),
            history=HistoryStore(base, clock=clock),
        )

    @classmethod
    def from_options(cls, options: AnalysisOptions, clock: Clock = system_clock) -> "Stores":
        return cls.at(
            options.cache_path,
            ttl_seconds=options.cache_ttl_seconds,
            max_entries=options.max_cache_entries,
            clock=clock,
        )


__all__ = [
    "CACHE_VERSION",
    "CacheStore",
    "Clock",
    "HistoryStore",
    "JsonDocument",
    "MAX_HISTORY_ENTRIES",
    "MILESTONE_THRESHOLDS",
    "StateStore",
    "StatsTracker",
    "Stores",
    "cache_key",
    "directory_fingerprint",
    "ensure_directory",
    "system_clock",
]
