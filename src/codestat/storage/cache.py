"""
Result cache for codestat.

One JSON document per analysis request, named by the SHA-256 of the request
parameters. An entry is served only while it is younger than the TTL and no
file or directory under the root has a modification time newer than the one
recorded when the entry was written.

Checking that second condition costs a full ``lstat`` walk of the tree on
every lookup. That is kept on purpose: it catches edits anywhere in the tree
without a watcher, at the price of a traversal per lookup.
"""

from __future__ import annotations

import hashlib
import json
import os
import re
import time
from pathlib import Path
from typing import Any, Optional, Union

from ..config import MIB, AnalysisOptions
from ..exceptions import AnalysisError
from ..file_ops import read_json, remove_file, write_json
from ..logging_config import get_logger
from ..models import AnalysisResult
from .base import Clock, ensure_directory, system_clock

logger = get_logger(__name__)

CACHE_VERSION = "1"

# Cache maintenance only ever touches files with this name shape.
ENTRY_NAME = re.compile(r"^[0-9a-f]{64}\.json$")

SOFT_LIMIT_RATIO = 0.8
AGGRESSIVE_LIMIT_RATIO = 0.5
LARGE_CACHE_BYTES = 100 * MIB

PathArg = Union[str, Path]


def cache_key(root_path: PathArg, options: AnalysisOptions) -> str:
    """Fingerprint an analysis request.

    Extensions and ignore patterns are sorted so their order does not matter.
    """
    key_data = {
        "root_path": str(root_path),
        "extensions": sorted(options.extensions),
        "ignore_patterns": sorted(options.ignore_patterns),
        "max_file_size": options.max_file_size,
        "show_hidden": options.show_hidden,
        "skip_binary_files": options.skip_binary_files,
        "version": CACHE_VERSION,
    }
    canonical = json.dumps(key_data, sort_keys=True)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def directory_fingerprint(root: PathArg) -> int:
    """Latest modification time (ns) of the root and everything below it.

    Symlinks are not followed. Entries that cannot be stat'ed are ignored; if
    the root itself cannot be read the current time is returned, which
    invalidates any entry it is compared against.
    """
    try:
        latest = os.lstat(root).st_mtime_ns
    except OSError:
        return time.time_ns()

    stack = [os.fspath(root)]
    while stack:
        directory = stack.pop()
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError:
            if directory == os.fspath(root):
                return time.time_ns()
            continue

        for entry in entries:
            try:
                st = entry.stat(follow_symlinks=False)
                latest = max(latest, st.st_mtime_ns)
                if entry.is_dir(follow_symlinks=False):
                    stack.append(entry.path)
            except OSError:
                continue

    return latest


class CacheStore:
    """
    Directory of cached :class:`AnalysisResult` documents.

    Args:
        base_dir: Directory holding the entries
        ttl_seconds: Maximum entry age
        max_entries: Entry count the cache is kept under (80% soft limit,
            50% once the cache grows past 100 MiB)
        clock: Wall-clock source in seconds
    """

    def __init__(
        self,
        base_dir: Path,
        ttl_seconds: float = 24 * 3600,
        max_entries: int = 100,
        clock: Clock = system_clock,
    ):
        self.base_dir = Path(base_dir)
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.clock = clock

    def entry_path(self, key: str) -> Path:
        return self.base_dir / f"{key}.json"

    def load(self, root_path: PathArg, options: AnalysisOptions) -> Optional[AnalysisResult]:
        """
        Return the cached result for this request, or None on a miss.

        Runs auto-maintenance first. Expired, stale and unreadable entries are
        deleted as part of the lookup.
        """
        ensure_directory(self.base_dir)
        self.auto_maintenance()

        key = cache_key(root_path, options)
        path = self.entry_path(key)
        if not path.exists():
            logger.debug(f"Cache miss: {key[:16]}...")
            return None

        entry = self._read_entry(path)
        if entry is None:
            return None

        age = self.clock() - entry["timestamp"]
        if age > self.ttl_seconds:
            logger.debug(f"Cache entry expired ({age:.0f}s old): {key[:16]}...")
            remove_file(path)
            return None

        if directory_fingerprint(root_path) > entry["directory_fingerprint"]:
            logger.debug(f"Tree changed since caching: {key[:16]}...")
            remove_file(path)
            return None

        try:
            result = AnalysisResult.from_dict(entry["result"])
        except (KeyError, TypeError, ValueError) as e:
            self._discard(path, f"bad result payload: {e}")
            return None

        logger.debug(f"Cache hit: {key[:16]}...")
        return result

    def save(self, root_path: PathArg, options: AnalysisOptions, result: AnalysisResult) -> None:
        """Write an entry for this request, then run cleanup."""
        ensure_directory(self.base_dir)
        key = cache_key(root_path, options)
        entry = {
            "key": key,
            "timestamp": self.clock(),
            "directory_fingerprint": directory_fingerprint(root_path),
            "version": CACHE_VERSION,
            "result": result.to_dict(),
        }
        try:
            write_json(self.entry_path(key), entry)
            logger.debug(f"Cache set: {key[:16]}...")
        except OSError as e:
            logger.warning(f"Cache set failed: {e}")
            return
        self.cleanup()

    def cleanup(self, aggressive: Optional[bool] = None) -> int:
        """
        Delete expired and unreadable entries, then evict the oldest (by file
        mtime) until the count is under the soft limit.

        Args:
            aggressive: Use the 50% limit. Defaults to whether the cache
                currently exceeds 100 MiB.

        Returns:
            Number of entries removed
        """
        entries = self._list_entries()
        if aggressive is None:
            aggressive = sum(st.st_size for _, st in entries) > LARGE_CACHE_BYTES

        removed = 0
        remaining: list[Path] = []
        now = self.clock()
        for path, _ in entries:
            entry = self._read_entry(path, quiet=True)
            if entry is None:
                removed += 1
            elif now - entry["timestamp"] > self.ttl_seconds:
                remove_file(path)
                removed += 1
            else:
                remaining.append(path)

        ratio = AGGRESSIVE_LIMIT_RATIO if aggressive else SOFT_LIMIT_RATIO
        # Never evict the last entry.
        limit = max(1, self.max_entries * ratio)
        while len(remaining) > limit:
            remove_file(remaining.pop(0))
            removed += 1

        if removed:
            logger.debug(f"Cache cleanup removed {removed} entries")
        return removed

    def auto_maintenance(self) -> None:
        """Clean up when the cache is nearly full or very large."""
        entries = self._list_entries()
        if len(entries) > self.max_entries * SOFT_LIMIT_RATIO:
            self.cleanup(aggressive=False)
        if sum(st.st_size for _, st in entries) > LARGE_CACHE_BYTES:
            self.cleanup(aggressive=True)

    def clear(self) -> int:
        """Delete every cache entry. Stats and history are left alone."""
        removed = sum(1 for path, _ in self._list_entries() if remove_file(path))
        logger.info(f"Cache cleared ({removed} entries)")
        return removed

    def stats(self) -> dict[str, Any]:
        """Entry counts and total size of the cache."""
        entries = self._list_entries()
        now = self.clock()
        valid = 0
        for path, _ in entries:
            try:
                data = read_json(path)
                if now - float(data["timestamp"]) <= self.ttl_seconds:
                    valid += 1
            except (OSError, ValueError, KeyError, TypeError):
                continue
        return {
            "total_entries": len(entries),
            "valid_entries": valid,
            "total_size": sum(st.st_size for _, st in entries),
            "cache_dir": str(self.base_dir),
        }

    # ── Internals ──────────────────────────────────────────────

    def _list_entries(self) -> list[tuple[Path, os.stat_result]]:
        """Cache entry files with their stat, oldest mtime first."""
        if not self.base_dir.is_dir():
            return []
        entries = []
        with os.scandir(self.base_dir) as it:
            for item in it:
                if not ENTRY_NAME.match(item.name):
                    continue
                try:
                    entries.append((Path(item.path), item.stat()))
                except OSError:
                    continue
        entries.sort(key=lambda pair: pair[1].st_mtime_ns)
        return entries

    def _read_entry(self, path: Path, quiet: bool = False) -> Optional[dict[str, Any]]:
        """Parse and sanity-check an entry; unreadable entries are deleted."""
        try:
            data = read_json(path)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            self._discard(path, str(e), quiet)
            return None

        if (
            not isinstance(data, dict)
            or data.get("version") != CACHE_VERSION
            or not isinstance(data.get("timestamp"), (int, float))
            or not isinstance(data.get("directory_fingerprint"), int)
            or not isinstance(data.get("result"), dict)
        ):
            self._discard(path, "unexpected entry layout", quiet)
            return None
        return data

    def _discard(self, path: Path, reason: str, quiet: bool = False) -> None:
        error = AnalysisError.cache_corruption(path, reason)
        if quiet:
            logger.debug(error.message)
        else:
            logger.warning(error.message)
        remove_file(path)
