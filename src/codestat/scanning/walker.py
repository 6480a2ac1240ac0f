"""Directory traversal.

The walk is an explicit stack of ``(directory, depth)`` pairs rather than
recursion, so depth limiting is a counter comparison and deep trees cannot
exhaust the call stack. Entries are processed in batches with a cooperative
yield to the event loop between batches.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Optional, Union

from ..cancellation import CancellationToken
from ..config import DEFAULT_OPTIONS, AnalysisOptions
from ..exceptions import AnalysisError
from ..logging_config import get_logger
from ..models import SkippedFiles, SkipReason

logger = get_logger(__name__)

WALK_BATCH_SIZE = 25
COUNT_BATCH_SIZE = 50


@dataclass(frozen=True)
class Candidate:
    """An eligible file found by the walker."""

    path: Path
    rel_path: str
    extension: str
    size: int


def is_ignored(name: str, rel_path: str, patterns: tuple[str, ...]) -> bool:
    """Match ignore patterns against an entry.

    Patterns starting with ``.`` match the exact basename or any substring of
    the relative path; all other patterns match by substring only.
    """
    for pattern in patterns:
        if pattern.startswith(".") and name == pattern:
            return True
        if pattern in rel_path:
            return True
    return False


class PathWalker:
    """Enumerates eligible files under ``root``.

    Side effects of a walk are kept on the instance:

    - ``directories``: subdirectories discovered (including ones too deep to enter)
    - ``skipped``: files and directories skipped before reading (access denied, other)
    - ``errors``: non-fatal errors for whole branches (depth exceeded, unreadable directory)
    - ``interrupted``: whether the cancellation token stopped the walk
    """

    def __init__(
        self,
        root: Union[str, Path],
        options: AnalysisOptions = DEFAULT_OPTIONS,
        cancellation: Optional[CancellationToken] = None,
        batch_size: int = WALK_BATCH_SIZE,
        quiet: bool = False,
    ):
        self.root = Path(root)
        self.options = options
        self.cancellation = cancellation or CancellationToken()
        self.batch_size = batch_size
        self.quiet = quiet
        self.extensions = frozenset(options.extensions)

        self.directories = 0
        self.skipped = SkippedFiles()
        self.errors: list[AnalysisError] = []
        self.interrupted = False

    async def walk(self) -> AsyncIterator[Candidate]:
        """Yield eligible files, depth first, entries in name order."""
        stack: list[tuple[Path, int]] = [(self.root, 0)]

        while stack:
            if self.cancellation.cancelled:
                self._interrupt()
                return

            directory, depth = stack.pop()
            entries = self._list_directory(directory)
            if entries is None:
                continue

            subdirs: list[Path] = []
            for start in range(0, len(entries), self.batch_size):
                for entry in entries[start : start + self.batch_size]:
                    if self.cancellation.cancelled:
                        self._interrupt()
                        return
                    candidate = self._visit(entry, depth, subdirs)
                    if candidate is not None:
                        yield candidate
                await asyncio.sleep(0)

            # Reversed so subdirectories pop off the stack in name order.
            stack.extend((subdir, depth + 1) for subdir in reversed(subdirs))

    async def count(self) -> int:
        """Count eligible files with a separate, quiet traversal."""
        counter = PathWalker(
            self.root,
            self.options,
            self.cancellation,
            batch_size=COUNT_BATCH_SIZE,
            quiet=True,
        )
        total = 0
        async for _ in counter.walk():
            total += 1
        return total

    # ── Internals ──────────────────────────────────────────────

    def _interrupt(self) -> None:
        if not self.interrupted:
            logger.debug(f"Walk of {self.root} cancelled")
        self.interrupted = True

    def _list_directory(self, directory: Path) -> Optional[list[os.DirEntry]]:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except PermissionError:
            self._record_error(AnalysisError.access_denied(directory), SkipReason.ACCESS_DENIED)
            return None
        except OSError as e:
            self._record_error(
                AnalysisError.failure(
                    f'Could not list directory "{directory}": {e}', code="READ_ERROR", path=directory
                ),
                SkipReason.OTHER,
            )
            return None

        limit = self.options.max_files_per_directory
        if len(entries) > limit:
            self._warn(
                f"{directory} has {len(entries)} entries, only the first {limit} are analyzed "
                f"({len(entries) - limit} dropped)"
            )
            entries = entries[:limit]
        return entries

    def _visit(self, entry: os.DirEntry, depth: int, subdirs: list[Path]) -> Optional[Candidate]:
        name = entry.name
        if not self.options.show_hidden and name.startswith("."):
            return None

        path = Path(entry.path)
        rel_path = path.relative_to(self.root).as_posix()
        if is_ignored(name, rel_path, self.options.ignore_patterns):
            logger.debug(f"Ignored: {rel_path}")
            return None

        try:
            if entry.is_symlink():
                if not self.quiet:
                    logger.info(f"Skipping symbolic link: {rel_path}")
                return None

            if entry.is_dir(follow_symlinks=False):
                self._enter(path, depth + 1, subdirs)
                return None

            if not entry.is_file(follow_symlinks=False):
                return None

            extension = path.suffix.lstrip(".").lower()
            if extension not in self.extensions:
                return None

            size = entry.stat(follow_symlinks=False).st_size
        except PermissionError:
            self._skip_file(SkipReason.ACCESS_DENIED, f"Access denied: {rel_path}")
            return None
        except OSError as e:
            self._skip_file(SkipReason.OTHER, f"Cannot stat {rel_path}: {e}")
            return None

        return Candidate(path=path, rel_path=rel_path, extension=extension, size=size)

    def _enter(self, path: Path, depth: int, subdirs: list[Path]) -> None:
        self.directories += 1
        limit = self.options.max_recursion_depth
        if depth > limit:
            error = AnalysisError.recursion_depth_exceeded(path, limit)
            self.errors.append(error)
            self._warn(error.message)
            return
        subdirs.append(path)

    def _record_error(self, error: AnalysisError, reason: SkipReason) -> None:
        self.errors.append(error)
        self.skipped.increment(reason)
        self._warn(error.message)

    def _skip_file(self, reason: SkipReason, message: str) -> None:
        self.skipped.increment(reason)
        if self.quiet:
            return
        log = logger.warning if self.options.verbose else logger.debug
        log(f"Skipped ({reason.value}): {message}")

    def _warn(self, message: str) -> None:
        if self.quiet:
            logger.debug(message)
        else:
            logger.warning(message)
