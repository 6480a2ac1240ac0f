"""Folds per-file outcomes into an :class:`AnalysisResult`."""

from __future__ import annotations

from typing import Optional

from .models import AnalysisResult, FileTypeStats, LargestFile, LineCounts, SkippedFiles, SkipReason

# File type recorded for files without an extension.
UNKNOWN_TYPE = "unknown"


class ResultAggregator:
    """Running totals for one analysis.

    Every file lands in exactly one bucket: analyzed (``add_file``) or one of
    the skip reasons (``skip``). ``build`` produces the final result with
    ``largest_files`` sorted by line count, descending.
    """

    def __init__(self, root_path: str, largest_limit: Optional[int] = None):
        self.result = AnalysisResult(root_path=root_path)
        self.largest_limit = largest_limit
        self._files: list[LargestFile] = []

    def add_file(self, rel_path: str, extension: str, size: int, counts: LineCounts) -> None:
        extension = extension or UNKNOWN_TYPE
        result = self.result
        result.total_files += 1
        result.total_lines += counts.total
        result.code_lines += counts.code
        result.comment_lines += counts.comment
        result.blank_lines += counts.blank

        result.by_file_type.setdefault(extension, FileTypeStats()).add(counts)
        self._files.append(LargestFile(path=rel_path, lines=counts.total, type=extension, size=size))

    def skip(self, reason: SkipReason) -> None:
        self.result.skipped_files.increment(reason)

    def merge_skips(self, skipped: SkippedFiles) -> None:
        """Add skip counts recorded before reading (by the walker)."""
        self.result.skipped_files.merge(skipped)

    def set_directories(self, count: int) -> None:
        self.result.total_directories = count

    def build(self) -> AnalysisResult:
        ranked = sorted(self._files, key=lambda f: f.lines, reverse=True)
        if self.largest_limit is not None:
            ranked = ranked[: self.largest_limit]
        self.result.largest_files = ranked
        return self.result
