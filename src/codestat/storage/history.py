"""Bounded analysis history and run-over-run comparison."""

from __future__ import annotations

from pathlib import Path

from ..logging_config import get_logger
from ..models import AnalysisResult, Comparison, FileTypeChange, HistoryEntry
from .base import Clock, JsonDocument, system_clock

logger = get_logger(__name__)

HISTORY_FILE = "analysis-history.json"
MAX_HISTORY_ENTRIES = 50

COMPARED_METRICS = ("total_files", "total_lines", "code_lines", "comment_lines", "blank_lines")

NO_PREVIOUS_MESSAGE = "No previous analysis found for comparison"


class HistoryStore:
    """
    Global log of past results, capped at 50 entries across all projects.

    Only real (non-cache) runs are appended; the oldest entry goes first
    when the cap is exceeded.
    """

    def __init__(self, base_dir: Path, clock: Clock = system_clock, max_entries: int = MAX_HISTORY_ENTRIES):
        self.base_dir = Path(base_dir)
        self.clock = clock
        self.max_entries = max_entries
        self._document = JsonDocument(self.base_dir / HISTORY_FILE, list)

    def load(self) -> list[HistoryEntry]:
        data = self._document.read()
        if not isinstance(data, list):
            return []
        entries = []
        for item in data:
            try:
                entries.append(HistoryEntry.from_dict(item))
            except (KeyError, TypeError, ValueError):
                logger.debug(f"Dropping malformed history entry: {item!r}")
        return entries

    def save(self, entries: list[HistoryEntry]) -> None:
        self._document.write([e.to_dict() for e in entries[-self.max_entries :]])

    def append(self, project_path: str, result: AnalysisResult) -> HistoryEntry:
        entry = HistoryEntry(project_path=project_path, timestamp=self.clock(), summary=result.summary())
        entries = self.load()
        entries.append(entry)
        self.save(entries)
        return entry

    def cleanup(self) -> int:
        entries = self.load()
        excess = len(entries) - self.max_entries
        if excess <= 0:
            return 0
        self.save(entries)
        return excess

    def get_recent(self, project_path: str, n: int = 10) -> list[HistoryEntry]:
        """Most recent entries for one project, newest first."""
        matching = [e for e in self.load() if e.project_path == project_path]
        matching.reverse()
        return matching[:n]

    def compare(self, project_path: str, current: AnalysisResult) -> Comparison:
        """
        Compare ``current`` against the second most recent entry for the project.

        Expects the current run to have been appended already, so the most
        recent entry is the current run itself.
        """
        recent = self.get_recent(project_path, 2)
        if len(recent) < 2:
            return Comparison(has_previous=False, message=NO_PREVIOUS_MESSAGE)

        previous_entry = recent[1]
        previous = previous_entry.summary
        now_summary = current.summary()

        changes: dict[str, int] = {}
        percentage_changes: dict[str, str] = {}
        for metric in COMPARED_METRICS:
            before = int(previous.get(metric, 0))
            change = int(now_summary[metric]) - before
            changes[metric] = change
            if before > 0:
                percentage_changes[metric] = f"{change / before * 100:.1f}"

        return Comparison(
            has_previous=True,
            previous=previous,
            changes=changes,
            percentage_changes=percentage_changes,
            file_type_changes=_file_type_changes(previous.get("by_file_type") or {}, now_summary["by_file_type"]),
            time_since_previous=self.clock() - previous_entry.timestamp,
            previous_timestamp=previous_entry.timestamp,
        )


def _file_type_changes(before: dict, after: dict) -> dict[str, FileTypeChange]:
    changes: dict[str, FileTypeChange] = {}
    for ext, stats in after.items():
        if ext in before:
            changes[ext] = FileTypeChange(
                files=stats["files"] - before[ext].get("files", 0),
                lines=stats["total_lines"] - before[ext].get("total_lines", 0),
                status="changed",
            )
        else:
            changes[ext] = FileTypeChange(files=stats["files"], lines=stats["total_lines"], status="new")
    for ext, stats in before.items():
        if ext not in after:
            changes[ext] = FileTypeChange(
                files=-stats.get("files", 0), lines=-stats.get("total_lines", 0), status="removed"
            )
    return changes
