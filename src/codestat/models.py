"""Data models for codestat.

Results are plain dataclasses with explicit ``to_dict``/``from_dict`` so the
cache, stats and history documents can store them as JSON.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .exceptions import AnalysisError


@dataclass
class LineCounts:
    """Line classification for one file (or an aggregate)."""

    total: int = 0
    code: int = 0
    comment: int = 0
    blank: int = 0

    def __add__(self, other: "LineCounts") -> "LineCounts":
        return LineCounts(
            total=self.total + other.total,
            code=self.code + other.code,
            comment=self.comment + other.comment,
            blank=self.blank + other.blank,
        )

    @property
    def is_consistent(self) -> bool:
        return self.total == self.code + self.comment + self.blank


@dataclass
class FileTypeStats:
    """Per-extension bucket of an :class:`AnalysisResult`."""

    files: int = 0
    total_lines: int = 0
    code_lines: int = 0
    comment_lines: int = 0
    blank_lines: int = 0

    def add(self, counts: LineCounts) -> None:
        self.files += 1
        self.total_lines += counts.total
        self.code_lines += counts.code
        self.comment_lines += counts.comment
        self.blank_lines += counts.blank

    def to_dict(self) -> Dict[str, int]:
        return {
            "files": self.files,
            "total_lines": self.total_lines,
            "code_lines": self.code_lines,
            "comment_lines": self.comment_lines,
            "blank_lines": self.blank_lines,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FileTypeStats":
        return cls(
            files=int(d.get("files", 0)),
            total_lines=int(d.get("total_lines", 0)),
            code_lines=int(d.get("code_lines", 0)),
            comment_lines=int(d.get("comment_lines", 0)),
            blank_lines=int(d.get("blank_lines", 0)),
        )


@dataclass
class LargestFile:
    """One row of the largest-files ranking."""

    path: str
    lines: int
    type: str
    size: int

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "lines": self.lines, "type": self.type, "size": self.size}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LargestFile":
        return cls(path=d["path"], lines=int(d["lines"]), type=d["type"], size=int(d["size"]))


class SkipReason(Enum):
    TOO_LARGE = "too_large"
    BINARY = "binary"
    ACCESS_DENIED = "access_denied"
    OTHER = "other"


@dataclass
class SkippedFiles:
    too_large: int = 0
    binary: int = 0
    access_denied: int = 0
    other: int = 0

    def increment(self, reason: SkipReason, by: int = 1) -> None:
        setattr(self, reason.value, getattr(self, reason.value) + by)

    def merge(self, other: "SkippedFiles") -> None:
        for reason in SkipReason:
            self.increment(reason, getattr(other, reason.value))

    @property
    def total(self) -> int:
        return self.too_large + self.binary + self.access_denied + self.other

    def to_dict(self) -> Dict[str, int]:
        return {
            "too_large": self.too_large,
            "binary": self.binary,
            "access_denied": self.access_denied,
            "other": self.other,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SkippedFiles":
        return cls(
            too_large=int(d.get("too_large", 0)),
            binary=int(d.get("binary", 0)),
            access_denied=int(d.get("access_denied", 0)),
            other=int(d.get("other", 0)),
        )


@dataclass
class AnalysisResult:
    """Aggregated line statistics for a directory tree.

    ``total_lines == code_lines + comment_lines + blank_lines`` and equals the
    sum of ``total_lines`` over ``by_file_type``. ``largest_files`` is sorted
    by line count, descending.
    """

    root_path: str
    total_files: int = 0
    total_directories: int = 0
    total_lines: int = 0
    code_lines: int = 0
    comment_lines: int = 0
    blank_lines: int = 0
    by_file_type: Dict[str, FileTypeStats] = field(default_factory=dict)
    largest_files: List[LargestFile] = field(default_factory=list)
    skipped_files: SkippedFiles = field(default_factory=SkippedFiles)

    def summary(self) -> Dict[str, Any]:
        """Compact form stored in the analysis history."""
        return {
            "total_files": self.total_files,
            "total_lines": self.total_lines,
            "code_lines": self.code_lines,
            "comment_lines": self.comment_lines,
            "blank_lines": self.blank_lines,
            "by_file_type": {ext: s.to_dict() for ext, s in self.by_file_type.items()},
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root_path": self.root_path,
            "total_files": self.total_files,
            "total_directories": self.total_directories,
            "total_lines": self.total_lines,
            "code_lines": self.code_lines,
            "comment_lines": self.comment_lines,
            "blank_lines": self.blank_lines,
            "by_file_type": {ext: s.to_dict() for ext, s in self.by_file_type.items()},
            "largest_files": [f.to_dict() for f in self.largest_files],
            "skipped_files": self.skipped_files.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AnalysisResult":
        return cls(
            root_path=d["root_path"],
            total_files=int(d.get("total_files", 0)),
            total_directories=int(d.get("total_directories", 0)),
            total_lines=int(d.get("total_lines", 0)),
            code_lines=int(d.get("code_lines", 0)),
            comment_lines=int(d.get("comment_lines", 0)),
            blank_lines=int(d.get("blank_lines", 0)),
            by_file_type={
                ext: FileTypeStats.from_dict(s) for ext, s in d.get("by_file_type", {}).items()
            },
            largest_files=[LargestFile.from_dict(f) for f in d.get("largest_files", [])],
            skipped_files=SkippedFiles.from_dict(d.get("skipped_files", {})),
        )


# ── Usage statistics ───────────────────────────────────────────────


class MilestoneType(Enum):
    LINES_ANALYZED = "LINES_ANALYZED"
    FILES_ANALYZED = "FILES_ANALYZED"
    PROJECTS_ANALYZED = "PROJECTS_ANALYZED"


def milestone_description(kind: MilestoneType, threshold: int) -> str:
    if kind is MilestoneType.LINES_ANALYZED:
        return f"Analyze {threshold:,} lines of code"
    if kind is MilestoneType.FILES_ANALYZED:
        return f"Analyze {threshold:,} files"
    if kind is MilestoneType.PROJECTS_ANALYZED:
        return f"Analyze {threshold} projects"
    return "Reach next milestone"


@dataclass
class Milestone:
    """A one-time crossing of a cumulative usage threshold."""

    type: MilestoneType
    threshold: int
    achieved_at: float
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "threshold": self.threshold,
            "achieved_at": self.achieved_at,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Milestone":
        kind = MilestoneType(d["type"])
        threshold = int(d["threshold"])
        return cls(
            type=kind,
            threshold=threshold,
            achieved_at=float(d.get("achieved_at", 0.0)),
            description=d.get("description") or milestone_description(kind, threshold),
        )


@dataclass
class UserStats:
    total_lines_analyzed: int = 0
    total_files_analyzed: int = 0
    total_projects_analyzed: int = 0
    analyses_completed: int = 0
    cache_hits: int = 0
    milestones: List[Milestone] = field(default_factory=list)
    last_updated: float = 0.0

    def has_milestone(self, kind: MilestoneType, threshold: int) -> bool:
        return any(m.type is kind and m.threshold == threshold for m in self.milestones)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_lines_analyzed": self.total_lines_analyzed,
            "total_files_analyzed": self.total_files_analyzed,
            "total_projects_analyzed": self.total_projects_analyzed,
            "analyses_completed": self.analyses_completed,
            "cache_hits": self.cache_hits,
            "milestones": [m.to_dict() for m in self.milestones],
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "UserStats":
        return cls(
            total_lines_analyzed=int(d.get("total_lines_analyzed", 0)),
            total_files_analyzed=int(d.get("total_files_analyzed", 0)),
            total_projects_analyzed=int(d.get("total_projects_analyzed", 0)),
            analyses_completed=int(d.get("analyses_completed", 0)),
            cache_hits=int(d.get("cache_hits", 0)),
            milestones=[Milestone.from_dict(m) for m in d.get("milestones", [])],
            last_updated=float(d.get("last_updated", 0.0)),
        )


@dataclass
class StatsUpdate:
    stats: UserStats
    new_milestones: List[Milestone] = field(default_factory=list)


# ── History ────────────────────────────────────────────────────────


@dataclass
class HistoryEntry:
    project_path: str
    timestamp: float
    summary: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {"project_path": self.project_path, "timestamp": self.timestamp, "summary": self.summary}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "HistoryEntry":
        return cls(
            project_path=d["project_path"],
            timestamp=float(d["timestamp"]),
            summary=dict(d["summary"]),
        )


@dataclass
class FileTypeChange:
    files: int
    lines: int
    status: str  # "changed" | "new" | "removed"

    def to_dict(self) -> Dict[str, Any]:
        return {"files": self.files, "lines": self.lines, "status": self.status}


@dataclass
class Comparison:
    """Delta between the two most recent runs of a project."""

    has_previous: bool
    message: str = ""
    previous: Optional[Dict[str, Any]] = None
    changes: Dict[str, int] = field(default_factory=dict)
    percentage_changes: Dict[str, str] = field(default_factory=dict)
    file_type_changes: Dict[str, FileTypeChange] = field(default_factory=dict)
    time_since_previous: Optional[float] = None
    previous_timestamp: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "has_previous": self.has_previous,
            "message": self.message,
            "previous": self.previous,
            "changes": dict(self.changes),
            "percentage_changes": dict(self.percentage_changes),
            "file_type_changes": {k: v.to_dict() for k, v in self.file_type_changes.items()},
            "time_since_previous": self.time_since_previous,
            "previous_timestamp": self.previous_timestamp,
        }


# ── Run envelope ───────────────────────────────────────────────────


@dataclass
class ProgressEvent:
    stage: str  # "counting" | "analyzing"
    progress: int
    files_processed: Optional[int] = None
    total_files: Optional[int] = None
    current_file: Optional[str] = None


ProgressCallback = Callable[[ProgressEvent], None]


@dataclass
class AnalysisReport:
    """An :class:`AnalysisResult` plus run metadata."""

    result: AnalysisResult
    from_cache: bool = False
    milestones: List[Milestone] = field(default_factory=list)
    user_stats: Optional[UserStats] = None
    comparison: Optional[Comparison] = None
    cancelled: bool = False
    errors: List[AnalysisError] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = self.result.to_dict()
        data["meta"] = {
            "from_cache": self.from_cache,
            "cancelled": self.cancelled,
            "milestones": [m.to_dict() for m in self.milestones],
            "user_stats": self.user_stats.to_dict() if self.user_stats else None,
            "comparison": self.comparison.to_dict() if self.comparison else None,
            "errors": [e.to_json() for e in self.errors],
        }
        return data
