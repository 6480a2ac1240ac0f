"""Error taxonomy: one exception type, discriminated by kind.

Per-file conditions (too large, binary, access denied, decode failure) are
normally absorbed into skip counters by the analyzer; the same values are
raised from the single-file entry point and collected as non-fatal errors
for directory-level conditions (depth exceeded, unreadable directory).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union


class ErrorKind(Enum):
    """Discriminant for :class:`AnalysisError`."""

    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    BINARY_FILE = "BINARY_FILE"
    ACCESS_DENIED = "ACCESS_DENIED"
    RECURSION_DEPTH_EXCEEDED = "RECURSION_DEPTH_EXCEEDED"
    DECODE_FAILURE = "DECODE_FAILURE"
    STREAM_FAILURE = "STREAM_FAILURE"  # recovered via buffered read
    CACHE_CORRUPTION = "CACHE_CORRUPTION"  # recovered by deleting the entry
    ANALYSIS_FAILURE = "ANALYSIS_FAILURE"


# Kinds that never abort a directory run.
RECOVERABLE_KINDS = frozenset(
    {
        ErrorKind.FILE_TOO_LARGE,
        ErrorKind.BINARY_FILE,
        ErrorKind.ACCESS_DENIED,
        ErrorKind.RECURSION_DEPTH_EXCEEDED,
        ErrorKind.DECODE_FAILURE,
        ErrorKind.STREAM_FAILURE,
        ErrorKind.CACHE_CORRUPTION,
    }
)

PathLike = Union[str, Path]


@dataclass
class AnalysisError(Exception):
    """Structured analysis error.

    Attributes:
        kind: Which condition occurred
        message: Human-readable description
        code: Stable machine-readable code (defaults to the kind's value)
        path: File or directory the error refers to, if any
        size: File size in bytes (FILE_TOO_LARGE)
        limit: Configured size limit in bytes (FILE_TOO_LARGE)
        context: Any extra detail worth logging
    """

    kind: ErrorKind
    message: str
    code: str = ""
    path: Optional[str] = None
    size: Optional[int] = None
    limit: Optional[int] = None
    context: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.code:
            self.code = self.kind.value
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    @property
    def recoverable(self) -> bool:
        return self.kind in RECOVERABLE_KINDS

    def to_json(self) -> dict[str, Any]:
        """Structured logging format."""
        data: dict[str, Any] = {
            "kind": self.kind.value,
            "code": self.code,
            "message": self.message,
            "recoverable": self.recoverable,
        }
        if self.path is not None:
            data["path"] = self.path
        if self.size is not None:
            data["size"] = self.size
        if self.limit is not None:
            data["limit"] = self.limit
        if self.context:
            data["context"] = self.context
        return data

    # ── Constructors ───────────────────────────────────────────

    @classmethod
    def file_too_large(cls, path: PathLike, size: int, limit: int) -> "AnalysisError":
        return cls(
            kind=ErrorKind.FILE_TOO_LARGE,
            message=f'File "{path}" is too large ({size} bytes > {limit} bytes)',
            path=str(path),
            size=size,
            limit=limit,
        )

    @classmethod
    def binary_file(cls, path: PathLike) -> "AnalysisError":
        return cls(
            kind=ErrorKind.BINARY_FILE,
            message=f"Cannot analyze binary file '{path}'",
            path=str(path),
        )

    @classmethod
    def access_denied(cls, path: PathLike) -> "AnalysisError":
        return cls(
            kind=ErrorKind.ACCESS_DENIED,
            message=f'Access denied to "{path}"',
            path=str(path),
        )

    @classmethod
    def recursion_depth_exceeded(cls, path: PathLike, limit: int) -> "AnalysisError":
        return cls(
            kind=ErrorKind.RECURSION_DEPTH_EXCEEDED,
            message=f'Maximum recursion depth exceeded at "{path}"',
            path=str(path),
            limit=limit,
        )

    @classmethod
    def decode_failure(cls, path: PathLike, reason: str) -> "AnalysisError":
        return cls(
            kind=ErrorKind.DECODE_FAILURE,
            message=f'Could not decode file "{path}": {reason}',
            path=str(path),
        )

    @classmethod
    def stream_failure(cls, path: PathLike, reason: str) -> "AnalysisError":
        return cls(
            kind=ErrorKind.STREAM_FAILURE,
            message=f'Streaming failed for "{path}": {reason}',
            path=str(path),
        )

    @classmethod
    def cache_corruption(cls, path: PathLike, reason: str) -> "AnalysisError":
        return cls(
            kind=ErrorKind.CACHE_CORRUPTION,
            message=f'Discarding unreadable cache entry "{path}": {reason}',
            path=str(path),
        )

    @classmethod
    def failure(
        cls, message: str, code: str = "ANALYSIS_ERROR", path: Optional[PathLike] = None
    ) -> "AnalysisError":
        return cls(
            kind=ErrorKind.ANALYSIS_FAILURE,
            message=message,
            code=code,
            path=str(path) if path is not None else None,
        )

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "AnalysisError":
        return cls(
            kind=ErrorKind(data["kind"]),
            message=data.get("message", ""),
            code=data.get("code", ""),
            path=data.get("path"),
            size=data.get("size"),
            limit=data.get("limit"),
            context=data.get("context") or {},
        )
