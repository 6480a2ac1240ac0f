"""
Input path validation for codestat.

Roots and single files are resolved and checked before any traversal starts,
so the walker only ever sees an existing, readable directory.
"""

import os
from pathlib import Path
from typing import Union

from .exceptions import AnalysisError

# System directories that should never be analyzed
SYSTEM_DIRECTORIES = (
    "/etc", "/sys", "/proc", "/dev", "/boot",
    "/bin", "/sbin", "/usr/bin", "/usr/sbin",
    "C:\\Windows", "C:\\Program Files", "C:\\Program Files (x86)",
)


def _resolve(path: Union[str, Path]) -> Path:
    try:
        return Path(path).expanduser().resolve()
    except (OSError, RuntimeError) as e:
        raise AnalysisError.failure(f"Cannot resolve path {path}: {e}", code="INVALID_PATH", path=path)


def _check_system_directory(resolved: Path) -> None:
    for sys_dir in SYSTEM_DIRECTORIES:
        blocked = Path(sys_dir)
        if resolved == blocked or blocked in resolved.parents:
            raise AnalysisError.failure(
                f"Cannot analyze system directory: {sys_dir}", code="INVALID_PATH", path=resolved
            )


def validate_root_directory(path: Union[str, Path]) -> Path:
    """
    Validate that a root directory is safe to analyze.

    Args:
        path: Directory path to validate

    Returns:
        Resolved absolute path

    Raises:
        AnalysisError: ANALYSIS_FAILURE with code INVALID_PATH
    """
    resolved = _resolve(path)

    if not resolved.exists():
        raise AnalysisError.failure(f"Directory does not exist: {resolved}", code="INVALID_PATH", path=resolved)

    if not resolved.is_dir():
        raise AnalysisError.failure(f"Path is not a directory: {resolved}", code="INVALID_PATH", path=resolved)

    if not os.access(resolved, os.R_OK):
        raise AnalysisError.access_denied(resolved)

    _check_system_directory(resolved)
    return resolved


def validate_file(path: Union[str, Path]) -> Path:
    """
    Validate a single file for analysis.

    Raises:
        AnalysisError: ANALYSIS_FAILURE (INVALID_PATH) or ACCESS_DENIED
    """
    resolved = _resolve(path)

    if not resolved.is_file():
        raise AnalysisError.failure(f"File does not exist: {resolved}", code="INVALID_PATH", path=resolved)

    if not os.access(resolved, os.R_OK):
        raise AnalysisError.access_denied(resolved)

    return resolved
