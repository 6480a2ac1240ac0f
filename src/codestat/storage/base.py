"""Shared plumbing for the persisted stores.

Each store owns one region of a base directory and exposes the same small
surface (``load``, ``save``, ``cleanup``), so tests can point every store at
a temp directory and nothing depends on process-wide state.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Callable, Protocol, runtime_checkable

from ..exceptions import AnalysisError
from ..file_ops import read_json, remove_file, write_json
from ..logging_config import get_logger

logger = get_logger(__name__)

Clock = Callable[[], float]
system_clock: Clock = time.time


@runtime_checkable
class StateStore(Protocol):
    """A persisted state region under ``base_dir``."""

    base_dir: Path

    def load(self, *args: Any, **kwargs: Any) -> Any: ...

    def save(self, *args: Any, **kwargs: Any) -> Any: ...

    def cleanup(self, *args: Any, **kwargs: Any) -> Any: ...


def ensure_directory(path: Path) -> Path:
    """Create the store directory.

    Raises:
        AnalysisError: ANALYSIS_FAILURE with code CACHE_DIR_UNAVAILABLE
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise AnalysisError.failure(
            f"Could not create cache directory {path}: {e}",
            code="CACHE_DIR_UNAVAILABLE",
            path=path,
        ) from e
    return path


class JsonDocument:
    """One named JSON document, read and written whole.

    An unreadable document is logged, removed and replaced by ``default()``;
    it never raises out of ``read``.
    """

    def __init__(self, path: Path, default: Callable[[], Any]):
        self.path = path
        self.default = default

    def read(self) -> Any:
        try:
            return read_json(self.path)
        except FileNotFoundError:
            return self.default()
        except (OSError, ValueError) as e:
            logger.warning(AnalysisError.cache_corruption(self.path, str(e)).message)
            remove_file(self.path)
            return self.default()

    def write(self, data: Any) -> None:
        ensure_directory(self.path.parent)
        try:
            write_json(self.path, data)
        except OSError as e:
            logger.warning(f"Could not write {self.path}: {e}")
