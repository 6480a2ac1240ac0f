"""
JSON document storage for codestat.

Every persisted document (cache entries, stats, project registry, history)
is written whole: serialized to a temp file in the target directory, then
renamed over the destination so readers never observe a partial write.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from .logging_config import get_logger

logger = get_logger(__name__)


def write_json(path: Path, data: Any) -> None:
    """
    Atomically replace ``path`` with the JSON encoding of ``data``.

    Args:
        path: Destination file (its directory must exist)
        data: JSON-serializable value

    Raises:
        OSError: If the temp file cannot be written or renamed
    """
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_name, path)
    except BaseException:
        remove_file(Path(tmp_name))
        raise


def read_json(path: Path) -> Any:
    """
    Read a JSON document.

    Raises:
        FileNotFoundError: If the document does not exist
        OSError: If it cannot be read
        ValueError: If it is not valid JSON (json.JSONDecodeError)
    """
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def remove_file(path: Path) -> bool:
    """Delete a file if present. Returns True if something was removed."""
    try:
        path.unlink()
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning(f"Could not remove {path}: {e}")
        return False
