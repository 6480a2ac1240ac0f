"""Binary file detection by extension, then by content sampling."""

from pathlib import Path
from typing import Union

from ..config import DEFAULT_BINARY_DETECTION_SAMPLE_SIZE, DEFAULT_BINARY_DETECTION_THRESHOLD
from ..logging_config import get_logger

logger = get_logger(__name__)

# Never read as text. "dat" and "svg" are left to content sampling.
BINARY_EXTENSIONS = frozenset(
    {
        # images
        "jpg", "jpeg", "png", "gif", "bmp", "ico", "webp", "tif", "tiff", "psd",
        # documents
        "pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx",
        # archives
        "zip", "tar", "gz", "bz2", "xz", "7z", "rar", "jar", "war", "ear",
        # executables and libraries
        "exe", "dll", "so", "dylib", "o", "a", "lib", "class", "pyc", "pyo", "wasm",
        # media
        "mp3", "mp4", "avi", "mov", "wav", "flac",
        # fonts
        "ttf", "otf", "woff", "woff2", "eot",
        # databases and images
        "sqlite", "sqlite3", "iso", "img",
    }
)

# Tab, newline and carriage return are the only control bytes allowed in text.
_TEXT_CONTROL_BYTES = frozenset({9, 10, 13})


def is_binary(
    path: Union[str, Path],
    extension: str,
    sample_size: int = DEFAULT_BINARY_DETECTION_SAMPLE_SIZE,
    threshold: float = DEFAULT_BINARY_DETECTION_THRESHOLD,
) -> bool:
    """Return True if the file looks binary.

    Args:
        path: File to inspect
        extension: File extension without the dot
        sample_size: Number of leading bytes to sample
        threshold: Fraction of control bytes above which the file is binary

    An unreadable file is reported as not binary; the read that follows
    fails on its own and is counted there.
    """
    if extension.lower() in BINARY_EXTENSIONS:
        return True

    try:
        with open(path, "rb") as f:
            sample = f.read(sample_size)
    except OSError as e:
        logger.debug(f"Binary sniff failed for {path}: {e}")
        return False

    if not sample:
        return False
    if b"\x00" in sample:
        return True

    control = sum(1 for byte in sample if byte < 32 and byte not in _TEXT_CONTROL_BYTES)
    return control / len(sample) > threshold
