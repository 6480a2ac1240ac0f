"""Configuration loading and management for codestat.

Configuration sources are merged in priority order:
    1. Defaults (defined in AnalysisOptions)
    2. Global config (~/.codestat.toml)
    3. Project config (./codestat.toml)
    4. Explicit config file
    5. Environment variables (CODESTAT_* prefix)
    6. Keyword overrides (typically CLI flags)

Example:
    >>> options = load_config(verbose=True, max_file_size="2MB")
    >>> options.max_file_size
    2097152
"""

from __future__ import annotations

import os
import re
import tomllib
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Optional, Union, get_type_hints

from .exceptions import AnalysisError

MIB = 1024 * 1024

DEFAULT_MAX_FILE_SIZE = 10 * MIB
DEFAULT_STREAMING_THRESHOLD = 1 * MIB
DEFAULT_MAX_RECURSION_DEPTH = 100
DEFAULT_MAX_FILES_PER_DIRECTORY = 10000
DEFAULT_BINARY_DETECTION_SAMPLE_SIZE = 1024
DEFAULT_BINARY_DETECTION_THRESHOLD = 0.3
DEFAULT_CANCELLATION_CHECK_INTERVAL = 1000

DEFAULT_EXTENSIONS = (
    "js", "ts", "jsx", "tsx", "py", "java", "cpp", "c", "go", "rs",
    "php", "rb", "cs", "swift", "kt", "scala", "dart", "groovy",
    "sql", "sh", "vb", "pl", "html", "css", "scss", "less", "vue",
    "svelte", "astro", "xml", "json", "yaml", "yml", "toml", "md", "txt",
)
DEFAULT_IGNORE_PATTERNS = ("node_modules", ".git", "dist", "build")

_SIZE_UNITS = {"B": 1, "KB": 1024, "MB": MIB, "GB": 1024 * MIB}
_SIZE_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*(B|KB|MB|GB)$", re.IGNORECASE)


def parse_size(value: Union[str, int, float]) -> int:
    """Parse a size such as ``"10MB"`` or ``2048`` into bytes.

    Raises:
        ValueError: If the string is not ``<number><unit>``
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid size format: {value}")
    if isinstance(value, (int, float)):
        return int(value)
    text = str(value).strip()
    if text.isdigit():
        return int(text)
    match = _SIZE_RE.match(text)
    if not match:
        raise ValueError(f"Invalid size format: {value}")
    return int(float(match.group(1)) * _SIZE_UNITS[match.group(2).upper()])


@dataclass(frozen=True)
class AnalysisOptions:
    """Options for one analysis run.

    Attributes:
        Traversal limits:
            max_file_size: Files larger than this (bytes) are skipped, never read
            streaming_threshold: Files larger than this (bytes) are read line by line
            max_recursion_depth: Deeper directories raise RECURSION_DEPTH_EXCEEDED
            max_files_per_directory: Directory listings are truncated to this many entries

        Binary detection:
            binary_detection_sample_size: Bytes sampled from the head of a file
            binary_detection_threshold: Control-character fraction above which a file is binary
            skip_binary_files: Skip files detected as binary

        Cooperative scheduling:
            cancellation_check_interval: Lines between cancellation polls in streamed reads

        Filtering:
            extensions: File extensions to include (no dot)
            ignore_patterns: Substring patterns matched against relative paths
            show_hidden: Include dot-prefixed files and directories

        Persistence:
            use_cache: Reuse a cached result when the tree is unchanged
            track_stats: Update usage statistics and analysis history
            cache_dir: Directory holding cache entries, stats and history
            cache_ttl_hours: Maximum age of a cache entry
            max_cache_entries: Entry count the cache is kept under

        Output:
            verbose: Log per-file skips as warnings
    """

    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    streaming_threshold: int = DEFAULT_STREAMING_THRESHOLD
    max_recursion_depth: int = DEFAULT_MAX_RECURSION_DEPTH
    max_files_per_directory: int = DEFAULT_MAX_FILES_PER_DIRECTORY

    binary_detection_sample_size: int = DEFAULT_BINARY_DETECTION_SAMPLE_SIZE
    binary_detection_threshold: float = DEFAULT_BINARY_DETECTION_THRESHOLD
    skip_binary_files: bool = True

    cancellation_check_interval: int = DEFAULT_CANCELLATION_CHECK_INTERVAL

    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    ignore_patterns: tuple[str, ...] = DEFAULT_IGNORE_PATTERNS
    show_hidden: bool = False

    use_cache: bool = True
    track_stats: bool = True
    cache_dir: str = "~/.codestat/cache"
    cache_ttl_hours: float = 24
    max_cache_entries: int = 100

    verbose: bool = False

    def __post_init__(self) -> None:
        """Validate and normalize options."""
        # Lists from TOML or callers are stored as tuples; extensions lose any leading dot.
        object.__setattr__(
            self, "extensions", tuple(e.strip().lstrip(".").lower() for e in self.extensions if e.strip())
        )
        object.__setattr__(self, "ignore_patterns", tuple(p for p in self.ignore_patterns if p))

        if self.max_file_size <= 0:
            raise ValueError("max_file_size must be positive")
        if self.streaming_threshold <= 0:
            raise ValueError("streaming_threshold must be positive")
        if self.max_recursion_depth < 0:
            raise ValueError("max_recursion_depth must be non-negative")
        if self.max_files_per_directory < 1:
            raise ValueError("max_files_per_directory must be at least 1")
        if self.binary_detection_sample_size < 1:
            raise ValueError("binary_detection_sample_size must be at least 1")
        if not 0.0 <= self.binary_detection_threshold <= 1.0:
            raise ValueError("binary_detection_threshold must be between 0.0 and 1.0")
        if self.cancellation_check_interval < 1:
            raise ValueError("cancellation_check_interval must be at least 1")
        if self.cache_ttl_hours < 0:
            raise ValueError("cache_ttl_hours must be non-negative")
        if self.max_cache_entries < 1:
            raise ValueError("max_cache_entries must be at least 1")

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_ttl_hours * 3600

    @property
    def cache_path(self) -> Path:
        return Path(self.cache_dir).expanduser()

    def with_overrides(self, **overrides: Any) -> "AnalysisOptions":
        """Return a copy with some fields replaced."""
        return replace(self, **overrides)


DEFAULT_OPTIONS = AnalysisOptions()

_SIZE_FIELDS = ("max_file_size", "streaming_threshold")


def load_config(config_file: Optional[Path] = None, **overrides: Any) -> AnalysisOptions:
    """Load options with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (``None`` values are ignored)

    Returns:
        Validated AnalysisOptions instance

    Raises:
        AnalysisError: If a config file is missing or invalid (code INVALID_CONFIG)
    """
    merged: dict[str, Any] = {}

    global_config = Path.home() / ".codestat.toml"
    if global_config.exists():
        merged.update(_load_toml_file(global_config))

    project_config = Path.cwd() / "codestat.toml"
    if project_config.exists():
        merged.update(_load_toml_file(project_config))

    if config_file is not None:
        if not config_file.exists():
            raise AnalysisError.failure(
                f"Config file not found: {config_file}", code="INVALID_CONFIG", path=config_file
            )
        merged.update(_load_toml_file(config_file))

    merged.update(_load_env_vars())
    merged.update({k: v for k, v in overrides.items() if v is not None})

    known = {f.name for f in fields(AnalysisOptions)}
    unknown = sorted(set(merged) - known)
    if unknown:
        raise AnalysisError.failure(
            f"Unknown configuration keys: {', '.join(unknown)}", code="INVALID_CONFIG"
        )

    try:
        for name in _SIZE_FIELDS:
            if name in merged:
                merged[name] = parse_size(merged[name])
        for name in ("extensions", "ignore_patterns"):
            if name in merged:
                merged[name] = _as_tuple(merged[name])
        return AnalysisOptions(**merged)
    except (TypeError, ValueError) as e:
        raise AnalysisError.failure(f"Invalid configuration: {e}", code="INVALID_CONFIG")


def _as_tuple(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return tuple(part.strip() for part in value.split(",") if part.strip())
    return tuple(str(item) for item in value)


def _load_env_vars() -> dict[str, Any]:
    """Load options from CODESTAT_* environment variables.

    Every AnalysisOptions field can be set as ``CODESTAT_<FIELD_NAME>``; list
    fields take comma-separated values.
    """
    type_hints = get_type_hints(AnalysisOptions)
    result: dict[str, Any] = {}

    for f in fields(AnalysisOptions):
        env_key = f"CODESTAT_{f.name.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is None:
            continue
        try:
            result[f.name] = _parse_env_value(env_value, type_hints[f.name], f.name)
        except ValueError as e:
            raise AnalysisError.failure(f"Invalid {env_key}: {e}", code="INVALID_CONFIG")

    return result


def _parse_env_value(value: str, type_hint: Any, field_name: str) -> Any:
    """Parse an environment variable string to the field's type."""
    if field_name in _SIZE_FIELDS:
        return parse_size(value)

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        if lower in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    if getattr(type_hint, "__origin__", None) is tuple:
        return _as_tuple(value)

    return value


def _load_toml_file(path: Path) -> dict[str, Any]:
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise AnalysisError.failure(f"Invalid config file '{path}': {e}", code="INVALID_CONFIG", path=path)
    # Allow either a flat file or a [codestat] table.
    section = data.get("codestat", data)
    if not isinstance(section, dict):
        raise AnalysisError.failure(
            f"Invalid config file '{path}': [codestat] must be a table", code="INVALID_CONFIG", path=path
        )
    return dict(section)
