"""Shared CLI helpers."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from ..config import AnalysisOptions, load_config
from ..exceptions import AnalysisError
from ..storage import Stores

console = Console()

_SIZE_UNITS = ("B", "KB", "MB", "GB")


def format_file_size(size: int) -> str:
    """Human-readable size: ``1536`` -> ``"1.5 KB"``."""
    if size <= 0:
        return "0 B"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[unit]}"


def format_duration(seconds: float) -> str:
    """Coarse age for history listings: ``"3h ago"``."""
    seconds = max(0, int(seconds))
    for unit, length in (("d", 86400), ("h", 3600), ("m", 60)):
        if seconds >= length:
            return f"{seconds // length}{unit} ago"
    return "just now"


def resolve_options(config: Optional[Path] = None, **overrides) -> AnalysisOptions:
    """Build options from CLI flags; ``None`` flags leave lower layers in effect."""
    return load_config(config_file=config, **overrides)


def open_stores(cache_dir: Optional[Path] = None) -> Stores:
    """Stores for the configured (or given) cache directory; exits on bad config."""
    try:
        options = resolve_options(cache_dir=str(cache_dir) if cache_dir else None)
    except AnalysisError as e:
        console.print(f"[red]Error:[/red] {escape(e.message)}")
        raise typer.Exit(1)
    return Stores.from_options(options)
