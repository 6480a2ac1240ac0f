"""Public API for codestat.

Synchronous entry points over the async pipeline.

Example:
    >>> from codestat import analyze
    >>>
    >>> report = analyze("/path/to/code")
    >>> report.result.total_lines
    12840
    >>>
    >>> # With customization
    >>> report = analyze("/path/to/code", extensions=["py"], use_cache=False)
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Optional, Union

from .analyzer import ProjectAnalyzer
from .cancellation import CancellationToken
from .config import AnalysisOptions, load_config
from .models import AnalysisReport, AnalysisResult, ProgressCallback
from .storage import Stores


def analyze(
    path: Union[str, Path] = ".",
    config_file: Optional[Path] = None,
    options: Optional[AnalysisOptions] = None,
    progress_callback: Optional[ProgressCallback] = None,
    cancellation: "Optional[CancellationToken | Callable[[], bool]]" = None,
    stores: Optional[Stores] = None,
    **overrides: Any,
) -> AnalysisReport:
    """Analyze a directory tree.

    Args:
        path: Root directory (default: current directory)
        config_file: Optional explicit config file path
        options: Fully resolved options; skips config loading when given
        progress_callback: Receives progress events
        cancellation: Token or predicate; when it fires, partial results are returned
        stores: Stores to use instead of the ones under ``cache_dir``
        **overrides: Option overrides (e.g. ``extensions=["py"]``, ``use_cache=False``)

    Returns:
        AnalysisReport with the result and run metadata

    Raises:
        AnalysisError: If the configuration or root path is invalid
    """
    if options is None:
        options = load_config(config_file=config_file, **overrides)
    analyzer = ProjectAnalyzer(
        options, stores=stores, progress_callback=progress_callback, cancellation=cancellation
    )
    return asyncio.run(analyzer.analyze(path))


def analyze_file(
    path: Union[str, Path],
    config_file: Optional[Path] = None,
    options: Optional[AnalysisOptions] = None,
    **overrides: Any,
) -> AnalysisResult:
    """Analyze a single file.

    Raises:
        AnalysisError: FILE_TOO_LARGE, BINARY_FILE, or ANALYSIS_FAILURE
            (code FILE_ANALYSIS_ERROR) for anything else
    """
    if options is None:
        options = load_config(config_file=config_file, **overrides)
    return asyncio.run(ProjectAnalyzer(options).analyze_file(path))
