"""
codestat - line statistics for source trees

Counts code, comment and blank lines per file and per language, with a
persistent result cache, usage statistics and run-over-run comparison.
"""

__version__ = "1.0.0"

from .analyzer import ProjectAnalyzer
from .api import analyze, analyze_file
from .cancellation import CancellationToken
from .config import AnalysisOptions, load_config
from .exceptions import AnalysisError, ErrorKind
from .models import AnalysisReport, AnalysisResult, LineCounts

__all__ = [
    "analyze",  # Main entry point
    "analyze_file",
    "ProjectAnalyzer",  # Async pipeline
    "AnalysisOptions",
    "load_config",
    "CancellationToken",
    "AnalysisError",
    "ErrorKind",
    "AnalysisReport",
    "AnalysisResult",
    "LineCounts",
]
