"""Error taxonomy for codestat."""

from .taxonomy import RECOVERABLE_KINDS, AnalysisError, ErrorKind

__all__ = [
    "AnalysisError",
    "ErrorKind",
    "RECOVERABLE_KINDS",
]
