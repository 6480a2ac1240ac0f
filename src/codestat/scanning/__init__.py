"""Language-aware file scanning: traversal, binary sniffing, line classification."""

from .binary import BINARY_EXTENSIONS, is_binary
from .classifier import LineClassifier, classify, split_lines
from .languages import LANGUAGE_RULES, LanguageRules, get_language_rules, supported_extensions
from .reader import ContentReader, decode
from .walker import Candidate, PathWalker, is_ignored

__all__ = [
    "BINARY_EXTENSIONS",
    "is_binary",
    "LineClassifier",
    "classify",
    "split_lines",
    "LANGUAGE_RULES",
    "LanguageRules",
    "get_language_rules",
    "supported_extensions",
    "ContentReader",
    "decode",
    "Candidate",
    "PathWalker",
    "is_ignored",
]
