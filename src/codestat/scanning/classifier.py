"""Line classifier: code, comment or blank per physical line.

One state machine serves both the buffered reader (all lines at once) and
the streaming reader (one line at a time): the only state carried between
lines is the end token of the block comment currently open, if any.
"""

from __future__ import annotations

from typing import Iterable, Optional

from ..models import LineCounts
from .languages import LanguageRules


class LineClassifier:
    """Incremental classifier for one file.

    Usage:
        classifier = LineClassifier(rules)
        for line in lines:
            classifier.feed(line)
        counts = classifier.counts
    """

    def __init__(self, rules: LanguageRules):
        self.rules = rules
        self.counts = LineCounts()
        # End token of the open block comment; None outside block comments.
        self.open_block_end: Optional[str] = None

    @property
    def in_block_comment(self) -> bool:
        return self.open_block_end is not None

    def feed(self, line: str) -> None:
        """Classify one line (without its line terminator)."""
        self.counts.total += 1
        stripped = line.strip()

        if not stripped:
            if self.rules.indentation_sensitive and line != "":
                self.counts.code += 1
            else:
                self.counts.blank += 1
            return

        if self._is_comment(stripped):
            self.counts.comment += 1
        else:
            self.counts.code += 1

    def feed_all(self, lines: Iterable[str]) -> LineCounts:
        for line in lines:
            self.feed(line)
        return self.counts

    def _is_comment(self, stripped: str) -> bool:
        if self.open_block_end is not None:
            # The whole physical line is comment, including anything after the end token.
            if self.open_block_end in stripped:
                self.open_block_end = None
            return True

        for start, end in self.rules.block:
            if stripped.startswith(start):
                if end not in stripped[len(start):]:
                    self.open_block_end = end
                return True

        return stripped.startswith(self.rules.single_line) if self.rules.single_line else False


def classify(lines: Iterable[str], rules: LanguageRules) -> LineCounts:
    """Classify a complete sequence of lines."""
    return LineClassifier(rules).feed_all(lines)


def split_lines(text: str) -> list[str]:
    """Split text into physical lines the same way the streaming reader does.

    ``\\r\\n`` and ``\\r`` count as line breaks; a trailing terminator does not
    start an extra empty line.
    """
    if not text:
        return []
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines
