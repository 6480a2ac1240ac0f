"""File content reader: streaming for large files, buffered otherwise.

Both strategies feed the same :class:`LineClassifier`, so a file gets the
same counts whichever path its size selects.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional, Union

from ..cancellation import CancellationToken
from ..config import DEFAULT_OPTIONS, AnalysisOptions
from ..exceptions import AnalysisError, ErrorKind
from ..logging_config import get_logger
from ..models import LineCounts
from .classifier import LineClassifier, split_lines
from .languages import LanguageRules

logger = get_logger(__name__)

PathArg = Union[str, Path]

# utf-8-sig drops a leading BOM so it cannot turn a first-line comment into code.
_PRIMARY_ENCODING = "utf-8-sig"
_FALLBACK_ENCODING = "latin-1"


class ContentReader:
    """Reads one file and returns its :class:`LineCounts`."""

    def __init__(
        self,
        options: AnalysisOptions = DEFAULT_OPTIONS,
        cancellation: Optional[CancellationToken] = None,
    ):
        self.options = options
        self.cancellation = cancellation or CancellationToken()

    async def read(self, path: PathArg, size: int, rules: LanguageRules) -> LineCounts:
        """Count lines of ``path``.

        Raises:
            AnalysisError: FILE_TOO_LARGE (never read), ACCESS_DENIED,
                DECODE_FAILURE, or ANALYSIS_FAILURE for other read errors
        """
        if size > self.options.max_file_size:
            raise AnalysisError.file_too_large(path, size, self.options.max_file_size)

        if size > self.options.streaming_threshold:
            try:
                return await self.read_streaming(path, rules)
            except AnalysisError as e:
                if e.kind is not ErrorKind.STREAM_FAILURE:
                    raise
                log = logger.warning if self.options.verbose else logger.debug
                log(f"{e.message}, falling back to full read")

        return self.read_buffered(path, rules)

    async def read_streaming(self, path: PathArg, rules: LanguageRules) -> LineCounts:
        """Consume the file line by line without loading it whole.

        Polls the cancellation token every ``cancellation_check_interval``
        lines and yields to the event loop at the same points. On
        cancellation the counts accumulated so far are returned.

        Raises:
            AnalysisError: STREAM_FAILURE on any I/O or decode error
        """
        classifier = LineClassifier(rules)
        interval = self.options.cancellation_check_interval
        try:
            with open(path, encoding=_PRIMARY_ENCODING, newline=None) as f:
                for line in f:
                    classifier.feed(line[:-1] if line.endswith("\n") else line)
                    if classifier.counts.total % interval == 0:
                        if self.cancellation.cancelled:
                            logger.debug(f"Streaming read of {path} cancelled")
                            break
                        await asyncio.sleep(0)
        except (OSError, UnicodeDecodeError) as e:
            raise AnalysisError.stream_failure(path, str(e)) from e
        return classifier.counts

    def read_buffered(self, path: PathArg, rules: LanguageRules) -> LineCounts:
        """Read the whole file, decoding as UTF-8 and falling back to Latin-1."""
        try:
            with open(path, "rb") as f:
                raw = f.read()
        except PermissionError as e:
            raise AnalysisError.access_denied(path) from e
        except OSError as e:
            raise AnalysisError.failure(
                f'Could not read file "{path}": {e}', code="READ_ERROR", path=path
            ) from e

        return LineClassifier(rules).feed_all(split_lines(decode(raw, path)))


def decode(raw: bytes, path: PathArg = "<bytes>") -> str:
    """Decode file bytes as UTF-8, retrying as Latin-1.

    Raises:
        AnalysisError: DECODE_FAILURE if neither encoding applies
    """
    try:
        return raw.decode(_PRIMARY_ENCODING)
    except UnicodeDecodeError as utf8_error:
        logger.debug(f"{path} is not valid UTF-8, retrying as Latin-1")
        try:
            return raw.decode(_FALLBACK_ENCODING)
        except UnicodeDecodeError:
            raise AnalysisError.decode_failure(path, str(utf8_error)) from utf8_error
