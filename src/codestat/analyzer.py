"""Analysis pipeline.

    cache lookup -> walk -> (binary check, read, classify) per file -> aggregate
                 -> cache save -> stats update -> history append + compare

Everything runs on one event loop. The walker and the streaming reader
yield to the loop at fixed points and poll the same cancellation token.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional, Union

from .aggregator import ResultAggregator
from .cancellation import CancellationToken
from .config import DEFAULT_OPTIONS, AnalysisOptions
from .exceptions import AnalysisError, ErrorKind
from .logging_config import get_logger
from .models import AnalysisReport, AnalysisResult, ProgressCallback, ProgressEvent, SkipReason
from .scanning import Candidate, ContentReader, PathWalker, get_language_rules, is_binary
from .security import validate_file, validate_root_directory
from .storage import Stores

logger = get_logger(__name__)

PathArg = Union[str, Path]

PROGRESS_EVERY = 10

_SKIP_REASONS = {
    ErrorKind.FILE_TOO_LARGE: SkipReason.TOO_LARGE,
    ErrorKind.BINARY_FILE: SkipReason.BINARY,
    ErrorKind.ACCESS_DENIED: SkipReason.ACCESS_DENIED,
}


def skip_reason_for(error: AnalysisError) -> SkipReason:
    """Map a per-file error to the skip counter it increments."""
    return _SKIP_REASONS.get(error.kind, SkipReason.OTHER)


class ProjectAnalyzer:
    """
    Runs analyses with one set of options and one set of stores.

    Args:
        options: Analysis options
        stores: Cache, stats and history stores (built from
            ``options.cache_dir`` when omitted)
        progress_callback: Receives :class:`ProgressEvent` updates; also
            enables the counting pre-pass
        cancellation: Token or predicate polled during the run
    """

    def __init__(
        self,
        options: AnalysisOptions = DEFAULT_OPTIONS,
        stores: Optional[Stores] = None,
        progress_callback: Optional[ProgressCallback] = None,
        cancellation: "Optional[CancellationToken | Callable[[], bool]]" = None,
    ):
        self.options = options
        self.stores = stores if stores is not None else Stores.from_options(options)
        self.progress_callback = progress_callback
        self.cancellation = CancellationToken.coerce(cancellation)
        self.reader = ContentReader(options, self.cancellation)

    async def analyze(self, root: PathArg) -> AnalysisReport:
        """
        Analyze a directory tree.

        Returns:
            The result plus run metadata. A cancelled run returns partial
            results with ``cancelled=True`` and is neither cached nor recorded.

        Raises:
            AnalysisError: Invalid root, or the cache directory cannot be created
        """
        root_path = validate_root_directory(root)
        options = self.options
        logger.info(f"Starting analysis of {root_path}")

        if options.use_cache:
            cached = self.stores.cache.load(root_path, options)
            if cached is not None:
                logger.info("Using cached results")
                report = AnalysisReport(result=cached, from_cache=True)
                if options.track_stats:
                    update = self.stores.stats.update(cached, from_cache=True)
                    report.milestones = update.new_milestones
                    report.user_stats = update.stats
                return report

        report = await self._run(root_path)
        if report.cancelled:
            logger.info(f"Analysis of {root_path} cancelled, returning partial results")
            return report

        result = report.result
        logger.info(
            f"Analysis complete: {result.total_files} files, {result.total_lines} lines, "
            f"{result.skipped_files.total} skipped"
        )

        if options.use_cache:
            self.stores.cache.save(root_path, options, result)

        if options.track_stats:
            update = self.stores.stats.update(result, from_cache=False)
            report.milestones = update.new_milestones
            report.user_stats = update.stats
            self.stores.history.append(result.root_path, result)
            report.comparison = self.stores.history.compare(result.root_path, result)

        return report

    async def analyze_file(self, path: PathArg) -> AnalysisResult:
        """
        Analyze one file, regardless of its extension.

        Raises:
            AnalysisError: FILE_TOO_LARGE or BINARY_FILE as themselves; any
                other failure as ANALYSIS_FAILURE with code FILE_ANALYSIS_ERROR
        """
        try:
            file_path = validate_file(path)
            size = file_path.stat().st_size
            if size > self.options.max_file_size:
                raise AnalysisError.file_too_large(file_path, size, self.options.max_file_size)

            extension = file_path.suffix.lstrip(".").lower()
            if self.options.skip_binary_files and self._is_binary(file_path, extension):
                raise AnalysisError.binary_file(file_path)

            counts = await self.reader.read(file_path, size, get_language_rules(extension))
        except AnalysisError as e:
            if e.kind in (ErrorKind.FILE_TOO_LARGE, ErrorKind.BINARY_FILE):
                raise
            raise AnalysisError.failure(
                f"Failed to analyze file '{path}': {e.message}", code="FILE_ANALYSIS_ERROR", path=path
            ) from e
        except OSError as e:
            raise AnalysisError.failure(
                f"Failed to analyze file '{path}': {e}", code="FILE_ANALYSIS_ERROR", path=path
            ) from e

        aggregator = ResultAggregator(str(file_path))
        aggregator.add_file(file_path.name, extension, size, counts)
        return aggregator.build()

    # ── Internals ──────────────────────────────────────────────

    async def _run(self, root_path: Path) -> AnalysisReport:
        walker = PathWalker(root_path, self.options, self.cancellation)
        aggregator = ResultAggregator(str(root_path))

        total = 0
        if self.progress_callback is not None:
            self._emit(ProgressEvent(stage="counting", progress=0))
            total = await walker.count()
            self._emit(ProgressEvent(stage="counting", progress=100, total_files=total))

        processed = 0
        async for candidate in walker.walk():
            await self._process(candidate, aggregator)
            processed += 1
            if total > 0 and processed % PROGRESS_EVERY == 0:
                self._emit(
                    ProgressEvent(
                        stage="analyzing",
                        progress=round(min(processed / total * 100, 100)),
                        files_processed=processed,
                        total_files=total,
                        current_file=candidate.rel_path,
                    )
                )

        aggregator.merge_skips(walker.skipped)
        aggregator.set_directories(walker.directories)
        cancelled = walker.interrupted or self.cancellation.cancelled
        return AnalysisReport(result=aggregator.build(), cancelled=cancelled, errors=list(walker.errors))

    async def _process(self, candidate: Candidate, aggregator: ResultAggregator) -> None:
        options = self.options
        try:
            if candidate.size > options.max_file_size:
                raise AnalysisError.file_too_large(candidate.path, candidate.size, options.max_file_size)
            if options.skip_binary_files and self._is_binary(candidate.path, candidate.extension):
                raise AnalysisError.binary_file(candidate.path)
            counts = await self.reader.read(candidate.path, candidate.size, get_language_rules(candidate.extension))
        except AnalysisError as e:
            aggregator.skip(skip_reason_for(e))
            log = logger.warning if options.verbose else logger.debug
            log(f"Skipped {candidate.rel_path}: {e.message}")
            return

        aggregator.add_file(candidate.rel_path, candidate.extension, candidate.size, counts)

    def _is_binary(self, path: Path, extension: str) -> bool:
        return is_binary(
            path,
            extension,
            sample_size=self.options.binary_detection_sample_size,
            threshold=self.options.binary_detection_threshold,
        )

    def _emit(self, event: ProgressEvent) -> None:
        if self.progress_callback is not None:
            self.progress_callback(event)
