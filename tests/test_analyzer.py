"""End-to-end tests for the analysis pipeline."""

import asyncio
import json
import os
import time

import pytest

from codestat.analyzer import ProjectAnalyzer, skip_reason_for
from codestat.cancellation import CancellationToken
from codestat.config import AnalysisOptions
from codestat.exceptions import AnalysisError, ErrorKind
from codestat.models import SkipReason
from codestat.storage.cache import cache_key

from conftest import write_tree


def run(analyzer, root):
    return asyncio.run(analyzer.analyze(root))


class TestSingleFileTree:
    def test_js_counts(self, tmp_path, options, stores):
        root = write_tree(tmp_path / "p", {"a.js": "// hello\n\nlet x = 1;\n"})

        report = run(ProjectAnalyzer(options, stores=stores), root)
        result = report.result

        assert not report.from_cache
        assert result.total_files == 1
        assert (result.total_lines, result.code_lines, result.comment_lines, result.blank_lines) == (3, 1, 1, 1)
        assert result.by_file_type["js"].to_dict() == {
            "files": 1,
            "total_lines": 3,
            "code_lines": 1,
            "comment_lines": 1,
            "blank_lines": 1,
        }
        assert [f.path for f in result.largest_files] == ["a.js"]
        assert result.largest_files[0].size == len("// hello\n\nlet x = 1;\n")

    def test_empty_tree(self, tmp_path, options, stores):
        root = tmp_path / "empty"
        root.mkdir()

        result = run(ProjectAnalyzer(options, stores=stores), root).result
        assert result.total_files == 0
        assert result.total_lines == 0
        assert result.largest_files == []


class TestMixedProject:
    def test_invariants(self, project, options, stores):
        result = run(ProjectAnalyzer(options, stores=stores), project).result

        assert result.total_lines == result.code_lines + result.comment_lines + result.blank_lines
        assert result.total_lines == sum(s.total_lines for s in result.by_file_type.values())
        assert result.total_files == sum(s.files for s in result.by_file_type.values())
        lines = [f.lines for f in result.largest_files]
        assert lines == sorted(lines, reverse=True)

    def test_ignored_and_unlisted_files_excluded(self, project, options, stores):
        result = run(ProjectAnalyzer(options, stores=stores), project).result

        paths = {f.path for f in result.largest_files}
        assert paths == {"a.js", "src/main.py", "src/util.py", "src/lib/core.c", "README.md"}
        assert result.total_files == 5
        assert result.skipped_files.total == 0
        # node_modules is ignored before it is counted
        assert result.total_directories == 2

    def test_extension_filter(self, project, cache_dir, stores):
        options = AnalysisOptions(cache_dir=str(cache_dir), extensions=("py",))
        result = run(ProjectAnalyzer(options, stores=stores), project).result
        assert set(result.by_file_type) == {"py"}
        assert result.total_files == 2


class TestSkips:
    def test_too_large_excluded_from_totals(self, tmp_path, cache_dir, stores):
        root = write_tree(
            tmp_path / "p",
            {"small.js": "x;\n", "big.js": "let value = 1;\n" * 10},
        )
        options = AnalysisOptions(cache_dir=str(cache_dir), max_file_size=50)

        result = run(ProjectAnalyzer(options, stores=stores), root).result

        assert result.skipped_files.too_large == 1
        assert result.total_files == 1
        assert result.total_lines == 1
        assert [f.path for f in result.largest_files] == ["small.js"]

    def test_binary_content_skipped(self, tmp_path, options, stores):
        root = write_tree(
            tmp_path / "p",
            {"ok.py": "x = 1\n", "blob.js": bytes(range(32)) * 8},
        )

        result = run(ProjectAnalyzer(options, stores=stores), root).result

        assert result.skipped_files.binary == 1
        assert result.total_files == 1
        assert "js" not in result.by_file_type

    def test_binary_kept_when_detection_disabled(self, tmp_path, cache_dir, stores):
        root = write_tree(tmp_path / "p", {"blob.js": b"\x00\x01\x02\nabc\n"})
        options = AnalysisOptions(cache_dir=str(cache_dir), skip_binary_files=False)

        result = run(ProjectAnalyzer(options, stores=stores), root).result
        assert result.skipped_files.binary == 0
        assert result.total_files == 1

    def test_depth_limit_reported(self, tmp_path, cache_dir, stores):
        root = write_tree(tmp_path / "p", {"top.py": "x = 1\n", "a/b/deep.py": "y = 2\n"})
        options = AnalysisOptions(cache_dir=str(cache_dir), max_recursion_depth=1)

        report = run(ProjectAnalyzer(options, stores=stores), root)

        assert [f.path for f in report.result.largest_files] == ["top.py"]
        assert report.result.total_directories == 2
        assert [e.kind for e in report.errors] == [ErrorKind.RECURSION_DEPTH_EXCEEDED]
        assert report.errors[0].path.endswith("b")

    @pytest.mark.parametrize(
        "error, reason",
        [
            (AnalysisError.file_too_large("f", 2, 1), SkipReason.TOO_LARGE),
            (AnalysisError.binary_file("f"), SkipReason.BINARY),
            (AnalysisError.access_denied("f"), SkipReason.ACCESS_DENIED),
            (AnalysisError.decode_failure("f", "bad"), SkipReason.OTHER),
            (AnalysisError.failure("boom"), SkipReason.OTHER),
        ],
    )
    def test_skip_reason_mapping(self, error, reason):
        assert skip_reason_for(error) is reason


class TestCaching:
    def test_second_run_hits_cache(self, project, options, stores):
        analyzer = ProjectAnalyzer(options, stores=stores)

        first = run(analyzer, project)
        second = run(analyzer, project)

        assert not first.from_cache
        assert second.from_cache
        assert second.result.to_dict() == first.result.to_dict()
        assert second.comparison is None
        assert second.user_stats.cache_hits == 1
        assert second.user_stats.analyses_completed == 1

    def test_modified_tree_invalidates(self, project, options, stores):
        analyzer = ProjectAnalyzer(options, stores=stores)
        run(analyzer, project)

        target = project / "a.js"
        target.write_text("// hello\n\nlet x = 1;\nlet y = 2;\n")
        future = target.stat().st_mtime_ns + 10**11
        os.utime(target, ns=(future, future))

        report = run(analyzer, project)
        assert not report.from_cache
        assert report.result.by_file_type["js"].total_lines == 4

    def test_removed_file_invalidates(self, project, options, stores):
        analyzer = ProjectAnalyzer(options, stores=stores)
        first = run(analyzer, project)
        entry = stores.cache.entry_path(cache_key(project.resolve(), options))
        first_saved = json.loads(entry.read_text())

        (project / "README.md").unlink()
        future = time.time_ns() + 10**11
        os.utime(project, ns=(future, future))

        report = run(analyzer, project)
        assert not report.from_cache
        assert report.result.total_files == first.result.total_files - 1
        assert "md" not in report.result.by_file_type

        rewritten = json.loads(entry.read_text())
        assert rewritten["directory_fingerprint"] > first_saved["directory_fingerprint"]
        assert rewritten["result"]["total_files"] == report.result.total_files

    def test_cache_disabled(self, project, cache_dir, stores):
        options = AnalysisOptions(cache_dir=str(cache_dir), use_cache=False)
        analyzer = ProjectAnalyzer(options, stores=stores)

        run(analyzer, project)
        assert not run(analyzer, project).from_cache
        assert stores.cache.stats()["total_entries"] == 0


class TestStatsAndHistory:
    def test_first_run_has_no_previous(self, project, options, stores):
        report = run(ProjectAnalyzer(options, stores=stores), project)

        assert report.user_stats.analyses_completed == 1
        assert report.user_stats.total_projects_analyzed == 1
        assert not report.comparison.has_previous

    def test_second_real_run_compares(self, project, cache_dir, stores, clock):
        options = AnalysisOptions(cache_dir=str(cache_dir), use_cache=False)
        analyzer = ProjectAnalyzer(options, stores=stores)
        run(analyzer, project)

        (project / "extra.py").write_text("a = 1\nb = 2\n")
        clock.advance(60)
        report = run(analyzer, project)

        comparison = report.comparison
        assert comparison.has_previous
        assert comparison.changes["total_files"] == 1
        assert comparison.changes["total_lines"] == 2
        assert comparison.time_since_previous == 60
        assert comparison.file_type_changes["py"].status == "changed"

    def test_tracking_disabled(self, project, cache_dir, stores):
        options = AnalysisOptions(cache_dir=str(cache_dir), track_stats=False)
        report = run(ProjectAnalyzer(options, stores=stores), project)

        assert report.user_stats is None
        assert report.comparison is None
        assert stores.history.load() == []


class TestProgress:
    def test_events(self, tmp_path, options, stores):
        root = write_tree(tmp_path / "p", {f"f{i:02d}.py": "x = 1\n" for i in range(25)})
        events = []

        run(ProjectAnalyzer(options, stores=stores, progress_callback=events.append), root)

        assert events[0].stage == "counting" and events[0].progress == 0
        assert events[1].stage == "counting" and events[1].total_files == 25
        analyzing = [e for e in events if e.stage == "analyzing"]
        assert [e.files_processed for e in analyzing] == [10, 20]
        assert [e.progress for e in analyzing] == [40, 80]
        assert analyzing[0].current_file == "f09.py"

    def test_no_events_without_callback(self, project, options, stores):
        report = run(ProjectAnalyzer(options, stores=stores), project)
        assert report.result.total_files == 5


class TestCancellation:
    def test_cancelled_before_start(self, project, options, stores):
        token = CancellationToken()
        token.cancel()

        report = run(ProjectAnalyzer(options, stores=stores, cancellation=token), project)

        assert report.cancelled
        assert report.result.total_files == 0
        assert stores.cache.stats()["total_entries"] == 0
        assert stores.history.load() == []

    def test_cancelled_midway_returns_partial(self, tmp_path, options, stores):
        root = write_tree(tmp_path / "p", {f"f{i:02d}.py": "x = 1\n" for i in range(30)})
        polls = {"n": 0}

        def predicate():
            polls["n"] += 1
            return polls["n"] > 12

        report = run(ProjectAnalyzer(options, stores=stores, cancellation=predicate), root)

        assert report.cancelled
        assert 0 < report.result.total_files < 30
        assert report.user_stats is None


class TestAnalyzeFile:
    def test_any_extension(self, tmp_path, options, stores):
        path = tmp_path / "notes.weird"
        path.write_text("one\n\ntwo\n")

        result = asyncio.run(ProjectAnalyzer(options, stores=stores).analyze_file(path))

        assert result.total_files == 1
        assert (result.total_lines, result.code_lines, result.blank_lines) == (3, 2, 1)
        assert result.largest_files[0].path == "notes.weird"

    def test_too_large_raised(self, tmp_path, cache_dir, stores):
        path = tmp_path / "big.py"
        path.write_text("x = 1\n" * 100)
        options = AnalysisOptions(cache_dir=str(cache_dir), max_file_size=10)

        with pytest.raises(AnalysisError) as exc_info:
            asyncio.run(ProjectAnalyzer(options, stores=stores).analyze_file(path))
        assert exc_info.value.kind is ErrorKind.FILE_TOO_LARGE

    def test_binary_raised(self, tmp_path, options, stores):
        path = tmp_path / "data.bin"
        path.write_bytes(b"\x00" * 64)

        with pytest.raises(AnalysisError) as exc_info:
            asyncio.run(ProjectAnalyzer(options, stores=stores).analyze_file(path))
        assert exc_info.value.kind is ErrorKind.BINARY_FILE

    def test_missing_file_wrapped(self, tmp_path, options, stores):
        with pytest.raises(AnalysisError) as exc_info:
            asyncio.run(ProjectAnalyzer(options, stores=stores).analyze_file(tmp_path / "nope.py"))
        assert exc_info.value.code == "FILE_ANALYSIS_ERROR"

    def test_file_without_extension(self, tmp_path, options, stores):
        path = tmp_path / "Makefile"
        path.write_text("all:\n\techo hi\n")

        result = asyncio.run(ProjectAnalyzer(options, stores=stores).analyze_file(path))

        assert list(result.by_file_type) == ["unknown"]
        assert result.largest_files[0].type == "unknown"
        assert result.total_lines == 2
