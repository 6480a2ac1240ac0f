"""Tests for the streaming and buffered content readers."""

import asyncio

import pytest

from codestat.cancellation import CancellationToken
from codestat.config import AnalysisOptions
from codestat.exceptions import AnalysisError, ErrorKind
from codestat.models import LineCounts
from codestat.scanning.languages import get_language_rules
from codestat.scanning.reader import ContentReader, decode

SAMPLE = "/* header\n * more\n */\r\nint a;\r\n\n// note\n  \nint b; /* inline */\nint c;"


def _read(reader, path, rules):
    return asyncio.run(reader.read(path, path.stat().st_size, rules))


class TestStrategies:
    def test_streaming_and_buffered_agree(self, tmp_path):
        path = tmp_path / "sample.c"
        path.write_bytes(SAMPLE.encode("utf-8"))
        reader = ContentReader(AnalysisOptions())
        rules = get_language_rules("c")

        streamed = asyncio.run(reader.read_streaming(path, rules))
        buffered = reader.read_buffered(path, rules)

        assert streamed == buffered
        assert buffered == LineCounts(total=9, code=3, comment=4, blank=2)

    def test_large_file_is_streamed(self, tmp_path, monkeypatch):
        path = tmp_path / "big.js"
        path.write_text("// c\nlet x;\n" * 50)
        reader = ContentReader(AnalysisOptions(streaming_threshold=64))

        def fail(*args, **kwargs):
            raise AssertionError("buffered read used")

        monkeypatch.setattr(reader, "read_buffered", fail)
        counts = _read(reader, path, get_language_rules("js"))
        assert counts == LineCounts(total=100, code=50, comment=50, blank=0)

    @pytest.mark.slow
    def test_multi_mib_file_streams_with_default_options(self, tmp_path, monkeypatch):
        chunk = "/* block\n * body\n */\nint x = 1;\n\n// tail\n"
        repeats = 200_000
        path = tmp_path / "generated.c"
        path.write_text(chunk * repeats)
        options = AnalysisOptions()
        assert options.streaming_threshold < path.stat().st_size < options.max_file_size

        rules = get_language_rules("c")
        expected = LineCounts(total=6 * repeats, code=repeats, comment=4 * repeats, blank=repeats)
        assert ContentReader(options).read_buffered(path, rules) == expected

        reader = ContentReader(options)

        def fail(*args, **kwargs):
            raise AssertionError("buffered read used")

        monkeypatch.setattr(reader, "read_buffered", fail)
        assert _read(reader, path, rules) == expected

    def test_stream_failure_falls_back_to_buffered(self, tmp_path):
        path = tmp_path / "legacy.py"
        path.write_bytes(b"# caf\xe9\nx = 1\n" * 20)
        reader = ContentReader(AnalysisOptions(streaming_threshold=16))

        counts = _read(reader, path, get_language_rules("py"))
        assert counts == LineCounts(total=40, code=20, comment=20, blank=0)


class TestBuffered:
    def test_latin1_fallback(self, tmp_path):
        path = tmp_path / "legacy.py"
        path.write_bytes(b"# caf\xe9\nx = 1\n")
        counts = ContentReader().read_buffered(path, get_language_rules("py"))
        assert counts == LineCounts(total=2, code=1, comment=1, blank=0)

    def test_bom_does_not_hide_comment(self, tmp_path):
        path = tmp_path / "bom.js"
        path.write_bytes("\ufeff// first\nlet x;\n".encode("utf-8"))
        counts = ContentReader().read_buffered(path, get_language_rules("js"))
        assert counts.comment == 1

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.js"
        path.write_text("")
        assert ContentReader().read_buffered(path, get_language_rules("js")) == LineCounts()

    def test_missing_file_is_other_failure(self, tmp_path):
        with pytest.raises(AnalysisError) as exc_info:
            ContentReader().read_buffered(tmp_path / "gone.js", get_language_rules("js"))
        assert exc_info.value.kind is ErrorKind.ANALYSIS_FAILURE
        assert exc_info.value.code == "READ_ERROR"

    def test_decode_prefers_utf8(self):
        assert decode("héllo".encode("utf-8")) == "héllo"


class TestLimits:
    def test_oversized_file_is_never_read(self, tmp_path):
        path = tmp_path / "huge.js"
        path.write_text("let x;\n")
        reader = ContentReader(AnalysisOptions(max_file_size=100))

        with pytest.raises(AnalysisError) as exc_info:
            asyncio.run(reader.read(path, 101, get_language_rules("js")))

        error = exc_info.value
        assert error.kind is ErrorKind.FILE_TOO_LARGE
        assert error.size == 101
        assert error.limit == 100

    def test_cancelled_stream_returns_partial_counts(self, tmp_path):
        path = tmp_path / "long.js"
        path.write_text("let x;\n" * 100)
        token = CancellationToken()
        token.cancel()
        reader = ContentReader(AnalysisOptions(cancellation_check_interval=10), token)

        counts = asyncio.run(reader.read_streaming(path, get_language_rules("js")))
        assert counts.total == 10
        assert counts.is_consistent
