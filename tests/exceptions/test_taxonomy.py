"""Tests for the error taxonomy."""

import pytest

from codestat.exceptions import AnalysisError, ErrorKind
from codestat.exceptions.taxonomy import RECOVERABLE_KINDS


class TestErrorKind:
    def test_values_are_stable_codes(self):
        assert ErrorKind.FILE_TOO_LARGE.value == "FILE_TOO_LARGE"
        assert ErrorKind.RECURSION_DEPTH_EXCEEDED.value == "RECURSION_DEPTH_EXCEEDED"
        assert ErrorKind.ACCESS_DENIED.value == "ACCESS_DENIED"

    def test_only_generic_failure_is_fatal(self):
        assert set(ErrorKind) - RECOVERABLE_KINDS == {ErrorKind.ANALYSIS_FAILURE}


class TestAnalysisError:
    def test_is_an_exception(self):
        with pytest.raises(AnalysisError):
            raise AnalysisError.binary_file("a.bin")

    def test_file_too_large_payload(self):
        error = AnalysisError.file_too_large("big.js", size=2048, limit=1024)
        assert error.kind is ErrorKind.FILE_TOO_LARGE
        assert error.code == "FILE_TOO_LARGE"
        assert (error.path, error.size, error.limit) == ("big.js", 2048, 1024)
        assert error.recoverable

    def test_recursion_depth_payload(self):
        error = AnalysisError.recursion_depth_exceeded("/deep", 100)
        assert error.path == "/deep"
        assert error.limit == 100

    def test_failure_carries_code(self):
        error = AnalysisError.failure("boom", code="FILE_ANALYSIS_ERROR")
        assert error.kind is ErrorKind.ANALYSIS_FAILURE
        assert error.code == "FILE_ANALYSIS_ERROR"
        assert not error.recoverable

    def test_str(self):
        error = AnalysisError.access_denied("/secret")
        assert str(error) == '[ACCESS_DENIED] Access denied to "/secret"'

    def test_json_round_trip(self):
        error = AnalysisError.file_too_large("big.js", size=2048, limit=1024)
        data = error.to_json()
        assert data["recoverable"] is True
        restored = AnalysisError.from_json(data)
        assert restored.kind is error.kind
        assert (restored.path, restored.size, restored.limit) == ("big.js", 2048, 1024)

    def test_to_json_omits_empty_fields(self):
        data = AnalysisError.failure("boom").to_json()
        assert "path" not in data
        assert "size" not in data
