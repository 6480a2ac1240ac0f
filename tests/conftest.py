"""Shared test fixtures for codestat tests."""

import logging
from pathlib import Path

import pytest

from codestat.config import AnalysisOptions
from codestat.storage import Stores


def pytest_addoption(parser):
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="also run tests marked slow (multi-MiB files, wide trees)",
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: generates large inputs; skipped unless --run-slow")


def pytest_collection_modifyitems(config, items):
    if config.getoption("--run-slow"):
        return
    marker = pytest.mark.skip(reason="slow test, pass --run-slow to include")
    for item in items:
        if item.get_closest_marker("slow") is not None:
            item.add_marker(marker)


class FakeClock:
    """Deterministic wall clock for the stores."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def write_tree(root: Path, files: dict) -> Path:
    """Create files from a ``{relative path: str | bytes}`` mapping."""
    root.mkdir(parents=True, exist_ok=True)
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture(autouse=True)
def _reset_codestat_logger():
    """CLI tests install handlers; keep records flowing to caplog."""
    logger = logging.getLogger("codestat")
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "state"


@pytest.fixture
def stores(cache_dir, clock):
    return Stores.at(cache_dir, clock=clock)


@pytest.fixture
def options(cache_dir):
    return AnalysisOptions(cache_dir=str(cache_dir))


@pytest.fixture
def project(tmp_path):
    """A small mixed-language project."""
    return write_tree(
        tmp_path / "project",
        {
            "a.js": "// hello\n\nlet x = 1;\n",
            "src/main.py": "# entry point\nimport sys\n\n\ndef main():\n    return 0\n",
            "src/util.py": '"""Helpers."""\nVALUE = 1\n',
            "src/lib/core.c": "/* core\n * module\n */\nint main(void) { return 0; }\n",
            "README.md": "# Title\n\nSome text.\n",
            "node_modules/dep/index.js": "module.exports = 1;\n",
            "image.png": b"\x89PNG\r\n\x1a\n\x00\x00",
        },
    )
