"""File for tests."""

import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
import yaml


def pytest_configure(config: Any) -> None:
    """Configure the tests."""
    config.addinivalue_line(
        "markers",
        "golden_test(pattern): parameterize test with YAML files matching pattern",
    )


def _iter_marker_patterns(node: Any) -> Iterator[str]:
    """Yield pattern strings from golden_test markers on `node`."""
    for m in node.iter_markers(name="golden_test"):
        yield m.args[0] if m.args else "golden/*.yaml"


def _load_record(p: Path) -> dict[str, Any]:
    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        msg = f"golden record {p} is not a mapping"
        raise TypeError(msg)
    data.setdefault("__path__", str(p))
    data.setdefault("__name__", p.name)
    return data


def pytest_generate_tests(metafunc: Any) -> None:
    """Generate tests (parametrization) from YAML golden files."""
    if "golden" not in metafunc.fixturenames:
        return

    patterns = list(_iter_marker_patterns(metafunc.definition)) or ["golden/*.yaml"]
    root = Path(metafunc.config.rootpath)

    files: list[Path] = []
    for pat in patterns:
        files.extend(sorted(root.glob(pat)))

    metafunc.parametrize("golden", [_load_record(p) for p in files], ids=[p.stem for p in files])


@pytest.fixture(autouse=True)
def _restore_root_logger() -> Iterator[None]:
    """Undo init_logging() so handlers and levels don't leak between tests.

    Only plain `logging` handlers are dropped; pytest manages its own.
    """
    root = logging.getLogger()
    level = root.level
    yield
    for h in list(root.handlers):
        if type(h).__module__ == "logging":
            root.removeHandler(h)
            h.close()
    root.setLevel(level)
