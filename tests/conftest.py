from __future__ import annotations

import importlib.util
import logging
import sys
import warnings
from pathlib import Path
from textwrap import dedent
from typing import Any, Dict, Iterator

import pytest


ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = ROOT / "src"
for _entry in (SRC_ROOT, ROOT):
    if str(_entry) not in sys.path:
        sys.path.insert(0, str(_entry))


def write_pyproject(directory: Path, contents: str) -> Path:
    """Persist a ``pyproject.toml`` under ``directory`` and return its path."""

    payload = dedent(contents).lstrip()
    target = directory / "pyproject.toml"
    target.write_text(payload, encoding="utf8")
    return target

if importlib.util.find_spec("pytest_cov") is None:

    def pytest_addoption(parser: pytest.Parser) -> None:
        """Register stub coverage options when pytest-cov is unavailable."""

        parser.addoption(
            "--cov",
            action="append",
            default=[],
            metavar="MODULE",
            help="Stub option provided when pytest-cov is not installed.",
        )
        parser.addoption(
            "--cov-report",
            action="append",
            default=[],
            metavar="TYPE",
            help="Stub option provided when pytest-cov is not installed.",
        )

    def pytest_configure(config: pytest.Config) -> None:
        """Inform users that coverage collection is skipped without pytest-cov."""

        cov_requested = bool(config.getoption("--cov")) or bool(config.getoption("--cov-report"))
        if cov_requested:
            warnings.warn(
                "pytest-cov is not installed; coverage options will be ignored.",
                RuntimeWarning,
                stacklevel=2,
            )


from scenemap.core.paths import default_scene_tree  # noqa: E402
from scenemap.mapping.engine import ParameterMappingEngine  # noqa: E402

from tests.helpers import fixed_clock  # noqa: E402


@pytest.fixture
def engine() -> ParameterMappingEngine:
    return ParameterMappingEngine(clock=fixed_clock())


@pytest.fixture
def scene_tree() -> Dict[str, Any]:
    return default_scene_tree()


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
