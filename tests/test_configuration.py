from __future__ import annotations

from pathlib import Path

import pytest

from scenemap.configuration import load_config_file, load_project_config

from tests.conftest import write_pyproject


def test_load_project_config_reads_tool_section(tmp_path: Path) -> None:
    write_pyproject(
        tmp_path,
        """
        [tool.scenemap.logging]
        level = "debug"

        [tool.scenemap.engine]
        update_epsilon = 0.001
        """,
    )

    loaded = load_project_config(tmp_path)

    assert loaded is not None
    payload, path = loaded
    assert payload["logging"]["level"] == "debug"
    assert payload["engine"]["update_epsilon"] == 0.001
    assert path == (tmp_path / "pyproject.toml").resolve()


def test_load_project_config_without_section(tmp_path: Path) -> None:
    write_pyproject(tmp_path, "[project]\nname = 'other'\n")

    assert load_project_config(tmp_path) is None
    assert load_project_config(tmp_path / "settings.toml") is None
    assert load_project_config(tmp_path / "missing") is None


def test_load_config_file_reads_standalone_toml(tmp_path: Path) -> None:
    target = tmp_path / "scenemap.toml"
    target.write_text("[engine]\nmapping_config = 'mapping.yaml'\n", encoding="utf8")

    assert load_config_file(target) == {"engine": {"mapping_config": "mapping.yaml"}}
    with pytest.raises(FileNotFoundError):
        load_config_file(tmp_path / "absent.toml")
