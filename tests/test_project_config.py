"""Tests for the JSON project configuration."""

from __future__ import annotations

import json
from pathlib import Path

from tracewatch import paths
from tracewatch.config import ProjectConfig


class TestProjectConfig:
    """Tests for ProjectConfig."""

    def test_reads_values(self, tmp_path: Path) -> None:
        path = tmp_path / "tracewatch.json"
        path.write_text(json.dumps({"interval": 30, "keywords": ["jwt"], "verbose": True}), encoding="utf-8")

        config = ProjectConfig(path)

        assert config.interval == 30
        assert config.keywords == ["jwt"]
        assert config.verbose is True
        assert config.timeout is None
        assert config.get("missing", "x") == "x"

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        config = ProjectConfig(tmp_path / "absent.json")
        assert config.workers is None

    def test_corrupt_file_is_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "tracewatch.json"
        path.write_text("{oops", encoding="utf-8")

        assert ProjectConfig(path).interval is None

    def test_non_object_ignored(self, tmp_path: Path) -> None:
        path = tmp_path / "tracewatch.json"
        path.write_text("[1, 2]", encoding="utf-8")

        assert ProjectConfig(path).output_dir is None

    def test_env_var_selects_file(self, tmp_path: Path, monkeypatch) -> None:
        path = tmp_path / "custom.json"
        path.write_text(json.dumps({"timeout": 5}), encoding="utf-8")
        monkeypatch.setenv(paths.CONFIG_ENV_VAR, str(path))

        assert paths.get_config_file() == path
        assert ProjectConfig().timeout == 5

    def test_default_location(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.delenv(paths.CONFIG_ENV_VAR, raising=False)
        monkeypatch.chdir(tmp_path)

        assert paths.get_config_file() == tmp_path.resolve() / "tracewatch.json"
