"""Tests for YAML configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from chainrunner.config import (
    DEFAULT_STAGES,
    HarnessConfig,
    LibrarySource,
    config_file,
    load_config,
)
from chainrunner.errors import ConfigError


def _write(path: Path, data: object) -> Path:
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestLoadConfig:
    def test_missing_default_file_gives_defaults(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        config = load_config()
        assert config == HarnessConfig()
        assert config.stages == DEFAULT_STAGES

    def test_missing_explicit_file_is_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "missing.yaml")

    def test_reads_default_file_from_cwd(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write(config_file(tmp_path), {"pattern": "test*.src"})
        monkeypatch.chdir(tmp_path)
        assert load_config().pattern == "test*.src"

    def test_full_file(self, tmp_path: Path) -> None:
        cf = _write(
            tmp_path / "harness.yaml",
            {
                "tests_path": "cases",
                "pattern": "test*.src",
                "comment_marker": "#",
                "jobs": 3,
                "library_path": "/opt/std",
                "stages": [
                    {"name": "compile", "executable": "cc", "args": ["{source}"]},
                    {"name": "run", "executable": "vm", "args": ["--halt"]},
                ],
            },
        )
        config = load_config(cf)

        assert config.tests_path == tmp_path / "cases"
        assert config.pattern == "test*.src"
        assert config.comment_marker == "#"
        assert config.jobs == 3
        assert config.library_path == Path("/opt/std")
        assert [s.name for s in config.stages] == ["compile", "run"]
        assert config.stages[0].piped is False
        assert config.stages[1].piped is True
        assert config.stages[1].args == ("--halt",)

    def test_library_source(self, tmp_path: Path) -> None:
        cf = _write(tmp_path / "c.yaml", {"library": {"repo": "https://example.invalid/x.git", "ref": "v1"}})
        assert load_config(cf).library == LibrarySource(
            repo="https://example.invalid/x.git", subdir="std", ref="v1"
        )

    @pytest.mark.parametrize(
        "data",
        [
            ["not", "a", "mapping"],
            {"stages": []},
            {"stages": [{"name": "no-exe"}]},
            {"stages": ["cc"]},
            {"stages": [{"executable": "cc", "args": "not-a-list"}]},
            {"jobs": "many"},
            {"library": "repo-url"},
        ],
    )
    def test_invalid_values_raise(self, tmp_path: Path, data: object) -> None:
        with pytest.raises(ConfigError):
            load_config(_write(tmp_path / "bad.yaml", data))

    def test_invalid_yaml_raises(self, tmp_path: Path) -> None:
        cf = tmp_path / "bad.yaml"
        cf.write_text("stages: [unclosed\n")
        with pytest.raises(ConfigError, match="cannot load"):
            load_config(cf)


class TestStageOverride:
    def test_replaces_named_executable(self) -> None:
        config = HarnessConfig().with_stage_executable("assemble", "/opt/bin/upholsterer")
        assert config.stages[1].executable == "/opt/bin/upholsterer"
        assert config.stages[0] == DEFAULT_STAGES[0]

    def test_unknown_stage_raises(self) -> None:
        with pytest.raises(ConfigError, match="unknown stage"):
            HarnessConfig().with_stage_executable("link", "ld")
