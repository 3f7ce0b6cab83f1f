"""Path constants and configuration loading."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from chainrunner.discovery import DEFAULT_PATTERN
from chainrunner.domain.models import StageSpec
from chainrunner.errors import ConfigError
from chainrunner.expectation.parser import DEFAULT_COMMENT_MARKER

logger = logging.getLogger("chainrunner.config")

CONFIG_FILE = "chainrunner.yaml"

DEFAULT_LIBRARY_REPO = "https://github.com/Backseating-Committee-2k/Seatbelt.git"
DEFAULT_LIBRARY_SUBDIR = "std"

DEFAULT_STAGES: tuple[StageSpec, ...] = (
    StageSpec(
        name="compile",
        executable="Seatbelt",
        args=("{source}",),
        library_args=("--lib", "{library}"),
    ),
    StageSpec(name="assemble", executable="Upholsterer2k", piped=True),
    StageSpec(
        name="run",
        executable="backseat_safe_system_2k",
        args=("run", "--exit-on-halt"),
        piped=True,
    ),
)


def config_file(project_root: Path) -> Path:
    """Return the default config file path for a working directory."""
    return project_root / CONFIG_FILE


@dataclass(frozen=True)
class LibrarySource:
    """Where to fetch the toolchain's auxiliary library from."""

    repo: str = DEFAULT_LIBRARY_REPO
    subdir: str = DEFAULT_LIBRARY_SUBDIR
    ref: str | None = None


@dataclass(frozen=True)
class HarnessConfig:
    """Settings for one harness run."""

    tests_path: Path = Path(".")
    pattern: str = DEFAULT_PATTERN
    comment_marker: str = DEFAULT_COMMENT_MARKER
    jobs: int | None = None
    library_path: Path | None = None
    library: LibrarySource | None = None
    stages: tuple[StageSpec, ...] = field(default=DEFAULT_STAGES)

    def with_stage_executable(self, name: str, executable: str) -> HarnessConfig:
        """Return a copy with the named stage's executable replaced.

        Raises:
            ConfigError: If no stage has that name.
        """
        if not any(s.name == name for s in self.stages):
            known = ", ".join(s.name for s in self.stages)
            raise ConfigError(f"unknown stage {name!r} (known: {known})")
        stages = tuple(
            replace(s, executable=executable) if s.name == name else s for s in self.stages
        )
        return replace(self, stages=stages)


def _as_str_tuple(value: Any, where: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str) or not isinstance(value, list):
        raise ConfigError(f"{where} must be a list of strings")
    return tuple(str(v) for v in value)


def _stage_from_dict(d: Any, index: int) -> StageSpec:
    if not isinstance(d, dict):
        raise ConfigError(f"stages[{index}] must be a mapping")
    if "executable" not in d:
        raise ConfigError(f"stages[{index}] is missing 'executable'")
    return StageSpec(
        name=str(d.get("name", f"stage{index}")),
        executable=str(d["executable"]),
        args=_as_str_tuple(d.get("args"), f"stages[{index}].args"),
        piped=bool(d.get("piped", index > 0)),
        library_args=_as_str_tuple(d.get("library_args"), f"stages[{index}].library_args"),
    )


def _library_from_dict(d: Any) -> LibrarySource:
    if not isinstance(d, dict):
        raise ConfigError("library must be a mapping")
    ref = d.get("ref")
    return LibrarySource(
        repo=str(d.get("repo", DEFAULT_LIBRARY_REPO)),
        subdir=str(d.get("subdir", DEFAULT_LIBRARY_SUBDIR)),
        ref=str(ref) if ref is not None else None,
    )


def _config_from_dict(d: dict[str, Any], base_dir: Path) -> HarnessConfig:
    config = HarnessConfig()
    if "tests_path" in d:
        config = replace(config, tests_path=base_dir / str(d["tests_path"]))
    if "pattern" in d:
        config = replace(config, pattern=str(d["pattern"]))
    if "comment_marker" in d:
        config = replace(config, comment_marker=str(d["comment_marker"]))
    if d.get("jobs") is not None:
        try:
            config = replace(config, jobs=int(d["jobs"]))
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"jobs must be an integer, got {d['jobs']!r}") from exc
    if d.get("library_path") is not None:
        config = replace(config, library_path=base_dir / str(d["library_path"]))
    if d.get("library") is not None:
        config = replace(config, library=_library_from_dict(d["library"]))
    if "stages" in d:
        raw = d["stages"]
        if not isinstance(raw, list) or not raw:
            raise ConfigError("stages must be a non-empty list")
        config = replace(config, stages=tuple(_stage_from_dict(s, i) for i, s in enumerate(raw)))
    return config


def load_config(path: Path | None = None) -> HarnessConfig:
    """Load settings from a YAML file.

    Relative paths in the file are resolved against the file's directory.
    A missing file yields the defaults.

    Raises:
        ConfigError: If the file is not valid YAML or has invalid values.
    """
    cf = path if path is not None else config_file(Path.cwd())
    if not cf.exists():
        if path is not None:
            raise ConfigError(f"config file not found: {cf}")
        logger.debug("No config file at %s, using defaults", cf)
        return HarnessConfig()

    try:
        data = yaml.safe_load(cf.read_text(encoding="utf-8")) or {}
    except (yaml.YAMLError, OSError) as exc:
        raise ConfigError(f"cannot load {cf}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{cf} must contain a mapping at top level")

    logger.debug("Loaded config from %s", cf)
    return _config_from_dict(data, cf.parent)
