"""Test file discovery."""

from __future__ import annotations

import logging
from pathlib import Path

from chainrunner.domain.models import TestCase
from chainrunner.errors import DiscoveryError

logger = logging.getLogger("chainrunner.discovery")

DEFAULT_PATTERN = "test*.bs"


def _display_name(path: Path, root: Path) -> str:
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)


def discover_tests(root: Path, pattern: str = DEFAULT_PATTERN) -> list[TestCase]:
    """Find and read every test file under *root* matching *pattern*.

    The search is recursive and the result is sorted by path so that
    discovery order is stable between runs.

    Raises:
        DiscoveryError: If *root* is not a directory or a file cannot be read.
    """
    if not root.is_dir():
        raise DiscoveryError(f"tests path is not a directory: {root}")

    cases: list[TestCase] = []
    try:
        paths = sorted(p for p in root.rglob(pattern) if p.is_file())
    except OSError as exc:
        raise DiscoveryError(f"cannot enumerate tests under {root}: {exc}") from exc

    for path in paths:
        try:
            source = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise DiscoveryError(f"cannot read test file {path}: {exc}") from exc
        cases.append(TestCase(name=_display_name(path, root), path=path, source=source))

    logger.info("Discovered %d test file(s) under %s", len(cases), root)
    return cases
