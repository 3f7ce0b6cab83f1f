"""Fetching the toolchain's auxiliary library.

The library is cloned once per run into a private temporary directory and
handed to the first stage as a read-only path, so concurrent tests share it
without touching each other's directories.
"""

from __future__ import annotations

import logging
import subprocess
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from chainrunner.errors import AssetError

if TYPE_CHECKING:
    from types import TracebackType

    from chainrunner.config import LibrarySource

logger = logging.getLogger("chainrunner.assets")


def _run_git(*args: str, cwd: Path | None = None) -> str:
    """Run a git command and return stdout."""
    try:
        proc = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as exc:
        raise AssetError("git not found") from exc
    if proc.returncode != 0:
        raise AssetError(f"git {' '.join(args)} failed: {proc.stderr.strip()}")
    return proc.stdout.strip()


class LibraryFetcher:
    """Shallow-clones a library repository for the duration of a run.

    Usage::

        with LibraryFetcher(source) as library_path:
            executor = PipelineExecutor(stages, library_path=library_path)
    """

    def __init__(self, source: LibrarySource) -> None:
        self._source = source
        self._tmp: tempfile.TemporaryDirectory[str] | None = None

    def fetch(self) -> Path:
        """Clone the repository and return the library directory inside it.

        Raises:
            AssetError: If the clone fails or the subdirectory is missing.
        """
        self._tmp = tempfile.TemporaryDirectory(prefix="chainrunner-lib-")
        clone_dir = Path(self._tmp.name) / "clone"
        args = ["clone", "--depth", "1"]
        if self._source.ref:
            args += ["--branch", self._source.ref]
        logger.info("Cloning %s into %s", self._source.repo, clone_dir)
        _run_git(*args, self._source.repo, str(clone_dir))

        library = clone_dir / self._source.subdir
        if not library.is_dir():
            raise AssetError(f"{self._source.subdir!r} not found in {self._source.repo}")
        return library

    def cleanup(self) -> None:
        if self._tmp is not None:
            self._tmp.cleanup()
            self._tmp = None

    def __enter__(self) -> Path:
        try:
            return self.fetch()
        except AssetError:
            self.cleanup()
            raise

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cleanup()
