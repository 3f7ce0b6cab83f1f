"""A single external process in the pipeline.

Piped stages are fed on a separate writer thread while the calling thread
drains stdout and stderr, so a child that fills its output pipe before
consuming all of its input cannot deadlock the harness.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from typing import IO, TYPE_CHECKING

from chainrunner.domain.models import StageResult
from chainrunner.errors import StageIOError, StageSpawnError

if TYPE_CHECKING:
    from pathlib import Path

    from chainrunner.domain.models import StageSpec

logger = logging.getLogger("chainrunner.pipeline")

SOURCE_PLACEHOLDER = "{source}"
LIBRARY_PLACEHOLDER = "{library}"


def _feed(stream: IO[bytes], data: bytes, errors: list[OSError]) -> None:
    """Write *data* to a child's stdin and close it, recording any failure."""
    try:
        stream.write(data)
        stream.close()
    except OSError as exc:
        errors.append(exc)
        try:
            stream.close()
        except OSError:
            # The pipe is already broken; the first error is what gets reported.
            pass


class Stage:
    """Runs one configured stage and captures its result."""

    def __init__(self, spec: StageSpec, *, cwd: Path | None = None) -> None:
        self._spec = spec
        self._cwd = cwd

    @property
    def spec(self) -> StageSpec:
        return self._spec

    @property
    def name(self) -> str:
        return self._spec.name

    def argv(self, source_path: Path, library_path: Path | None = None) -> list[str]:
        """Build the command line for this stage.

        Placeholders are substituted in ``args``. A non-piped stage without a
        ``{source}`` placeholder gets the source path as its last argument.
        """
        source = str(source_path)
        library = str(library_path) if library_path is not None else ""

        def _expand(arg: str) -> str:
            return arg.replace(SOURCE_PLACEHOLDER, source).replace(LIBRARY_PLACEHOLDER, library)

        args = [_expand(a) for a in self._spec.args]
        if library_path is not None:
            args.extend(_expand(a) for a in self._spec.library_args)
        if not self._spec.piped and not any(SOURCE_PLACEHOLDER in a for a in self._spec.args):
            args.append(source)
        return [self._spec.executable, *args]

    def run(
        self,
        source_path: Path,
        input_bytes: bytes | None = None,
        *,
        library_path: Path | None = None,
    ) -> StageResult:
        """Spawn the stage, feed it *input_bytes* if piped, and wait for it.

        Raises:
            StageSpawnError: If the executable cannot be launched.
            StageIOError: If writing stdin failed but the stage still exited 0.
        """
        argv = self.argv(source_path, library_path)
        logger.debug("Spawning stage %s: %s", self.name, argv)
        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.PIPE if self._spec.piped else subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=self._cwd,
            )
        except OSError as exc:
            raise StageSpawnError(self.name, self._spec.executable, exc.strerror or str(exc)) from exc

        write_errors: list[OSError] = []
        writer: threading.Thread | None = None
        if proc.stdin is not None:
            # Take stdin away from Popen so communicate() only drains output.
            stdin, proc.stdin = proc.stdin, None
            writer = threading.Thread(
                target=_feed,
                args=(stdin, input_bytes or b"", write_errors),
                name=f"chainrunner-{self.name}-stdin",
                daemon=True,
            )
            writer.start()

        try:
            stdout, stderr = proc.communicate()
        finally:
            if writer is not None:
                writer.join()

        exit_code = proc.returncode
        logger.debug("Stage %s exited with %d (%d bytes stdout)", self.name, exit_code, len(stdout))

        if write_errors and exit_code == 0:
            raise StageIOError(self.name, str(write_errors[0]))

        return StageResult(
            success=exit_code == 0,
            exit_code=exit_code,
            stdout=stdout,
            stderr=stderr.decode("utf-8", errors="replace"),
        )
