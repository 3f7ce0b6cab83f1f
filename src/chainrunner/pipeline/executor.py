"""Run the configured stages in order for one test file."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from chainrunner.domain.models import PipelineOutcome
from chainrunner.errors import ConfigError
from chainrunner.pipeline.stage import Stage

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from chainrunner.domain.models import StageSpec

logger = logging.getLogger("chainrunner.pipeline")


class PipelineExecutor:
    """Chains stages through their standard streams.

    Each stage's captured stdout becomes the next stage's stdin. Execution
    stops at the first stage that exits non-zero. The executor keeps no
    per-test state, so one instance is shared by every worker.
    """

    def __init__(
        self,
        stages: Sequence[StageSpec],
        *,
        library_path: Path | None = None,
        cwd: Path | None = None,
    ) -> None:
        if not stages:
            raise ConfigError("pipeline has no stages")
        self._stages = tuple(Stage(spec, cwd=cwd) for spec in stages)
        self._library_path = library_path

    @property
    def stages(self) -> tuple[Stage, ...]:
        return self._stages

    def run(self, source_path: Path) -> PipelineOutcome:
        """Run every stage for *source_path*.

        Returns:
            ``PipelineOutcome.all_succeeded`` with the last stage's stdout,
            or ``PipelineOutcome.stage_failed`` for the first failing stage.
        """
        carried: bytes | None = None
        for index, stage in enumerate(self._stages):
            result = stage.run(
                source_path,
                carried if stage.spec.piped else None,
                library_path=self._library_path,
            )
            if not result.success:
                logger.info(
                    "%s: stage %d (%s) failed with exit code %d",
                    source_path,
                    index,
                    stage.name,
                    result.exit_code,
                )
                return PipelineOutcome.stage_failed(index, stage.name, result)
            carried = result.stdout
        return PipelineOutcome.all_succeeded(carried or b"")
