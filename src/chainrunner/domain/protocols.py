"""Protocol interfaces for chainrunner components."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from pathlib import Path

    from chainrunner.domain.models import PipelineOutcome, TestResult


class PipelineRunner(Protocol):
    """Interface for anything that can push one source file through the stages."""

    def run(self, source_path: Path) -> PipelineOutcome:
        """Run every stage for *source_path* and return the terminal outcome."""
        ...


class ResultCallback(Protocol):
    """Called by the scheduler once per finished test."""

    def __call__(self, result: TestResult) -> None: ...
