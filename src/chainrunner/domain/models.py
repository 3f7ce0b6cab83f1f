"""Core data types for chainrunner.

All types are frozen dataclasses with complete type annotations.
This module has ZERO imports from outside the Python standard library.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class OutcomeKind(Enum):
    """What a test file declares about its own run."""

    SUCCESS = "success"
    FAILURE = "failure"


class Verdict(Enum):
    """Result of comparing a pipeline run against its expectation."""

    PASS = "pass"
    FAIL = "fail"


# ---------------------------------------------------------------------------
# Test inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TestCase:
    """A discovered test file."""

    __test__ = False

    name: str
    path: Path
    source: str


@dataclass(frozen=True)
class ExpectedOutcome:
    """Declared expectation parsed from a test file's first line.

    ``required`` is empty for SUCCESS and holds the messages, in
    declaration order, that must all appear in the failing stage's stderr
    for FAILURE.
    """

    kind: OutcomeKind
    required: tuple[str, ...] = ()

    @classmethod
    def success(cls) -> ExpectedOutcome:
        return cls(kind=OutcomeKind.SUCCESS)

    @classmethod
    def failure(cls, *messages: str) -> ExpectedOutcome:
        return cls(kind=OutcomeKind.FAILURE, required=tuple(messages))

    @property
    def expects_failure(self) -> bool:
        return self.kind is OutcomeKind.FAILURE


# ---------------------------------------------------------------------------
# Pipeline types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StageSpec:
    """One configured external process in the pipeline.

    ``args`` may contain the ``{source}`` and ``{library}`` placeholders.
    ``library_args`` are appended only when a library path is configured.
    """

    name: str
    executable: str
    args: tuple[str, ...] = ()
    piped: bool = False
    library_args: tuple[str, ...] = ()


@dataclass(frozen=True)
class StageResult:
    """Captured result of a single stage invocation."""

    success: bool
    exit_code: int
    stdout: bytes
    stderr: str


@dataclass(frozen=True)
class PipelineOutcome:
    """Terminal result of running every stage for one test.

    Either all stages succeeded (``completed``) and ``stdout`` holds the
    last stage's output, or exactly one stage failed and ``result`` holds
    its captured output.
    """

    completed: bool
    stdout: bytes = b""
    failed_stage: int | None = None
    failed_stage_name: str = ""
    result: StageResult | None = None

    @classmethod
    def all_succeeded(cls, stdout: bytes) -> PipelineOutcome:
        return cls(completed=True, stdout=stdout)

    @classmethod
    def stage_failed(cls, index: int, name: str, result: StageResult) -> PipelineOutcome:
        return cls(
            completed=False,
            failed_stage=index,
            failed_stage_name=name,
            result=result,
        )


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TestResult:
    """Verdict for one test case, with a diagnostic on failure."""

    __test__ = False

    name: str
    verdict: Verdict
    diagnostic: str = ""

    @property
    def passed(self) -> bool:
        return self.verdict is Verdict.PASS


@dataclass(frozen=True)
class RunSummary:
    """Final counts for a whole run."""

    tests_run: int
    tests_failed: int
    results: tuple[TestResult, ...] = ()

    @property
    def tests_successful(self) -> int:
        return self.tests_run - self.tests_failed

    @property
    def success(self) -> bool:
        return self.tests_failed == 0

