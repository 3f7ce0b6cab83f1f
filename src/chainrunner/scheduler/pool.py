"""Run one pipeline per test case on a bounded worker pool."""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING

from chainrunner.domain.models import RunSummary, TestResult, Verdict
from chainrunner.errors import HarnessError
from chainrunner.expectation.parser import DEFAULT_COMMENT_MARKER, expectation_for
from chainrunner.outcome.evaluator import evaluate

if TYPE_CHECKING:
    from collections.abc import Sequence
    from concurrent.futures import Future

    from chainrunner.domain.models import TestCase
    from chainrunner.domain.protocols import PipelineRunner, ResultCallback

logger = logging.getLogger("chainrunner.scheduler")


class RunCounters:
    """Thread-safe run/failed counters shared by all workers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._run = 0
        self._failed = 0

    def record(self, result: TestResult) -> None:
        with self._lock:
            self._run += 1
            if result.verdict is Verdict.FAIL:
                self._failed += 1

    def snapshot(self) -> tuple[int, int]:
        with self._lock:
            return self._run, self._failed


def default_jobs() -> int:
    return os.cpu_count() or 1


class Scheduler:
    """Runs every test case once and aggregates the results."""

    def __init__(
        self,
        runner: PipelineRunner,
        *,
        comment_marker: str = DEFAULT_COMMENT_MARKER,
        jobs: int | None = None,
        on_result: ResultCallback | None = None,
    ) -> None:
        self._runner = runner
        self._comment_marker = comment_marker
        self._jobs = jobs if jobs and jobs > 0 else default_jobs()
        self._on_result = on_result

    @property
    def jobs(self) -> int:
        return self._jobs

    def run_one(self, case: TestCase) -> TestResult:
        """Parse, execute and evaluate a single test case.

        Per-test problems (malformed directive, broken stdin pipe) become a
        FAIL result. Fatal errors propagate.
        """
        expected = expectation_for(case, comment_marker=self._comment_marker)
        if isinstance(expected, TestResult):
            return expected
        try:
            outcome = self._runner.run(case.path)
        except HarnessError as exc:
            if exc.fatal:
                raise
            logger.warning("%s: %s", case.name, exc)
            return TestResult(name=case.name, verdict=Verdict.FAIL, diagnostic=str(exc))
        return evaluate(case.name, outcome, expected)

    def _task(self, case: TestCase, counters: RunCounters) -> TestResult:
        result = self.run_one(case)
        counters.record(result)
        return result

    def run(self, cases: Sequence[TestCase]) -> RunSummary:
        """Run all *cases* concurrently.

        Results are reported through ``on_result`` in completion order; the
        returned summary lists them in discovery order.

        Raises:
            HarnessError: The first fatal error raised by any worker. Pending
                tests are cancelled.
        """
        counters = RunCounters()
        results: dict[int, TestResult] = {}
        logger.info("Running %d test(s) on %d worker(s)", len(cases), self._jobs)

        with ThreadPoolExecutor(max_workers=self._jobs, thread_name_prefix="chainrunner") as pool:
            pending: dict[Future[TestResult], int] = {
                pool.submit(self._task, case, counters): index for index, case in enumerate(cases)
            }
            while pending:
                done, _ = wait(pending, return_when=FIRST_EXCEPTION)
                for future in done:
                    index = pending.pop(future)
                    error = future.exception()
                    if error is not None:
                        for other in pending:
                            other.cancel()
                        logger.error("Aborting run: %s", error)
                        raise error
                    result = future.result()
                    results[index] = result
                    logger.debug("%s: %s", result.name, result.verdict.value)
                    if self._on_result is not None:
                        self._on_result(result)

        tests_run, tests_failed = counters.snapshot()
        return RunSummary(
            tests_run=tests_run,
            tests_failed=tests_failed,
            results=tuple(results[i] for i in sorted(results)),
        )
