"""Compare a pipeline's terminal result against the declared expectation.

Matching is plain substring containment on the failing stage's stderr, so
expected messages may be surrounded by any amount of context.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from chainrunner.domain.models import TestResult, Verdict

if TYPE_CHECKING:
    from chainrunner.domain.models import ExpectedOutcome, PipelineOutcome


def indent_block(text: str) -> str:
    """Indent continuation lines by a tab for display under a test name."""
    return text.replace("\n", "\n\t")


def _quoted(messages: tuple[str, ...]) -> str:
    return ", ".join(f'"{m}"' for m in messages)


def missing_messages(stderr: str, required: tuple[str, ...]) -> tuple[str, ...]:
    """Return the required messages that do not occur in *stderr*."""
    return tuple(m for m in required if m not in stderr)


def evaluate(name: str, outcome: PipelineOutcome, expected: ExpectedOutcome) -> TestResult:
    """Decide PASS or FAIL for one test.

    Args:
        name: Test identifier used in the result.
        outcome: Terminal result of the pipeline run.
        expected: Expectation parsed from the test file.

    Returns:
        A ``TestResult`` whose diagnostic explains any mismatch.
    """
    if outcome.completed:
        if not expected.expects_failure:
            return TestResult(name=name, verdict=Verdict.PASS)
        return TestResult(
            name=name,
            verdict=Verdict.FAIL,
            diagnostic=(
                "test execution finished, but error message(s) "
                f"{_quoted(expected.required)} were expected"
            ),
        )

    assert outcome.result is not None
    stderr = outcome.result.stderr

    if not expected.expects_failure:
        if not stderr.strip():
            return TestResult(
                name=name,
                verdict=Verdict.FAIL,
                diagnostic=(
                    f"stage {outcome.failed_stage_name!r} exited with code "
                    f"{outcome.result.exit_code} and no error output"
                ),
            )
        return TestResult(name=name, verdict=Verdict.FAIL, diagnostic=indent_block(stderr))

    if not missing_messages(stderr, expected.required):
        return TestResult(name=name, verdict=Verdict.PASS)

    return TestResult(
        name=name,
        verdict=Verdict.FAIL,
        diagnostic=(
            f"test aborted as expected in stage {outcome.failed_stage_name!r}, "
            "but with wrong error message:\n\t"
            f"expected: {_quoted(expected.required)}\n\t"
            f'     got: "{indent_block(stderr.strip())}"'
        ),
    )
