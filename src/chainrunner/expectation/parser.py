"""Expectation directive parsing.

A test file may declare on its first line that it is expected to fail::

    // fails_with = "division by zero", "line 4"

Anything else on the first line, including no comment at all, means the
test is expected to run through every stage successfully.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from chainrunner.domain.models import ExpectedOutcome, TestResult, Verdict
from chainrunner.errors import DirectiveError

if TYPE_CHECKING:
    from chainrunner.domain.models import TestCase

logger = logging.getLogger("chainrunner.expectation")

DIRECTIVE_KEY = "fails_with"
DEFAULT_COMMENT_MARKER = "//"

_QUOTE = '"'


def _first_line(text: str) -> str:
    return text.split("\n", 1)[0].strip()


def _parse_messages(rhs: str) -> tuple[str, ...]:
    """Split ``"a", "b"`` into its quoted literals.

    Raises:
        DirectiveError: On a missing quote, an empty literal, or any text
            between literals other than a single comma.
    """
    messages: list[str] = []
    pos = 0
    end = len(rhs)
    while True:
        while pos < end and rhs[pos].isspace():
            pos += 1
        if pos >= end:
            raise DirectiveError(f"expected a quoted message after {rhs[:pos].rstrip()!r}")
        if rhs[pos] != _QUOTE:
            raise DirectiveError(f'" prefix not found in {rhs[pos:]!r}')
        close = rhs.find(_QUOTE, pos + 1)
        if close == -1:
            raise DirectiveError(f'" suffix not found in {rhs[pos:]!r}')
        message = rhs[pos + 1 : close]
        if not message:
            raise DirectiveError("empty message in fails_with directive")
        messages.append(message)

        pos = close + 1
        while pos < end and rhs[pos].isspace():
            pos += 1
        if pos >= end:
            return tuple(messages)
        if rhs[pos] != ",":
            raise DirectiveError(f"unexpected text after message: {rhs[pos:]!r}")
        pos += 1


def parse_expectation(text: str, *, comment_marker: str = DEFAULT_COMMENT_MARKER) -> ExpectedOutcome:
    """Derive the expected outcome from a test file's text.

    Only the first line is inspected.

    Args:
        text: Full source text of the test file.
        comment_marker: Line-comment prefix of the toolchain's language.

    Returns:
        ``ExpectedOutcome.failure(...)`` for a ``fails_with`` directive,
        ``ExpectedOutcome.success()`` otherwise.

    Raises:
        DirectiveError: If the directive is present but malformed.
    """
    line = _first_line(text)
    if not line.startswith(comment_marker):
        return ExpectedOutcome.success()

    command = line[len(comment_marker) :].strip()
    lhs, sep, rhs = command.partition("=")
    if not sep or lhs.strip() != DIRECTIVE_KEY:
        return ExpectedOutcome.success()

    return ExpectedOutcome.failure(*_parse_messages(rhs.strip()))


def expectation_for(
    case: TestCase,
    *,
    comment_marker: str = DEFAULT_COMMENT_MARKER,
) -> ExpectedOutcome | TestResult:
    """Parse a test case's directive, turning a parse error into a failed result.

    Returns:
        The parsed expectation, or a FAIL ``TestResult`` describing the
        malformed directive so the caller can record it and move on.
    """
    try:
        return parse_expectation(case.source, comment_marker=comment_marker)
    except DirectiveError as exc:
        logger.warning("Malformed directive in %s: %s", case.name, exc)
        return TestResult(
            name=case.name,
            verdict=Verdict.FAIL,
            diagnostic=f"malformed fails_with directive: {exc}",
        )
