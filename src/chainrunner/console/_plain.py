"""chainrunner.console._plain -- Plain-text fallback backend.

Plain print()-based output with no external dependencies.
Used when stdout is not a TTY or plain output is requested.
"""

from __future__ import annotations

import sys


def summary_line(tests_run: int, tests_failed: int) -> str:
    return (
        f"Tests run: {tests_run}, "
        f"Tests successful: {tests_run - tests_failed}, "
        f"Tests failed: {tests_failed}"
    )


class PlainBackend:
    """ConsoleProtocol implementation using only built-in print()."""

    # -- General messages ---------------------------------------------------

    def info(self, message: str) -> None:
        print(f"  {message}", file=sys.stderr)

    def error(self, message: str) -> None:
        print(f"  [error] {message}", file=sys.stderr)

    # -- Structured panels --------------------------------------------------

    def kv(self, data: dict[str, str], *, title: str = "") -> None:
        if title:
            print(f"\n  {title}:", file=sys.stderr)
        if not data:
            return
        max_key = max(len(k) for k in data)
        for k, v in data.items():
            print(f"  {k.rjust(max_key)}: {v}", file=sys.stderr)

    # -- Test results -------------------------------------------------------

    def test_passed(self, name: str) -> None:
        print(f"TEST SUCCEEDED: {name}", file=sys.stderr, flush=True)

    def test_failed(self, name: str, diagnostic: str) -> None:
        lines = [f"TEST FAILED: {name}"]
        if diagnostic:
            lines.append(f"\t{diagnostic}")
        print("\n".join(lines), file=sys.stderr, flush=True)

    def summary(self, tests_run: int, tests_failed: int) -> None:
        print(summary_line(tests_run, tests_failed), flush=True)
