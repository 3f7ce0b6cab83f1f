"""chainrunner.console._protocol -- ConsoleProtocol definition.

Pure standard-library typing.Protocol for the chainrunner terminal output.
No external dependencies allowed in this file.
"""

from __future__ import annotations

from typing import Protocol


class ConsoleProtocol(Protocol):
    """chainrunner terminal output protocol.

    **General messages**::

        console.info("Cloning library...")
        console.error("cannot run stage 'compile'")

    **Structured panels**::

        console.kv({"Tests path": "tests/", "Workers": "8"}, title="Run")

    **Test results** -- used by the CLI as results arrive::

        console.test_passed("test_add.bs")
        console.test_failed("test_div.bs", "runtime error: ...")
        console.summary(12, 1)

    Per-test lines go to stderr. The summary line goes to stdout.
    """

    # -- General messages ---------------------------------------------------

    def info(self, message: str) -> None:
        """Informational message."""
        ...

    def error(self, message: str) -> None:
        """Error message."""
        ...

    # -- Structured panels --------------------------------------------------

    def kv(self, data: dict[str, str], *, title: str = "") -> None:
        """Display key-value pairs."""
        ...

    # -- Test results -------------------------------------------------------

    def test_passed(self, name: str) -> None:
        """Report a passing test."""
        ...

    def test_failed(self, name: str, diagnostic: str) -> None:
        """Report a failing test with its tab-indented diagnostic."""
        ...

    def summary(self, tests_run: int, tests_failed: int) -> None:
        """Print the final ``Tests run: ...`` line."""
        ...
