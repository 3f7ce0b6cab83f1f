"""chainrunner.console -- terminal output for test results.

Usage (any file)::

    from chainrunner.console import console

    console.info("Cloning library...")
    console.test_failed("test_div.bs", "runtime error: division by zero")

Configuration (call once in ``cli.py:main()``)::

    from chainrunner.console import configure

    configure(backend="auto")  # "rich" | "plain" | "auto"
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from chainrunner.console._plain import PlainBackend

if TYPE_CHECKING:
    from chainrunner.console._protocol import ConsoleProtocol

BACKENDS = ("auto", "rich", "plain")

# ---------------------------------------------------------------------------
# Global singleton -- defaults to PlainBackend
# ---------------------------------------------------------------------------

_backend: ConsoleProtocol = PlainBackend()


def configure(*, backend: str = "auto") -> None:
    """Select the console backend.

    Should be called **once** at startup (in ``cli.py:main()``).

    Args:
        backend: ``"rich"`` -- always use Rich.
                 ``"plain"`` -- always use plain text.
                 ``"auto"`` (default) -- Rich when stderr is a TTY,
                 plain otherwise.
    """
    global _backend  # noqa: PLW0603

    if backend == "plain" or (backend == "auto" and not sys.stderr.isatty()):
        _backend = PlainBackend()
        return

    from chainrunner.console._rich import RichBackend

    _backend = RichBackend()


def get_console() -> ConsoleProtocol:
    """Return the current backend instance."""
    return _backend


# ---------------------------------------------------------------------------
# Proxy object -- ``from chainrunner.console import console``
# ---------------------------------------------------------------------------


class _ConsoleProxy:
    """Transparent proxy that delegates to the current ``_backend``.

    This lets callers import ``console`` once at module level and
    automatically pick up any later ``configure()`` call.
    """

    def __getattr__(self, name: str) -> object:
        return getattr(_backend, name)


console: ConsoleProtocol = _ConsoleProxy()  # type: ignore[assignment]
