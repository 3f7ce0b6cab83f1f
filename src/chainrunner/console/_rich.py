"""chainrunner.console._rich -- Rich-based terminal backend.

Provides coloured, structured terminal output using the Rich library.
Captured tool output is printed as ``Text`` so brackets in compiler
messages are never read as markup.
"""

from __future__ import annotations

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from chainrunner.console._plain import summary_line

_THEME = Theme(
    {
        "info": "blue",
        "success": "bold green",
        "error": "bold red",
        "diagnostic": "dim",
    }
)


class RichBackend:
    """ConsoleProtocol implementation backed by Rich."""

    def __init__(self) -> None:
        self._err = Console(theme=_THEME, highlight=False, stderr=True)
        self._out = Console(theme=_THEME, highlight=False)

    # -- General messages ---------------------------------------------------

    def info(self, message: str) -> None:
        self._err.print(Text(f"  {message}", style="info"))

    def error(self, message: str) -> None:
        self._err.print(Text(f"  ✗ {message}", style="error"))

    # -- Structured panels --------------------------------------------------

    def kv(self, data: dict[str, str], *, title: str = "") -> None:
        t = Table(
            title=title or None,
            box=box.SIMPLE,
            show_header=False,
            show_edge=False,
            pad_edge=True,
        )
        t.add_column("Key", style="bold", justify="right")
        t.add_column("Value")
        for k, v in data.items():
            t.add_row(k, Text(v))
        self._err.print(t)

    # -- Test results -------------------------------------------------------

    def test_passed(self, name: str) -> None:
        line = Text("TEST SUCCEEDED: ", style="success")
        line.append(name)
        self._err.print(line)

    def test_failed(self, name: str, diagnostic: str) -> None:
        line = Text("TEST FAILED: ", style="error")
        line.append(name)
        self._err.print(line)
        if diagnostic:
            self._err.print(Text(f"\t{diagnostic}", style="diagnostic"))

    def summary(self, tests_run: int, tests_failed: int) -> None:
        style = "success" if tests_failed == 0 else "error"
        self._out.print(Text(summary_line(tests_run, tests_failed), style=style))
