"""Tests for the console backends and configure()."""

from __future__ import annotations

import io
from typing import TYPE_CHECKING

import pytest

from chainrunner import console as console_module
from chainrunner.console import configure, console, get_console
from chainrunner.console._protocol import ConsoleProtocol
from chainrunner.console._plain import PlainBackend
from chainrunner.console._rich import RichBackend

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(autouse=True)
def _restore_backend() -> Iterator[None]:
    yield
    configure(backend="plain")


class TestPlainBackend:
    def test_summary_line_goes_to_stdout(self, capsys: pytest.CaptureFixture[str]) -> None:
        PlainBackend().summary(5, 2)
        captured = capsys.readouterr()
        assert captured.out == "Tests run: 5, Tests successful: 3, Tests failed: 2\n"
        assert captured.err == ""

    def test_passed_line(self, capsys: pytest.CaptureFixture[str]) -> None:
        PlainBackend().test_passed("test_ok.bs")
        assert capsys.readouterr().err == "TEST SUCCEEDED: test_ok.bs\n"

    def test_failed_line_indents_diagnostic(self, capsys: pytest.CaptureFixture[str]) -> None:
        PlainBackend().test_failed("test_div.bs", "runtime error\n\tat line 4")
        assert capsys.readouterr().err == "TEST FAILED: test_div.bs\n\truntime error\n\tat line 4\n"

    def test_failed_line_without_diagnostic(self, capsys: pytest.CaptureFixture[str]) -> None:
        PlainBackend().test_failed("test_x.bs", "")
        assert capsys.readouterr().err == "TEST FAILED: test_x.bs\n"

    def test_kv(self, capsys: pytest.CaptureFixture[str]) -> None:
        PlainBackend().kv({"a": "1", "long": "2"}, title="Run")
        err = capsys.readouterr().err
        assert "Run:" in err
        assert "     a: 1" in err
        assert "  long: 2" in err


class TestRichBackend:
    def test_summary_line_is_literal(self, capsys: pytest.CaptureFixture[str]) -> None:
        RichBackend().summary(3, 0)
        assert "Tests run: 3, Tests successful: 3, Tests failed: 0" in capsys.readouterr().out

    def test_brackets_in_diagnostic_are_not_markup(self, capsys: pytest.CaptureFixture[str]) -> None:
        RichBackend().test_failed("test_x.bs", "expected [red] token")
        err = capsys.readouterr().err
        assert "TEST FAILED: test_x.bs" in err
        assert "expected [red] token" in err


class TestConfigure:
    def test_plain(self) -> None:
        configure(backend="plain")
        assert isinstance(get_console(), PlainBackend)

    def test_rich(self) -> None:
        configure(backend="rich")
        assert isinstance(get_console(), RichBackend)

    def test_auto_without_tty_is_plain(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stderr", io.StringIO())
        configure(backend="auto")
        assert isinstance(get_console(), PlainBackend)

    def test_proxy_follows_backend(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure(backend="plain")
        console.test_passed("x")
        assert "TEST SUCCEEDED: x" in capsys.readouterr().err
        assert console_module.BACKENDS == ("auto", "rich", "plain")


def _public_methods(cls: type) -> set[str]:
    return {n for n in vars(cls) if not n.startswith("_") and callable(getattr(cls, n))}


@pytest.mark.parametrize("backend", [PlainBackend, RichBackend])
def test_backends_implement_exactly_the_protocol(backend: type) -> None:
    assert _public_methods(backend) == _public_methods(ConsoleProtocol)
