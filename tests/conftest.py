"""Shared pytest fixtures for chainrunner tests.

Stage tests run real child processes: the current interpreter stands in for
the compiler, assembler and virtual machine so the suite needs no toolchain.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Any

import pytest

from chainrunner.domain.models import StageSpec, TestCase

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

# ---------------------------------------------------------------------------
# Fake toolchain scripts
# ---------------------------------------------------------------------------

# Reads the source file named in argv[1]; rejects files mentioning
# "compile_error", otherwise emits the source as its "object code".
COMPILER = """\
import sys
text = open(sys.argv[1], encoding="utf-8").read()
if "compile_error" in text:
    sys.stderr.write("error: compile failed\\n  near compile_error\\n")
    sys.exit(1)
sys.stdout.write(text)
"""

# Passes stdin through; rejects input mentioning "asm_error".
ASSEMBLER = """\
import sys
data = sys.stdin.buffer.read()
if b"asm_error" in data:
    sys.stderr.write("assembler: unknown opcode\\n")
    sys.exit(2)
sys.stdout.buffer.write(data)
"""

# Fails at "runtime" on input mentioning "divide"; argv must include
# --exit-on-halt so flag passing is exercised.
VM = """\
import sys
assert "--exit-on-halt" in sys.argv, sys.argv
data = sys.stdin.buffer.read()
if b"divide" in data:
    sys.stderr.write("runtime error: division by zero at line 4\\n")
    sys.exit(3)
sys.stdout.buffer.write(b"halted\\n")
"""

# Copies stdin to stdout in chunks.
ECHO = """\
import shutil, sys
shutil.copyfileobj(sys.stdin.buffer, sys.stdout.buffer)
"""


def python_stage(
    name: str,
    script: str,
    *args: str,
    piped: bool = True,
    library_args: tuple[str, ...] = (),
) -> StageSpec:
    """StageSpec that runs *script* with the current interpreter."""
    return StageSpec(
        name=name,
        executable=sys.executable,
        args=("-c", script, *args),
        piped=piped,
        library_args=library_args,
    )


def toolchain_stages() -> tuple[StageSpec, ...]:
    return (
        python_stage("compile", COMPILER, piped=False),
        python_stage("assemble", ASSEMBLER),
        python_stage("run", VM, "run", "--exit-on-halt"),
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def stages() -> tuple[StageSpec, ...]:
    """The three-stage fake toolchain."""
    return toolchain_stages()


@pytest.fixture()
def write_test(tmp_path: Path) -> Callable[..., Path]:
    """Write a test file under ``tmp_path/tests`` and return its path."""

    def _factory(name: str, body: str) -> Path:
        path = tmp_path / "tests" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(body, encoding="utf-8")
        return path

    return _factory


@pytest.fixture()
def make_case(write_test: Callable[..., Path]) -> _CaseFactory:
    """Factory for TestCase backed by a real file."""

    def _factory(name: str = "test_case.bs", body: str = "let x = 1;\n") -> TestCase:
        path = write_test(name, body)
        return TestCase(name=name, path=path, source=body)

    return _factory


_CaseFactory = Any  # callable[..., TestCase]
