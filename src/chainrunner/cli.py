#!/usr/bin/env python3
"""
chainrunner CLI -- run conformance tests through an external toolchain.

Usage:
  chainrunner [--config PATH] [--tests-path DIR] [--pattern GLOB]
              [--stage NAME=EXECUTABLE ...] [--jobs N]
              [--library-path DIR | --fetch-library]
              [--console {auto,rich,plain}] [--log-file PATH] [-v]

Exits 0 when every test passed, 1 when any test failed and 2 when the run
could not be carried out at all.
"""

from __future__ import annotations

import argparse
import logging
import sys
from contextlib import ExitStack
from dataclasses import replace
from pathlib import Path

from chainrunner.assets import LibraryFetcher
from chainrunner.config import HarnessConfig, LibrarySource, load_config
from chainrunner.console import BACKENDS, configure, console
from chainrunner.discovery import discover_tests
from chainrunner.domain.models import TestResult
from chainrunner.errors import ConfigError, HarnessError
from chainrunner.pipeline.executor import PipelineExecutor
from chainrunner.scheduler.pool import Scheduler

logger = logging.getLogger("chainrunner")

EXIT_OK = 0
EXIT_TESTS_FAILED = 1
EXIT_FATAL = 2


def _setup_logging(verbose: bool, log_file: Path | None) -> None:
    """Log warnings (or everything with ``--verbose``) to stderr, and
    optionally everything to *log_file*."""
    formatter = logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s")

    stream = logging.StreamHandler(sys.stderr)
    stream.setLevel(logging.DEBUG if verbose else logging.WARNING)
    stream.setFormatter(formatter)

    logger.setLevel(logging.DEBUG)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    logger.addHandler(stream)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(formatter)
        logger.addHandler(handler)


def _parse_stage_override(value: str) -> tuple[str, str]:
    name, sep, executable = value.partition("=")
    if not sep or not name or not executable:
        raise argparse.ArgumentTypeError(f"expected NAME=EXECUTABLE, got {value!r}")
    return name, executable


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chainrunner",
        description="Run test files through a chain of toolchain stages and "
        "check each outcome against its fails_with directive.",
    )
    parser.add_argument("--config", type=Path, help="YAML config file (default: ./chainrunner.yaml)")
    parser.add_argument("-t", "--tests-path", type=Path, help="directory to search for test files")
    parser.add_argument("--pattern", help="file name glob for test files (default: test*.bs)")
    parser.add_argument(
        "--stage",
        dest="stages",
        action="append",
        default=[],
        type=_parse_stage_override,
        metavar="NAME=EXECUTABLE",
        help="override the executable of a configured stage (repeatable)",
    )
    parser.add_argument("-j", "--jobs", type=int, help="worker count (default: CPU count)")
    library = parser.add_mutually_exclusive_group()
    library.add_argument("--library-path", type=Path, help="library directory passed to the first stage")
    library.add_argument(
        "--fetch-library",
        action="store_true",
        help="shallow-clone the configured library repository for this run",
    )
    parser.add_argument("--console", choices=BACKENDS, default="auto", help="output style")
    parser.add_argument("--log-file", type=Path, help="write a debug log to this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output to stderr")
    return parser


def apply_overrides(config: HarnessConfig, args: argparse.Namespace) -> HarnessConfig:
    """Layer command-line options over the loaded config."""
    if args.tests_path is not None:
        config = replace(config, tests_path=args.tests_path)
    if args.pattern:
        config = replace(config, pattern=args.pattern)
    if args.jobs is not None:
        if args.jobs < 1:
            raise ConfigError(f"--jobs must be at least 1, got {args.jobs}")
        config = replace(config, jobs=args.jobs)
    if args.library_path is not None:
        config = replace(config, library_path=args.library_path)
    for name, executable in args.stages:
        config = config.with_stage_executable(name, executable)
    return config


def _report(result: TestResult) -> None:
    if result.passed:
        console.test_passed(result.name)
    else:
        console.test_failed(result.name, result.diagnostic)


def run(config: HarnessConfig, *, fetch_library: bool = False) -> int:
    """Run the whole suite described by *config* and return the exit status.

    Raises:
        HarnessError: On any fatal error.
    """
    tests_path = config.tests_path.resolve()
    cases = discover_tests(tests_path, config.pattern)

    with ExitStack() as stack:
        library_path = config.library_path.resolve() if config.library_path else None
        if library_path is None and (fetch_library or config.library is not None):
            console.info("Fetching library...")
            fetcher = LibraryFetcher(config.library or LibrarySource())
            library_path = stack.enter_context(fetcher)

        executor = PipelineExecutor(config.stages, library_path=library_path, cwd=tests_path)
        scheduler = Scheduler(
            executor,
            comment_marker=config.comment_marker,
            jobs=config.jobs,
            on_result=_report,
        )

        console.kv(
            {
                "Tests path": str(tests_path),
                "Pattern": config.pattern,
                "Tests": str(len(cases)),
                "Stages": " | ".join(s.executable for s in config.stages),
                "Workers": str(scheduler.jobs),
                "Library": str(library_path) if library_path else "--",
            },
            title="chainrunner",
        )

        summary = scheduler.run(cases)

    console.summary(summary.tests_run, summary.tests_failed)
    logger.info("Run finished: %d run, %d failed", summary.tests_run, summary.tests_failed)
    return EXIT_OK if summary.success else EXIT_TESTS_FAILED


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``chainrunner`` command."""
    args = build_parser().parse_args(argv)
    configure(backend=args.console)
    _setup_logging(args.verbose, args.log_file)

    try:
        config = apply_overrides(load_config(args.config), args)
        return run(config, fetch_library=args.fetch_library)
    except HarnessError as exc:
        logger.error("Fatal: %s", exc)
        console.error(str(exc))
        return EXIT_FATAL


if __name__ == "__main__":
    sys.exit(main())
