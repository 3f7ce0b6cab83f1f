"""Exception hierarchy for chainrunner.

Errors fall into two groups: environment-level failures that abort the whole
run, and per-test failures that the scheduler records against a single test
case. The scheduler reads ``fatal`` to decide which is which.
"""

from __future__ import annotations


class HarnessError(Exception):
    """Base class for every error raised by chainrunner."""

    fatal = True


class ConfigError(HarnessError):
    """Raised when the configuration file or stage list is unusable."""


class DiscoveryError(HarnessError):
    """Raised when test files cannot be enumerated or read."""


class AssetError(HarnessError):
    """Raised when the auxiliary library cannot be fetched."""


class StageSpawnError(HarnessError):
    """Raised when a stage executable cannot be launched at all."""

    def __init__(self, stage: str, executable: str, reason: str) -> None:
        super().__init__(f"cannot run stage {stage!r} ({executable}): {reason}")
        self.stage = stage
        self.executable = executable


class DirectiveError(HarnessError):
    """Raised when a ``fails_with`` directive is malformed."""

    fatal = False


class StageIOError(HarnessError):
    """Raised when piping input into a stage fails mid-run."""

    fatal = False

    def __init__(self, stage: str, reason: str) -> None:
        super().__init__(f"failed to write input to stage {stage!r}: {reason}")
        self.stage = stage
