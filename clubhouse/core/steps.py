"""Best-effort step sequences.

Create and delete flows are chains of git commands where most failures are
expected and harmless (branch already exists, nothing to commit, no remote).
Each command runs through :func:`attempt`, which turns an exception into a
:class:`StepResult` instead of letting it escape.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from clubhouse.output import MessageType, VerbosityLevel, message
from clubhouse.vcs.shell import ShellError


class Outcome(Enum):
    OK = "ok"
    IGNORABLE = "ignorable"
    FATAL = "fatal"


@dataclass
class StepResult:
    """Result of a single step."""

    name: str
    outcome: Outcome
    reason: str = ""
    output: Any = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK

    @property
    def fatal(self) -> bool:
        return self.outcome is Outcome.FATAL


@dataclass
class Step:
    """A named, deferred step for :func:`run_steps`."""

    name: str
    func: Callable[[], Any]
    fatal: bool = False


def attempt(name: str, func: Callable[[], Any], *, fatal: bool = False) -> StepResult:
    """Run *func* and classify its failure.

    ``ShellError`` and ``OSError`` become ``IGNORABLE`` results, or
    ``FATAL`` when *fatal* is set. Any other exception propagates.

    Args:
        name: Human-readable step name used in log messages
        func: Zero-argument callable
        fatal: Whether a failure of this step must stop the sequence

    Returns:
        StepResult carrying the callable's return value on success
    """
    try:
        output = func()
    except (ShellError, OSError) as e:
        if fatal:
            message(f"{name} failed: {e}", MessageType.ERROR, VerbosityLevel.VERBOSE)
            return StepResult(name, Outcome.FATAL, str(e))
        message(f"{name} skipped: {e}", MessageType.DEBUG, VerbosityLevel.DEBUG)
        return StepResult(name, Outcome.IGNORABLE, str(e))

    message(f"{name}: ok", MessageType.DEBUG, VerbosityLevel.DEBUG)
    return StepResult(name, Outcome.OK, output=output)


def run_steps(steps: Iterable[Step]) -> list[StepResult]:
    """Run steps in order, stopping after the first ``FATAL`` result.

    Returns:
        Results of every step that ran; the last one is fatal if the
        sequence was cut short
    """
    results: list[StepResult] = []
    for step in steps:
        result = attempt(step.name, step.func, fatal=step.fatal)
        results.append(result)
        if result.fatal:
            break
    return results


def first_fatal(results: Iterable[StepResult]) -> StepResult | None:
    for result in results:
        if result.fatal:
            return result
    return None
