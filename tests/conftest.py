"""Shared fixtures: a recording stand-in for the git adapter and project trees."""

import shutil
from collections.abc import Callable
from pathlib import Path

import pytest

from clubhouse.output import get_output
from clubhouse.vcs.shell import GitShell, ShellError


class FakeShell(GitShell):
    """Records git invocations instead of running them.

    Commands are matched by argv prefix, longest prefix first:

    - ``fail(*prefix)`` makes matching commands raise :class:`ShellError`
    - ``respond(*prefix, output=...)`` sets the stdout of matching commands
    - ``worktree add`` / ``worktree remove`` create and delete the worktree
      directory (with a ``.git`` file) like git would
    """

    def __init__(self, base_branches=("main", "master")):
        super().__init__(base_branches=base_branches)
        self.calls: list[tuple[list[str], Path]] = []
        self.failures: dict[tuple[str, ...], str] = {}
        self.outputs: dict[tuple[str, ...], str] = {}
        self.effects: dict[tuple[str, ...], Callable[[list[str], Path], None]] = {
            ("worktree", "add"): self._add_worktree,
            ("worktree", "remove"): self._remove_worktree,
        }

    @staticmethod
    def _add_worktree(argv: list[str], cwd: Path) -> None:
        path = Path(argv[2])
        if path.exists():
            raise ShellError(argv, cwd, f"'{path}' already exists")
        path.mkdir(parents=True)
        (path / ".git").write_text("gitdir: elsewhere\n")

    @staticmethod
    def _remove_worktree(argv: list[str], cwd: Path) -> None:
        shutil.rmtree(argv[2], ignore_errors=True)

    def fail(self, *prefix: str, detail: str = "fatal: simulated failure") -> None:
        self.failures[prefix] = detail

    def respond(self, *prefix: str, output: str) -> None:
        self.outputs[prefix] = output

    @staticmethod
    def _match(argv: list[str], table: dict):
        for prefix in sorted(table, key=len, reverse=True):
            if tuple(argv[: len(prefix)]) == prefix:
                return table[prefix]
        return None

    def run(self, argv, cwd) -> str:
        argv = list(argv)
        self.calls.append((argv, Path(cwd)))

        detail = self._match(argv, self.failures)
        if detail is not None:
            raise ShellError(argv, cwd, detail)

        effect = self._match(argv, self.effects)
        if effect is not None:
            effect(argv, Path(cwd))

        output = self._match(argv, self.outputs)
        return output if output is not None else ""

    @property
    def commands(self) -> list[list[str]]:
        return [argv for argv, _ in self.calls]

    def ran(self, *prefix: str) -> bool:
        return any(tuple(argv[: len(prefix)]) == prefix for argv in self.commands)


@pytest.fixture
def shell():
    return FakeShell()


@pytest.fixture
def project(tmp_path):
    """A project directory that is a git repository."""
    path = tmp_path / "project"
    (path / ".git").mkdir(parents=True)
    return path


@pytest.fixture
def plain_project(tmp_path):
    """A project directory without version control."""
    path = tmp_path / "plain"
    path.mkdir()
    return path


@pytest.fixture(autouse=True)
def quiet_output():
    """Reset the process-wide output settings around every test."""
    output = get_output()
    saved = (output.verbosity, output.use_color)
    output.verbosity = 0
    output.use_color = False
    yield output
    output.verbosity, output.use_color = saved
