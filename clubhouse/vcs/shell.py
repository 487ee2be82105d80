"""Shell adapter for the external git executable."""

from collections.abc import Sequence
from pathlib import Path

import git

from clubhouse.output import MessageType, VerbosityLevel, message

DEFAULT_GIT_EXECUTABLE = "git"
DEFAULT_MAX_OUTPUT_BYTES = 50 * 1024 * 1024
DEFAULT_BASE_BRANCHES = ("main", "master")


class ShellError(Exception):
    """Raised when a git invocation fails for any reason.

    The text is whatever the external tool reported. Classifying a failure
    as ignorable or fatal is the caller's job.
    """

    def __init__(self, argv: Sequence[str], cwd: Path | str, detail: str):
        self.argv = list(argv)
        self.cwd = str(cwd)
        self.detail = detail
        super().__init__(f"git {' '.join(self.argv)} failed in {self.cwd}: {detail}")


class GitShell:
    """Runs git commands and captures their stdout.

    No retries and no timeout: a hung git process hangs the caller.
    """

    def __init__(
        self,
        executable: str = DEFAULT_GIT_EXECUTABLE,
        max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
        base_branches: Sequence[str] = DEFAULT_BASE_BRANCHES,
    ):
        """Initialize the adapter.

        Args:
            executable: git executable name or path
            max_output_bytes: Largest stdout accepted from a single command
            base_branches: Candidate main-line branch names, probed in order
        """
        self.executable = executable
        self.max_output_bytes = max_output_bytes
        self.base_branches = list(base_branches)

    def run(self, argv: Sequence[str], cwd: Path | str) -> str:
        """Run ``git <argv>`` in *cwd* and return its stdout.

        Args:
            argv: Arguments after the executable (e.g. ``["branch", "x"]``)
            cwd: Working directory for the command

        Returns:
            Captured stdout, unmodified

        Raises:
            ShellError: On non-zero exit, missing executable or directory,
                or output larger than ``max_output_bytes``
        """
        command = [self.executable, *argv]
        message(f"$ {' '.join(command)}  (in {cwd})", MessageType.DEBUG, VerbosityLevel.DEBUG)

        try:
            output = git.cmd.Git(str(cwd)).execute(
                command,
                stdout_as_string=True,
                strip_newline_in_stdout=False,
            )
        except git.exc.GitCommandError as e:
            detail = (e.stderr or e.stdout or str(e)).strip()
            raise ShellError(argv, cwd, detail) from e
        except git.exc.GitError as e:
            raise ShellError(argv, cwd, str(e)) from e
        except OSError as e:
            raise ShellError(argv, cwd, str(e)) from e

        if len(output.encode("utf-8", errors="replace")) > self.max_output_bytes:
            raise ShellError(argv, cwd, f"output exceeded {self.max_output_bytes} bytes")

        return output
