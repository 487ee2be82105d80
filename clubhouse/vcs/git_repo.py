"""Git operations used by the workspace lifecycle."""

from dataclasses import dataclass
from pathlib import Path

from clubhouse.output import MessageType, VerbosityLevel, message
from clubhouse.vcs.shell import GitShell, ShellError

LOG_FORMAT = "%H|%h|%s|%an|%ai"


@dataclass
class StatusFile:
    """One entry of ``git status --porcelain``."""

    path: str
    status_code: str
    staged: bool


@dataclass
class LogEntry:
    """One commit from ``git log``."""

    hash: str
    short_hash: str
    subject: str
    author: str
    date: str


def detect_directory(path: Path) -> str | None:
    """Detect the VCS type of a directory.

    Returns ``"git"`` when a ``.git`` marker (directory, or file for a
    worktree) is present, ``"file"`` for any other existing directory and
    ``None`` when *path* is missing or not a directory.
    """
    if not path.exists() or not path.is_dir():
        return None
    if (path / ".git").exists():
        return "git"
    return "file"


def parse_status_line(line: str) -> StatusFile:
    """Parse one ``git status --porcelain`` line.

    A change is staged when the index column is neither blank nor ``?``.
    """
    xy = line[:2]
    return StatusFile(
        path=line[3:],
        status_code=xy.strip(),
        staged=xy[:1] not in (" ", "?", ""),
    )


def parse_log_line(line: str) -> LogEntry | None:
    """Parse one ``hash|shortHash|subject|author|date`` line.

    The subject may itself contain ``|``; it is rebuilt from every middle
    field. Returns ``None`` for lines with fewer than five fields.
    """
    parts = line.split("|")
    if len(parts) < 5:
        return None
    return LogEntry(
        hash=parts[0],
        short_hash=parts[1],
        subject="|".join(parts[2:-2]),
        author=parts[-2],
        date=parts[-1],
    )


class GitRepo:
    """Named git commands against one directory (project root or worktree)."""

    def __init__(self, path: Path, shell: GitShell):
        self.path = Path(path)
        self.shell = shell

    def _git(self, *argv: str) -> str:
        return self.shell.run(list(argv), self.path)

    def exists(self) -> bool:
        """Return True if the directory carries a .git marker of its own."""
        return detect_directory(self.path) == "git"

    # ------------------------------------------------------------------
    # Project root operations
    # ------------------------------------------------------------------
    def has_commits(self) -> bool:
        """Return False for a freshly initialized repository without HEAD."""
        try:
            self._git("rev-parse", "HEAD")
            return True
        except ShellError:
            return False

    def add(self, path: str) -> str:
        return self._git("add", path)

    def commit_allow_empty(self, msg: str) -> str:
        return self._git("commit", "--allow-empty", "-m", msg)

    def create_branch(self, branch: str) -> str:
        """Create *branch* at HEAD without switching to it."""
        return self._git("branch", branch)

    def delete_branch(self, branch: str) -> str:
        """Force-delete *branch*, merged or not."""
        return self._git("branch", "-D", branch)

    def add_worktree(self, worktree_path: Path, branch: str) -> str:
        """Check out an existing *branch* into a new worktree at *worktree_path*."""
        return self._git("worktree", "add", str(worktree_path), branch)

    def remove_worktree(self, worktree_path: Path) -> str:
        """Remove a worktree even when it has local modifications."""
        return self._git("worktree", "remove", str(worktree_path), "--force")

    def branch_exists(self, name: str) -> bool:
        try:
            self._git("rev-parse", "--verify", name)
            return True
        except ShellError:
            return False

    def detect_base_branch(self) -> str:
        """Return the first existing candidate main-line branch, else ``HEAD``."""
        for candidate in self.shell.base_branches:
            if self.branch_exists(candidate):
                message(f"Detected base branch: {candidate}", MessageType.DEBUG, VerbosityLevel.DEBUG)
                return candidate
        return "HEAD"

    # ------------------------------------------------------------------
    # Worktree operations
    # ------------------------------------------------------------------
    def status(self) -> list[StatusFile]:
        """Return the uncommitted changes, untracked files included."""
        output = self._git("status", "--porcelain")
        return [parse_status_line(line) for line in output.splitlines() if line.strip()]

    def unique_commits(self, base: str) -> list[LogEntry]:
        """Return commits reachable from HEAD but not from *base*, newest first.

        Lines that do not parse are dropped.
        """
        output = self._git("log", f"{base}..HEAD", f"--format={LOG_FORMAT}")
        entries = [parse_log_line(line) for line in output.splitlines() if line.strip()]
        return [entry for entry in entries if entry is not None]

    def has_remote(self) -> bool:
        """Whether any remote is configured."""
        return bool(self._git("remote").strip())

    def diff_head(self) -> str:
        return self._git("diff", "HEAD")

    def diff_cached(self) -> str:
        return self._git("diff", "--cached")

    def untracked_files(self) -> list[str]:
        """Untracked paths, honoring .gitignore."""
        output = self._git("ls-files", "--others", "--exclude-standard")
        return [line for line in output.splitlines() if line.strip()]

    def format_patch(self, base: str) -> str:
        """Return every commit since *base* as one mbox-style patch stream."""
        return self._git("format-patch", f"{base}..HEAD", "--stdout")

    def stage_all(self) -> str:
        return self._git("add", "-A")

    def unstage_all(self) -> str:
        """Unstage everything; the working tree is left as is."""
        return self._git("reset", "HEAD")

    def commit(self, msg: str) -> str:
        return self._git("commit", "-m", msg)

    def push(self, branch: str, remote: str = "origin") -> str:
        """Push *branch* to *remote* and set it as upstream."""
        return self._git("push", "-u", remote, branch)

    def checkout(self, branch: str) -> str:
        return self._git("checkout", branch)

    def checkout_new(self, branch: str) -> str:
        """Create *branch* from HEAD and switch to it; fails if it already exists."""
        return self._git("checkout", "-b", branch)
