"""Version-control adapter for clubhouse."""

from .git_repo import (
    GitRepo,
    LogEntry,
    StatusFile,
    detect_directory,
    parse_log_line,
    parse_status_line,
)
from .shell import DEFAULT_BASE_BRANCHES, DEFAULT_MAX_OUTPUT_BYTES, GitShell, ShellError

__all__ = [
    "DEFAULT_BASE_BRANCHES",
    "DEFAULT_MAX_OUTPUT_BYTES",
    "GitRepo",
    "GitShell",
    "LogEntry",
    "ShellError",
    "StatusFile",
    "detect_directory",
    "parse_log_line",
    "parse_status_line",
]
