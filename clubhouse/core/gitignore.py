"""Keeping clubhouse-managed paths out of the project's git history."""

from pathlib import Path

from clubhouse.output import MessageType, VerbosityLevel, message

GITIGNORE_HEADER = "# Clubhouse agent manager"
GITIGNORE_LINES = (
    ".clubhouse/agents/",
    ".clubhouse/.local/",
    ".clubhouse/agents.json",
    ".clubhouse/settings.local.json",
)


def ensure_gitignore(project_path: Path) -> bool:
    """Make sure ``.gitignore`` ignores every clubhouse-managed path.

    A missing file is created with the header and all lines. For an
    existing file only the missing lines are appended, preceded by the
    header when it is not there yet. Existing content is never changed.

    Returns:
        True if the file was written
    """
    path = Path(project_path) / ".gitignore"

    if not path.exists():
        path.write_text("\n".join((GITIGNORE_HEADER, *GITIGNORE_LINES)) + "\n", encoding="utf-8")
        message(f"Created {path}", MessageType.DEBUG, VerbosityLevel.DEBUG)
        return True

    content = path.read_text(encoding="utf-8")
    present = {line.strip() for line in content.splitlines()}
    missing = [line for line in GITIGNORE_LINES if line not in present]
    if not missing:
        return False

    block = missing if GITIGNORE_HEADER in present else [GITIGNORE_HEADER, *missing]
    with open(path, "a", encoding="utf-8") as f:
        f.write("\n" + "\n".join(block) + "\n")

    message(
        f"Added {len(missing)} clubhouse entr{'y' if len(missing) == 1 else 'ies'} to {path}",
        MessageType.DEBUG,
        VerbosityLevel.DEBUG,
    )
    return True
