"""Registry of durable agents for a project.

Each project keeps its agents in ``.clubhouse/agents.json`` as an ordered
JSON array. The file is read and written whole on every operation. There
is no locking: two processes writing the same registry race and the last
write wins. That is acceptable for the single-user, single-process usage
this tool targets, but callers must not rely on it for anything else.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from clubhouse.core.models import AgentRecord, default_override_flags
from clubhouse.output import MessageType, VerbosityLevel, message

CLUBHOUSE_DIR = ".clubhouse"
AGENTS_FILE = "agents.json"


def clubhouse_dir(project_path: Path) -> Path:
    """Return the project's metadata directory."""
    return Path(project_path) / CLUBHOUSE_DIR


def _registry_path(project_path: Path) -> Path:
    return clubhouse_dir(project_path) / AGENTS_FILE


# ------------------------------------------------------------------
# Migration
# ------------------------------------------------------------------
def migrate_agent_records(
    raw: list[dict[str, Any]],
) -> tuple[list[dict[str, Any]], list[str]]:
    """Bring raw registry entries up to the current record shape.

    - ``worktreePath`` is renamed to ``workspacePath``
    - missing ``overrides`` / ``quickOverrides`` are backfilled unpinned

    Args:
        raw: Entries as loaded from JSON (not modified)

    Returns:
        Tuple of (migrated entries, ids of entries whose ``overrides`` were
        backfilled). A rewrite is needed when any entry changed.
    """
    migrated: list[dict[str, Any]] = []
    backfilled: list[str] = []

    for entry in raw:
        entry = dict(entry)
        if "worktreePath" in entry:
            legacy = entry.pop("worktreePath")
            entry.setdefault("workspacePath", legacy)
        if not isinstance(entry.get("overrides"), dict):
            entry["overrides"] = default_override_flags()
            backfilled.append(entry.get("id", ""))
        if not isinstance(entry.get("quickOverrides"), dict):
            entry["quickOverrides"] = default_override_flags()
        migrated.append(entry)

    return migrated, backfilled


# ------------------------------------------------------------------
# Read / Write
# ------------------------------------------------------------------
def read_raw_agents(project_path: Path) -> list[dict[str, Any]]:
    """Read registry entries as plain dicts.

    Missing, unreadable, or malformed files yield an empty list; the
    problem is reported as a warning and never raised.
    """
    path = _registry_path(project_path)
    if not path.exists():
        return []

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        message(
            f"Warning: could not read agent registry at {path}: {exc}",
            MessageType.WARNING,
            VerbosityLevel.ALWAYS,
        )
        return []

    if not isinstance(data, list):
        message(
            f"Warning: agent registry at {path} is not a list, ignoring it",
            MessageType.WARNING,
            VerbosityLevel.ALWAYS,
        )
        return []

    return [entry for entry in data if isinstance(entry, dict)]


def read_agents(project_path: Path) -> list[AgentRecord]:
    """Read the registry as :class:`AgentRecord` objects (no migration write)."""
    migrated, _ = migrate_agent_records(read_raw_agents(project_path))
    return [AgentRecord.from_dict(entry) for entry in migrated]


def write_agents(project_path: Path, agents: list[AgentRecord]) -> None:
    """Persist *agents* in order, creating ``.clubhouse/`` if needed."""
    path = _registry_path(project_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        json.dump([agent.to_dict() for agent in agents], f, indent=2)
        f.write("\n")

    message(
        f"Agent registry written to {path} ({len(agents)} agent(s))",
        MessageType.DEBUG,
        VerbosityLevel.DEBUG,
    )


# ------------------------------------------------------------------
# Lookup helpers
# ------------------------------------------------------------------
def find_agent(agents: list[AgentRecord], agent_id: str) -> AgentRecord | None:
    for agent in agents:
        if agent.id == agent_id:
            return agent
    return None


def without_agent(agents: list[AgentRecord], agent_id: str) -> list[AgentRecord]:
    return [agent for agent in agents if agent.id != agent_id]
