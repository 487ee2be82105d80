"""Tracking of live worker sessions.

A :class:`SessionRegistry` is created by whoever spawns workers and passed
to :func:`clubhouse.core.agents.prepare_spawn`. Nothing here is global.
"""

import secrets
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class Session:
    """A worker running inside an agent workspace."""

    agent_id: str
    project_path: Path
    orchestrator_id: str | None = None
    nonce: str = field(default_factory=lambda: secrets.token_hex(16))


class SessionRegistry:
    """Live sessions keyed by agent id; at most one session per agent."""

    def __init__(self):
        self._sessions: dict[str, Session] = {}

    def track(self, agent_id: str, project_path: Path, orchestrator_id: str | None = None) -> Session:
        """Start tracking a session, replacing any previous one for the agent."""
        session = Session(agent_id, Path(project_path), orchestrator_id)
        self._sessions[agent_id] = session
        return session

    def get(self, agent_id: str) -> Session | None:
        return self._sessions.get(agent_id)

    def untrack(self, agent_id: str) -> Session | None:
        """Stop tracking an agent; returns the removed session, if any."""
        return self._sessions.pop(agent_id, None)

    def agents_for_project(self, project_path: Path) -> list[str]:
        project_path = Path(project_path)
        return [agent_id for agent_id, s in self._sessions.items() if s.project_path == project_path]

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self._sessions
