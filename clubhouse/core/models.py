"""Data model for durable agents and their workspaces."""

from __future__ import annotations

import random
import string
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from clubhouse.vcs.git_repo import LogEntry, StatusFile

# Config items with a value carried in a ConfigLayer
CLAUDE_MD = "claudeMd"
PERMISSIONS = "permissions"
MCP_CONFIG = "mcpConfig"
LAYER_KEYS = (CLAUDE_MD, PERMISSIONS, MCP_CONFIG)

# Config items copied from a source directory named in project settings
SKILLS = "skills"
AGENTS = "agents"
DIRECTORY_KEYS = (SKILLS, AGENTS)

CONFIG_ITEM_KEYS = LAYER_KEYS + DIRECTORY_KEYS

# A ConfigLayer is a sparse dict over LAYER_KEYS. Absent key = inherit,
# key mapped to None = cleared.
ConfigLayer = dict[str, Any]
OverrideFlags = dict[str, bool]


class UnknownConfigKeyError(ValueError):
    """Raised when a config item key is not one of CONFIG_ITEM_KEYS."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(
            f"Unknown config item '{key}'. Available: {', '.join(CONFIG_ITEM_KEYS)}"
        )


def default_override_flags() -> OverrideFlags:
    """Return override flags with every known item unpinned."""
    return {key: False for key in CONFIG_ITEM_KEYS}


def generate_agent_id() -> str:
    """Generate a unique durable agent id (``durable_<ms>_<suffix>``)."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"durable_{int(time.time() * 1000)}_{suffix}"


def _utc_now() -> str:
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds")


@dataclass
class AgentRecord:
    """One durable agent as stored in the registry.

    ``branch`` is only set when ``workspace_path`` is; agents in a project
    without git have a workspace but no branch.
    """

    id: str
    name: str
    color: str
    created_at: str = field(default_factory=_utc_now)
    branch: str | None = None
    workspace_path: str | None = None
    icon: str | None = None
    emoji: str | None = None
    model: str | None = None
    orchestrator_id: str | None = None
    overrides: OverrideFlags = field(default_factory=default_override_flags)
    quick_overrides: OverrideFlags = field(default_factory=default_override_flags)
    quick_config_layer: ConfigLayer = field(default_factory=dict)

    # JSON key -> attribute name
    _FIELDS = {
        "id": "id",
        "name": "name",
        "color": "color",
        "icon": "icon",
        "emoji": "emoji",
        "branch": "branch",
        "workspacePath": "workspace_path",
        "createdAt": "created_at",
        "model": "model",
        "orchestratorId": "orchestrator_id",
        "overrides": "overrides",
        "quickOverrides": "quick_overrides",
        "quickConfigLayer": "quick_config_layer",
    }

    @property
    def has_workspace(self) -> bool:
        return self.workspace_path is not None

    def is_pinned(self, key: str) -> bool:
        return bool(self.overrides.get(key, False))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the registry JSON shape, omitting unset optionals."""
        data: dict[str, Any] = {}
        for json_key, attr in self._FIELDS.items():
            value = getattr(self, attr)
            if value is None:
                continue
            if isinstance(value, dict):
                value = dict(value)
            data[json_key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AgentRecord:
        """Build a record from registry JSON, ignoring unknown keys."""
        kwargs = {
            attr: data[json_key]
            for json_key, attr in cls._FIELDS.items()
            if json_key in data and data[json_key] is not None
        }
        kwargs.setdefault("id", "")
        kwargs.setdefault("name", "")
        kwargs.setdefault("color", "")
        return cls(**kwargs)


@dataclass
class WorkspaceStatus:
    """Computed state of an agent workspace. Never persisted."""

    is_valid: bool
    branch: str = ""
    uncommitted_files: list[StatusFile] = field(default_factory=list)
    unpushed_commits: list[LogEntry] = field(default_factory=list)
    has_remote: bool = False

    @classmethod
    def invalid(cls, branch: str = "") -> WorkspaceStatus:
        return cls(is_valid=False, branch=branch)


@dataclass
class DeleteResult:
    """Uniform outcome of a deletion strategy."""

    ok: bool
    message: str
