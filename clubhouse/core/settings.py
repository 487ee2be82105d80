"""Project settings files under ``.clubhouse/``.

``settings.json`` holds the shared defaults (committed with the project),
``settings.local.json`` holds machine-local overrides (gitignored).
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from clubhouse.core.models import CLAUDE_MD, LAYER_KEYS, ConfigLayer
from clubhouse.core.registry import clubhouse_dir
from clubhouse.output import MessageType, VerbosityLevel, message

SETTINGS_FILE = "settings.json"
LOCAL_SETTINGS_FILE = "settings.local.json"


@dataclass
class ProjectSettings:
    """Contents of ``settings.json``.

    Keys this class does not know about are kept in ``extra`` and written
    back untouched.
    """

    defaults: ConfigLayer = field(default_factory=dict)
    quick_overrides: ConfigLayer = field(default_factory=dict)
    default_skills_path: str | None = None
    default_agents_path: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    _KNOWN = ("defaults", "quickOverrides", "defaultSkillsPath", "defaultAgentsPath")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.extra)
        data["defaults"] = dict(self.defaults)
        data["quickOverrides"] = dict(self.quick_overrides)
        if self.default_skills_path is not None:
            data["defaultSkillsPath"] = self.default_skills_path
        if self.default_agents_path is not None:
            data["defaultAgentsPath"] = self.default_agents_path
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectSettings:
        defaults = data.get("defaults")
        quick = data.get("quickOverrides")
        return cls(
            defaults=filter_layer(defaults) if isinstance(defaults, dict) else {},
            quick_overrides=filter_layer(quick) if isinstance(quick, dict) else {},
            default_skills_path=data.get("defaultSkillsPath"),
            default_agents_path=data.get("defaultAgentsPath"),
            extra={k: v for k, v in data.items() if k not in cls._KNOWN},
        )


def filter_layer(data: dict[str, Any]) -> ConfigLayer:
    """Keep only config item keys from a loaded layer."""
    return {key: data[key] for key in LAYER_KEYS if key in data}


def _settings_path(project_path: Path) -> Path:
    return clubhouse_dir(project_path) / SETTINGS_FILE


def _local_settings_path(project_path: Path) -> Path:
    return clubhouse_dir(project_path) / LOCAL_SETTINGS_FILE


def _read_json(path: Path) -> Any:
    """Load JSON from *path*; ``None`` when missing or unreadable."""
    if not path.exists():
        return None
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as exc:
        message(
            f"Warning: could not read {path}: {exc}",
            MessageType.WARNING,
            VerbosityLevel.ALWAYS,
        )
        return None


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
        f.write("\n")


# ------------------------------------------------------------------
# Migrations
# ------------------------------------------------------------------
def _migrate_legacy_claude_md(data: dict[str, Any]) -> tuple[dict[str, Any], bool]:
    """``{defaultClaudeMd, quickAgentClaudeMd}`` -> ``{defaults, quickOverrides}``."""
    if "defaultClaudeMd" not in data or "defaults" in data:
        return data, False

    migrated = {k: v for k, v in data.items() if k not in ("defaultClaudeMd", "quickAgentClaudeMd")}
    defaults: ConfigLayer = {}
    quick: ConfigLayer = {}
    if data.get("defaultClaudeMd") is not None:
        defaults[CLAUDE_MD] = data["defaultClaudeMd"]
    if data.get("quickAgentClaudeMd") is not None:
        quick[CLAUDE_MD] = data["quickAgentClaudeMd"]
    migrated["defaults"] = defaults
    migrated["quickOverrides"] = quick
    return migrated, True


# Applied in order; each returns (data, changed)
SETTINGS_MIGRATIONS: list[Callable[[dict[str, Any]], tuple[dict[str, Any], bool]]] = [
    _migrate_legacy_claude_md,
]


def migrate_settings(data: dict[str, Any]) -> tuple[dict[str, Any], bool]:
    """Run every settings migration once.

    Returns:
        Tuple of (migrated data, whether the file needs rewriting)
    """
    needs_rewrite = False
    for migration in SETTINGS_MIGRATIONS:
        data, changed = migration(data)
        needs_rewrite = needs_rewrite or changed
    return data, needs_rewrite


# ------------------------------------------------------------------
# Read / Write
# ------------------------------------------------------------------
def read_project_settings(project_path: Path) -> ProjectSettings:
    """Read ``settings.json``, migrating and rewriting legacy shapes.

    Missing or malformed files are treated as empty settings.
    """
    data = _read_json(_settings_path(project_path))
    if not isinstance(data, dict):
        return ProjectSettings()

    data, needs_rewrite = migrate_settings(data)
    settings = ProjectSettings.from_dict(data)

    if needs_rewrite:
        message(
            f"Migrating legacy project settings in {_settings_path(project_path)}",
            MessageType.INFO,
            VerbosityLevel.VERBOSE,
        )
        write_project_settings(project_path, settings)

    return settings


def write_project_settings(project_path: Path, settings: ProjectSettings) -> None:
    _write_json(_settings_path(project_path), settings.to_dict())
    message(f"Project settings saved to {_settings_path(project_path)}", MessageType.DEBUG, VerbosityLevel.DEBUG)


def read_local_layer(project_path: Path) -> ConfigLayer:
    """Read ``settings.local.json`` as a bare layer; ``{}`` when unreadable."""
    data = _read_json(_local_settings_path(project_path))
    if not isinstance(data, dict):
        return {}
    return filter_layer(data)


def write_local_layer(project_path: Path, layer: ConfigLayer) -> None:
    _write_json(_local_settings_path(project_path), filter_layer(layer))
