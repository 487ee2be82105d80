"""Propagating project configuration changes to agent workspaces."""

from __future__ import annotations

from collections.abc import Collection
from pathlib import Path
from typing import Any

from clubhouse.core.agents import list_durable
from clubhouse.core.materializer import materialize_all
from clubhouse.core.models import AGENTS, DIRECTORY_KEYS, LAYER_KEYS, SKILLS, AgentRecord, ConfigLayer
from clubhouse.core.resolver import diff_config_layers, resolve_project_defaults
from clubhouse.core.settings import (
    filter_layer,
    read_project_settings,
    write_local_layer,
    write_project_settings,
)
from clubhouse.output import MessageType, VerbosityLevel, message

# Marks an optional argument the caller did not pass
_UNSET: Any = object()


def _workspace(agent: AgentRecord) -> Path | None:
    if not agent.has_workspace:
        return None
    path = Path(agent.workspace_path)
    return path if path.is_dir() else None


def _sync_each(project_path: Path, keys: Collection[str], layer: ConfigLayer) -> dict[str, bool]:
    results: dict[str, bool] = {}
    for agent in list_durable(project_path):
        workspace = _workspace(agent)
        if workspace is None:
            continue
        try:
            items = materialize_all(workspace, layer, agent.overrides, project_path, only=keys)
        except (OSError, ValueError) as e:
            message(
                f"Warning: could not sync agent '{agent.name}': {e}",
                MessageType.WARNING,
                VerbosityLevel.ALWAYS,
            )
            results[agent.id] = False
            continue
        results[agent.id] = all(items.values())
    return results


def sync_agents(project_path: Path, changed_keys: Collection[str], new_layer: ConfigLayer) -> dict[str, bool]:
    """Write changed config items into every agent workspace.

    Pinned items are skipped per agent. A key missing from *new_layer* is
    written as cleared. A failure for one agent does not stop the others.

    Returns:
        Mapping of agent id -> whether every item was written
    """
    keys = [key for key in changed_keys if key in LAYER_KEYS]
    if not keys:
        return {}

    layer = {key: new_layer.get(key) for key in keys}
    message(f"Syncing {', '.join(keys)} to agent workspaces", MessageType.INFO, VerbosityLevel.VERBOSE)
    return _sync_each(Path(project_path), keys, layer)


def sync_directory_item(project_path: Path, key: str) -> dict[str, bool]:
    """Re-copy a directory item (``skills`` or ``agents``) into every unpinned workspace."""
    if key not in DIRECTORY_KEYS:
        return {}
    return _sync_each(Path(project_path), [key], {})


def save_project_defaults(project_path: Path, defaults: ConfigLayer) -> dict[str, bool]:
    """Replace the shared ``defaults`` layer and sync whatever changed."""
    project_path = Path(project_path)
    before = resolve_project_defaults(project_path)

    settings = read_project_settings(project_path)
    settings.defaults = filter_layer(defaults)
    write_project_settings(project_path, settings)

    after = resolve_project_defaults(project_path)
    return sync_agents(project_path, diff_config_layers(before, after), after)


def save_local_layer(project_path: Path, layer: ConfigLayer) -> dict[str, bool]:
    """Replace ``settings.local.json`` and sync whatever changed."""
    project_path = Path(project_path)
    before = resolve_project_defaults(project_path)

    write_local_layer(project_path, layer)

    after = resolve_project_defaults(project_path)
    return sync_agents(project_path, diff_config_layers(before, after), after)


def save_quick_defaults(project_path: Path, layer: ConfigLayer) -> None:
    """Replace the project-level ``quickOverrides`` layer.

    Quick agents resolve their configuration at spawn time, so nothing is
    synced.
    """
    settings = read_project_settings(project_path)
    settings.quick_overrides = filter_layer(layer)
    write_project_settings(project_path, settings)


def save_skills_paths(
    project_path: Path,
    skills_path: str | None = _UNSET,
    agents_path: str | None = _UNSET,
) -> dict[str, dict[str, bool]]:
    """Change the source directories of ``skills``/``agents`` and re-sync them.

    Args:
        project_path: Project root
        skills_path: New skills source, relative to ``.clubhouse/`` (``None`` unsets)
        agents_path: New agents source, relative to ``.clubhouse/`` (``None`` unsets)

    Returns:
        Mapping of re-synced key -> per-agent results
    """
    project_path = Path(project_path)
    settings = read_project_settings(project_path)
    changed: list[str] = []

    if skills_path is not _UNSET and skills_path != settings.default_skills_path:
        settings.default_skills_path = skills_path
        changed.append(SKILLS)
    if agents_path is not _UNSET and agents_path != settings.default_agents_path:
        settings.default_agents_path = agents_path
        changed.append(AGENTS)

    if not changed:
        return {}

    write_project_settings(project_path, settings)
    return {key: sync_directory_item(project_path, key) for key in changed}
