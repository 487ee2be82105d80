"""Writing resolved configuration into agent workspaces.

Each config item has one canonical location inside a workspace:

==============  ==========================================
``claudeMd``    ``CLAUDE.md``
``permissions`` ``permissions`` key of ``.claude/settings.local.json``
``mcpConfig``   ``.mcp.json``
``skills``      ``.claude/skills/`` (copied from a source directory)
``agents``      ``.claude/agents/`` (copied from a source directory)
==============  ==========================================

Items pinned by the agent's override flags are never touched.
"""

from __future__ import annotations

import json
import shutil
from collections.abc import Callable, Collection
from pathlib import Path
from typing import Any

from clubhouse.core.models import (
    AGENTS,
    CLAUDE_MD,
    LAYER_KEYS,
    MCP_CONFIG,
    PERMISSIONS,
    SKILLS,
    ConfigLayer,
    OverrideFlags,
)
from clubhouse.core.registry import clubhouse_dir
from clubhouse.core.settings import ProjectSettings, read_project_settings
from clubhouse.output import MessageType, VerbosityLevel, message

ITEM_TARGETS = {
    CLAUDE_MD: Path("CLAUDE.md"),
    PERMISSIONS: Path(".claude") / "settings.local.json",
    MCP_CONFIG: Path(".mcp.json"),
    SKILLS: Path(".claude") / "skills",
    AGENTS: Path(".claude") / "agents",
}


def target_path(workspace_path: Path, key: str) -> Path:
    """Return where item *key* lives inside a workspace."""
    return Path(workspace_path) / ITEM_TARGETS[key]


# ------------------------------------------------------------------
# Single-item writers
# ------------------------------------------------------------------
def materialize_claude_md(workspace_path: Path, content: str | None) -> None:
    """Write ``CLAUDE.md``, or delete it when *content* is ``None``."""
    path = target_path(workspace_path, CLAUDE_MD)
    if content is None:
        path.unlink(missing_ok=True)
        return
    path.write_text(content, encoding="utf-8")


def _read_json_object(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def materialize_permissions(workspace_path: Path, permissions: dict[str, Any] | None) -> None:
    """Set (or drop, for ``None``) the ``permissions`` key of the local settings.

    Every other key in the file, such as hooks, is preserved.
    """
    path = target_path(workspace_path, PERMISSIONS)
    path.parent.mkdir(parents=True, exist_ok=True)

    existing = _read_json_object(path)
    if permissions is None:
        existing.pop("permissions", None)
    else:
        existing["permissions"] = permissions

    path.write_text(json.dumps(existing, indent=2), encoding="utf-8")


def materialize_mcp_config(workspace_path: Path, config: dict[str, Any] | None) -> None:
    """Write ``.mcp.json``, or delete it when *config* is ``None``."""
    path = target_path(workspace_path, MCP_CONFIG)
    if config is None:
        path.unlink(missing_ok=True)
        return
    path.write_text(json.dumps(config, indent=2), encoding="utf-8")


def materialize_dir(source_dir: Path, target_dir: Path) -> bool:
    """Clean-sync *target_dir* from *source_dir*.

    Returns:
        False (and leaves the target alone) when the source does not exist
    """
    if not source_dir.is_dir():
        message(f"Source directory not found: {source_dir}", MessageType.DEBUG, VerbosityLevel.DEBUG)
        return False

    if target_dir.exists():
        shutil.rmtree(target_dir)
    target_dir.parent.mkdir(parents=True, exist_ok=True)
    shutil.copytree(source_dir, target_dir)
    return True


_LAYER_WRITERS: dict[str, Callable[[Path, Any], None]] = {
    CLAUDE_MD: materialize_claude_md,
    PERMISSIONS: materialize_permissions,
    MCP_CONFIG: materialize_mcp_config,
}


def directory_source(project_path: Path, settings: ProjectSettings, key: str) -> Path | None:
    """Source directory configured for a directory item, if any."""
    relative = settings.default_skills_path if key == SKILLS else settings.default_agents_path
    if not relative:
        return None
    return clubhouse_dir(project_path) / relative


# ------------------------------------------------------------------
# Orchestration
# ------------------------------------------------------------------
def _apply(key: str, workspace_path: Path, action: Callable[[], Any]) -> bool:
    try:
        action()
    except (OSError, TypeError, ValueError) as exc:
        message(
            f"  Failed to materialize {key} in {workspace_path}: {exc}",
            MessageType.WARNING,
            VerbosityLevel.ALWAYS,
        )
        return False
    message(f"  Materialized {key} in {workspace_path}", MessageType.DEBUG, VerbosityLevel.DEBUG)
    return True


def _permissions_missing(workspace_path: Path) -> bool:
    path = target_path(workspace_path, PERMISSIONS)
    return not path.exists() or "permissions" not in _read_json_object(path)


def materialize_all(
    workspace_path: Path,
    layer: ConfigLayer,
    overrides: OverrideFlags,
    project_path: Path,
    only: Collection[str] | None = None,
) -> dict[str, bool]:
    """Write every unpinned item unconditionally.

    Value items are written when present in *layer*. Directory items are
    synced when project settings name a source directory.

    Args:
        workspace_path: Agent workspace to write into
        layer: Resolved configuration
        overrides: Agent override flags; pinned items are skipped
        project_path: Project root, for directory sources
        only: Restrict processing to these keys

    Returns:
        Mapping of attempted key -> success
    """
    workspace_path = Path(workspace_path)
    results: dict[str, bool] = {}

    for key in LAYER_KEYS:
        if only is not None and key not in only:
            continue
        if overrides.get(key) or key not in layer:
            continue
        writer = _LAYER_WRITERS[key]
        results[key] = _apply(key, workspace_path, lambda w=writer, v=layer[key]: w(workspace_path, v))

    results.update(_sync_directories(workspace_path, overrides, project_path, only, missing_only=False))
    return results


def repair_missing(
    workspace_path: Path,
    layer: ConfigLayer,
    overrides: OverrideFlags,
    project_path: Path,
    only: Collection[str] | None = None,
) -> dict[str, bool]:
    """Restore unpinned items whose target is missing from disk.

    Existing files are never overwritten, even when their content differs
    from the resolved value. Cleared (``None``) values are not repaired.

    Returns:
        Mapping of repaired key -> success
    """
    workspace_path = Path(workspace_path)
    results: dict[str, bool] = {}

    for key in LAYER_KEYS:
        if only is not None and key not in only:
            continue
        if overrides.get(key) or layer.get(key) is None:
            continue
        if key == PERMISSIONS:
            missing = _permissions_missing(workspace_path)
        else:
            missing = not target_path(workspace_path, key).exists()
        if not missing:
            continue
        writer = _LAYER_WRITERS[key]
        results[key] = _apply(key, workspace_path, lambda w=writer, v=layer[key]: w(workspace_path, v))

    results.update(_sync_directories(workspace_path, overrides, project_path, only, missing_only=True))
    return results


def _sync_directories(
    workspace_path: Path,
    overrides: OverrideFlags,
    project_path: Path,
    only: Collection[str] | None,
    missing_only: bool,
) -> dict[str, bool]:
    results: dict[str, bool] = {}
    keys = [key for key in (SKILLS, AGENTS) if (only is None or key in only) and not overrides.get(key)]
    if not keys:
        return results

    settings = read_project_settings(project_path)
    for key in keys:
        source = directory_source(project_path, settings, key)
        if source is None:
            continue
        if not source.is_dir():
            message(f"  Source for {key} not found: {source}", MessageType.DEBUG, VerbosityLevel.DEBUG)
            continue
        target = target_path(workspace_path, key)
        if missing_only and target.exists():
            continue
        results[key] = _apply(key, workspace_path, lambda s=source, t=target: materialize_dir(s, t))

    return results
