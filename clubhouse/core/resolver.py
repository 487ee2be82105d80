"""Resolution of layered configuration.

Layers, lowest to highest precedence:

1. ``defaults`` from ``settings.json`` (shared with the project)
2. ``settings.local.json`` (this machine only)
3. for quick agents only: ``quickOverrides`` from ``settings.json``, then
   the parent durable agent's ``quickConfigLayer``

Durable agents add no value layer of their own. Their override flags
decide whether the materializer may apply a resolved item at all.
Nothing is cached; every call reads the files again.
"""

from __future__ import annotations

from pathlib import Path

from clubhouse.core.models import LAYER_KEYS, ConfigLayer, default_override_flags
from clubhouse.core.registry import find_agent, read_agents
from clubhouse.core.settings import read_local_layer, read_project_settings

_MISSING = object()


def merge_config_layers(base: ConfigLayer, overlay: ConfigLayer) -> ConfigLayer:
    """Overlay wins per key when present, including an explicit ``None``."""
    result = dict(base)
    for key in LAYER_KEYS:
        if key in overlay:
            result[key] = overlay[key]
    return result


def resolve_project_defaults(project_path: Path) -> ConfigLayer:
    """Effective project defaults: ``defaults`` overlaid by the local layer."""
    settings = read_project_settings(project_path)
    return merge_config_layers(settings.defaults, read_local_layer(project_path))


def resolve_durable_config(project_path: Path, agent_id: str) -> ConfigLayer:
    """Resolved configuration for a durable agent.

    Identical to the project defaults for any registered agent; an unknown
    agent resolves to an empty layer.
    """
    if find_agent(read_agents(project_path), agent_id) is None:
        return {}
    return resolve_project_defaults(project_path)


def resolve_quick_config(project_path: Path, parent_agent_id: str | None = None) -> ConfigLayer:
    """Full resolution chain for an ephemeral quick agent.

    The parent's ``quickConfigLayer`` only contributes the keys whose
    ``quickOverrides`` flag is set on the parent.
    """
    settings = read_project_settings(project_path)
    result = merge_config_layers(settings.defaults, read_local_layer(project_path))
    result = merge_config_layers(result, settings.quick_overrides)

    if parent_agent_id is None:
        return result

    parent = find_agent(read_agents(project_path), parent_agent_id)
    if parent is None:
        return result

    flags = parent.quick_overrides or default_override_flags()
    applied = {
        key: parent.quick_config_layer[key]
        for key in LAYER_KEYS
        if flags.get(key) and key in parent.quick_config_layer
    }
    return merge_config_layers(result, applied)


def diff_config_layers(old: ConfigLayer, new: ConfigLayer) -> list[str]:
    """Return the keys whose value differs between two resolved layers.

    Values are compared deeply; an absent key and a key set to ``None``
    count as different.
    """
    return [
        key
        for key in LAYER_KEYS
        if old.get(key, _MISSING) != new.get(key, _MISSING)
    ]
