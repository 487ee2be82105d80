"""Core workspace lifecycle and layered configuration for clubhouse."""

from .agents import (
    create_durable,
    delete_durable,
    get_durable,
    get_workspace_status,
    list_durable,
    prepare_spawn,
    rename_durable,
    reorder_durable,
    repair_durable,
    toggle_override,
    toggle_quick_override,
    update_durable,
    update_durable_config,
)
from .deletion import (
    DELETE_STRATEGIES,
    delete_commit_and_push,
    delete_force,
    delete_save_as_patch,
    delete_unregister,
    delete_with_cleanup_branch,
)
from .gitignore import ensure_gitignore
from .materializer import materialize_all, repair_missing
from .models import (
    CLAUDE_MD,
    CONFIG_ITEM_KEYS,
    LAYER_KEYS,
    AgentRecord,
    DeleteResult,
    UnknownConfigKeyError,
    WorkspaceStatus,
    default_override_flags,
)
from .resolver import (
    diff_config_layers,
    merge_config_layers,
    resolve_durable_config,
    resolve_project_defaults,
    resolve_quick_config,
)
from .sessions import Session, SessionRegistry
from .settings import ProjectSettings, read_project_settings
from .sync import (
    save_local_layer,
    save_project_defaults,
    save_quick_defaults,
    save_skills_paths,
    sync_agents,
    sync_directory_item,
)

__all__ = [
    "CLAUDE_MD",
    "CONFIG_ITEM_KEYS",
    "DELETE_STRATEGIES",
    "LAYER_KEYS",
    "AgentRecord",
    "DeleteResult",
    "ProjectSettings",
    "Session",
    "SessionRegistry",
    "UnknownConfigKeyError",
    "WorkspaceStatus",
    "create_durable",
    "default_override_flags",
    "delete_commit_and_push",
    "delete_durable",
    "delete_force",
    "delete_save_as_patch",
    "delete_unregister",
    "delete_with_cleanup_branch",
    "diff_config_layers",
    "ensure_gitignore",
    "get_durable",
    "get_workspace_status",
    "list_durable",
    "materialize_all",
    "merge_config_layers",
    "prepare_spawn",
    "read_project_settings",
    "rename_durable",
    "reorder_durable",
    "repair_durable",
    "repair_missing",
    "resolve_durable_config",
    "resolve_project_defaults",
    "resolve_quick_config",
    "save_local_layer",
    "save_project_defaults",
    "save_quick_defaults",
    "save_skills_paths",
    "sync_agents",
    "sync_directory_item",
    "toggle_override",
    "toggle_quick_override",
    "update_durable",
    "update_durable_config",
]
