"""Durable agent lifecycle: create, load, update, remove, inspect.

Every git failure is absorbed here. Creation always produces a record and,
for isolated agents, a workspace directory, even when every git command
fails. Mutations on unknown agent ids are silent no-ops.
"""

from __future__ import annotations

import shutil
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from clubhouse.core.gitignore import ensure_gitignore
from clubhouse.core.materializer import materialize_all, repair_missing, target_path
from clubhouse.core.models import (
    CLAUDE_MD,
    CONFIG_ITEM_KEYS,
    AgentRecord,
    ConfigLayer,
    UnknownConfigKeyError,
    WorkspaceStatus,
    default_override_flags,
    generate_agent_id,
)
from clubhouse.core.registry import (
    clubhouse_dir,
    find_agent,
    migrate_agent_records,
    read_raw_agents,
    without_agent,
    write_agents,
)
from clubhouse.core.resolver import resolve_durable_config, resolve_project_defaults
from clubhouse.core.sessions import Session, SessionRegistry
from clubhouse.core.steps import Step, attempt, first_fatal, run_steps
from clubhouse.output import MessageType, VerbosityLevel, message
from clubhouse.vcs import GitRepo, GitShell

AGENTS_DIR = "agents"
LOCAL_AGENTS_DIR = ".local"
STANDBY_SUFFIX = "standby"
BOOTSTRAP_COMMIT_MESSAGE = "Clubhouse - Initial Commit"

# Marks an optional argument the caller did not pass
_UNSET: Any = object()


def shell_or_default(shell: GitShell | None) -> GitShell:
    """Return *shell*, or an adapter with default settings."""
    return shell if shell is not None else GitShell()


def _normalize_model(model: str | None) -> str | None:
    """``None``, ``""`` and ``"default"`` all mean "no explicit model"."""
    if not model or model == "default":
        return None
    return model


def standby_branch(name: str) -> str:
    return f"{name}/{STANDBY_SUFFIX}"


def workspace_path_for(project_path: Path, name: str, local_only: bool = False) -> Path:
    """Where the workspace of an agent called *name* lives."""
    scope = LOCAL_AGENTS_DIR if local_only else AGENTS_DIR
    return clubhouse_dir(project_path) / scope / name


# ------------------------------------------------------------------
# Loading
# ------------------------------------------------------------------
def _claude_md_customized(agent: AgentRecord, default_claude_md: Any) -> bool:
    """Whether the workspace's CLAUDE.md differs from the resolved default."""
    if not agent.has_workspace:
        return False
    path = target_path(Path(agent.workspace_path), CLAUDE_MD)
    if not path.is_file():
        return False
    try:
        content = path.read_text(encoding="utf-8")
    except OSError:
        return False
    return content != default_claude_md


def list_durable(project_path: Path) -> list[AgentRecord]:
    """Load every durable agent of a project, in display order.

    Legacy records are migrated. Agents whose override flags had to be
    backfilled get ``claudeMd`` pinned when their workspace copy differs
    from the project default, so earlier hand edits are kept. The registry
    is rewritten whenever anything changed.
    """
    project_path = Path(project_path)
    raw = read_raw_agents(project_path)
    migrated, backfilled = migrate_agent_records(raw)
    agents = [AgentRecord.from_dict(entry) for entry in migrated]

    if backfilled:
        default_claude_md = resolve_project_defaults(project_path).get(CLAUDE_MD)
        for agent in agents:
            if agent.id in backfilled and _claude_md_customized(agent, default_claude_md):
                agent.overrides[CLAUDE_MD] = True
                message(
                    f"Agent '{agent.name}' has a customized CLAUDE.md, pinning it",
                    MessageType.INFO,
                    VerbosityLevel.VERBOSE,
                )

    if migrated != raw:
        message(f"Migrating agent registry for {project_path}", MessageType.INFO, VerbosityLevel.VERBOSE)
        write_agents(project_path, agents)

    return agents


def get_durable(project_path: Path, agent_id: str) -> AgentRecord | None:
    return find_agent(list_durable(project_path), agent_id)


# ------------------------------------------------------------------
# Creation
# ------------------------------------------------------------------
def _ensure_initial_commit(repo: GitRepo) -> None:
    """Give an empty repository a first commit so it can be branched."""
    if repo.has_commits():
        return

    message(
        f"Empty repository detected at {repo.path}, creating initial commit",
        MessageType.INFO,
        VerbosityLevel.VERBOSE,
    )
    steps = []
    if (repo.path / ".gitignore").exists():
        steps.append(Step("Stage .gitignore", lambda: repo.add(".gitignore"), fatal=True))
    steps.append(Step("Initial commit", lambda: repo.commit_allow_empty(BOOTSTRAP_COMMIT_MESSAGE), fatal=True))

    failed = first_fatal(run_steps(steps))
    if failed:
        message(
            f"Warning: could not create initial commit in {repo.path}: {failed.reason}",
            MessageType.WARNING,
            VerbosityLevel.ALWAYS,
        )


def _plain_directory(workspace: Path) -> None:
    if workspace.exists():
        message(
            f"Warning: reusing existing directory {workspace}",
            MessageType.WARNING,
            VerbosityLevel.ALWAYS,
        )
    workspace.mkdir(parents=True, exist_ok=True)


def _create_workspace(project_path: Path, workspace: Path, branch: str, shell: GitShell) -> bool:
    """Create the agent's worktree, falling back to a plain directory.

    Returns:
        True if the project is a git repository (a branch is recorded)
    """
    repo = GitRepo(project_path, shell)
    if not repo.exists():
        message(
            f"{project_path} is not a git repository, using a plain directory",
            MessageType.INFO,
            VerbosityLevel.VERBOSE,
        )
        _plain_directory(workspace)
        return False

    _ensure_initial_commit(repo)
    attempt(f"Create branch {branch}", lambda: repo.create_branch(branch))

    workspace.parent.mkdir(parents=True, exist_ok=True)
    result = attempt(f"Add worktree {workspace}", lambda: repo.add_worktree(workspace, branch))
    if not result.ok:
        message(
            f"Warning: git worktree creation failed, falling back to plain directory: {result.reason}",
            MessageType.WARNING,
            VerbosityLevel.ALWAYS,
        )
        _plain_directory(workspace)
    return True


def _free_slot(project_path: Path, name: str, local_only: bool, agents: list[AgentRecord]) -> str:
    """Pick the branch/directory stem for *name* that no registered agent uses.

    A second agent with a live agent's name gets ``<name>-2``, ``<name>-3``,
    and so on; a leftover directory nobody owns is still reused.
    """
    taken_paths = {agent.workspace_path for agent in agents if agent.has_workspace}
    taken_branches = {agent.branch for agent in agents if agent.branch}

    slot, suffix = name, 2
    while (
        str(workspace_path_for(project_path, slot, local_only)) in taken_paths
        or standby_branch(slot) in taken_branches
    ):
        slot = f"{name}-{suffix}"
        suffix += 1

    if slot != name:
        message(
            f"Warning: workspace for '{name}' belongs to another agent, using '{slot}'",
            MessageType.WARNING,
            VerbosityLevel.ALWAYS,
        )
    return slot


def create_durable(
    project_path: Path,
    name: str,
    color: str,
    *,
    model: str | None = None,
    use_worktree: bool = True,
    orchestrator_id: str | None = None,
    local_only: bool = False,
    shell: GitShell | None = None,
) -> AgentRecord:
    """Create and register a durable agent.

    Args:
        project_path: Project root
        name: Agent name; also names its branch and workspace directory
        color: Display color
        model: Model identifier (``"default"`` means none)
        use_worktree: Give the agent an isolated workspace
        orchestrator_id: Orchestrator the agent runs under
        local_only: Place the workspace under ``.clubhouse/.local/``
        shell: git adapter (defaults to a plain :class:`GitShell`)

    Returns:
        The persisted record
    """
    project_path = Path(project_path)
    shell = shell_or_default(shell)

    clubhouse_dir(project_path).mkdir(parents=True, exist_ok=True)
    ensure_gitignore(project_path)

    agent = AgentRecord(
        id=generate_agent_id(),
        name=name,
        color=color,
        model=_normalize_model(model),
        orchestrator_id=orchestrator_id,
    )

    agents = list_durable(project_path)

    if use_worktree:
        slot = _free_slot(project_path, name, local_only, agents)
        branch = standby_branch(slot)
        workspace = workspace_path_for(project_path, slot, local_only)
        if _create_workspace(project_path, workspace, branch, shell):
            agent.branch = branch
        agent.workspace_path = str(workspace)

        materialize_all(workspace, resolve_project_defaults(project_path), default_override_flags(), project_path)

    agents.append(agent)
    write_agents(project_path, agents)

    message(f"Created agent '{name}' ({agent.id})", MessageType.DEBUG, VerbosityLevel.DEBUG)
    return agent


# ------------------------------------------------------------------
# Updates
# ------------------------------------------------------------------
def update_durable(
    project_path: Path,
    agent_id: str,
    *,
    name: str | None = None,
    color: str | None = None,
    icon: str | None = _UNSET,
    emoji: str | None = _UNSET,
) -> AgentRecord | None:
    """Update display fields. A passed ``icon``/``emoji`` of ``None`` or ``""`` clears it."""
    agents = list_durable(project_path)
    agent = find_agent(agents, agent_id)
    if agent is None:
        return None

    if name is not None:
        agent.name = name
    if color is not None:
        agent.color = color
    if icon is not _UNSET:
        agent.icon = icon or None
    if emoji is not _UNSET:
        agent.emoji = emoji or None

    write_agents(project_path, agents)
    return agent


def update_durable_config(
    project_path: Path,
    agent_id: str,
    *,
    model: str | None = _UNSET,
    orchestrator_id: str | None = _UNSET,
    quick_config_layer: ConfigLayer = _UNSET,
) -> AgentRecord | None:
    """Update runtime settings; ``model`` of ``""``/``"default"`` clears it."""
    agents = list_durable(project_path)
    agent = find_agent(agents, agent_id)
    if agent is None:
        return None

    if model is not _UNSET:
        agent.model = _normalize_model(model)
    if orchestrator_id is not _UNSET:
        agent.orchestrator_id = orchestrator_id
    if quick_config_layer is not _UNSET:
        agent.quick_config_layer = dict(quick_config_layer or {})

    write_agents(project_path, agents)
    return agent


def rename_durable(project_path: Path, agent_id: str, new_name: str) -> AgentRecord | None:
    """Change the display name only; branch and workspace keep the old name."""
    return update_durable(project_path, agent_id, name=new_name)


def reorder_durable(project_path: Path, ordered_ids: Iterable[str]) -> list[AgentRecord]:
    """Put the given agents first, in order, then everyone else as before.

    Unknown ids are ignored.
    """
    agents = list_durable(project_path)
    remaining = {agent.id: agent for agent in agents}

    result: list[AgentRecord] = []
    for agent_id in ordered_ids:
        agent = remaining.pop(agent_id, None)
        if agent is not None:
            result.append(agent)
    result.extend(agent for agent in agents if agent.id in remaining)

    write_agents(project_path, result)
    return result


def _check_item_key(key: str) -> None:
    if key not in CONFIG_ITEM_KEYS:
        raise UnknownConfigKeyError(key)


def toggle_override(project_path: Path, agent_id: str, key: str, pinned: bool) -> AgentRecord | None:
    """Pin or unpin one config item for an agent.

    Unpinning immediately rewrites the item from the current project
    defaults, discarding the agent's own copy.

    Raises:
        UnknownConfigKeyError: If *key* is not a config item
    """
    _check_item_key(key)
    project_path = Path(project_path)
    agents = list_durable(project_path)
    agent = find_agent(agents, agent_id)
    if agent is None:
        return None

    agent.overrides[key] = pinned
    write_agents(project_path, agents)

    if not pinned and agent.workspace_path and Path(agent.workspace_path).is_dir():
        materialize_all(
            Path(agent.workspace_path),
            resolve_project_defaults(project_path),
            agent.overrides,
            project_path,
            only=[key],
        )
    return agent


def toggle_quick_override(project_path: Path, agent_id: str, key: str, enabled: bool) -> AgentRecord | None:
    """Control whether the agent's ``quickConfigLayer`` value for *key* reaches its quick agents.

    Raises:
        UnknownConfigKeyError: If *key* is not a config item
    """
    _check_item_key(key)
    agents = list_durable(project_path)
    agent = find_agent(agents, agent_id)
    if agent is None:
        return None

    agent.quick_overrides[key] = enabled
    write_agents(project_path, agents)
    return agent


# ------------------------------------------------------------------
# Removal
# ------------------------------------------------------------------
def delete_durable(project_path: Path, agent_id: str, shell: GitShell | None = None) -> bool:
    """Remove an agent's worktree, branch, directory and record.

    Every cleanup step is best effort; the record is always removed.

    Returns:
        False if no such agent is registered
    """
    project_path = Path(project_path)
    agents = list_durable(project_path)
    agent = find_agent(agents, agent_id)
    if agent is None:
        return False

    if agent.has_workspace:
        workspace = Path(agent.workspace_path)
        repo = GitRepo(project_path, shell_or_default(shell))
        if repo.exists():
            steps = [Step(f"Remove worktree {workspace}", lambda: repo.remove_worktree(workspace))]
            if agent.branch:
                steps.append(Step(f"Delete branch {agent.branch}", lambda: repo.delete_branch(agent.branch)))
            for result in run_steps(steps):
                if not result.ok:
                    message(f"Warning: {result.name} failed: {result.reason}", MessageType.WARNING, VerbosityLevel.VERBOSE)

        if workspace.exists():
            result = attempt(f"Remove directory {workspace}", lambda: shutil.rmtree(workspace))
            if not result.ok:
                message(
                    f"Warning: could not remove {workspace}: {result.reason}",
                    MessageType.WARNING,
                    VerbosityLevel.ALWAYS,
                )

    write_agents(project_path, without_agent(agents, agent_id))
    message(f"Removed agent '{agent.name}' ({agent_id})", MessageType.DEBUG, VerbosityLevel.DEBUG)
    return True


# ------------------------------------------------------------------
# Inspection
# ------------------------------------------------------------------
def get_workspace_status(project_path: Path, agent_id: str, shell: GitShell | None = None) -> WorkspaceStatus:
    """Compute uncommitted files, unpushed commits and remote presence.

    Agents without a workspace, or whose workspace is missing or not a git
    checkout, get an empty invalid status. A failing probe leaves its own
    field empty without affecting the others.
    """
    project_path = Path(project_path)
    shell = shell_or_default(shell)
    agent = get_durable(project_path, agent_id)
    if agent is None or not agent.has_workspace:
        return WorkspaceStatus.invalid()

    worktree = GitRepo(Path(agent.workspace_path), shell)
    if not worktree.exists():
        return WorkspaceStatus.invalid(agent.branch or "")

    base = GitRepo(project_path, shell).detect_base_branch()
    files = attempt("Read status", worktree.status)
    commits = attempt(f"List commits since {base}", lambda: worktree.unique_commits(base))
    remote = attempt("List remotes", worktree.has_remote)

    return WorkspaceStatus(
        is_valid=True,
        branch=agent.branch or "",
        uncommitted_files=files.output if files.ok else [],
        unpushed_commits=commits.output if commits.ok else [],
        has_remote=bool(remote.output) if remote.ok else False,
    )


# ------------------------------------------------------------------
# Spawn support
# ------------------------------------------------------------------
def repair_durable(project_path: Path, agent_id: str) -> dict[str, bool] | None:
    """Restore missing config items in an agent's workspace.

    Returns:
        Per-item results, or None when the agent or its workspace is missing
    """
    project_path = Path(project_path)
    agent = get_durable(project_path, agent_id)
    if agent is None or not agent.workspace_path or not Path(agent.workspace_path).is_dir():
        return None

    return repair_missing(
        Path(agent.workspace_path),
        resolve_durable_config(project_path, agent_id),
        agent.overrides,
        project_path,
    )


def prepare_spawn(
    project_path: Path,
    agent_id: str,
    sessions: SessionRegistry,
    orchestrator_id: str | None = None,
) -> tuple[Session, str | None, str | None] | None:
    """Heal an agent's workspace and register the session about to start.

    Args:
        project_path: Project root
        agent_id: Agent to spawn
        sessions: Registry the new session is tracked in
        orchestrator_id: Overrides the agent's configured orchestrator

    Returns:
        Tuple of (session, workspace path, branch), or None for an unknown agent
    """
    project_path = Path(project_path)
    agent = get_durable(project_path, agent_id)
    if agent is None:
        return None

    repair_durable(project_path, agent_id)
    session = sessions.track(agent_id, project_path, orchestrator_id or agent.orchestrator_id)
    return session, agent.workspace_path, agent.branch
