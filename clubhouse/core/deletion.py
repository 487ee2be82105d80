"""Deletion strategies for durable agents.

The strategies differ only in how they preserve work before calling the
shared removal routine, :func:`clubhouse.core.agents.delete_durable`.
Each one returns a :class:`DeleteResult` and never raises for git
failures.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from clubhouse.core.agents import delete_durable, get_durable, shell_or_default
from clubhouse.core.models import AgentRecord, DeleteResult
from clubhouse.core.registry import find_agent, read_agents, without_agent, write_agents
from clubhouse.core.steps import Step, StepResult, attempt, first_fatal, run_steps
from clubhouse.output import MessageType, VerbosityLevel, message
from clubhouse.vcs import GitRepo, GitShell, detect_directory

SAVE_COMMIT_MESSAGE = "Save work before deletion"
CLEANUP_COMMIT_MESSAGE = "Cleanup: save work before agent deletion"
CLEANUP_SUFFIX = "cleanup"

NOT_FOUND = "Agent not found"
NO_WORKTREE = "Deleted (no worktree)"
NOT_A_CHECKOUT = "Deleted (workspace is not a git checkout, nothing saved)"

PATCH_UNCOMMITTED_HEADER = "# Uncommitted changes\n"
PATCH_STAGED_HEADER = "# Staged changes (including untracked)\n"
PATCH_EMPTY = "# No changes to export\n"


def _lookup(
    project_path: Path, agent_id: str, shell: GitShell | None = None, require_git: bool = True
) -> AgentRecord | DeleteResult:
    """Return the agent, or the result to report when it cannot be processed further.

    A workspace without its own ``.git`` marker (the plain-directory
    fallback) would make git act on the enclosing project checkout, so
    when *require_git* is set such agents are removed without saving.
    """
    agent = get_durable(project_path, agent_id)
    if agent is None:
        return DeleteResult(False, NOT_FOUND)
    if not agent.has_workspace:
        delete_durable(project_path, agent_id)
        return DeleteResult(True, NO_WORKTREE)
    if require_git and not _is_checkout(agent):
        message(
            f"Workspace of '{agent.name}' is not a git checkout, nothing to save",
            MessageType.WARNING,
            VerbosityLevel.VERBOSE,
        )
        delete_durable(project_path, agent_id, shell)
        return DeleteResult(True, NOT_A_CHECKOUT)
    return agent


def _is_checkout(agent: AgentRecord) -> bool:
    return detect_directory(Path(agent.workspace_path)) == "git"


def _push_step(worktree: GitRepo, branch: str, label: str) -> Step:
    """Push *branch* when the worktree has a remote; failure leaves the commit local."""

    def push() -> str | None:
        if not worktree.has_remote():
            return None
        return worktree.push(branch)

    return Step(f"Push {label} {branch}", push)


def _report_push(results: list[StepResult], agent: AgentRecord) -> None:
    for result in results:
        if result.name.startswith("Push") and not result.ok:
            message(
                f"Warning: push failed for agent '{agent.name}', work saved locally: {result.reason}",
                MessageType.WARNING,
                VerbosityLevel.ALWAYS,
            )


def delete_unregister(project_path: Path, agent_id: str) -> DeleteResult:
    """Forget the agent but leave its branch and files on disk."""
    project_path = Path(project_path)
    agents = read_agents(project_path)
    if find_agent(agents, agent_id) is None:
        return DeleteResult(False, NOT_FOUND)

    write_agents(project_path, without_agent(agents, agent_id))
    return DeleteResult(True, "Removed from agents list (files left on disk)")


def delete_force(project_path: Path, agent_id: str, shell: GitShell | None = None) -> DeleteResult:
    """Run the removal routine without saving anything."""
    try:
        if not delete_durable(project_path, agent_id, shell):
            return DeleteResult(False, NOT_FOUND)
    except Exception as e:
        message(f"Force delete of {agent_id} failed: {e}", MessageType.ERROR, VerbosityLevel.VERBOSE)
        return DeleteResult(False, str(e) or "Failed to force delete")
    return DeleteResult(True, "Force deleted")


def delete_commit_and_push(project_path: Path, agent_id: str, shell: GitShell | None = None) -> DeleteResult:
    """Commit everything on the agent's own branch, push it if possible, then remove."""
    project_path = Path(project_path)
    found = _lookup(project_path, agent_id, shell)
    if isinstance(found, DeleteResult):
        return found
    agent = found

    worktree = GitRepo(Path(agent.workspace_path), shell_or_default(shell))
    steps = [
        Step("Stage all changes", worktree.stage_all, fatal=True),
        Step("Commit", lambda: worktree.commit(SAVE_COMMIT_MESSAGE)),
    ]
    if agent.branch:
        steps.append(_push_step(worktree, agent.branch, "branch"))

    results = run_steps(steps)
    failed = first_fatal(results)
    if failed:
        return DeleteResult(False, failed.reason or "Failed to commit")
    _report_push(results, agent)

    delete_durable(project_path, agent_id, shell)
    return DeleteResult(True, "Committed, pushed, and deleted")


def delete_with_cleanup_branch(
    project_path: Path, agent_id: str, shell: GitShell | None = None
) -> DeleteResult:
    """Commit everything to ``<name>/cleanup``, push it if possible, then remove."""
    project_path = Path(project_path)
    found = _lookup(project_path, agent_id, shell)
    if isinstance(found, DeleteResult):
        return found
    agent = found

    worktree = GitRepo(Path(agent.workspace_path), shell_or_default(shell))
    cleanup_branch = f"{agent.name}/{CLEANUP_SUFFIX}"

    def switch_branch() -> str:
        created = attempt(f"Create {cleanup_branch}", lambda: worktree.checkout_new(cleanup_branch))
        if created.ok:
            return created.output
        return worktree.checkout(cleanup_branch)

    results = run_steps([
        Step(f"Switch to {cleanup_branch}", switch_branch, fatal=True),
        Step("Stage all changes", worktree.stage_all, fatal=True),
        Step("Commit", lambda: worktree.commit(CLEANUP_COMMIT_MESSAGE)),
        _push_step(worktree, cleanup_branch, "cleanup branch"),
    ])
    failed = first_fatal(results)
    if failed:
        return DeleteResult(False, failed.reason or "Failed to create cleanup branch")
    _report_push(results, agent)

    delete_durable(project_path, agent_id, shell)
    return DeleteResult(True, f"Saved to {cleanup_branch} and deleted")


def collect_patch(worktree: GitRepo, base: str) -> str:
    """Build the patch text for a worktree without committing anything.

    Sections, each omitted when empty: uncommitted tracked changes,
    untracked files (staged temporarily, then unstaged), and commits since
    *base*.
    """
    sections: list[str] = []

    diff = attempt("Diff against HEAD", worktree.diff_head)
    if diff.ok and diff.output.strip():
        sections.append(f"{PATCH_UNCOMMITTED_HEADER}{diff.output}\n")

    untracked = attempt("List untracked files", worktree.untracked_files)
    if untracked.ok and untracked.output:
        results = run_steps([
            Step("Stage untracked files", worktree.stage_all, fatal=True),
            Step("Diff staged changes", worktree.diff_cached, fatal=True),
        ])
        staged = results[-1]
        if staged.ok and staged.output.strip():
            sections.append(f"{PATCH_STAGED_HEADER}{staged.output}\n")
        attempt("Unstage", worktree.unstage_all)

    patches = attempt(f"Format patches since {base}", lambda: worktree.format_patch(base))
    if patches.ok and patches.output.strip():
        sections.append(f"# Commits since {base}\n{patches.output}\n")

    return "".join(sections) or PATCH_EMPTY


def delete_save_as_patch(
    project_path: Path, agent_id: str, save_path: Path, shell: GitShell | None = None
) -> DeleteResult:
    """Export all unsaved work to a patch file, then remove.

    A workspace that is not a git checkout gets the empty placeholder
    patch without any git command being run.
    """
    project_path = Path(project_path)
    found = _lookup(project_path, agent_id, shell, require_git=False)
    if isinstance(found, DeleteResult):
        return found
    agent = found

    shell = shell_or_default(shell)
    if _is_checkout(agent):
        base = GitRepo(project_path, shell).detect_base_branch()
        content = collect_patch(GitRepo(Path(agent.workspace_path), shell), base)
    else:
        content = PATCH_EMPTY

    try:
        Path(save_path).write_text(content, encoding="utf-8")
    except OSError as e:
        message(f"Failed to save patch file {save_path}: {e}", MessageType.ERROR, VerbosityLevel.ALWAYS)
        return DeleteResult(False, str(e) or "Failed to save patch")

    delete_durable(project_path, agent_id, shell)
    return DeleteResult(True, f"Patch saved to {save_path}")


# CLI name -> strategy; "patch" additionally takes the output path
DELETE_STRATEGIES: dict[str, Callable[..., DeleteResult]] = {
    "unregister": delete_unregister,
    "force": delete_force,
    "commit-push": delete_commit_and_push,
    "cleanup-branch": delete_with_cleanup_branch,
    "patch": delete_save_as_patch,
}
