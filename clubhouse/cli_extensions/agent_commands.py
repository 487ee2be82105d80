"""CLI commands for managing durable agents."""

import argparse
import sys
from pathlib import Path

from clubhouse.config import Config
from clubhouse.core import (
    CONFIG_ITEM_KEYS,
    DELETE_STRATEGIES,
    AgentRecord,
    create_durable,
    get_workspace_status,
    list_durable,
    rename_durable,
    reorder_durable,
    repair_durable,
    toggle_override,
    update_durable,
    update_durable_config,
)
from clubhouse.output import MessageType, VerbosityLevel, message


class AgentCommands:
    """Manages CLI commands for durable agents."""

    @classmethod
    def add_cli_arguments(cls, subparsers) -> None:
        """Add agent-related CLI arguments.

        Args:
            subparsers: The argparse subparsers to add to
        """
        agents_parser = subparsers.add_parser("agents", help="Manage durable agents")
        agents_subparsers = agents_parser.add_subparsers(dest="agents_command", help="Agent commands")

        # agents list
        agents_subparsers.add_parser("list", help="List durable agents")

        # agents create
        create_parser = agents_subparsers.add_parser(
            "create",
            help="Create a durable agent",
            description="Create a durable agent with its own '<name>/standby' branch and worktree.",
        )
        create_parser.add_argument("name", help="Agent name (also names its branch and workspace)")
        create_parser.add_argument("--color", help="Display color (default from user configuration)")
        create_parser.add_argument("--model", help="Model identifier ('default' for none)")
        create_parser.add_argument("--orchestrator", help="Orchestrator the agent runs under")
        create_parser.add_argument(
            "--no-worktree", action="store_true",
            help="Register the agent without an isolated workspace",
        )
        create_parser.add_argument(
            "--local", action="store_true",
            help="Place the workspace under .clubhouse/.local/",
        )

        # agents rename
        rename_parser = agents_subparsers.add_parser("rename", help="Change an agent's display name")
        rename_parser.add_argument("agent", help="Agent id or name")
        rename_parser.add_argument("new_name", help="New display name")

        # agents update
        update_parser = agents_subparsers.add_parser("update", help="Update agent display fields and settings")
        update_parser.add_argument("agent", help="Agent id or name")
        update_parser.add_argument("--color", help="Display color")
        update_parser.add_argument("--icon", help="Icon reference ('' clears it)")
        update_parser.add_argument("--emoji", help="Emoji ('' clears it)")
        update_parser.add_argument("--model", help="Model identifier ('default' or '' clears it)")
        update_parser.add_argument("--orchestrator", help="Orchestrator id")

        # agents reorder
        reorder_parser = agents_subparsers.add_parser(
            "reorder",
            help="Move agents to the front of the list",
            description="Listed agents come first in the given order; the rest keep their order.",
        )
        reorder_parser.add_argument("agents", nargs="+", metavar="AGENT", help="Agent ids or names")

        # agents delete
        delete_parser = agents_subparsers.add_parser(
            "delete",
            help="Delete an agent",
            description="Delete an agent, optionally preserving its work first.",
        )
        delete_parser.add_argument("agent", help="Agent id or name")
        delete_parser.add_argument(
            "--strategy",
            choices=list(DELETE_STRATEGIES),
            default="unregister",
            help="How to handle the agent's work (default: unregister, leaving files on disk)",
        )
        delete_parser.add_argument(
            "--patch-file", type=Path, metavar="PATH",
            help="Where to write the patch (required with --strategy patch)",
        )

        # agents status
        status_parser = agents_subparsers.add_parser("status", help="Show an agent's workspace status")
        status_parser.add_argument("agent", help="Agent id or name")

        # agents pin / unpin
        pin_parser = agents_subparsers.add_parser(
            "pin",
            help="Keep the agent's own copy of a config item",
            description="A pinned item is never overwritten by project defaults.",
        )
        pin_parser.add_argument("agent", help="Agent id or name")
        pin_parser.add_argument("item", choices=CONFIG_ITEM_KEYS, help="Config item")

        unpin_parser = agents_subparsers.add_parser(
            "unpin",
            help="Follow project defaults for a config item again",
            description="Unpinning immediately rewrites the item from the project defaults.",
        )
        unpin_parser.add_argument("agent", help="Agent id or name")
        unpin_parser.add_argument("item", choices=CONFIG_ITEM_KEYS, help="Config item")

        # agents repair
        repair_parser = agents_subparsers.add_parser(
            "repair",
            help="Restore missing config files in a workspace",
            description="Write back config items whose files were deleted; existing files are left alone.",
        )
        repair_parser.add_argument("agent", help="Agent id or name")

    @classmethod
    def process_cli_command(cls, args: argparse.Namespace, config: Config, project_path: Path) -> None:
        """Process agents-related CLI commands.

        Args:
            args: Parsed command-line arguments
            config: User configuration
            project_path: Project root the agents belong to
        """
        if not hasattr(args, "agents_command") or args.agents_command is None:
            message("No agents subcommand specified", MessageType.ERROR, VerbosityLevel.ALWAYS)
            message(
                "Available commands: list, create, rename, update, reorder, delete, status, pin, unpin, repair",
                MessageType.NORMAL,
                VerbosityLevel.ALWAYS,
            )
            sys.exit(1)

        if args.agents_command == "list":
            cls.list_agents(project_path)
        elif args.agents_command == "create":
            cls.create_agent(args, config, project_path)
        elif args.agents_command == "rename":
            agent = cls.resolve_agent(project_path, args.agent)
            rename_durable(project_path, agent.id, args.new_name)
            message(f"Renamed '{agent.name}' to '{args.new_name}'", MessageType.SUCCESS, VerbosityLevel.ALWAYS)
        elif args.agents_command == "update":
            cls.update_agent(args, project_path)
        elif args.agents_command == "reorder":
            ids = [cls.resolve_agent(project_path, ref).id for ref in args.agents]
            reorder_durable(project_path, ids)
            cls.list_agents(project_path)
        elif args.agents_command == "delete":
            cls.delete_agent(args, config, project_path)
        elif args.agents_command == "status":
            cls.show_status(args, config, project_path)
        elif args.agents_command in ("pin", "unpin"):
            agent = cls.resolve_agent(project_path, args.agent)
            pinned = args.agents_command == "pin"
            toggle_override(project_path, agent.id, args.item, pinned)
            state = "pinned" if pinned else "unpinned (synced from defaults)"
            message(f"{args.item} {state} for '{agent.name}'", MessageType.SUCCESS, VerbosityLevel.ALWAYS)
        elif args.agents_command == "repair":
            cls.repair_agent(args, project_path)

    @staticmethod
    def resolve_agent(project_path: Path, ref: str) -> AgentRecord:
        """Find an agent by id, falling back to a unique name match.

        Raises:
            SystemExit: If no agent, or more than one, matches
        """
        agents = list_durable(project_path)
        for agent in agents:
            if agent.id == ref:
                return agent

        matches = [agent for agent in agents if agent.name == ref]
        if len(matches) == 1:
            return matches[0]
        if matches:
            message(f"Several agents are named '{ref}'; use the agent id", MessageType.ERROR, VerbosityLevel.ALWAYS)
        else:
            message(f"Agent '{ref}' not found", MessageType.ERROR, VerbosityLevel.ALWAYS)
        sys.exit(1)

    @classmethod
    def list_agents(cls, project_path: Path) -> None:
        """List all durable agents of the project in display order."""
        agents = list_durable(project_path)

        message(f"\n=== Durable Agents ({project_path}) ===\n", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        if not agents:
            message("No durable agents found.", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            message("\nUse 'clubhouse agents create <name>' to create one", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            message("", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            return

        for agent in agents:
            label = f"{agent.emoji} {agent.name}" if agent.emoji else agent.name
            message(f"  {label} ({agent.id})", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            message(f"    color: {agent.color}", MessageType.NORMAL, VerbosityLevel.VERBOSE)
            if agent.branch:
                message(f"    branch: {agent.branch}", MessageType.NORMAL, VerbosityLevel.VERBOSE)
            if agent.workspace_path:
                message(f"    workspace: {agent.workspace_path}", MessageType.NORMAL, VerbosityLevel.VERBOSE)
            if agent.model:
                message(f"    model: {agent.model}", MessageType.NORMAL, VerbosityLevel.VERBOSE)
            pinned = [key for key in CONFIG_ITEM_KEYS if agent.is_pinned(key)]
            if pinned:
                message(f"    pinned: {', '.join(pinned)}", MessageType.NORMAL, VerbosityLevel.VERBOSE)

        message(f"\nTotal: {len(agents)} agent(s)", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message("", MessageType.NORMAL, VerbosityLevel.ALWAYS)

    @classmethod
    def create_agent(cls, args: argparse.Namespace, config: Config, project_path: Path) -> None:
        config_data = config.read()
        agent = create_durable(
            project_path,
            args.name,
            args.color or config.default_color(config_data),
            model=args.model,
            use_worktree=not args.no_worktree,
            orchestrator_id=args.orchestrator,
            local_only=args.local,
            shell=config.create_shell(config_data),
        )
        message(f"Agent '{agent.name}' created ({agent.id})", MessageType.SUCCESS, VerbosityLevel.ALWAYS)
        if agent.workspace_path:
            message(f"  workspace: {agent.workspace_path}", MessageType.INFO, VerbosityLevel.ALWAYS)
        if agent.branch:
            message(f"  branch:    {agent.branch}", MessageType.INFO, VerbosityLevel.ALWAYS)

    @classmethod
    def update_agent(cls, args: argparse.Namespace, project_path: Path) -> None:
        agent = cls.resolve_agent(project_path, args.agent)

        display = {}
        if args.color is not None:
            display["color"] = args.color
        if args.icon is not None:
            display["icon"] = args.icon
        if args.emoji is not None:
            display["emoji"] = args.emoji
        runtime = {}
        if args.model is not None:
            runtime["model"] = args.model
        if args.orchestrator is not None:
            runtime["orchestrator_id"] = args.orchestrator

        if not display and not runtime:
            message("Nothing to update", MessageType.WARNING, VerbosityLevel.ALWAYS)
            return

        if display:
            update_durable(project_path, agent.id, **display)
        if runtime:
            update_durable_config(project_path, agent.id, **runtime)
        message(f"Agent '{agent.name}' updated", MessageType.SUCCESS, VerbosityLevel.ALWAYS)

    @classmethod
    def delete_agent(cls, args: argparse.Namespace, config: Config, project_path: Path) -> None:
        agent = cls.resolve_agent(project_path, args.agent)
        strategy = DELETE_STRATEGIES[args.strategy]

        if args.strategy == "unregister":
            result = strategy(project_path, agent.id)
        elif args.strategy == "patch":
            if args.patch_file is None:
                message("--patch-file is required with --strategy patch", MessageType.ERROR, VerbosityLevel.ALWAYS)
                sys.exit(1)
            result = strategy(project_path, agent.id, args.patch_file, config.create_shell())
        else:
            result = strategy(project_path, agent.id, config.create_shell())

        if not result.ok:
            message(f"Failed to delete '{agent.name}': {result.message}", MessageType.ERROR, VerbosityLevel.ALWAYS)
            sys.exit(1)
        message(f"{agent.name}: {result.message}", MessageType.SUCCESS, VerbosityLevel.ALWAYS)

    @classmethod
    def show_status(cls, args: argparse.Namespace, config: Config, project_path: Path) -> None:
        agent = cls.resolve_agent(project_path, args.agent)
        status = get_workspace_status(project_path, agent.id, config.create_shell())

        message(f"\n=== {agent.name} ===\n", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        if not status.is_valid:
            message("  No valid git workspace", MessageType.WARNING, VerbosityLevel.ALWAYS)
            message("", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            return

        message(f"  branch: {status.branch}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message(f"  remote: {'yes' if status.has_remote else 'none'}", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        message(f"\n  Uncommitted files ({len(status.uncommitted_files)}):", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        for entry in status.uncommitted_files:
            marker = "+" if entry.staged else " "
            message(f"   {marker}{entry.status_code:>2} {entry.path}", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        message(f"\n  Unpushed commits ({len(status.unpushed_commits)}):", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        for commit in status.unpushed_commits:
            message(f"    {commit.short_hash} {commit.subject} ({commit.author})", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message("", MessageType.NORMAL, VerbosityLevel.ALWAYS)

    @classmethod
    def repair_agent(cls, args: argparse.Namespace, project_path: Path) -> None:
        agent = cls.resolve_agent(project_path, args.agent)
        results = repair_durable(project_path, agent.id)
        if results is None:
            message(f"Agent '{agent.name}' has no workspace to repair", MessageType.WARNING, VerbosityLevel.ALWAYS)
            return
        if not results:
            message(f"Nothing missing in '{agent.name}'", MessageType.SUCCESS, VerbosityLevel.ALWAYS)
            return

        for key, ok in results.items():
            if ok:
                message(f"  Restored {key}", MessageType.SUCCESS, VerbosityLevel.ALWAYS)
            else:
                message(f"  Failed to restore {key}", MessageType.ERROR, VerbosityLevel.ALWAYS)
        if not all(results.values()):
            sys.exit(1)
