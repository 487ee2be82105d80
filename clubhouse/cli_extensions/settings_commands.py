"""CLI commands for project-level configuration layers."""

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from clubhouse.core import (
    CLAUDE_MD,
    LAYER_KEYS,
    list_durable,
    read_project_settings,
    resolve_project_defaults,
    save_local_layer,
    save_project_defaults,
    save_quick_defaults,
    save_skills_paths,
)
from clubhouse.core.settings import read_local_layer
from clubhouse.output import MessageType, VerbosityLevel, message


class SettingsCommands:
    """Manages the defaults, local and quick configuration layers of a project."""

    @staticmethod
    def add_cli_arguments(subparsers) -> None:
        """Add settings subcommands to the argument parser.

        Args:
            subparsers: The subparsers object to add commands to
        """
        settings_parser = subparsers.add_parser("settings", help="Manage project configuration layers")
        settings_subparsers = settings_parser.add_subparsers(dest="settings_command", help="Settings commands")

        # settings show
        settings_subparsers.add_parser(
            "show",
            help="Display every configuration layer and the resolved result",
        )

        def add_layer_flags(parser: argparse.ArgumentParser) -> None:
            scope = parser.add_mutually_exclusive_group()
            scope.add_argument(
                "--local", action="store_true",
                help="Target settings.local.json (this machine only)",
            )
            scope.add_argument(
                "--quick", action="store_true",
                help="Target the quick agent overrides",
            )

        # settings set-default
        set_parser = settings_subparsers.add_parser(
            "set-default",
            help="Set a config item for all agents",
            description="Set a config item and sync it to every agent that has not pinned it. "
            "claudeMd takes text; permissions and mcpConfig take JSON.",
        )
        set_parser.add_argument("item", choices=LAYER_KEYS, help="Config item")
        source = set_parser.add_mutually_exclusive_group(required=True)
        source.add_argument("--value", help="Value given inline")
        source.add_argument("--file", type=Path, metavar="PATH", help="Read the value from a file")
        add_layer_flags(set_parser)

        # settings clear-default
        clear_parser = settings_subparsers.add_parser(
            "clear-default",
            help="Clear a config item for all agents",
            description="Mark a config item as cleared (its file is removed from workspaces), "
            "or with --inherit drop it from the layer so lower layers apply.",
        )
        clear_parser.add_argument("item", choices=LAYER_KEYS, help="Config item")
        clear_parser.add_argument(
            "--inherit", action="store_true",
            help="Remove the key instead of clearing it",
        )
        add_layer_flags(clear_parser)

        # settings set-source
        source_parser = settings_subparsers.add_parser(
            "set-source",
            help="Set the source directory of skills or agents",
            description="Directories are relative to .clubhouse/ and copied into every unpinned workspace.",
        )
        source_parser.add_argument("item", choices=["skills", "agents"], help="Directory item")
        path_group = source_parser.add_mutually_exclusive_group(required=True)
        path_group.add_argument("path", nargs="?", help="Source directory relative to .clubhouse/")
        path_group.add_argument("--unset", action="store_true", help="Stop syncing this directory")

        # settings migrate
        settings_subparsers.add_parser(
            "migrate",
            help="Upgrade legacy settings and agent records in place",
        )

    @staticmethod
    def process_cli_command(args: argparse.Namespace, project_path: Path) -> None:
        """Process settings CLI commands.

        Args:
            args: Parsed command-line arguments
            project_path: Project root
        """
        if args.settings_command is None:
            message("Usage: clubhouse settings <command>", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            message("", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            message("Available commands:", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            message("  show           Display configuration layers", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            message("  set-default    Set a config item", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            message("  clear-default  Clear a config item", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            message("  set-source     Set the skills/agents source directory", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            message("  migrate        Upgrade legacy files", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            return
        elif args.settings_command == "show":
            SettingsCommands.display(project_path)
        elif args.settings_command == "set-default":
            value = SettingsCommands.read_value(args.item, args.value, args.file)
            SettingsCommands.update_layer(project_path, args, lambda layer: layer.__setitem__(args.item, value))
        elif args.settings_command == "clear-default":
            if args.inherit:
                SettingsCommands.update_layer(project_path, args, lambda layer: layer.pop(args.item, None))
            else:
                SettingsCommands.update_layer(project_path, args, lambda layer: layer.__setitem__(args.item, None))
        elif args.settings_command == "set-source":
            path = None if args.unset else args.path
            if args.item == "skills":
                results = save_skills_paths(project_path, skills_path=path)
            else:
                results = save_skills_paths(project_path, agents_path=path)
            SettingsCommands.report_sync(results.get(args.item, {}))
        elif args.settings_command == "migrate":
            SettingsCommands.migrate(project_path)
        else:
            message("Unknown settings command", MessageType.ERROR, VerbosityLevel.ALWAYS)
            sys.exit(1)

    @staticmethod
    def read_value(item: str, value: str | None, file: Path | None) -> Any:
        """Turn the command-line value into a layer value.

        Raises:
            SystemExit: If the file cannot be read or the JSON is invalid
        """
        if file is not None:
            try:
                value = file.read_text(encoding="utf-8")
            except OSError as e:
                message(f"Failed to read {file}: {e}", MessageType.ERROR, VerbosityLevel.ALWAYS)
                sys.exit(1)

        if item == CLAUDE_MD:
            return value

        try:
            parsed = json.loads(value)
        except ValueError as e:
            message(f"{item} must be valid JSON: {e}", MessageType.ERROR, VerbosityLevel.ALWAYS)
            sys.exit(1)
        if not isinstance(parsed, dict):
            message(f"{item} must be a JSON object", MessageType.ERROR, VerbosityLevel.ALWAYS)
            sys.exit(1)
        return parsed

    @staticmethod
    def update_layer(project_path: Path, args: argparse.Namespace, change) -> None:
        """Apply *change* to the selected layer and save it."""
        if args.quick:
            layer = dict(read_project_settings(project_path).quick_overrides)
            change(layer)
            save_quick_defaults(project_path, layer)
            message(f"Quick agent {args.item} updated", MessageType.SUCCESS, VerbosityLevel.ALWAYS)
            return

        if args.local:
            layer = read_local_layer(project_path)
            change(layer)
            results = save_local_layer(project_path, layer)
        else:
            layer = dict(read_project_settings(project_path).defaults)
            change(layer)
            results = save_project_defaults(project_path, layer)

        message(f"{args.item} updated", MessageType.SUCCESS, VerbosityLevel.ALWAYS)
        SettingsCommands.report_sync(results)

    @staticmethod
    def report_sync(results: dict[str, bool]) -> None:
        if not results:
            message("No agent workspaces needed changes", MessageType.INFO, VerbosityLevel.VERBOSE)
            return

        failed = [agent_id for agent_id, ok in results.items() if not ok]
        message(
            f"Synced {len(results) - len(failed)} of {len(results)} agent workspace(s)",
            MessageType.INFO,
            VerbosityLevel.ALWAYS,
        )
        for agent_id in failed:
            message(f"  Failed to sync {agent_id}", MessageType.WARNING, VerbosityLevel.ALWAYS)

    @staticmethod
    def format_value(value: Any) -> str:
        if value is None:
            return "(cleared)"
        if isinstance(value, str):
            first_line = value.splitlines()[0] if value else ""
            more = " ..." if "\n" in value.strip() else ""
            return f"{first_line!r}{more}"
        return json.dumps(value)

    @staticmethod
    def display(project_path: Path) -> None:
        """Display every configuration layer of the project."""
        settings = read_project_settings(project_path)
        layers = [
            ("Defaults (settings.json)", settings.defaults),
            ("Local (settings.local.json)", read_local_layer(project_path)),
            ("Resolved for durable agents", resolve_project_defaults(project_path)),
            ("Quick agent overrides", settings.quick_overrides),
        ]

        for title, layer in layers:
            message(f"\n=== {title} ===\n", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            if not layer:
                message("  (empty)", MessageType.NORMAL, VerbosityLevel.ALWAYS)
                continue
            for key in LAYER_KEYS:
                if key in layer:
                    message(
                        f"  {key}: {SettingsCommands.format_value(layer[key])}",
                        MessageType.NORMAL,
                        VerbosityLevel.ALWAYS,
                    )

        message("\n=== Directory sources ===\n", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message(f"  skills: {settings.default_skills_path or '(not set)'}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message(f"  agents: {settings.default_agents_path or '(not set)'}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message("", MessageType.NORMAL, VerbosityLevel.ALWAYS)

    @staticmethod
    def migrate(project_path: Path) -> None:
        """Load settings and agents once so pending migrations are written."""
        read_project_settings(project_path)
        agents = list_durable(project_path)
        message(
            f"Project settings and {len(agents)} agent record(s) are up to date",
            MessageType.SUCCESS,
            VerbosityLevel.ALWAYS,
        )
