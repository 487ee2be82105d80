#!/usr/bin/env python

"""Durable agent workspaces with layered configuration."""

import argparse
import sys
from pathlib import Path

from clubhouse.cli_extensions import AgentCommands, ConfigCommands, SettingsCommands
from clubhouse.config import Config
from clubhouse.output import MessageType, VerbosityLevel, get_output, message

# Grouped command help text
COMMAND_GROUPS = """
agent commands:
  agents              Create, inspect, and delete durable agents

project configuration commands:
  settings            Manage defaults, local, and quick agent config layers

configuration file commands:
  config              Manage the user configuration file
"""


class GroupedHelpFormatter(argparse.RawDescriptionHelpFormatter):
    """Custom formatter that hides the subparser choices from positional arguments."""

    def _metavar_formatter(self, action, default_metavar):
        if action.choices is not None and isinstance(action, argparse._SubParsersAction):
            result = action.metavar if action.metavar is not None else ""

            def format_fn(tuple_size):
                if isinstance(result, tuple):
                    return result
                return (result,) * tuple_size

            return format_fn
        return super()._metavar_formatter(action, default_metavar)

    def _format_action(self, action):
        # Subcommands are listed in the epilog
        if isinstance(action, argparse._SubParsersAction):
            return ""
        return super()._format_action(action)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clubhouse",
        description="Manage durable agent workspaces and their configuration",
        formatter_class=GroupedHelpFormatter,
        epilog=COMMAND_GROUPS,
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Increase verbosity (-v, -vv, -vvv)",
    )
    parser.add_argument(
        "--no-color", action="store_true",
        help="Disable colored output",
    )
    parser.add_argument(
        "--project", type=Path, default=None, metavar="PATH",
        help="Project root (default: current directory)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")

    AgentCommands.add_cli_arguments(subparsers)     # agents
    SettingsCommands.add_cli_arguments(subparsers)  # settings
    ConfigCommands.add_cli_arguments(subparsers)    # config

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the clubhouse CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Configure output system
    output_mgr = get_output()
    output_mgr.verbosity = args.verbose
    output_mgr.use_color = not args.no_color and sys.stdout.isatty()

    message(f"Verbosity level: {args.verbose}", MessageType.DEBUG, VerbosityLevel.DEBUG)
    message(f"Command: {args.command}", MessageType.DEBUG, VerbosityLevel.DEBUG)

    config = Config()

    if args.command is None:
        parser.print_help()
        return

    if args.command == "config":
        ConfigCommands.process_cli_command(args, config)
        return

    project_path = (args.project or Path.cwd()).resolve()
    if not project_path.is_dir():
        message(f"Project directory not found: {project_path}", MessageType.ERROR, VerbosityLevel.ALWAYS)
        sys.exit(1)
    message(f"Project: {project_path}", MessageType.DEBUG, VerbosityLevel.DEBUG)

    if args.command == "agents":
        AgentCommands.process_cli_command(args, config, project_path)
    elif args.command == "settings":
        SettingsCommands.process_cli_command(args, project_path)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
