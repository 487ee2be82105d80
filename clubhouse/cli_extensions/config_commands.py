"""CLI commands for managing the user configuration file."""

import argparse
import sys

from clubhouse.config import Config
from clubhouse.output import MessageType, VerbosityLevel, message


class ConfigCommands:
    """Manages configuration-related CLI commands."""

    @staticmethod
    def add_cli_arguments(subparsers) -> None:
        """Add config subcommands to the argument parser.

        Args:
            subparsers: The subparsers object to add commands to
        """
        config_parser = subparsers.add_parser("config", help="Manage user configuration")
        config_subparsers = config_parser.add_subparsers(dest="config_command", help="Configuration commands")

        # config init
        init_parser = config_subparsers.add_parser(
            "init",
            help="Create the configuration file from the template",
            description="Write a commented configuration file with every default spelled out.",
        )
        init_parser.add_argument("--force", action="store_true", help="Overwrite an existing file")

        # config show
        config_subparsers.add_parser(
            "show",
            help="Display the effective configuration",
            description="Display the configuration after defaults are applied.",
        )

        # config path
        config_subparsers.add_parser(
            "path",
            help="Show configuration file location",
            description="Show the file paths for the configuration file and directory.",
        )

        # config template
        config_subparsers.add_parser(
            "template",
            help="Dump a starter configuration template to stdout",
            description="Print a commented YAML template to stdout that can be redirected to a config file.",
        )

    @staticmethod
    def process_cli_command(args: argparse.Namespace, config: Config) -> None:
        """Process config CLI commands.

        Args:
            args: Parsed command-line arguments
            config: Config instance to operate on
        """
        if args.config_command is None:
            message("Usage: clubhouse config <command>", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            message("", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            message("Available commands:", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            message("  init       Create the configuration file", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            message("  show       Display the effective configuration", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            message("  path       Show configuration file location", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            message("  template   Dump starter template to stdout", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            return
        elif args.config_command == "init":
            config.initialize(force=getattr(args, "force", False))
        elif args.config_command == "show":
            ConfigCommands.display(config)
        elif args.config_command == "path":
            ConfigCommands.show_location(config)
        elif args.config_command == "template":
            ConfigCommands.template()
        else:
            message("Unknown config command", MessageType.ERROR, VerbosityLevel.ALWAYS)
            sys.exit(1)

    @staticmethod
    def display(config: Config) -> None:
        """Display the effective configuration.

        Args:
            config: Config instance
        """
        config_data = config.read()

        source = str(config.config_file) if config.exists() else "built-in defaults"
        message(f"\n=== Configuration ({source}) ===\n", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        git_config = config_data.get("git", {})
        message("git:", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message(f"  executable:       {git_config.get('executable')}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message(f"  max_output_bytes: {git_config.get('max_output_bytes')}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        branches = git_config.get("base_branches") or []
        message(
            f"  base_branches:    {' -> '.join(branches) if branches else '(none, HEAD is used)'}",
            MessageType.NORMAL,
            VerbosityLevel.ALWAYS,
        )

        agents_config = config_data.get("agents", {})
        message("\nagents:", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message(f"  default_color:    {agents_config.get('default_color')}", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        message("", MessageType.NORMAL, VerbosityLevel.ALWAYS)

    @staticmethod
    def template() -> None:
        """Dump a starter configuration template to stdout."""
        print(Config.generate_template())

    @staticmethod
    def show_location(config: Config) -> None:
        """Show the location of the configuration file and directory.

        Args:
            config: Config instance
        """
        message("\nConfiguration Locations:\n", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        message(f"  Config directory: {config.config_directory}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message(f"  Config file:      {config.config_file}", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        message("\nStatus:", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        if config.config_file.exists():
            message("  Config file exists", MessageType.SUCCESS, VerbosityLevel.ALWAYS)
        else:
            message("  Config file does not exist (defaults in use)", MessageType.WARNING, VerbosityLevel.ALWAYS)

        message("", MessageType.NORMAL, VerbosityLevel.ALWAYS)
