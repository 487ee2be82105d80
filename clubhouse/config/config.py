"""User configuration for clubhouse.

Lives in ``~/.clubhouse/config.yaml``. Every key is optional; anything
left out falls back to :data:`DEFAULT_CONFIG`.
"""

import copy
import sys
from pathlib import Path
from typing import Any, TypedDict

import yaml

from clubhouse.output import MessageType, VerbosityLevel, message
from clubhouse.vcs.shell import (
    DEFAULT_BASE_BRANCHES,
    DEFAULT_GIT_EXECUTABLE,
    DEFAULT_MAX_OUTPUT_BYTES,
    GitShell,
)


class GitSection(TypedDict, total=False):
    """Type definition for the ``git`` section."""

    executable: str
    max_output_bytes: int
    base_branches: list[str]


class AgentsSection(TypedDict, total=False):
    """Type definition for the ``agents`` section."""

    default_color: str


class ConfigData(TypedDict, total=False):
    """Type definition for the configuration structure."""

    git: GitSection
    agents: AgentsSection


DEFAULT_CONFIG: ConfigData = {
    "git": {
        "executable": DEFAULT_GIT_EXECUTABLE,
        "max_output_bytes": DEFAULT_MAX_OUTPUT_BYTES,
        "base_branches": list(DEFAULT_BASE_BRANCHES),
    },
    "agents": {
        "default_color": "indigo",
    },
}

KNOWN_SECTIONS = ("git", "agents")


class ConfigError(Exception):
    """Exception raised for configuration validation errors.

    Can contain multiple error messages.
    """

    def __init__(self, errors: str | list[str]):
        """Initialize ConfigError.

        Args:
            errors: Single error message or list of error messages
        """
        if isinstance(errors, str):
            self.errors = [errors]
        else:
            self.errors = errors
        super().__init__(self._format_errors())

    def _format_errors(self) -> str:
        """Format errors for display."""
        if len(self.errors) == 1:
            return self.errors[0]
        else:
            error_list = "\n".join(f"  - {err}" for err in self.errors)
            return f"Configuration has {len(self.errors)} errors:\n{error_list}"


def _non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


class Config:
    """Manages the user configuration for clubhouse."""

    def __init__(self, config_dir: Path | None = None):
        """Initialize the Config manager.

        Args:
            config_dir: Optional custom config directory.
                       Defaults to ~/.clubhouse
        """
        if config_dir is None:
            config_dir = Path.home() / ".clubhouse"

        self.config_directory = config_dir
        self.config_file = self.config_directory / "config.yaml"

    def ensure_directories(self) -> None:
        """Create the config directory if it doesn't exist.

        Raises:
            SystemExit: If the directory cannot be created
        """
        try:
            self.config_directory.mkdir(parents=True, exist_ok=True)
            message(
                f"Ensured config directory exists: {self.config_directory}",
                MessageType.DEBUG,
                VerbosityLevel.DEBUG,
            )
        except PermissionError:
            message(
                f"Permission denied creating config directory: {self.config_directory}",
                MessageType.ERROR,
                VerbosityLevel.ALWAYS,
            )
            sys.exit(1)
        except OSError as e:
            message(f"Failed to create config directory: {e}", MessageType.ERROR, VerbosityLevel.ALWAYS)
            sys.exit(1)

    @staticmethod
    def validate(config: dict[str, Any]) -> list[str]:
        """Validate the configuration structure.

        Collects all validation errors before raising an exception.

        Args:
            config: The configuration dictionary to validate

        Returns:
            List of warnings (non-fatal issues)

        Raises:
            ConfigError: If the configuration is invalid, with all errors
        """
        errors: list[str] = []
        warnings: list[str] = []

        if not isinstance(config, dict):
            raise ConfigError("Configuration must be a mapping")

        for key in config:
            if key not in KNOWN_SECTIONS:
                warnings.append(f"Unknown configuration section '{key}' is ignored")

        # --- git ---
        if "git" in config:
            git_config = config["git"]
            if not isinstance(git_config, dict):
                errors.append("'git' must be a dictionary")
            else:
                if "executable" in git_config and not _non_empty_string(git_config["executable"]):
                    errors.append("'git.executable' must be a non-empty string")

                if "max_output_bytes" in git_config:
                    limit = git_config["max_output_bytes"]
                    if isinstance(limit, bool) or not isinstance(limit, int):
                        errors.append(
                            f"'git.max_output_bytes' must be an integer, got {type(limit).__name__}"
                        )
                    elif limit <= 0:
                        errors.append("'git.max_output_bytes' must be positive")

                if "base_branches" in git_config:
                    branches = git_config["base_branches"]
                    if not isinstance(branches, list):
                        errors.append("'git.base_branches' must be a list")
                    else:
                        for idx, name in enumerate(branches):
                            if not _non_empty_string(name):
                                errors.append(f"git.base_branches entry {idx} must be a non-empty string")
                        if not branches:
                            warnings.append("'git.base_branches' is empty; unpushed commits compare against HEAD")

        # --- agents ---
        if "agents" in config:
            agents_config = config["agents"]
            if not isinstance(agents_config, dict):
                errors.append("'agents' must be a dictionary")
            elif "default_color" in agents_config and not _non_empty_string(agents_config["default_color"]):
                errors.append("'agents.default_color' must be a non-empty string")

        if errors:
            raise ConfigError(errors)

        return warnings

    @staticmethod
    def with_defaults(config: dict[str, Any]) -> ConfigData:
        """Fill every section of *config* from :data:`DEFAULT_CONFIG`."""
        merged: dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)
        for section in KNOWN_SECTIONS:
            merged[section].update(config.get(section) or {})
        return merged

    def read(self) -> ConfigData:
        """Load the configuration file with error handling.

        A missing or empty file yields the defaults.

        Returns:
            The validated configuration with every section filled in

        Raises:
            SystemExit: If the file cannot be read or the config is invalid
        """
        if not self.exists():
            message(
                f"No configuration file at {self.config_file}, using defaults",
                MessageType.DEBUG,
                VerbosityLevel.DEBUG,
            )
            return self.with_defaults({})

        try:
            with open(self.config_file) as f:
                config = yaml.safe_load(f)
            if config is None:
                return self.with_defaults({})

            warnings = self.validate(config)
            for warning in warnings:
                message(f"Warning: {warning}", MessageType.WARNING, VerbosityLevel.ALWAYS)

            message(f"Configuration loaded from {self.config_file}", MessageType.DEBUG, VerbosityLevel.DEBUG)
            return self.with_defaults(config)
        except ConfigError as e:
            message(f"Invalid configuration - {e}", MessageType.ERROR, VerbosityLevel.ALWAYS)
            sys.exit(1)
        except yaml.YAMLError as e:
            message(f"Failed to parse configuration file: {e}", MessageType.ERROR, VerbosityLevel.ALWAYS)
            sys.exit(1)
        except OSError as e:
            message(f"Failed to read configuration file: {e}", MessageType.ERROR, VerbosityLevel.ALWAYS)
            sys.exit(1)

    def exists(self) -> bool:
        """Check if the configuration file exists.

        Returns:
            True if config file exists, False otherwise
        """
        return self.config_file.exists()

    def initialize(self, force: bool = False) -> None:
        """Write the commented template to the config file.

        Args:
            force: Overwrite an existing file

        Raises:
            SystemExit: If the file exists and *force* is not set
        """
        if self.exists() and not force:
            message(
                f"Configuration file already exists: {self.config_file} (use --force to overwrite)",
                MessageType.ERROR,
                VerbosityLevel.ALWAYS,
            )
            sys.exit(1)

        self.ensure_directories()
        try:
            self.config_file.write_text(self.generate_template())
        except OSError as e:
            message(f"Failed to write configuration file: {e}", MessageType.ERROR, VerbosityLevel.ALWAYS)
            sys.exit(1)
        message(f"Configuration initialized at {self.config_file}", MessageType.SUCCESS, VerbosityLevel.ALWAYS)

    def create_shell(self, config: ConfigData | None = None) -> GitShell:
        """Build the git adapter from the ``git`` section.

        Args:
            config: Already loaded configuration; read from disk when omitted
        """
        if config is None:
            config = self.read()
        git_config = config.get("git", {})
        return GitShell(
            executable=git_config.get("executable", DEFAULT_GIT_EXECUTABLE),
            max_output_bytes=git_config.get("max_output_bytes", DEFAULT_MAX_OUTPUT_BYTES),
            base_branches=git_config.get("base_branches", DEFAULT_BASE_BRANCHES),
        )

    def default_color(self, config: ConfigData | None = None) -> str:
        if config is None:
            config = self.read()
        return config.get("agents", {}).get("default_color", DEFAULT_CONFIG["agents"]["default_color"])

    @staticmethod
    def generate_template() -> str:
        """Generate a commented YAML template for a new configuration.

        Returns:
            Template string suitable for writing to stdout or a file
        """
        return f"""# clubhouse configuration
# Every key is optional; omitted keys use the values shown here.

git:
  # git executable name or absolute path
  executable: {DEFAULT_GIT_EXECUTABLE}
  # largest output accepted from a single git command (diffs, patches)
  max_output_bytes: {DEFAULT_MAX_OUTPUT_BYTES}
  # candidate main-line branches, probed in order
  base_branches:
{chr(10).join(f"    - {name}" for name in DEFAULT_BASE_BRANCHES)}

agents:
  # color for new agents when --color is not given
  default_color: indigo
"""
