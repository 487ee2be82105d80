"""CLI command extensions for clubhouse."""

from .agent_commands import AgentCommands
from .config_commands import ConfigCommands
from .settings_commands import SettingsCommands

__all__ = [
    "AgentCommands",
    "ConfigCommands",
    "SettingsCommands",
]
