"""Console output system for clubhouse.

All user-facing and diagnostic text goes through :func:`message`, which
filters by verbosity and colors by message type.
"""

import sys
from enum import Enum, IntEnum


class MessageType(Enum):
    """Kind of message, used for coloring and stream selection."""

    NORMAL = "normal"
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    DEBUG = "debug"


class VerbosityLevel(IntEnum):
    """Minimum verbosity (number of -v flags) required to show a message."""

    ALWAYS = 0
    VERBOSE = 1
    EXTRA_VERBOSE = 2
    DEBUG = 3


_COLORS = {
    MessageType.NORMAL: "",
    MessageType.INFO: "\033[36m",
    MessageType.SUCCESS: "\033[32m",
    MessageType.WARNING: "\033[33m",
    MessageType.ERROR: "\033[31m",
    MessageType.DEBUG: "\033[90m",
}
_RESET = "\033[0m"


class OutputManager:
    """Holds output settings for the running process."""

    def __init__(self, verbosity: int = 0, use_color: bool = False):
        self.verbosity = verbosity
        self.use_color = use_color

    def should_show(self, level: VerbosityLevel) -> bool:
        return self.verbosity >= level

    def format(self, text: str, msg_type: MessageType) -> str:
        color = _COLORS.get(msg_type, "")
        if not self.use_color or not color:
            return text
        return f"{color}{text}{_RESET}"

    def message(
        self,
        text: str,
        msg_type: MessageType = MessageType.NORMAL,
        level: VerbosityLevel = VerbosityLevel.ALWAYS,
    ) -> None:
        """Print *text* if the current verbosity allows it.

        Warnings and errors go to stderr, everything else to stdout.
        """
        if not self.should_show(level):
            return

        stream = sys.stderr if msg_type in (MessageType.WARNING, MessageType.ERROR) else sys.stdout
        print(self.format(text, msg_type), file=stream)


_output = OutputManager()


def get_output() -> OutputManager:
    """Return the process-wide output manager."""
    return _output


def message(
    text: str,
    msg_type: MessageType = MessageType.NORMAL,
    level: VerbosityLevel = VerbosityLevel.ALWAYS,
) -> None:
    """Emit a message through the process-wide output manager."""
    _output.message(text, msg_type, level)
