"""
Command runners — how the setup engine talks to the outside world.

    from devsetup.adapters import CommandRunner, SubprocessRunner, MockRunner
"""

from devsetup.adapters.base import CommandError, CommandResult, CommandRunner
from devsetup.adapters.mock import MockRunner
from devsetup.adapters.shell.command import SubprocessRunner

__all__ = [
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "MockRunner",
    "SubprocessRunner",
]
