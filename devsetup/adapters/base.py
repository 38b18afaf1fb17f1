"""
Runner base — the contract between the setup engine and the shell.

Leaf tasks never call ``subprocess`` themselves. They go through a
``CommandRunner``, which either returns a ``CommandResult`` or raises
``CommandError``. Swapping the runner (see ``devsetup.adapters.mock``)
is how tests and dry runs stay free of side effects.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from pydantic import BaseModel


class CommandResult(BaseModel):
    """Captured output of a command that exited successfully."""

    command: list[str]
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0
    duration_ms: int = 0


class CommandError(Exception):
    """A command exited nonzero, could not be found, or timed out.

    ``exit_code`` is 127 for a missing executable and None for a timeout.
    """

    def __init__(
        self,
        command: Sequence[str],
        exit_code: int | None,
        stderr: str = "",
        stdout: str = "",
    ):
        self.command = list(command)
        self.exit_code = exit_code
        self.stderr = stderr
        self.stdout = stdout
        if exit_code is None:
            detail = "timed out"
        else:
            detail = f"exit code {exit_code}"
        message = f"{' '.join(self.command)} failed ({detail})"
        if stderr:
            message += f": {stderr.strip()[:200]}"
        super().__init__(message)

    @property
    def command_line(self) -> str:
        return " ".join(self.command)


class CommandRunner(ABC):
    """Abstract command runner.

    To create a new runner:
        1. Subclass CommandRunner
        2. Implement ``run``; raise CommandError on any failure
    """

    @abstractmethod
    def run(self, executable: str, args: Sequence[str] = ()) -> CommandResult:
        """Run ``executable`` with ``args`` and return its output.

        Raises:
            CommandError: nonzero exit, missing binary, or timeout.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"
