"""
Mock runner — universal test double for command execution.

Succeeds for everything by default. Individual executables (or full
command lines) can be configured to fail, either always or for the
first N calls, and every call is logged for assertions.
"""

from __future__ import annotations

from collections.abc import Sequence

from devsetup.adapters.base import CommandError, CommandResult, CommandRunner


class MockRunner(CommandRunner):
    """Recording command runner for tests."""

    def __init__(self, default_stdout: str = "[mock] ok"):
        self._default_stdout = default_stdout
        self._failures: dict[str, tuple[int, str, int | None]] = {}
        self._outputs: dict[str, str] = {}
        self._call_log: list[list[str]] = []

    @property
    def call_log(self) -> list[list[str]]:
        """Every command line this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def calls_for(self, executable: str) -> list[list[str]]:
        return [c for c in self._call_log if c[0] == executable]

    def set_output(self, key: str, stdout: str) -> None:
        """Return ``stdout`` for an executable or a full command line."""
        self._outputs[key] = stdout

    def set_failure(
        self,
        key: str,
        exit_code: int = 1,
        stderr: str = "mock failure",
        times: int | None = None,
    ) -> None:
        """Make an executable (or full command line) fail.

        Args:
            key: Executable name (``"brew"``) or joined command line
                (``"brew install git"``).
            times: Fail only for the first ``times`` calls; None = always.
        """
        self._failures[key] = (exit_code, stderr, times)

    def run(self, executable: str, args: Sequence[str] = ()) -> CommandResult:
        cmd = [executable, *args]
        self._call_log.append(cmd)
        line = " ".join(cmd)

        for key in (line, executable):
            if key not in self._failures:
                continue
            exit_code, stderr, times = self._failures[key]
            if times is None:
                raise CommandError(cmd, exit_code, stderr=stderr)
            if times > 0:
                self._failures[key] = (exit_code, stderr, times - 1)
                raise CommandError(cmd, exit_code, stderr=stderr)

        stdout = self._outputs.get(line, self._outputs.get(executable, self._default_stdout))
        return CommandResult(command=cmd, stdout=stdout)

    def reset(self) -> None:
        """Clear call log and configured behaviour."""
        self._call_log.clear()
        self._failures.clear()
        self._outputs.clear()
