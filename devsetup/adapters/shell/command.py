"""
Subprocess runner — the single place where setup commands hit the shell.

Commands are executed without a shell (argument lists only). Output is
captured and trimmed; failures become ``CommandError``.
"""

from __future__ import annotations

import logging
import subprocess
import time
from collections.abc import Sequence

from devsetup.adapters.base import CommandError, CommandResult, CommandRunner

logger = logging.getLogger(__name__)

_OUTPUT_LIMIT = 2000


class SubprocessRunner(CommandRunner):
    """Run commands with ``subprocess.run`` and capture output.

    Args:
        timeout: Seconds before a command is killed (default: 600,
            package installs can be slow).
        env: Optional environment for child processes.
    """

    def __init__(self, timeout: float = 600, env: dict[str, str] | None = None):
        self._timeout = timeout
        self._env = env

    def run(self, executable: str, args: Sequence[str] = ()) -> CommandResult:
        cmd = [executable, *args]
        logger.debug("Executing: %s", " ".join(cmd))
        start = time.monotonic()

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                env=self._env,
            )
        except FileNotFoundError as e:
            raise CommandError(cmd, 127, stderr=f"{executable}: command not found") from e
        except subprocess.TimeoutExpired as e:
            raise CommandError(cmd, None, stderr=f"timed out after {self._timeout}s") from e

        elapsed_ms = int((time.monotonic() - start) * 1000)
        stdout = (result.stdout or "")[-_OUTPUT_LIMIT:]
        stderr = (result.stderr or "")[-_OUTPUT_LIMIT:]

        if result.returncode != 0:
            logger.debug("Command failed (exit %d): %s", result.returncode, " ".join(cmd))
            raise CommandError(cmd, result.returncode, stderr=stderr, stdout=stdout)

        return CommandResult(
            command=cmd,
            stdout=stdout.strip(),
            stderr=stderr.strip(),
            exit_code=result.returncode,
            duration_ms=elapsed_ms,
        )
