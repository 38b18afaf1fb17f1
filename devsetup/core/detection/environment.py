"""
L3 Detection — Platform and package manager probing.

Read-only probes. Nothing here raises: an unknown OS resolves to
linux, and a manager whose probe fails is simply not available.
"""

from __future__ import annotations

import logging
import platform as _platform
import shutil
from collections.abc import Callable, Iterable

from devsetup.adapters.base import CommandRunner
from devsetup.core.data.catalog import PACKAGE_MANAGERS, managers_for
from devsetup.core.models.setup import PackageManager, Platform

logger = logging.getLogger(__name__)

_SYSTEM_MAP: dict[str, Platform] = {
    "windows": Platform.WINDOWS,
    "win32": Platform.WINDOWS,
    "darwin": Platform.MACOS,
    "linux": Platform.LINUX,
}


def platform_from_system(system: str) -> Platform:
    """Map a ``platform.system()`` style string to a Platform.

    Unrecognised hosts (FreeBSD, Java, "") are treated as linux.
    """
    return _SYSTEM_MAP.get((system or "").strip().lower(), Platform.LINUX)


def select_package_manager(
    platform: Platform,
    available: Iterable[PackageManager],
) -> PackageManager | None:
    """First manager in the platform's priority order that is available."""
    present = set(available)
    for manager in managers_for(platform):
        if manager in present:
            return manager
    return None


class EnvironmentProbe:
    """Detect the host platform and its package managers.

    Args:
        runner: Used to run manager version probes.
        system: Override for ``platform.system()`` (tests, simulation).
        which: PATH lookup, defaults to ``shutil.which``.
    """

    def __init__(
        self,
        runner: CommandRunner,
        system: str | None = None,
        which: Callable[[str], str | None] = shutil.which,
    ):
        self._runner = runner
        self._system = system
        self._which = which

    def detect_platform(self) -> Platform:
        system = self._system if self._system is not None else _platform.system()
        detected = platform_from_system(system)
        logger.debug("Platform %r → %s", system, detected)
        return detected

    def probe_package_manager(self, manager: PackageManager) -> bool:
        """True if the manager's version probe succeeds."""
        probe = PACKAGE_MANAGERS[manager].probe
        try:
            self._runner.run(probe.executable, probe.args)
        except Exception as e:
            logger.debug("Package manager %s not available: %s", manager, e)
            return False
        return True

    def enumerate_available_package_managers(self, platform: Platform) -> set[PackageManager]:
        """Probe only the managers that belong to ``platform``."""
        return {m for m in managers_for(platform) if self.probe_package_manager(m)}

    def select_package_manager(
        self,
        platform: Platform,
        available: Iterable[PackageManager],
    ) -> PackageManager | None:
        return select_package_manager(platform, available)

    def is_tool_available(self, command: str) -> bool:
        """Whether ``command`` resolves on PATH."""
        try:
            return self._which(command) is not None
        except Exception:
            return False
