"""
L3 Detection — Preflight checks.

Three independent signals gathered once before any install work:

    privilege   root / administrator rights
    disk        free space on the system volume (MB)
    network     reachability of the package registry

Each unmet condition adds a warning. A probe that blows up degrades to
"unknown" (disk) or False (privilege, network); the checker itself
never raises.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Callable

from devsetup.core.detection.network import DEFAULT_TIMEOUT, is_network_reachable
from devsetup.core.models.setup import PreflightResult
from devsetup.core.observability.recorder import EventRecorder, LoggingRecorder

logger = logging.getLogger(__name__)

LOW_DISK_THRESHOLD_MB = 2048

WARN_NO_PRIVILEGE = "Elevated privileges not detected; some installs may fail."
WARN_LOW_DISK = "Low disk space detected (<2GB)."
WARN_NO_NETWORK = "Network reachability check failed; offline mode recommended."


def detect_privilege() -> bool:
    """True if the process runs as root (POSIX) or as an administrator (Windows)."""
    if os.name == "nt":
        import ctypes

        return bool(ctypes.windll.shell32.IsUserAnAdmin())
    return os.geteuid() == 0


def detect_disk_space_mb(path: str | None = None) -> int | None:
    """Free space on the system volume in MB, or None if it can't be read."""
    target = path or os.path.abspath(os.sep)
    try:
        usage = shutil.disk_usage(target)
    except OSError as e:
        logger.debug("Disk usage query failed for %s: %s", target, e)
        return None
    return usage.free // (1024 * 1024)


class PreflightChecker:
    """Aggregate privilege, disk and network signals into a PreflightResult.

    All probes are injectable so tests can simulate any host.
    """

    def __init__(
        self,
        privilege_probe: Callable[[], bool] = detect_privilege,
        disk_probe: Callable[[], int | None] = detect_disk_space_mb,
        network_probe: Callable[[float], bool] | None = None,
        recorder: EventRecorder | None = None,
        threshold_mb: int = LOW_DISK_THRESHOLD_MB,
        network_timeout: float = DEFAULT_TIMEOUT,
    ):
        self._privilege_probe = privilege_probe
        self._disk_probe = disk_probe
        self._network_probe = network_probe or (lambda timeout: is_network_reachable(timeout=timeout))
        self._recorder = recorder or LoggingRecorder(__name__)
        self._threshold_mb = threshold_mb
        self._network_timeout = network_timeout

    def run(self) -> PreflightResult:
        warnings: list[str] = []

        has_sudo = self._safe(self._privilege_probe, False, "privilege")
        if not has_sudo:
            warnings.append(WARN_NO_PRIVILEGE)

        disk_space_mb = self._safe(self._disk_probe, None, "disk")
        if disk_space_mb is not None and disk_space_mb < self._threshold_mb:
            warnings.append(WARN_LOW_DISK)

        network_reachable = self._safe(
            lambda: self._network_probe(self._network_timeout), False, "network"
        )
        if not network_reachable:
            warnings.append(WARN_NO_NETWORK)

        result = PreflightResult(
            has_sudo=bool(has_sudo),
            disk_space_mb=disk_space_mb,
            network_reachable=bool(network_reachable),
            warnings=tuple(warnings),
        )
        self._recorder.record(
            "INFO",
            "Preflight checks complete",
            has_sudo=result.has_sudo,
            disk_space_mb=result.disk_space_mb,
            network_reachable=result.network_reachable,
        )
        for warning in result.warnings:
            self._recorder.record("WARNING", warning)
        return result

    def _safe(self, probe, default, signal: str):
        try:
            return probe()
        except Exception as e:
            logger.debug("Preflight %s probe failed: %s", signal, e)
            return default
