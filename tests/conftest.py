"""
Shared test fixtures and configuration.
"""

from collections.abc import Callable, Iterable

import pytest

from devsetup.adapters.mock import MockRunner
from devsetup.core.config.loader import SetupConfig
from devsetup.core.context import SetupContext
from devsetup.core.detection.environment import EnvironmentProbe
from devsetup.core.detection.preflight import PreflightChecker
from devsetup.core.engine.tasks import SetupPipeline
from devsetup.core.models.setup import PackageManager, Platform
from devsetup.core.observability.recorder import MemoryRecorder
from devsetup.core.reliability.retry import RetryingExecutor

SYSTEM_NAMES = {
    Platform.WINDOWS: "Windows",
    Platform.MACOS: "Darwin",
    Platform.LINUX: "Linux",
}

DEFAULT_MANAGERS = {
    Platform.WINDOWS: PackageManager.CHOCOLATEY,
    Platform.MACOS: PackageManager.HOMEBREW,
    Platform.LINUX: PackageManager.APT,
}


def fake_which(present: Iterable[str] = ()) -> Callable[[str], str | None]:
    """PATH lookup that only knows the given commands."""
    known = set(present)
    return lambda command: f"/usr/bin/{command}" if command in known else None


@pytest.fixture
def runner() -> MockRunner:
    return MockRunner()


@pytest.fixture
def recorder() -> MemoryRecorder:
    return MemoryRecorder()


@pytest.fixture
def sleeps() -> list[float]:
    """Seconds passed to the executor's sleep, in order."""
    return []


@pytest.fixture
def make_pipeline(runner, recorder, sleeps):
    """Build a pipeline and a fresh context for a simulated host.

    Usage::

        pipeline, ctx = make_pipeline(Platform.MACOS, present={"git"})
    """

    def _make(
        platform: Platform = Platform.MACOS,
        present: Iterable[str] = (),
        config: SetupConfig | None = None,
        package_manager: PackageManager | None = ...,
        system: str | None = None,
    ) -> tuple[SetupPipeline, SetupContext]:
        manager = DEFAULT_MANAGERS[platform] if package_manager is ... else package_manager
        probe = EnvironmentProbe(
            runner,
            system=system or SYSTEM_NAMES[platform],
            which=fake_which(present),
        )
        preflight = PreflightChecker(
            privilege_probe=lambda: True,
            disk_probe=lambda: 50_000,
            network_probe=lambda timeout: True,
            recorder=recorder,
        )
        executor = RetryingExecutor(sleep=sleeps.append, recorder=recorder)
        pipeline = SetupPipeline(
            config or SetupConfig(),
            runner,
            probe=probe,
            preflight=preflight,
            executor=executor,
            recorder=recorder,
        )
        context = SetupContext(
            platform=platform,
            package_manager=manager,
            available_package_managers={manager} if manager else set(),
        )
        return pipeline, context

    return _make
