"""
Setup context — the state of one provisioning run.

A single ``SetupContext`` is created at run start, handed by reference
to every pipeline step, and discarded after the summary is printed.
There is no module-level instance: whoever starts a run owns it.

    - ``platform`` is fixed at construction.
    - ``task_results`` is append-only; use ``add_result``.
    - ``metrics[name]`` belongs to the step running task ``name``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from devsetup.core.detection.environment import EnvironmentProbe
from devsetup.core.models.setup import (
    DevTool,
    Editor,
    PackageManager,
    Platform,
    PreflightResult,
)
from devsetup.core.models.task import TaskResult
from devsetup.core.observability.metrics import TaskMetrics, summarize


@dataclass
class SetupContext:
    """Mutable state for a single run."""

    platform: Platform
    package_manager: PackageManager | None = None
    available_package_managers: set[PackageManager] = field(default_factory=set)
    installed_tools: set[DevTool] = field(default_factory=set)
    installed_editors: set[Editor] = field(default_factory=set)
    task_results: list[TaskResult] = field(default_factory=list)
    preflight: PreflightResult | None = None
    metrics: dict[str, TaskMetrics] = field(default_factory=dict)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "platform" and "platform" in self.__dict__:
            raise AttributeError("platform is fixed once the context is created")
        super().__setattr__(name, value)

    def add_result(self, result: TaskResult) -> TaskResult:
        self.task_results.append(result)
        return result

    def metrics_for(self, task_name: str) -> TaskMetrics:
        if task_name not in self.metrics:
            self.metrics[task_name] = TaskMetrics(name=task_name)
        return self.metrics[task_name]

    def results_with_status(self, status: str) -> list[TaskResult]:
        return [r for r in self.task_results if r.status == status]

    def to_dict(self) -> dict[str, Any]:
        return {
            "platform": self.platform.value,
            "package_manager": self.package_manager.value if self.package_manager else None,
            "available_package_managers": sorted(m.value for m in self.available_package_managers),
            "installed_tools": sorted(t.value for t in self.installed_tools),
            "installed_editors": sorted(e.value for e in self.installed_editors),
            "preflight": self.preflight.model_dump(mode="json") if self.preflight else None,
            "task_results": [r.model_dump(mode="json") for r in self.task_results],
            "metrics": summarize(self.metrics),
        }


def create_context(probe: EnvironmentProbe | None = None) -> SetupContext:
    """Detect the platform and package manager and build a fresh context."""
    if probe is None:
        from devsetup.adapters.shell.command import SubprocessRunner

        probe = EnvironmentProbe(SubprocessRunner(timeout=15))

    platform = probe.detect_platform()
    available = probe.enumerate_available_package_managers(platform)
    return SetupContext(
        platform=platform,
        package_manager=probe.select_package_manager(platform, available),
        available_package_managers=available,
    )


def validate_context(context: object) -> bool:
    """Structural check of a context before a run starts."""
    if not isinstance(context, SetupContext):
        return False
    if not isinstance(context.platform, Platform):
        return False
    if context.package_manager is not None and not isinstance(
        context.package_manager, PackageManager
    ):
        return False
    return (
        isinstance(context.installed_tools, set)
        and isinstance(context.installed_editors, set)
        and isinstance(context.task_results, list)
        and isinstance(context.metrics, dict)
    )
