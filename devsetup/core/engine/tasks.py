"""
Setup tasks — the standard provisioning sequence.

    Preflight Checks        leaf
    OS Detection            leaf, fail-fast
    Package Manager Check   leaf
    Install Core Tools      group, one leaf per tool
    Install Editors         group, one leaf per editor
    Corepack Setup          leaf, fail-fast

Tools and editors pass through the skip lists, then the policy filter,
then an availability check, and only then reach the retrying executor.
Their failures are recorded and the run moves on; OS detection and the
Node toolchain abort it.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Sequence
from functools import partial

from devsetup.adapters.base import CommandRunner
from devsetup.core.config.loader import SetupConfig
from devsetup.core.context import SetupContext, validate_context
from devsetup.core.data.catalog import (
    PACKAGE_MANAGERS,
    TOOLCHAIN_COMMAND,
    core_tools_for,
    editors_for,
    group_by_priority,
    install_command,
    manual_instruction,
    validate_catalog,
)
from devsetup.core.detection.environment import EnvironmentProbe
from devsetup.core.detection.preflight import PreflightChecker
from devsetup.core.engine.pipeline import (
    GroupStep,
    LeafStep,
    RunOutcome,
    Step,
    StepRunner,
)
from devsetup.core.errors import (
    ErrorKind,
    SetupError,
    command_execution_error,
    context_error,
    editor_installation_error,
    os_detection_error,
    package_manager_error,
    tool_installation_error,
    tool_unavailable_error,
)
from devsetup.core.models.setup import Candidate, DevTool, Editor
from devsetup.core.models.task import TaskResult
from devsetup.core.observability.metrics import TaskMetrics
from devsetup.core.observability.recorder import EventRecorder, LoggingRecorder
from devsetup.core.policy import PolicyFilter
from devsetup.core.reliability.retry import RetryingExecutor, RetryOptions, retries_for

logger = logging.getLogger(__name__)

PREFLIGHT = "Preflight Checks"
OS_DETECTION = "OS Detection"
PACKAGE_MANAGER_CHECK = "Package Manager Check"
INSTALL_CORE_TOOLS = "Install Core Tools"
INSTALL_EDITORS = "Install Editors"
COREPACK_SETUP = "Corepack Setup"

CONTEXT_VALIDATION = "Context Validation"
CATALOG_VALIDATION = "Catalog Validation"


def _dry_run_message(command: Sequence[str]) -> str:
    return f"Dry run: would run `{' '.join(command)}`"


class SetupPipeline:
    """Compose probes, policy, retries and classification into one run.

    Args:
        config: Validated setup options.
        runner: Command runner used by every leaf.
        probe: Environment probe (defaults to one over ``runner``).
        preflight: Preflight checker (defaults to real host probes).
        executor: Retrying executor (defaults to ``time.sleep`` backoff).
        recorder: Event sink shared by all components.
        clock: Monotonic clock for timings.
    """

    def __init__(
        self,
        config: SetupConfig,
        runner: CommandRunner,
        probe: EnvironmentProbe | None = None,
        preflight: PreflightChecker | None = None,
        executor: RetryingExecutor | None = None,
        recorder: EventRecorder | None = None,
        clock: Callable[[], float] = time.monotonic,
        policy_filter: PolicyFilter | None = None,
    ):
        self._config = config
        self._runner = runner
        self._recorder = recorder or LoggingRecorder("devsetup.pipeline")
        self._probe = probe or EnvironmentProbe(runner)
        self._preflight = preflight or PreflightChecker(recorder=self._recorder)
        self._executor = executor or RetryingExecutor(recorder=self._recorder)
        self._clock = clock
        self._policy_filter = policy_filter or PolicyFilter()
        self._step_runner = StepRunner(recorder=self._recorder, clock=clock)

    # ── Sequence ────────────────────────────────────────────────

    def steps(self) -> list[Step]:
        return [
            LeafStep(PREFLIGHT, self._run_preflight),
            LeafStep(OS_DETECTION, self._detect_os, fail_fast=True),
            LeafStep(PACKAGE_MANAGER_CHECK, self._verify_package_manager),
            GroupStep(INSTALL_CORE_TOOLS, self._core_tool_steps),
            GroupStep(INSTALL_EDITORS, self._editor_steps),
            LeafStep(COREPACK_SETUP, self._configure_toolchain, fail_fast=True),
        ]

    def run(self, context: SetupContext) -> RunOutcome:
        start = self._clock()
        self._recorder.record(
            "INFO",
            "Starting development environment setup",
            platform=getattr(context, "platform", None),
            dry_run=self._config.dry_run,
        )

        ran: list[str] = []
        try:
            self._validate(context)
            self._step_runner.run(self.steps(), context, ran)
        except SetupError as e:
            duration_ms = int((self._clock() - start) * 1000)
            self._recorder.record(
                "ERROR",
                "Setup failed",
                code=e.code,
                error=e.message,
                duration_ms=duration_ms,
            )
            return RunOutcome(
                status="aborted",
                context=context,
                error=e,
                duration_ms=duration_ms,
                steps_run=ran,
            )

        duration_ms = int((self._clock() - start) * 1000)
        self._recorder.record(
            "INFO",
            "Setup completed",
            duration_ms=duration_ms,
            installed_tools=sorted(t.value for t in context.installed_tools),
            installed_editors=sorted(e.value for e in context.installed_editors),
            succeeded=len(context.results_with_status("success")),
            total=len(context.task_results),
        )
        return RunOutcome(
            status="completed",
            context=context,
            duration_ms=duration_ms,
            steps_run=ran,
        )

    def _validate(self, context: SetupContext) -> None:
        if not validate_context(context):
            error = context_error("Unable to initialize setup context")
            if isinstance(getattr(context, "task_results", None), list):
                context.task_results.append(
                    TaskResult.failure(CONTEXT_VALIDATION, error.message, error=error.to_dict())
                )
            raise error

        try:
            validate_catalog()
        except SetupError as e:
            context.add_result(TaskResult.failure(CATALOG_VALIDATION, e.message, error=e.to_dict()))
            raise

    def _options(self, label: str, kind: ErrorKind) -> RetryOptions:
        return RetryOptions(
            retries=retries_for(kind, self._config.max_retries),
            backoff_base_ms=self._config.backoff_base_ms,
            dry_run=self._config.dry_run,
            label=label,
        )

    # ── Leaves ──────────────────────────────────────────────────

    def _run_preflight(self, context: SetupContext, metrics: TaskMetrics) -> TaskResult:
        if context.preflight is not None:
            return TaskResult.skip(PREFLIGHT, "Already checked")
        metrics.inc_attempts()
        context.preflight = self._preflight.run()
        warnings = context.preflight.warnings
        message = f"{len(warnings)} warning(s)" if warnings else None
        return TaskResult.success(PREFLIGHT, message)

    def _detect_os(self, context: SetupContext, metrics: TaskMetrics) -> TaskResult:
        metrics.inc_attempts()
        detected = self._probe.detect_platform()
        if detected != context.platform:
            raise os_detection_error(
                f"context platform {context.platform} does not match detected {detected}",
                context_platform=context.platform.value,
                detected_platform=detected.value,
            )
        self._recorder.record("INFO", "Operating system detected", platform=detected.value)
        return TaskResult.success(OS_DETECTION, f"{detected.display_name} detected")

    def _verify_package_manager(self, context: SetupContext, metrics: TaskMetrics) -> TaskResult:
        manager = context.package_manager
        instruction = manual_instruction(context.platform)
        if manager is None:
            raise package_manager_error(
                "detection",
                "unknown",
                "No package manager available for this platform",
                help=f"Install {instruction.name} from {instruction.url}",
                platform=context.platform.value,
            )

        probe = PACKAGE_MANAGERS[manager].probe

        def action() -> str:
            metrics.inc_attempts()
            return self._runner.run(probe.executable, probe.args).stdout

        version = self._executor.execute(
            action,
            None,
            self._options(f"{manager} verification", ErrorKind.PACKAGE_MANAGER),
        )
        if self._config.dry_run:
            return TaskResult.skip(PACKAGE_MANAGER_CHECK, _dry_run_message(probe.render()))

        if version is None:
            error = package_manager_error(
                "verification",
                manager.value,
                f"{manager} is not installed. Please install from: {instruction.url}",
                attempts=metrics.attempts,
            )
            self._recorder.record("WARNING", error.message, manager=manager.value)
            return TaskResult.skip(PACKAGE_MANAGER_CHECK, error.message, error=error.to_dict())

        first_line = version.strip().splitlines()[0] if version.strip() else ""
        return TaskResult.success(PACKAGE_MANAGER_CHECK, f"{manager} {first_line}".strip())

    def _configure_toolchain(self, context: SetupContext, metrics: TaskMetrics) -> TaskResult:
        command = TOOLCHAIN_COMMAND.render()
        if self._config.dry_run:
            return TaskResult.skip(COREPACK_SETUP, _dry_run_message(command))

        node_present = DevTool.NODE in context.installed_tools or self._probe.is_tool_available("node")
        if not node_present:
            raise tool_unavailable_error("node", required_by="corepack")

        failures: list[Exception] = []

        def action() -> bool:
            metrics.inc_attempts()
            try:
                self._runner.run(command[0], command[1:])
            except Exception as e:
                failures.append(e)
                raise
            return True

        self._recorder.record("INFO", "Enabling corepack")
        ok = self._executor.execute(
            action, False, self._options("corepack enable", ErrorKind.COMMAND_EXECUTION)
        )
        if not ok:
            last = failures[-1] if failures else None
            raise command_execution_error(
                " ".join(command),
                getattr(last, "exit_code", 1),
                getattr(last, "stderr", "") or (str(last) if last else ""),
                attempts=metrics.attempts,
            )
        return TaskResult.success(COREPACK_SETUP, "corepack enabled")

    # ── Groups ──────────────────────────────────────────────────

    def _core_tool_steps(self, context: SetupContext) -> list[LeafStep]:
        candidates = core_tools_for(context.platform)
        essential, optional = group_by_priority([c.identifier for c in candidates])
        self._recorder.record(
            "INFO",
            "Installing core tools",
            platform=context.platform.value,
            essential=essential,
            optional=optional,
        )
        return self._candidate_steps(
            "Core Tools Installation",
            candidates,
            skip=[t.value for t in self._config.skip_tools],
            warning_status="failed",
        )

    def _editor_steps(self, context: SetupContext) -> list[LeafStep]:
        return self._candidate_steps(
            "Editors Installation",
            editors_for(context.platform),
            skip=[e.value for e in self._config.skip_editors],
            warning_status="skipped",
        )

    def _candidate_steps(
        self,
        group_result_name: str,
        candidates: Iterable[Candidate],
        skip: Sequence[str],
        warning_status: str,
    ) -> list[LeafStep]:
        wanted: list[Candidate] = []
        for candidate in candidates:
            if candidate.identifier in skip:
                self._recorder.record("INFO", f"Skipping {candidate.display_name} installation")
                continue
            wanted.append(candidate)

        if not wanted:
            return [self._constant_step(group_result_name, "Skipped by configuration")]

        decision = self._policy_filter.filter(wanted, self._config.policy)
        logger.debug("%s accepted: %s", group_result_name, decision.accepted_ids)
        for candidate in decision.excluded:
            self._recorder.record("INFO", f"{candidate.display_name} not in allowlist; skipping")

        if not decision.accepted and not decision.blocked:
            return [self._constant_step(group_result_name, "Policy enforcement")]

        steps: list[LeafStep] = []
        for candidate in wanted:
            blocked = decision.blocked_result_for(candidate)
            if blocked is not None:
                steps.append(LeafStep(candidate.task_name, lambda ctx, m, r=blocked: r))
            elif candidate in decision.accepted:
                steps.append(
                    LeafStep(
                        candidate.task_name,
                        partial(self._install_candidate, candidate),
                        warning_status=warning_status,
                    )
                )
        return steps

    @staticmethod
    def _constant_step(name: str, message: str) -> LeafStep:
        return LeafStep(name, lambda ctx, m: TaskResult.skip(name, message))

    def _install_candidate(
        self,
        candidate: Candidate,
        context: SetupContext,
        metrics: TaskMetrics,
    ) -> TaskResult:
        is_tool = candidate.kind == "tool"
        identifier = DevTool(candidate.identifier) if is_tool else Editor(candidate.identifier)
        installed = context.installed_tools if is_tool else context.installed_editors

        if self._probe.is_tool_available(candidate.detection_command):
            installed.add(identifier)
            return TaskResult.skip(candidate.task_name, "Already installed")

        manager = context.package_manager
        command = install_command(context.platform, manager, candidate) if manager else None
        if command is None:
            raise self._install_error(
                candidate, context, "no supported package manager; install it manually"
            )
        logger.debug("Install command for %s: %s", candidate.identifier, " ".join(command))

        failures: list[Exception] = []

        def action() -> bool:
            metrics.inc_attempts()
            try:
                self._runner.run(command[0], command[1:])
            except Exception as e:
                failures.append(e)
                raise
            return True

        kind = ErrorKind.TOOL_INSTALLATION if is_tool else ErrorKind.EDITOR_INSTALLATION
        start = self._clock()
        ok = self._executor.execute(
            action, False, self._options(f"{candidate.display_name} install", kind)
        )
        if self._config.dry_run:
            return TaskResult.skip(candidate.task_name, _dry_run_message(command))

        if not ok:
            reason = str(failures[-1]) if failures else "install command failed"
            raise self._install_error(
                candidate,
                context,
                reason,
                command=" ".join(command),
                attempts=metrics.attempts,
            )

        installed.add(identifier)
        self._recorder.record(
            "INFO",
            f"{candidate.display_name} installed successfully",
            candidate=candidate.identifier,
            duration_ms=int((self._clock() - start) * 1000),
        )
        return TaskResult.success(candidate.task_name, f"Installed with {manager}")

    @staticmethod
    def _install_error(candidate: Candidate, context: SetupContext, reason: str, **extra) -> SetupError:
        factory = tool_installation_error if candidate.kind == "tool" else editor_installation_error
        return factory(candidate.display_name, context.platform.value, reason, **extra)


def run_pipeline(
    context: SetupContext,
    config: SetupConfig,
    runner: CommandRunner | None = None,
    **components,
) -> RunOutcome:
    """Run the standard setup sequence over ``context``.

    ``components`` are forwarded to ``SetupPipeline`` (probe, preflight,
    executor, recorder, clock).
    """
    if runner is None:
        from devsetup.adapters.shell.command import SubprocessRunner

        runner = SubprocessRunner()
    return SetupPipeline(config, runner, **components).run(context)
