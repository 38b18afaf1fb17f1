"""
Engine pipeline — the step state machine.

A pipeline is an ordered list of steps. A step is either a leaf (one
unit of work) or a group (leaves built from the context and run one
after another). Nothing runs concurrently, so the order of task
results is the same on every run.

Leaf dispatch:

    returns TaskResult          → appended
    returns None                → nothing recorded (silently excluded)
    raises                      → classified into a SetupError
        severity == warning     → appended with the leaf's warning status, continue
        severity == error       → appended as failed, re-raised (run aborts)

A fail-fast leaf escalates every error it raises to severity ``error``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

from devsetup.core.context import SetupContext
from devsetup.core.errors import SetupError, classify
from devsetup.core.models.task import TaskResult, TaskStatus
from devsetup.core.observability.metrics import TaskMetrics
from devsetup.core.observability.recorder import EventRecorder, LoggingRecorder

logger = logging.getLogger(__name__)

LeafAction = Callable[[SetupContext, TaskMetrics], TaskResult | None]


@dataclass
class LeafStep:
    """A single unit of orchestrated work."""

    name: str
    action: LeafAction
    fail_fast: bool = False
    warning_status: TaskStatus = "failed"


@dataclass
class GroupStep:
    """Leaves built from the context and executed sequentially."""

    name: str
    build: Callable[[SetupContext], Sequence[LeafStep]]


Step = LeafStep | GroupStep


@dataclass
class RunOutcome:
    """Final state of a pipeline run."""

    status: Literal["completed", "aborted"]
    context: SetupContext
    error: SetupError | None = None
    duration_ms: int = 0
    steps_run: list[str] = field(default_factory=list)

    @property
    def completed(self) -> bool:
        return self.status == "completed"

    @property
    def task_results(self) -> list[TaskResult]:
        return self.context.task_results

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.task_results if r.status == "success")

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.task_results if r.status == "skipped")

    @property
    def failed(self) -> int:
        return sum(1 for r in self.task_results if r.status == "failed")

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "duration_ms": self.duration_ms,
            "succeeded": self.succeeded,
            "skipped": self.skipped,
            "failed": self.failed,
            "error": self.error.to_dict() if self.error else None,
            "context": self.context.to_dict(),
        }


def log_task_result(recorder: EventRecorder, result: TaskResult) -> None:
    """Record a task result at a level matching its status."""
    fields: dict[str, Any] = {"name": result.name, "status": result.status}
    if result.message:
        fields["detail"] = result.message
    if result.status == "success":
        recorder.record("INFO", f"Task completed: {result.name}", **fields)
    elif result.status == "skipped":
        recorder.record("WARNING", f"Task skipped: {result.name}", **fields)
    else:
        recorder.record("ERROR", f"Task failed: {result.name}", **fields)


class StepRunner:
    """Execute steps against a context.

    Args:
        recorder: Event sink for task results.
        clock: Monotonic seconds, used for per-task timing.
    """

    def __init__(
        self,
        recorder: EventRecorder | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._recorder = recorder or LoggingRecorder(__name__)
        self._clock = clock

    def run(
        self,
        steps: Sequence[Step],
        context: SetupContext,
        ran: list[str] | None = None,
    ) -> list[str]:
        """Run ``steps`` in order. Returns the names of the steps that ran.

        Names are appended to ``ran`` as each step starts, so a caller
        that passes its own list keeps the history when a step aborts.

        Raises:
            SetupError: the first error-severity failure.
        """
        if ran is None:
            ran = []
        for step in steps:
            ran.append(step.name)
            if isinstance(step, GroupStep):
                self.run_group(step, context)
            else:
                self.run_leaf(step, context)
        return ran

    def run_group(self, group: GroupStep, context: SetupContext) -> None:
        children = list(group.build(context))
        logger.debug("Group %s: %d leaf step(s)", group.name, len(children))
        for child in children:
            self.run_leaf(child, context)

    def run_leaf(self, step: LeafStep, context: SetupContext) -> TaskResult | None:
        metrics = context.metrics_for(step.name)
        start = self._clock()
        try:
            result = step.action(context, metrics)
        except Exception as exc:
            error = classify(exc)
            if step.fail_fast:
                error = error.escalated()
            metrics.duration_ms = int((self._clock() - start) * 1000)
            return self._record_failure(step, context, error, exc)

        metrics.duration_ms = int((self._clock() - start) * 1000)
        if result is not None:
            context.add_result(result)
            log_task_result(self._recorder, result)
        return result

    def _record_failure(
        self,
        step: LeafStep,
        context: SetupContext,
        error: SetupError,
        original: Exception,
    ) -> TaskResult:
        if error.is_fatal:
            result = TaskResult.failure(step.name, error.message, error=error.to_dict())
            context.add_result(result)
            log_task_result(self._recorder, result)
            if error is original:
                raise error
            raise error from original

        if step.warning_status == "skipped":
            result = TaskResult.skip(step.name, error.message, error=error.to_dict())
        else:
            result = TaskResult.failure(step.name, error.message, error=error.to_dict())
        context.add_result(result)
        log_task_result(self._recorder, result)
        return result
