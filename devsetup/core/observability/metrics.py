"""
Task metrics — per-task timing and attempt counters.

One ``TaskMetrics`` per task name, owned by the step that runs that
task. No external dependencies; exported with the run summary.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class TaskMetrics:
    """Timing and attempt counters for one task."""

    name: str
    duration_ms: int = 0
    attempts: int = 0

    def inc_attempts(self, n: int = 1) -> None:
        self.attempts += n

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "duration_ms": self.duration_ms, "attempts": self.attempts}


def summarize(metrics: dict[str, TaskMetrics]) -> dict[str, Any]:
    """Totals across all tasks of a run."""
    return {
        "tasks": len(metrics),
        "total_duration_ms": sum(m.duration_ms for m in metrics.values()),
        "total_attempts": sum(m.attempts for m in metrics.values()),
        "by_task": {name: m.to_dict() for name, m in metrics.items()},
    }
