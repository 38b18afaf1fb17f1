"""
Task result model — the record of one pipeline step.

Results are appended to the setup context in execution order and are
never changed afterwards. They are what the summary renderer shows
and what callers inspect to learn why something did not install.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

TaskStatus = Literal["success", "skipped", "failed"]


class TaskResult(BaseModel):
    """Outcome of a single named task."""

    model_config = ConfigDict(frozen=True)

    name: str
    status: TaskStatus = "success"
    message: str | None = None
    error: dict[str, Any] | None = None   # structured error metadata

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def success(cls, name: str, message: str | None = None) -> TaskResult:
        """Create a success result."""
        return cls(name=name, status="success", message=message)

    @classmethod
    def skip(
        cls,
        name: str,
        message: str | None = None,
        error: dict[str, Any] | None = None,
    ) -> TaskResult:
        """Create a skipped result."""
        return cls(name=name, status="skipped", message=message, error=error)

    @classmethod
    def failure(
        cls,
        name: str,
        message: str,
        error: dict[str, Any] | None = None,
    ) -> TaskResult:
        """Create a failed result."""
        return cls(name=name, status="failed", message=message, error=error)
