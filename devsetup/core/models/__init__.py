"""
Domain models — Pydantic types for a provisioning run.

    from devsetup.core.models import Platform, Candidate, Policy, TaskResult
"""

from devsetup.core.models.setup import (
    Candidate,
    DevTool,
    Editor,
    PackageManager,
    Platform,
    Policy,
    PreflightResult,
    known_identifiers,
)
from devsetup.core.models.task import TaskResult, TaskStatus

__all__ = [
    "Candidate",
    "DevTool",
    "Editor",
    "PackageManager",
    "Platform",
    "Policy",
    "PreflightResult",
    "TaskResult",
    "TaskStatus",
    "known_identifiers",
]
