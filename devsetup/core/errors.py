"""
Error taxonomy — structured, classified setup failures.

Every failure that reaches the task pipeline is turned into a
``SetupError`` before it is recorded. The error carries the metadata a
caller needs to decide what to do next:

    severity   error   → abort the run
               warning → record and continue
    retryable  whether the failure may be handed to the retrying executor

Kinds and their defaults:

    kind                        severity  retryable  status
    context_error               error     no         400
    os_detection_error          error     yes        500
    package_manager_error       warning   yes        503
    tool_installation_error     warning   yes        422
    editor_installation_error   warning   yes        422
    command_execution_error     warning   yes        422
    tool_unavailable_error      error     yes        503
    configuration_error         error     no         400
    unknown                     error     no         500

``classify`` is total: anything it does not recognise becomes ``unknown``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import ValidationError

from devsetup.adapters.base import CommandError


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"


class ErrorKind(StrEnum):
    CONTEXT = "context_error"
    OS_DETECTION = "os_detection_error"
    PACKAGE_MANAGER = "package_manager_error"
    TOOL_INSTALLATION = "tool_installation_error"
    EDITOR_INSTALLATION = "editor_installation_error"
    COMMAND_EXECUTION = "command_execution_error"
    TOOL_UNAVAILABLE = "tool_unavailable_error"
    CONFIGURATION = "configuration_error"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class KindSpec:
    """Fixed defaults for one error kind."""

    code: str
    severity: Severity
    retryable: bool
    status_code: int


KIND_SPECS: dict[ErrorKind, KindSpec] = {
    ErrorKind.CONTEXT: KindSpec("devsetup/context", Severity.ERROR, False, 400),
    ErrorKind.OS_DETECTION: KindSpec("devsetup/os-detection", Severity.ERROR, True, 500),
    ErrorKind.PACKAGE_MANAGER: KindSpec("devsetup/package-manager", Severity.WARNING, True, 503),
    ErrorKind.TOOL_INSTALLATION: KindSpec("devsetup/tool-installation", Severity.WARNING, True, 422),
    ErrorKind.EDITOR_INSTALLATION: KindSpec("devsetup/editor-installation", Severity.WARNING, True, 422),
    ErrorKind.COMMAND_EXECUTION: KindSpec("devsetup/command-execution", Severity.WARNING, True, 422),
    ErrorKind.TOOL_UNAVAILABLE: KindSpec("devsetup/tool-unavailable", Severity.ERROR, True, 503),
    ErrorKind.CONFIGURATION: KindSpec("devsetup/configuration", Severity.ERROR, False, 400),
    ErrorKind.UNKNOWN: KindSpec("devsetup/unknown", Severity.ERROR, False, 500),
}


def is_retryable(kind: ErrorKind) -> bool:
    """Default retryability of a kind."""
    return KIND_SPECS[kind].retryable


class SetupError(Exception):
    """A classified setup failure."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        severity: Severity | None = None,
        retryable: bool | None = None,
        help: str | None = None,
        docs: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        spec = KIND_SPECS[kind]
        self.kind = kind
        self.code = spec.code
        self.status_code = spec.status_code
        self.message = message
        self.severity = severity if severity is not None else spec.severity
        self.retryable = retryable if retryable is not None else spec.retryable
        self.help = help
        self.docs = docs
        self.context = dict(context or {})
        super().__init__(message)

    @property
    def is_fatal(self) -> bool:
        return self.severity == Severity.ERROR

    def escalated(self) -> SetupError:
        """Return a copy with severity ``error`` (used by fail-fast steps)."""
        if self.severity == Severity.ERROR:
            return self
        return SetupError(
            self.kind,
            self.message,
            severity=Severity.ERROR,
            retryable=self.retryable,
            help=self.help,
            docs=self.docs,
            context=self.context,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "kind": self.kind.value,
            "message": self.message,
            "severity": self.severity.value,
            "status_code": self.status_code,
            "retryable": self.retryable,
            "help": self.help,
            "docs": self.docs,
            "context": self.context,
        }

    def __repr__(self) -> str:
        return f"<SetupError {self.code} severity={self.severity.value}: {self.message}>"


# ── Factories ───────────────────────────────────────────────────


def context_error(reason: str, **context: Any) -> SetupError:
    return SetupError(
        ErrorKind.CONTEXT,
        f"Setup context validation failed: {reason}",
        help="Ensure the system meets minimum requirements for development setup",
        context={"reason": reason, **context},
    )


def os_detection_error(reason: str, **context: Any) -> SetupError:
    return SetupError(
        ErrorKind.OS_DETECTION,
        f"Operating system detection failed: {reason}",
        help="Try running the setup again or check your system configuration",
        context={"reason": reason, **context},
    )


def package_manager_error(
    operation: str,
    manager: str,
    reason: str,
    *,
    retryable: bool | None = None,
    help: str | None = None,
    **context: Any,
) -> SetupError:
    return SetupError(
        ErrorKind.PACKAGE_MANAGER,
        f"Package manager operation failed: {operation} ({manager}) - {reason}",
        retryable=retryable,
        help=help or f"Install {manager} manually, then run the setup again",
        context={"operation": operation, "manager": manager, "reason": reason, **context},
    )


def tool_installation_error(
    tool: str,
    platform: str,
    reason: str,
    *,
    retryable: bool | None = None,
    **context: Any,
) -> SetupError:
    return SetupError(
        ErrorKind.TOOL_INSTALLATION,
        f"Failed to install {tool} on {platform}: {reason}",
        retryable=retryable,
        help=f"Try installing {tool} manually or check system permissions and disk space",
        context={"tool": tool, "platform": platform, "reason": reason, **context},
    )


def editor_installation_error(
    editor: str,
    platform: str,
    reason: str,
    *,
    retryable: bool | None = None,
    **context: Any,
) -> SetupError:
    return SetupError(
        ErrorKind.EDITOR_INSTALLATION,
        f"Failed to install {editor} on {platform}: {reason}",
        retryable=retryable,
        help=f"Install {editor} manually from the official website",
        context={"editor": editor, "platform": platform, "reason": reason, **context},
    )


def command_execution_error(
    command: str,
    exit_code: int | None,
    stderr: str = "",
    *,
    retryable: bool | None = None,
    **context: Any,
) -> SetupError:
    message = f"Command failed: {command} (exit code: {exit_code})"
    if stderr:
        message += f" - {stderr[:100]}"
    return SetupError(
        ErrorKind.COMMAND_EXECUTION,
        message,
        retryable=retryable,
        help="Check that all required tools are installed and accessible in your PATH",
        context={"command": command, "exit_code": exit_code, "stderr": stderr, **context},
    )


def tool_unavailable_error(tool: str, **context: Any) -> SetupError:
    return SetupError(
        ErrorKind.TOOL_UNAVAILABLE,
        f"Required tool not available: {tool}",
        help=f"Install {tool} and ensure it is available in your system PATH",
        context={"tool": tool, **context},
    )


def configuration_error(field: str, reason: str, **context: Any) -> SetupError:
    return SetupError(
        ErrorKind.CONFIGURATION,
        f"Configuration error in field '{field}': {reason}",
        help="Check your setup configuration and CLI arguments",
        context={"field": field, "reason": reason, **context},
    )


# ── Classification ──────────────────────────────────────────────


def classify(raw: BaseException) -> SetupError:
    """Map any failure to a ``SetupError``. Never raises."""
    if isinstance(raw, SetupError):
        return raw

    if isinstance(raw, CommandError):
        return command_execution_error(raw.command_line, raw.exit_code, raw.stderr)

    if isinstance(raw, ValidationError):
        first = raw.errors()[0] if raw.errors() else {}
        loc = ".".join(str(p) for p in first.get("loc", ())) or "config"
        return configuration_error(loc, first.get("msg", str(raw)))

    return SetupError(
        ErrorKind.UNKNOWN,
        str(raw) or raw.__class__.__name__,
        context={"type": raw.__class__.__name__},
    )


def extract_error_metadata(error: BaseException) -> dict[str, Any]:
    """Metadata dict for structured logging of any exception."""
    return classify(error).to_dict()
