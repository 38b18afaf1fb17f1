"""
Setup models — platforms, package managers, candidates, policy, preflight.

These are the static vocabulary of a provisioning run. Everything here
is immutable once built; the only mutable state of a run lives in
``devsetup.core.context.SetupContext``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class Platform(StrEnum):
    """Host operating system family."""

    WINDOWS = "windows"
    MACOS = "macos"
    LINUX = "linux"

    @property
    def display_name(self) -> str:
        return {"windows": "Windows", "macos": "macOS", "linux": "Linux"}[self.value]


class PackageManager(StrEnum):
    """System package managers the installer knows how to drive."""

    CHOCOLATEY = "chocolatey"
    WINGET = "winget"
    SCOOP = "scoop"
    HOMEBREW = "homebrew"
    APT = "apt"
    YUM = "yum"
    ZYPPER = "zypper"
    PACMAN = "pacman"


class DevTool(StrEnum):
    """Core development tools."""

    GIT = "git"
    NODE = "node"
    GRAPHVIZ = "graphviz"
    PYTHON = "python"


class Editor(StrEnum):
    """IDE / editor options."""

    VSCODE = "vscode"
    CURSOR = "cursor"
    ANTIGRAVITY = "antigravity"


def known_identifiers() -> set[str]:
    """Every identifier a policy or skip list may name."""
    return {t.value for t in DevTool} | {e.value for e in Editor}


class Candidate(BaseModel):
    """A tool or editor that may be installed on a given platform.

    ``detection_command`` is the binary looked up on PATH to decide
    whether the candidate is already present.
    """

    model_config = ConfigDict(frozen=True)

    identifier: str
    display_name: str
    install_package_name: str
    detection_command: str
    kind: Literal["tool", "editor"] = "tool"

    @property
    def task_name(self) -> str:
        return f"{self.display_name} Installation"


class Policy(BaseModel):
    """Allow/block rules. The block-list is evaluated first."""

    model_config = ConfigDict(frozen=True)

    allowlist: frozenset[str] | None = None
    blocklist: frozenset[str] | None = None

    def is_blocked(self, identifier: str) -> bool:
        return bool(self.blocklist) and identifier in self.blocklist

    def is_allowed(self, identifier: str) -> bool:
        if self.allowlist is None:
            return True
        return identifier in self.allowlist


class PreflightResult(BaseModel):
    """Environment signals gathered once before any install step.

    ``disk_space_mb`` is None when the free-space query failed; that is
    "unknown", not zero.
    """

    model_config = ConfigDict(frozen=True)

    has_sudo: bool = False
    disk_space_mb: int | None = None
    network_reachable: bool = False
    warnings: tuple[str, ...] = Field(default_factory=tuple)
