"""
L0 Data — static catalog of managers, candidates and install commands.

Everything the engine needs to know about concrete shell commands is a
table in this module. Install commands are looked up by
``(platform, package_manager)``; nothing is assembled from strings at
runtime. ``validate_catalog()`` checks the tables are complete and is
called before a pipeline run starts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from devsetup.core.errors import configuration_error
from devsetup.core.models.setup import (
    Candidate,
    DevTool,
    Editor,
    PackageManager,
    Platform,
)

CandidateKind = Literal["tool", "editor"]


@dataclass(frozen=True)
class CommandTemplate:
    """An executable plus fixed leading args; packages are appended."""

    executable: str
    args: tuple[str, ...] = ()

    def render(self, *packages: str) -> list[str]:
        return [self.executable, *self.args, *packages]


@dataclass(frozen=True)
class ManagerSpec:
    """How to probe for a package manager."""

    probe: CommandTemplate
    platform: Platform


@dataclass(frozen=True)
class ManualInstruction:
    """Where to get the platform's preferred manager by hand."""

    name: str
    command: str
    url: str


# ── Package managers ────────────────────────────────────────────

PACKAGE_MANAGERS: dict[PackageManager, ManagerSpec] = {
    PackageManager.CHOCOLATEY: ManagerSpec(CommandTemplate("choco", ("-v",)), Platform.WINDOWS),
    PackageManager.WINGET: ManagerSpec(CommandTemplate("winget", ("--version",)), Platform.WINDOWS),
    PackageManager.SCOOP: ManagerSpec(CommandTemplate("scoop", ("-v",)), Platform.WINDOWS),
    PackageManager.HOMEBREW: ManagerSpec(CommandTemplate("brew", ("--version",)), Platform.MACOS),
    PackageManager.APT: ManagerSpec(CommandTemplate("apt-get", ("--version",)), Platform.LINUX),
    PackageManager.YUM: ManagerSpec(CommandTemplate("yum", ("--version",)), Platform.LINUX),
    PackageManager.ZYPPER: ManagerSpec(CommandTemplate("zypper", ("--version",)), Platform.LINUX),
    PackageManager.PACMAN: ManagerSpec(CommandTemplate("pacman", ("-V",)), Platform.LINUX),
}

# First available wins.
MANAGER_PRIORITY: dict[Platform, tuple[PackageManager, ...]] = {
    Platform.WINDOWS: (PackageManager.CHOCOLATEY, PackageManager.WINGET, PackageManager.SCOOP),
    Platform.MACOS: (PackageManager.HOMEBREW,),
    Platform.LINUX: (
        PackageManager.APT,
        PackageManager.YUM,
        PackageManager.ZYPPER,
        PackageManager.PACMAN,
    ),
}

MANUAL_INSTRUCTIONS: dict[Platform, ManualInstruction] = {
    Platform.WINDOWS: ManualInstruction(
        name="Chocolatey",
        command="Run PowerShell as Administrator and execute the install script",
        url="https://chocolatey.org/install",
    ),
    Platform.MACOS: ManualInstruction(
        name="Homebrew",
        command=(
            '/bin/bash -c "$(curl -fsSL '
            'https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh)"'
        ),
        url="https://brew.sh",
    ),
    Platform.LINUX: ManualInstruction(
        name="APT",
        command="sudo apt-get update && sudo apt-get install -y",
        url="https://wiki.debian.org/Apt",
    ),
}


# ── Install commands ────────────────────────────────────────────

_APT = CommandTemplate("apt-get", ("install", "-y"))
_YUM = CommandTemplate("yum", ("install", "-y"))
_ZYPPER = CommandTemplate("zypper", ("--non-interactive", "install"))
_PACMAN = CommandTemplate("pacman", ("-S", "--noconfirm"))

INSTALL_COMMANDS: dict[tuple[Platform, PackageManager], dict[CandidateKind, CommandTemplate]] = {
    (Platform.WINDOWS, PackageManager.CHOCOLATEY): {
        "tool": CommandTemplate("choco", ("install", "-y")),
        "editor": CommandTemplate("choco", ("install", "-y")),
    },
    (Platform.WINDOWS, PackageManager.WINGET): {
        "tool": CommandTemplate("winget", ("install", "--silent")),
        "editor": CommandTemplate("winget", ("install", "--silent")),
    },
    (Platform.WINDOWS, PackageManager.SCOOP): {
        "tool": CommandTemplate("scoop", ("install",)),
        "editor": CommandTemplate("scoop", ("install",)),
    },
    (Platform.MACOS, PackageManager.HOMEBREW): {
        "tool": CommandTemplate("brew", ("install",)),
        "editor": CommandTemplate("brew", ("install", "--cask")),
    },
    (Platform.LINUX, PackageManager.APT): {"tool": _APT, "editor": _APT},
    (Platform.LINUX, PackageManager.YUM): {"tool": _YUM, "editor": _YUM},
    (Platform.LINUX, PackageManager.ZYPPER): {"tool": _ZYPPER, "editor": _ZYPPER},
    (Platform.LINUX, PackageManager.PACMAN): {"tool": _PACMAN, "editor": _PACMAN},
}


# ── Candidates ──────────────────────────────────────────────────


def _tool(tool: DevTool, name: str, package: str, command: str) -> Candidate:
    return Candidate(
        identifier=tool.value,
        display_name=name,
        install_package_name=package,
        detection_command=command,
        kind="tool",
    )


def _editor(editor: Editor, name: str, package: str, command: str) -> Candidate:
    return Candidate(
        identifier=editor.value,
        display_name=name,
        install_package_name=package,
        detection_command=command,
        kind="editor",
    )


CORE_TOOLS: dict[Platform, tuple[Candidate, ...]] = {
    Platform.WINDOWS: (
        _tool(DevTool.GIT, "Git", "git", "git"),
        _tool(DevTool.NODE, "Node.js", "nodejs-lts", "node"),
        _tool(DevTool.GRAPHVIZ, "GraphViz", "graphviz", "dot"),
        _tool(DevTool.PYTHON, "Python", "python", "python"),
    ),
    Platform.MACOS: (
        _tool(DevTool.GIT, "Git", "git", "git"),
        _tool(DevTool.NODE, "Node.js", "node", "node"),
        _tool(DevTool.GRAPHVIZ, "GraphViz", "graphviz", "dot"),
        _tool(DevTool.PYTHON, "Python", "python", "python3"),
    ),
    Platform.LINUX: (
        _tool(DevTool.GIT, "Git", "git", "git"),
        _tool(DevTool.NODE, "Node.js", "nodejs", "node"),
        _tool(DevTool.GRAPHVIZ, "GraphViz", "graphviz", "dot"),
        _tool(DevTool.PYTHON, "Python", "python3", "python3"),
    ),
}

EDITORS: dict[Platform, tuple[Candidate, ...]] = {
    Platform.WINDOWS: (
        _editor(Editor.VSCODE, "VSCode", "vscode", "code"),
        _editor(Editor.CURSOR, "Cursor", "cursor", "cursor"),
        _editor(Editor.ANTIGRAVITY, "Antigravity", "antigravity", "antigravity"),
    ),
    Platform.MACOS: (
        _editor(Editor.VSCODE, "VSCode", "visual-studio-code", "code"),
        _editor(Editor.CURSOR, "Cursor", "cursor", "cursor"),
        _editor(Editor.ANTIGRAVITY, "Antigravity", "antigravity", "antigravity"),
    ),
    Platform.LINUX: (
        _editor(Editor.VSCODE, "VSCode", "code", "code"),
        _editor(Editor.CURSOR, "Cursor", "cursor", "cursor"),
        _editor(Editor.ANTIGRAVITY, "Antigravity", "antigravity", "antigravity"),
    ),
}

# Git and Node are needed by the toolchain step; the rest are nice-to-have.
ESSENTIAL_TOOLS: frozenset[str] = frozenset({DevTool.GIT.value, DevTool.NODE.value})

TOOLCHAIN_COMMAND = CommandTemplate("corepack", ("enable",))


# ── Lookups ─────────────────────────────────────────────────────


def core_tools_for(platform: Platform) -> tuple[Candidate, ...]:
    return CORE_TOOLS[platform]


def editors_for(platform: Platform) -> tuple[Candidate, ...]:
    return EDITORS[platform]


def managers_for(platform: Platform) -> tuple[PackageManager, ...]:
    return MANAGER_PRIORITY[platform]


def install_command(
    platform: Platform,
    manager: PackageManager,
    candidate: Candidate,
) -> list[str] | None:
    """Rendered install command, or None if the pair is not supported."""
    templates = INSTALL_COMMANDS.get((platform, manager))
    if templates is None:
        return None
    return templates[candidate.kind].render(candidate.install_package_name)


def manual_instruction(platform: Platform) -> ManualInstruction:
    return MANUAL_INSTRUCTIONS[platform]


def group_by_priority(identifiers: list[str]) -> tuple[list[str], list[str]]:
    """Split tool identifiers into (essential, optional), order preserved."""
    essential = [i for i in identifiers if i in ESSENTIAL_TOOLS]
    optional = [i for i in identifiers if i not in ESSENTIAL_TOOLS]
    return essential, optional


def validate_catalog() -> None:
    """Check the tables are complete and consistent.

    Raises:
        SetupError: configuration_error naming the first gap found.
    """
    for platform in Platform:
        if platform not in MANAGER_PRIORITY:
            raise configuration_error("catalog", f"no manager priority for {platform}")
        if platform not in MANUAL_INSTRUCTIONS:
            raise configuration_error("catalog", f"no manual instructions for {platform}")

        for manager in MANAGER_PRIORITY[platform]:
            spec = PACKAGE_MANAGERS.get(manager)
            if spec is None:
                raise configuration_error("catalog", f"no probe for {manager}")
            if spec.platform != platform:
                raise configuration_error(
                    "catalog", f"{manager} is listed for {platform} but belongs to {spec.platform}"
                )
            templates = INSTALL_COMMANDS.get((platform, manager))
            if templates is None or set(templates) != {"tool", "editor"}:
                raise configuration_error(
                    "catalog", f"missing install commands for ({platform}, {manager})"
                )

        for table, kind in ((CORE_TOOLS, "tool"), (EDITORS, "editor")):
            candidates = table.get(platform)
            if not candidates:
                raise configuration_error("catalog", f"no {kind} candidates for {platform}")
            seen: set[str] = set()
            for c in candidates:
                if c.kind != kind:
                    raise configuration_error("catalog", f"{c.identifier} is not a {kind}")
                if c.identifier in seen:
                    raise configuration_error("catalog", f"duplicate {kind} {c.identifier}")
                if not c.install_package_name or not c.detection_command:
                    raise configuration_error("catalog", f"incomplete candidate {c.identifier}")
                seen.add(c.identifier)
