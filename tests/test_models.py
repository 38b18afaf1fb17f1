"""
Tests for models, the static catalog and the setup context.
"""

import pytest
from pydantic import ValidationError

from devsetup.core.context import SetupContext, validate_context
from devsetup.core.data.catalog import (
    EDITORS,
    ESSENTIAL_TOOLS,
    TOOLCHAIN_COMMAND,
    core_tools_for,
    editors_for,
    group_by_priority,
    install_command,
    managers_for,
    manual_instruction,
    validate_catalog,
)
from devsetup.core.models.setup import (
    Candidate,
    DevTool,
    PackageManager,
    Platform,
    PreflightResult,
    known_identifiers,
)
from devsetup.core.models.task import TaskResult

# ── Task results ────────────────────────────────────────────────────


class TestTaskResult:
    def test_success(self):
        result = TaskResult.success("Git Installation", "Installed with homebrew")
        assert result.ok
        assert not result.failed
        assert result.error is None

    def test_skip(self):
        result = TaskResult.skip("Cursor Installation", "Blocked by policy")
        assert result.status == "skipped"
        assert not result.ok

    def test_failure(self):
        result = TaskResult.failure("Corepack Setup", "boom", error={"code": "devsetup/unknown"})
        assert result.failed
        assert result.error["code"] == "devsetup/unknown"

    def test_frozen(self):
        result = TaskResult.success("x")
        with pytest.raises(ValidationError):
            result.status = "failed"

    def test_bad_status(self):
        with pytest.raises(ValidationError):
            TaskResult(name="x", status="done")


class TestModels:
    def test_platform_display(self):
        assert Platform.MACOS.display_name == "macOS"
        assert Platform.WINDOWS.display_name == "Windows"

    def test_known_identifiers(self):
        assert known_identifiers() == {
            "git",
            "node",
            "graphviz",
            "python",
            "vscode",
            "cursor",
            "antigravity",
        }

    def test_candidate_task_name(self):
        candidate = Candidate(
            identifier="git",
            display_name="Git",
            install_package_name="git",
            detection_command="git",
        )
        assert candidate.task_name == "Git Installation"
        assert candidate.kind == "tool"

    def test_preflight_defaults(self):
        result = PreflightResult()
        assert result.disk_space_mb is None
        assert result.warnings == ()


# ── Catalog ─────────────────────────────────────────────────────────


class TestCatalog:
    def test_catalog_is_valid(self):
        validate_catalog()

    def test_every_platform_has_tools_and_editors(self):
        for platform in Platform:
            assert [c.identifier for c in core_tools_for(platform)] == [t.value for t in DevTool]
            assert len(editors_for(platform)) == 3

    def test_priority(self):
        assert managers_for(Platform.WINDOWS) == (
            PackageManager.CHOCOLATEY,
            PackageManager.WINGET,
            PackageManager.SCOOP,
        )
        assert managers_for(Platform.MACOS) == (PackageManager.HOMEBREW,)

    def test_install_commands(self):
        vscode = EDITORS[Platform.MACOS][0]
        assert install_command(Platform.MACOS, PackageManager.HOMEBREW, vscode) == [
            "brew",
            "install",
            "--cask",
            "visual-studio-code",
        ]
        git = core_tools_for(Platform.LINUX)[0]
        assert install_command(Platform.LINUX, PackageManager.PACMAN, git) == [
            "pacman",
            "-S",
            "--noconfirm",
            "git",
        ]

    def test_unsupported_pair(self):
        git = core_tools_for(Platform.MACOS)[0]
        assert install_command(Platform.MACOS, PackageManager.APT, git) is None

    def test_python_detection_differs_by_platform(self):
        def python_on(platform):
            return [c for c in core_tools_for(platform) if c.identifier == "python"][0]

        assert python_on(Platform.WINDOWS).detection_command == "python"
        assert python_on(Platform.MACOS).detection_command == "python3"

    def test_manual_instruction(self):
        assert manual_instruction(Platform.MACOS).url == "https://brew.sh"

    def test_group_by_priority(self):
        essential, optional = group_by_priority(["python", "git", "graphviz", "node"])
        assert essential == ["git", "node"]
        assert optional == ["python", "graphviz"]
        assert ESSENTIAL_TOOLS == {"git", "node"}

    def test_toolchain_command(self):
        assert TOOLCHAIN_COMMAND.render() == ["corepack", "enable"]


# ── Context ─────────────────────────────────────────────────────────


class TestSetupContext:
    def test_platform_is_fixed(self):
        ctx = SetupContext(platform=Platform.LINUX)
        with pytest.raises(AttributeError):
            ctx.platform = Platform.MACOS

    def test_other_fields_mutable(self):
        ctx = SetupContext(platform=Platform.LINUX)
        ctx.package_manager = PackageManager.APT
        assert ctx.package_manager == PackageManager.APT

    def test_results_append(self):
        ctx = SetupContext(platform=Platform.LINUX)
        ctx.add_result(TaskResult.success("a"))
        ctx.add_result(TaskResult.skip("b"))
        assert [r.name for r in ctx.task_results] == ["a", "b"]
        assert [r.name for r in ctx.results_with_status("skipped")] == ["b"]

    def test_metrics_for(self):
        ctx = SetupContext(platform=Platform.LINUX)
        metrics = ctx.metrics_for("Git Installation")
        metrics.inc_attempts()
        assert ctx.metrics_for("Git Installation").attempts == 1

    def test_validate(self):
        assert validate_context(SetupContext(platform=Platform.MACOS))
        assert not validate_context(None)
        assert not validate_context({"platform": "macos"})
        assert not validate_context(SetupContext(platform="macos"))

    def test_validate_bad_collections(self):
        ctx = SetupContext(platform=Platform.MACOS)
        ctx.installed_tools = ["git"]
        assert not validate_context(ctx)

    def test_to_dict(self):
        ctx = SetupContext(platform=Platform.LINUX, package_manager=PackageManager.APT)
        ctx.installed_tools.add(DevTool.GIT)
        data = ctx.to_dict()
        assert data["platform"] == "linux"
        assert data["package_manager"] == "apt"
        assert data["installed_tools"] == ["git"]
        assert data["metrics"]["tasks"] == 0
