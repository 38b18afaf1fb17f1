"""
Tests for CLI commands — run, detect, preflight, and global options.
"""

import json
import textwrap
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from devsetup.core.context import SetupContext
from devsetup.core.detection.preflight import PreflightChecker
from devsetup.core.models.setup import PackageManager, Platform
from devsetup.main import cli


def _linux_context() -> SetupContext:
    return SetupContext(
        platform=Platform.LINUX,
        package_manager=PackageManager.APT,
        available_package_managers={PackageManager.APT, PackageManager.PACMAN},
    )


@pytest.fixture
def hermetic(make_pipeline, runner, tmp_path, monkeypatch):
    """Run the CLI against a simulated Linux host with no real commands."""
    monkeypatch.chdir(tmp_path)

    def fake_run_pipeline(context, config, runner=None, **components):
        pipeline, _ = make_pipeline(Platform.LINUX, config=config)
        return pipeline.run(context)

    with patch("devsetup.core.context.create_context", side_effect=_linux_context), patch(
        "devsetup.core.engine.tasks.run_pipeline", side_effect=fake_run_pipeline
    ):
        yield runner


class TestCLIGlobal:
    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "provision a development workstation" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestRunCommand:
    def test_run(self, hermetic):
        result = CliRunner().invoke(cli, ["run"])
        assert result.exit_code == 0, result.output
        assert "✓ Git Installation" in result.output
        assert "Platform:        Linux" in result.output
        assert "Package manager: apt" in result.output
        assert ["apt-get", "install", "-y", "git"] in hermetic.call_log

    def test_run_json(self, hermetic):
        result = CliRunner().invoke(cli, ["-q", "run", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["status"] == "completed"
        assert data["context"]["platform"] == "linux"

    def test_dry_run(self, hermetic):
        result = CliRunner().invoke(cli, ["run", "--dry-run"])
        assert result.exit_code == 0
        assert "⊘ Git Installation — Dry run: would run `apt-get install -y git`" in result.output
        assert hermetic.call_count == 0

    def test_block(self, hermetic):
        result = CliRunner().invoke(cli, ["run", "--block", "cursor"])
        assert result.exit_code == 0
        assert "⊘ Cursor Installation — Blocked by policy" in result.output
        assert ["apt-get", "install", "-y", "cursor"] not in hermetic.call_log

    def test_skip_editors(self, hermetic):
        result = CliRunner().invoke(cli, ["run", "--skip-editors", "vscode,cursor,antigravity"])
        assert result.exit_code == 0
        assert "Editors Installation — Skipped by configuration" in result.output

    def test_failure_marker(self, hermetic):
        hermetic.set_failure("apt-get install -y graphviz")
        result = CliRunner().invoke(cli, ["run", "--max-retries", "0"])
        assert result.exit_code == 0
        assert "✗ GraphViz Installation" in result.output

    def test_aborted_run_exits_nonzero(self, hermetic):
        hermetic.set_failure("corepack")
        result = CliRunner().invoke(cli, ["run"])
        assert result.exit_code == 1
        assert "✗ Corepack Setup" in result.output
        assert "Command failed: corepack enable" in result.output

    def test_verbose_failure_shows_details(self, hermetic):
        hermetic.set_failure("corepack")
        result = CliRunner().invoke(cli, ["-v", "run"])
        assert result.exit_code == 1
        assert '"code": "devsetup/command-execution"' in result.output
        assert '"severity": "error"' in result.output
        assert "caused by devsetup/command-execution" in result.output

    def test_failure_details_hidden_by_default(self, hermetic):
        hermetic.set_failure("corepack")
        result = CliRunner().invoke(cli, ["run"])
        assert result.exit_code == 1
        assert "caused by" not in result.output

    def test_verbose_from_config_file(self, hermetic, tmp_path: Path):
        hermetic.set_failure("corepack")
        config = tmp_path / "devsetup.yml"
        config.write_text("verbose: true\n")
        result = CliRunner().invoke(cli, ["run", "--config", str(config)])
        assert result.exit_code == 1
        assert "caused by devsetup/command-execution" in result.output

    def test_config_file(self, hermetic, tmp_path: Path):
        config = tmp_path / "devsetup.yml"
        config.write_text(textwrap.dedent("""\
            skip_tools: [python]
            dry_run: true
        """))
        result = CliRunner().invoke(cli, ["run", "--config", str(config)])
        assert result.exit_code == 0
        assert "Python Installation" not in result.output
        assert hermetic.call_count == 0

    def test_invalid_identifier(self, hermetic):
        result = CliRunner().invoke(cli, ["run", "--block", "emacs"])
        assert result.exit_code == 1
        assert "Configuration error" in result.output

    def test_invalid_identifier_json(self, hermetic):
        result = CliRunner().invoke(cli, ["-q", "run", "--allow", "emacs", "--json"])
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["status"] == "aborted"
        assert data["error"]["code"] == "devsetup/configuration"


class TestDetectCommand:
    def test_detect(self, hermetic):
        result = CliRunner().invoke(cli, ["detect"])
        assert result.exit_code == 0
        assert "Linux" in result.output
        assert "apt ← selected" in result.output
        assert "pacman" in result.output

    def test_detect_json(self, hermetic):
        result = CliRunner().invoke(cli, ["detect", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data == {
            "platform": "linux",
            "available_package_managers": ["apt", "pacman"],
            "package_manager": "apt",
        }

    def test_detect_no_manager(self):
        ctx = SetupContext(platform=Platform.MACOS)
        with patch("devsetup.core.context.create_context", return_value=ctx):
            result = CliRunner().invoke(cli, ["detect"])
        assert result.exit_code == 0
        assert "No supported package manager" in result.output


class TestPreflightCommand:
    def _checker(self, disk_mb):
        return PreflightChecker(
            privilege_probe=lambda: False,
            disk_probe=lambda: disk_mb,
            network_probe=lambda timeout: True,
        )

    def test_preflight(self):
        with patch(
            "devsetup.core.detection.preflight.PreflightChecker",
            return_value=self._checker(1024),
        ):
            result = CliRunner().invoke(cli, ["preflight"])
        assert result.exit_code == 0
        assert "Free disk space:     1024 MB" in result.output
        assert "Low disk space detected (<2GB)." in result.output
        assert "Elevated privileges not detected" in result.output

    def test_preflight_json(self):
        with patch(
            "devsetup.core.detection.preflight.PreflightChecker",
            return_value=self._checker(None),
        ):
            result = CliRunner().invoke(cli, ["-q", "preflight", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["disk_space_mb"] is None
        assert data["has_sudo"] is False
        assert data["network_reachable"] is True
