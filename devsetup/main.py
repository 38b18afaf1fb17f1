"""
devsetup — CLI entrypoint.

Usage:
    devsetup --help
    devsetup run --dry-run
    devsetup run --skip-editors cursor,antigravity --block graphviz
    devsetup detect --json
    devsetup preflight
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from devsetup import __version__
from devsetup.core.errors import SetupError, extract_error_metadata
from devsetup.core.observability.logging_config import setup_logging

STATUS_MARKERS = {
    "success": ("✓", "green"),
    "skipped": ("⊘", "yellow"),
    "failed": ("✗", "red"),
}


@click.group()
@click.version_option(version=__version__, prog_name="devsetup")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, debug: bool) -> None:
    """devsetup — provision a development workstation."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug

    # ── Logging setup (once, at process start) ──────────────────
    level = None
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    setup_logging(level=level)


def _print_error(error: SetupError) -> None:
    click.secho(f"❌ {error.message}", fg="red", err=True)
    if error.help:
        click.echo(f"   💡 {error.help}", err=True)


def _print_error_details(error: SetupError) -> None:
    """Full error metadata plus the chain of underlying causes."""
    click.echo(json.dumps(error.to_dict(), indent=2, default=str), err=True)
    cause = error.__cause__
    while cause is not None:
        meta = extract_error_metadata(cause)
        click.echo(f"   caused by {meta['code']}: {meta['message']}", err=True)
        cause = cause.__cause__


@cli.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to devsetup.yml (default: auto-detect).",
)
@click.option("--skip-tools", default=None, help="Comma-separated tools to skip.")
@click.option("--skip-editors", default=None, help="Comma-separated editors to skip.")
@click.option("--allow", default=None, help="Comma-separated allowlist.")
@click.option("--block", default=None, help="Comma-separated blocklist.")
@click.option("--dry-run", is_flag=True, help="Show what would run, change nothing.")
@click.option("--max-retries", type=int, default=None, help="Retries per install command.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def run(
    ctx: click.Context,
    config_path: str | None,
    skip_tools: str | None,
    skip_editors: str | None,
    allow: str | None,
    block: str | None,
    dry_run: bool,
    max_retries: int | None,
    as_json: bool,
) -> None:
    """Install core tools and editors for this machine."""
    from devsetup.adapters.shell.command import SubprocessRunner
    from devsetup.core.config.loader import load_config, parse_csv
    from devsetup.core.context import create_context
    from devsetup.core.engine.tasks import run_pipeline

    try:
        config = load_config(
            Path(config_path) if config_path else None,
            skip_tools=parse_csv(skip_tools),
            skip_editors=parse_csv(skip_editors),
            allowlist=parse_csv(allow),
            blocklist=parse_csv(block),
            dry_run=dry_run or None,
            max_retries=max_retries,
            verbose=ctx.obj.get("verbose") or None,
        )
    except SetupError as e:
        if as_json:
            click.echo(json.dumps({"status": "aborted", "error": e.to_dict()}, indent=2))
        else:
            _print_error(e)
            if ctx.obj.get("verbose"):
                _print_error_details(e)
        sys.exit(1)

    context = create_context()
    outcome = run_pipeline(context, config, SubprocessRunner())

    if as_json:
        click.echo(json.dumps(outcome.to_dict(), indent=2))
        sys.exit(0 if outcome.completed else 1)

    quiet = ctx.obj.get("quiet", False)
    if not quiet:
        title = "🧪 Dry run" if config.dry_run else "🛠  Development setup"
        click.secho(f"\n{title}", fg="cyan", bold=True)
        click.echo()

    for result in outcome.task_results:
        marker, color = STATUS_MARKERS[result.status]
        click.secho(f"   {marker} ", fg=color, nl=False)
        line = result.name
        if result.message:
            line += f" — {result.message}"
        click.echo(line)

    click.echo()
    if outcome.error is not None:
        _print_error(outcome.error)
        if config.verbose:
            _print_error_details(outcome.error)
        click.echo()
        sys.exit(1)

    if quiet:
        return

    ctx_obj = outcome.context
    tools = ", ".join(sorted(t.value for t in ctx_obj.installed_tools)) or "none"
    editors = ", ".join(sorted(e.value for e in ctx_obj.installed_editors)) or "none"
    manager = ctx_obj.package_manager.value if ctx_obj.package_manager else "none"

    click.secho("📋 Summary", fg="white", bold=True)
    click.echo(f"   Platform:        {ctx_obj.platform.display_name}")
    click.echo(f"   Package manager: {manager}")
    click.echo(f"   Tools:           {tools}")
    click.echo(f"   Editors:         {editors}")
    click.echo(
        f"   Tasks:           {outcome.succeeded} ok, "
        f"{outcome.skipped} skipped, {outcome.failed} failed"
    )
    click.echo(f"   Duration:        {outcome.duration_ms / 1000:.1f}s")
    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def detect(as_json: bool) -> None:
    """Show the detected platform and package managers."""
    from devsetup.core.context import create_context

    context = create_context()
    data = {
        "platform": context.platform.value,
        "available_package_managers": sorted(m.value for m in context.available_package_managers),
        "package_manager": context.package_manager.value if context.package_manager else None,
    }

    if as_json:
        click.echo(json.dumps(data, indent=2))
        return

    click.secho(f"\n🖥  {context.platform.display_name}", fg="cyan", bold=True)
    if context.available_package_managers:
        for manager in data["available_package_managers"]:
            marker = " ← selected" if manager == data["package_manager"] else ""
            click.echo(f"     • {manager}{marker}")
    else:
        click.secho("   ⚠️  No supported package manager found", fg="yellow")
    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def preflight(as_json: bool) -> None:
    """Check privileges, disk space and network before a run."""
    from devsetup.core.detection.preflight import PreflightChecker

    result = PreflightChecker().run()

    if as_json:
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        return

    disk = f"{result.disk_space_mb} MB" if result.disk_space_mb is not None else "unknown"
    click.secho("\n🔎 Preflight", fg="cyan", bold=True)
    click.echo(f"   Elevated privileges: {'yes' if result.has_sudo else 'no'}")
    click.echo(f"   Free disk space:     {disk}")
    click.echo(f"   Network reachable:   {'yes' if result.network_reachable else 'no'}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warning in result.warnings:
            click.echo(f"   • {warning}")
    click.echo()


if __name__ == "__main__":
    cli()
