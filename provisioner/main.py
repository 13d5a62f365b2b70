"""
devtools-provisioner: CLI entrypoint.

Usage:
    devtools-provisioner --help
    devtools-provisioner install
    devtools-provisioner doctor
    devtools-provisioner fix
    devtools-provisioner git-bash "git status"
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any

import click

from provisioner import __version__
from provisioner.core.observability.logging_config import (
    ENV_LOG_FILE,
    ENV_LOG_FILE_LEVEL,
    ENV_LOG_LEVEL,
    setup_logging,
)

_STATUS_ICONS = {
    "already_present": ("✓", "green"),
    "installed": ("✅", "green"),
    "failed": ("❌", "red"),
    "skipped_unsupported_platform": ("⏭️", "yellow"),
}


@click.group()
@click.version_option(version=__version__, prog_name="devtools-provisioner")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to provisioner.yml (default: auto-detect).",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Also write a detailed log to this file.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
    log_file: str | None,
) -> None:
    """devtools-provisioner: install git and AI coding CLIs, keep them healthy."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get(ENV_LOG_LEVEL, "WARNING")

    setup_logging(
        level=level,
        log_file=log_file or os.environ.get(ENV_LOG_FILE),
        log_file_level=os.environ.get(ENV_LOG_FILE_LEVEL),
    )


def _orchestrator(ctx: click.Context, overrides: dict[str, Any] | None = None):
    """Load config and build an orchestrator, exiting on bad config."""
    from provisioner.core.config.loader import ConfigError, load_config
    from provisioner.core.services.tool_install import ProvisionOrchestrator

    try:
        config = load_config(ctx.obj.get("config_path"), overrides=overrides)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)
    return ProvisionOrchestrator(config)


def _echo_summary(summary, quiet: bool) -> None:
    env = summary.environment
    if not quiet:
        click.secho(
            f"\n🖥️  {env.os_family.value}/{env.arch.value}"
            f"{' (container)' if env.is_container else ''}"
            f"{' (elevated)' if env.has_elevated_privilege else ''}",
            fg="cyan",
            bold=True,
        )

    for result in summary.results:
        icon, color = _STATUS_ICONS.get(result.status.value, ("•", "white"))
        click.secho(f"   {icon} {result.tool}: {result.status.value}", fg=color)
        if result.executable_path and not quiet:
            click.echo(f"      → {result.executable_path}")
        if result.message:
            click.echo(f"      {result.message}")
        for warning in result.warnings:
            click.secho(f"      ⚠️  {warning}", fg="yellow")

    for warning in summary.warnings:
        click.secho(f"   ⚠️  {warning}", fg="yellow")
    if summary.git_bash_path and not quiet:
        click.echo(f"   GIT_BASH_PATH={summary.git_bash_path}")


# ── install ─────────────────────────────────────────────────────


@cli.command()
@click.option("--silent", is_flag=True, help="Capture installer output instead of streaming it.")
@click.option("--no-auto-install", is_flag=True, help="Only report what is missing.")
@click.option("--no-opencode", is_flag=True, help="Skip OpenCode.")
@click.option("--no-bun", is_flag=True, help="Skip Bun.")
@click.option("--no-oh-my-opencode", is_flag=True, help="Skip Oh My OpenCode.")
@click.option("--no-codebuddy", is_flag=True, help="Skip CodeBuddy Code.")
@click.option("--no-iflow", is_flag=True, help="Skip iFlow CLI.")
@click.option("--no-qoder", is_flag=True, help="Skip Qoder CLI.")
@click.option("--no-qwen", is_flag=True, help="Skip Qwen Code.")
@click.option("--no-git-bash", is_flag=True, help="Do not export GIT_BASH_PATH.")
@click.option("--no-git-config", is_flag=True, help="Do not touch git identity settings.")
@click.option("--git-name", default=None, help="git user.name to configure.")
@click.option("--git-email", default=None, help="git user.email to configure.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(
    ctx: click.Context,
    silent: bool,
    no_auto_install: bool,
    no_opencode: bool,
    no_bun: bool,
    no_oh_my_opencode: bool,
    no_codebuddy: bool,
    no_iflow: bool,
    no_qoder: bool,
    no_qwen: bool,
    no_git_bash: bool,
    no_git_config: bool,
    git_name: str | None,
    git_email: str | None,
    as_json: bool,
) -> None:
    """Install git and every enabled tool."""
    from provisioner.core.errors import StrategyExhausted

    overrides: dict[str, Any] = {}
    flags = {
        "silent": (silent, True),
        "auto_install": (no_auto_install, False),
        "install_opencode": (no_opencode, False),
        "install_bun": (no_bun, False),
        "install_oh_my_opencode": (no_oh_my_opencode, False),
        "install_codebuddy": (no_codebuddy, False),
        "install_iflow": (no_iflow, False),
        "install_qoder": (no_qoder, False),
        "install_qwen": (no_qwen, False),
        "configure_git_bash": (no_git_bash, False),
        "configure_git": (no_git_config, False),
    }
    for key, (given, value) in flags.items():
        if given:
            overrides[key] = value
    if git_name or git_email:
        overrides["git"] = {
            k: v for k, v in (("user_name", git_name), ("user_email", git_email)) if v
        }
    if as_json:
        overrides["silent"] = True

    orchestrator = _orchestrator(ctx, overrides)

    try:
        summary = orchestrator.install_all()
    except StrategyExhausted as e:
        if as_json and e.summary is not None:
            click.echo(json.dumps({**e.summary.to_dict(), "ok": False, "error": str(e)}, indent=2))
        else:
            if e.summary is not None:
                _echo_summary(e.summary, ctx.obj.get("quiet", False))
            click.secho(f"\n❌ {e}", fg="red", bold=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(summary.to_dict(), indent=2))
        return

    _echo_summary(summary, ctx.obj.get("quiet", False))
    if summary.ok:
        click.secho("\n✅ Provisioning complete", fg="green", bold=True)
    else:
        click.secho(
            f"\n⚠️  Provisioning finished with {len(summary.failed)} failed tool(s)",
            fg="yellow",
            bold=True,
        )


@cli.command("install-oh-my-opencode")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install_oh_my_opencode(ctx: click.Context, as_json: bool) -> None:
    """Install Oh My OpenCode only (Bun and OpenCode must already be present)."""
    orchestrator = _orchestrator(ctx, {"silent": True} if as_json else None)
    summary = orchestrator.install_selected(["oh-my-opencode"])

    if as_json:
        click.echo(json.dumps(summary.to_dict(), indent=2))
    else:
        _echo_summary(summary, ctx.obj.get("quiet", False))
    if not summary.ok:
        sys.exit(1)


# ── doctor / fix / status ───────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def doctor(ctx: click.Context, as_json: bool) -> None:
    """Check tools, PATH and config files. Exits 1 when unhealthy."""
    report = _orchestrator(ctx).diagnose()

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        quiet = ctx.obj.get("quiet", False)
        if not quiet:
            click.secho("\n🩺 Diagnosis", fg="cyan", bold=True)
            for name, probe in report.tools.items():
                if probe.installed:
                    version = f" {probe.version}" if probe.version else ""
                    click.secho(f"   ✓ {name}{version}", fg="green")
                else:
                    click.secho(f"   ✗ {name}", fg="white", dim=True)
        for finding in report.issues:
            click.secho(f"   ❌ {finding.message}", fg="red")
        for finding in report.warnings:
            click.secho(f"   ⚠️  {finding.message}", fg="yellow")
        if report.healthy:
            click.secho("\n✅ Healthy", fg="green", bold=True)
        else:
            click.secho(
                f"\n❌ {len(report.issues)} issue(s). Run 'devtools-provisioner fix'.",
                fg="red",
                bold=True,
            )

    if not report.healthy:
        sys.exit(1)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def fix(ctx: click.Context, as_json: bool) -> None:
    """Repair PATH, reset corrupted configs, export Git Bash."""
    fixes = _orchestrator(ctx).repair()

    if as_json:
        click.echo(json.dumps([f.model_dump(mode="json") for f in fixes], indent=2))
        return

    icons = {"applied": ("🔧", "green"), "skipped": ("·", "white"), "failed": ("❌", "red")}
    for item in fixes:
        icon, color = icons[item.status.value]
        click.secho(f"   {icon} {item.action}: {item.detail}", fg=color)
    applied = sum(1 for f in fixes if f.applied)
    click.secho(f"\n{applied} fix(es) applied", fg="cyan", bold=True)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Show what is installed."""
    entries = _orchestrator(ctx).status()

    if as_json:
        click.echo(json.dumps([e.model_dump() for e in entries], indent=2))
        return

    for entry in entries:
        if entry.installed:
            version = f" {entry.version}" if entry.version else ""
            click.secho(f"   ✓ {entry.label}{version}", fg="green", nl=False)
            click.echo(f"  → {entry.path}" if entry.path else "")
            if entry.plugins:
                click.echo(f"      plugins: {', '.join(entry.plugins)}")
        else:
            click.secho(f"   ✗ {entry.label}", fg="white", dim=True)


@cli.command("persist-path")
@click.argument("entry")
@click.pass_context
def persist_path(ctx: click.Context, entry: str) -> None:
    """Add ENTRY to PATH for future shells."""
    if _orchestrator(ctx).persist(entry):
        click.secho(f"✅ {entry} is on PATH for new shells", fg="green")
    else:
        click.secho(f"⚠️  Could not persist {entry}; add it to your shell profile manually", fg="yellow")
        sys.exit(1)


@cli.command("git-bash")
@click.argument("command")
@click.pass_context
def git_bash(ctx: click.Context, command: str) -> None:
    """Run COMMAND through Git Bash (system bash or sh off Windows)."""
    result = _orchestrator(ctx).run_in_git_bash(command)

    if result.stdout:
        click.echo(result.stdout, nl=False)
    if not result.ok:
        click.secho(f"❌ {result.describe_failure()}", fg="red", err=True)
        sys.exit(result.returncode if result.returncode and result.returncode > 0 else 1)


if __name__ == "__main__":
    cli()
