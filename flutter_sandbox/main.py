"""
Flutter sandbox bootstrapper — CLI entrypoint.

Usage:
    flutter-sandbox --help
    flutter-sandbox setup
    flutter-sandbox setup --flutter-version 3.22.0 --verify-version
    python -m flutter_sandbox.main sdk status
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from flutter_sandbox import __version__
from flutter_sandbox.core.observability.logging_config import setup_logging
from flutter_sandbox.ui.cli.helpers import load_cli_config, logs_off_stdout


@click.group()
@click.version_option(version=__version__, prog_name="flutter-sandbox")
@click.option("--verbose", "-v", is_flag=True, help="Log at INFO, overriding FSB_LOG_LEVEL.")
@click.option("--quiet", "-q", is_flag=True, help="Only show warnings and errors.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to flutter-sandbox.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """Flutter sandbox bootstrapper — install and verify a Flutter SDK."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None
    # Forwarded verbatim to a child re-run under xvfb-run
    ctx.obj["argv"] = list(sys.argv[1:])

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "WARNING"
    else:
        level = os.environ.get("FSB_LOG_LEVEL", "INFO")

    ctx.obj["log_settings"] = {
        "level": level,
        "log_file": os.environ.get("FSB_LOG_FILE"),
        "log_file_level": os.environ.get("FSB_LOG_FILE_LEVEL"),
        "quiet_third_party": not debug,
    }
    setup_logging(**ctx.obj["log_settings"])


# ── Setup ───────────────────────────────────────────────────────


@cli.command()
@click.option("--sdk-dir", type=click.Path(file_okay=False), default=None,
              help="Install location (default: ~/flutter_sdk).")
@click.option("--channel", default=None, help="Channel to clone (default: stable).")
@click.option("--flutter-version", "version", default=None,
              help="Version tag to check out (default: latest).")
@click.option("--repo", "repository", default=None, help="Upstream git URL.")
@click.option("--clean", is_flag=True, help="Remove an existing install first.")
@click.option("--skip-deps", is_flag=True, help="Don't install system packages.")
@click.option("--no-xvfb", is_flag=True, help="Never re-run under xvfb-run.")
@click.option("--verify-version", "verify_existing", is_flag=True,
              help="Check out the pinned version in an existing install.")
@click.option("--dry-run", is_flag=True, help="Show what would run without running it.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def setup(
    ctx: click.Context,
    sdk_dir: str | None,
    channel: str | None,
    version: str | None,
    repository: str | None,
    clean: bool,
    skip_deps: bool,
    no_xvfb: bool,
    verify_existing: bool,
    dry_run: bool,
    as_json: bool,
) -> None:
    """Install dependencies, acquire the SDK and verify it."""
    from flutter_sandbox.core.use_cases.setup import build_registry, run_setup

    if as_json:
        logs_off_stdout(ctx)

    config = load_cli_config(
        ctx,
        sdk_dir=sdk_dir,
        channel=channel,
        version=version,
        repository=repository,
        clean=clean or None,
        skip_deps=skip_deps or None,
        verify_existing=verify_existing or None,
    )
    if no_xvfb:
        config = config.model_copy(
            update={"display": config.display.model_copy(update={"enabled": False})}
        )

    registry = build_registry(config, dry_run=dry_run, stream_output=not as_json)
    report = run_setup(
        config,
        argv=ctx.obj.get("argv", []),
        registry=registry,
        dry_run=dry_run,
    )

    if report.relaunched:
        # The wrapped child wrote its own report to our stdout
        sys.exit(report.exit_code)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        sys.exit(report.exit_code)

    if report.fatal:
        click.secho(f"❌ Setup aborted at step '{report.aborted_at}'", fg="red", bold=True, err=True)
        sys.exit(report.exit_code)

    if not ctx.obj.get("quiet"):
        click.echo()
        click.secho("To use Flutter in new shells, run:", fg="cyan", bold=True)
        for line in report.exports:
            click.echo(f"   {line}")
        click.echo()

    sys.exit(report.exit_code)


# ── Sub-groups ──────────────────────────────────────────────────

from flutter_sandbox.ui.cli.config import config
from flutter_sandbox.ui.cli.sdk import sdk

cli.add_command(sdk)
cli.add_command(config)


if __name__ == "__main__":
    cli()
