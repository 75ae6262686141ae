"""
CLI commands for inspecting an installed SDK.

Thin wrappers over ``flutter_sandbox.core.use_cases.sdk_info``.
"""

from __future__ import annotations

import json
import sys

import click

from flutter_sandbox.ui.cli.helpers import load_cli_config, logs_off_stdout


@click.group()
def sdk() -> None:
    """SDK — status, env, doctor."""


# ── Observe ─────────────────────────────────────────────────────


@sdk.command()
@click.option("--sdk-dir", type=click.Path(file_okay=False), default=None, help="Install location.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, sdk_dir: str | None, as_json: bool) -> None:
    """Show whether the SDK is installed and which version it is."""
    from flutter_sandbox.core.use_cases.sdk_info import get_sdk_status
    from flutter_sandbox.core.use_cases.setup import build_registry

    if as_json:
        logs_off_stdout(ctx)
    config = load_cli_config(ctx, sdk_dir=sdk_dir)
    result = get_sdk_status(config, registry=build_registry(config, stream_output=False))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if not result.installed:
        click.secho(f"⚠️  No Flutter SDK at {result.sdk_dir}", fg="yellow")
        for note in result.notes:
            click.echo(f"   {note}")
        _echo_tools(result.tools)
        return

    click.secho(f"📦 Flutter SDK: {result.sdk_dir}", fg="cyan", bold=True)
    click.echo(f"   Branch:    {result.branch or 'unknown'}")
    if result.tag:
        click.echo(f"   Tag:       {result.tag}")
    if result.framework_version:
        click.echo(f"   Framework: {result.framework_version}")
    if result.dart_version:
        click.echo(f"   Dart:      {result.dart_version}")

    requested = result.requested_version
    if requested == "latest":
        requested = f"latest on {result.requested_channel}"
    match = result.matches_request
    if match is True:
        click.secho(f"   ✅ Matches requested {requested}", fg="green")
    elif match is False:
        click.secho(f"   ❌ Does not match requested {requested}", fg="red")
    for note in result.notes:
        click.echo(f"   • {note}")
    _echo_tools(result.tools)
    click.echo()


def _echo_tools(tools: dict[str, bool]) -> None:
    if not tools:
        return
    marks = ", ".join(f"{name} {'✅' if ok else '❌'}" for name, ok in tools.items())
    click.echo(f"   Tools:     {marks}")


@sdk.command()
@click.option("--sdk-dir", type=click.Path(file_okay=False), default=None, help="Install location.")
@click.pass_context
def env(ctx: click.Context, sdk_dir: str | None) -> None:
    """Print shell export lines for FLUTTER_HOME, PATH and CHROME_EXECUTABLE.

    Use as ``eval "$(flutter-sandbox sdk env)"``.
    """
    from flutter_sandbox.core.use_cases.sdk_info import toolchain_env_for

    logs_off_stdout(ctx)
    config = load_cli_config(ctx, sdk_dir=sdk_dir)
    if not config.flutter_bin.is_file():
        click.secho(f"⚠️  No Flutter SDK at {config.sdk_dir}", fg="yellow", err=True)

    for line in toolchain_env_for(config).export_lines():
        click.echo(line)


# ── Act ─────────────────────────────────────────────────────────


@sdk.command()
@click.option("--sdk-dir", type=click.Path(file_okay=False), default=None, help="Install location.")
@click.pass_context
def doctor(ctx: click.Context, sdk_dir: str | None) -> None:
    """Run flutter doctor -v against the installed SDK."""
    from flutter_sandbox.core.use_cases.sdk_info import run_doctor

    config = load_cli_config(ctx, sdk_dir=sdk_dir)
    if not config.flutter_bin.is_file():
        click.secho(f"❌ No Flutter SDK at {config.sdk_dir}. Run 'flutter-sandbox setup' first.", fg="red")
        sys.exit(1)

    receipt = run_doctor(config)
    if not receipt.ok:
        click.secho(f"❌ flutter doctor reported problems: {receipt.error}", fg="red")
        sys.exit(1)

    click.secho("✅ flutter doctor finished", fg="green")
