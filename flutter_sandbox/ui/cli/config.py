"""
CLI commands for the bootstrap configuration.
"""

from __future__ import annotations

import json
import sys

import click
import yaml

from flutter_sandbox.ui.cli.helpers import load_cli_config, logs_off_stdout


@click.group()
def config() -> None:
    """Bootstrap configuration commands."""


@config.command("show")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_show(ctx: click.Context, as_json: bool) -> None:
    """Print the resolved configuration (defaults, file and environment)."""
    from flutter_sandbox.core.config.loader import dump_config

    logs_off_stdout(ctx)
    data = dump_config(load_cli_config(ctx))

    if as_json:
        click.echo(json.dumps(data, indent=2))
        return
    click.echo(yaml.safe_dump({"sandbox": data}, sort_keys=False, default_flow_style=False), nl=False)


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate flutter-sandbox.yml."""
    from flutter_sandbox.core.config.loader import ConfigError, find_config_file, load_config

    if as_json:
        logs_off_stdout(ctx)

    path = ctx.obj.get("config_path") or find_config_file()
    try:
        cfg = load_config(path=path, search=False)
    except ConfigError as e:
        if as_json:
            click.echo(json.dumps({"valid": False, "path": str(path) if path else None, "errors": [str(e)]}, indent=2))
        else:
            click.secho("❌ Configuration errors:", fg="red", bold=True)
            click.echo(f"   • {e}")
        sys.exit(2)

    if as_json:
        click.echo(json.dumps({"valid": True, "path": str(path) if path else None, "errors": []}, indent=2))
        return

    click.secho("✅ Configuration is valid", fg="green", bold=True)
    if path is None:
        click.echo("   No flutter-sandbox.yml found, using defaults")
    else:
        click.echo(f"   File:     {path}")
    click.echo(f"   SDK dir:  {cfg.sdk_dir}")
    click.echo(f"   Channel:  {cfg.channel}")
    click.echo(f"   Version:  {cfg.version}")
    click.echo(f"   Enable:   {', '.join(cfg.enable_platforms) or '-'}")
    click.echo(f"   Disable:  {', '.join(cfg.disable_platforms) or '-'}")
    click.echo()
