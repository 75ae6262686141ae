"""
Helpers shared by CLI command groups.
"""

from __future__ import annotations

import sys

import click

from flutter_sandbox.core.models.config import BootstrapConfig
from flutter_sandbox.core.observability.logging_config import setup_logging


def load_cli_config(ctx: click.Context, **overrides) -> BootstrapConfig:
    """Resolve configuration for a command, exiting 2 on ConfigError."""
    from flutter_sandbox.core.config.loader import ConfigError, load_config

    try:
        return load_config(path=ctx.obj.get("config_path"), overrides=overrides)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(2)


def logs_off_stdout(ctx: click.Context) -> None:
    """Re-route INFO lines to stderr so stdout carries only JSON."""
    settings = ctx.obj.get("log_settings") or {}
    setup_logging(**settings, info_to_stdout=False)
