"""
Setup use case — the full bootstrap, end to end.

Phase 1 installs system packages (so xvfb-run exists), then the display
guard decides whether this process carries on or supervises a wrapped
child. Phase 2 acquires, configures and verifies the SDK.

    deps → display guard → browser → sdk → env → platforms → precache → doctor
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable, Mapping, Sequence

from flutter_sandbox.adapters.registry import AdapterRegistry
from flutter_sandbox.core.engine.executor import (
    BootstrapContext,
    BootstrapReport,
    Step,
    run_steps,
)
from flutter_sandbox.core.engine.launcher import DisplayGuard
from flutter_sandbox.core.models.config import BootstrapConfig
from flutter_sandbox.core.steps import (
    AcquireSdkStep,
    ConfigurePlatformsStep,
    DoctorStep,
    ExportToolchainStep,
    InstallDependenciesStep,
    PrecacheStep,
    ResolveBrowserStep,
)
from flutter_sandbox.core.steps.toolchain import platform_label

logger = logging.getLogger(__name__)


def build_registry(
    config: BootstrapConfig,
    dry_run: bool = False,
    stream_output: bool = True,
) -> AdapterRegistry:
    """Registry with every adapter the bootstrap dispatches to."""
    from flutter_sandbox.adapters.shell.command import ShellCommandAdapter
    from flutter_sandbox.adapters.system.packages import PackageManagerAdapter
    from flutter_sandbox.adapters.toolchain.flutter import FlutterAdapter
    from flutter_sandbox.adapters.vcs.git import GitAdapter

    registry = AdapterRegistry(dry_run=dry_run, stream_output=stream_output)
    registry.register(ShellCommandAdapter())
    registry.register(PackageManagerAdapter())
    registry.register(GitAdapter())
    registry.register(FlutterAdapter(sdk_dir=config.sdk_dir))
    return registry


def prepare_steps() -> list[Step]:
    return [InstallDependenciesStep()]


def sdk_steps() -> list[Step]:
    return [
        ResolveBrowserStep(),
        AcquireSdkStep(),
        ExportToolchainStep(),
        ConfigurePlatformsStep(),
        PrecacheStep(),
        DoctorStep(),
    ]


def run_setup(
    config: BootstrapConfig,
    argv: Sequence[str] = (),
    registry: AdapterRegistry | None = None,
    environ: Mapping[str, str] | None = None,
    which: Callable[[str], str | None] | None = None,
    dry_run: bool = False,
) -> BootstrapReport:
    """Bootstrap the sandbox.

    Args:
        config: Frozen run configuration.
        argv: Original command-line arguments, forwarded to a wrapped child.
        registry: Optional pre-configured adapter registry.
        environ: Environment to probe (default: ``os.environ``).
        which: Executable lookup (default: ``shutil.which``).
        dry_run: Log every command instead of running it.

    Returns:
        BootstrapReport; ``exit_code`` is what the process should exit with.
    """
    if registry is None:
        registry = build_registry(config, dry_run=dry_run)

    ctx_kwargs: dict = {"config": config, "registry": registry}
    if environ is not None:
        ctx_kwargs["environ"] = dict(environ)
    ctx_kwargs["which"] = which or shutil.which
    ctx = BootstrapContext(**ctx_kwargs)

    # ── Phase 1: host preparation + display guard ────────────────
    report = run_steps(prepare_steps(), ctx)

    outcome = DisplayGuard(argv).check(ctx)
    if outcome.relaunched:
        report.relaunched = True
        report.child_exit_code = outcome.exit_code
        return report

    # ── Phase 2: SDK ─────────────────────────────────────────────
    run_steps(sdk_steps(), ctx, report)
    if report.fatal:
        return report

    report.exports = ctx.toolchain.export_lines()

    _log_summary(config, report)
    return report


def _log_summary(config: BootstrapConfig, report: BootstrapReport) -> None:
    logger.info("Flutter SDK setup finished.")
    logger.info("Flutter is installed at: %s", config.sdk_dir)
    if config.enable_platforms:
        logger.info("Target platforms: %s.", ", ".join(platform_label(p) for p in config.enable_platforms))
    if config.disable_platforms:
        logger.info(
            "Disabled platforms: %s.", ", ".join(platform_label(p) for p in config.disable_platforms)
        )
    if report.failed:
        logger.warning(
            "Completed with warnings in: %s. Review the messages above.",
            ", ".join(r.step_id for r in report.failed),
        )
