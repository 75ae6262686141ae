"""
Dependency installer step.

Installs the OS packages web and Linux-desktop builds need, through the
detected package manager, elevating with sudo when not root. Never
fatal: when packages cannot be installed the operator is told which
ones must already be present, and ``flutter doctor`` will report the
rest.
"""

from __future__ import annotations

import logging

from flutter_sandbox.core.engine.executor import BootstrapContext
from flutter_sandbox.core.models.action import Action
from flutter_sandbox.core.models.environment import PACKAGE_MANAGERS
from flutter_sandbox.core.models.step import StepResult

logger = logging.getLogger(__name__)


class InstallDependenciesStep:
    step_id = "deps"
    title = "System dependencies"

    def run(self, ctx: BootstrapContext) -> StepResult:
        config = ctx.config
        snapshot = ctx.snapshot
        assert snapshot is not None

        if config.skip_deps:
            logger.info("Skipping system dependency installation (--skip-deps).")
            return StepResult.skipped(self.step_id, "skipped on request")

        manager = snapshot.package_manager
        if manager is None:
            names = ", ".join(config.reference_packages())
            binaries = ", ".join(PACKAGE_MANAGERS.values())
            logger.warning(
                "No supported package manager found (%s). Assuming essential "
                "dependencies are already installed: %s",
                binaries, names,
            )
            return StepResult.skipped(self.step_id, f"no package manager; assumed installed: {names}")

        packages = config.packages_for(manager)
        if not packages:
            logger.warning("No package list configured for %s; skipping dependency installation.", manager)
            return StepResult.skipped(self.step_id, f"no packages configured for {manager}")

        if not snapshot.can_elevate:
            logger.error(
                "Not root and sudo not found. Cannot install dependencies. "
                "Please ensure they are pre-installed: %s",
                ", ".join(packages),
            )
            return StepResult.failed(self.step_id, "cannot elevate privileges")

        logger.info("Ensuring prerequisites for web and Linux desktop development are installed...")
        sudo = not snapshot.is_root
        receipts = []

        query = ctx.dispatch(Action(
            id="deps:query",
            name=f"query {manager} packages",
            adapter="packages",
            step=self.step_id,
            params={"operation": "query", "manager": manager, "packages": packages},
        ))
        receipts.append(query)
        missing = list(query.metadata.get("missing", packages)) if query.ok else packages
        if not missing:
            logger.info("System dependencies already installed.")
            return StepResult.skipped(self.step_id, "all packages already installed", receipts)

        logger.info("Updating package lists%s...", " (with sudo)" if sudo else "")
        update = ctx.dispatch(Action(
            id="deps:update",
            name=f"refresh {manager} package lists",
            adapter="packages",
            step=self.step_id,
            params={"operation": "update", "manager": manager, "sudo": sudo},
        ))
        receipts.append(update)
        if update.failed:
            logger.warning("Updating package lists failed: %s. Trying to install anyway.", update.error)

        logger.info("Installing dependencies: %s", ", ".join(missing))
        install = ctx.dispatch(Action(
            id="deps:install",
            name=f"install {len(missing)} {manager} packages",
            adapter="packages",
            step=self.step_id,
            params={"operation": "install", "manager": manager, "packages": missing, "sudo": sudo},
        ))
        receipts.append(install)

        # Browsers and xvfb-run may have just appeared.
        ctx.refresh_snapshot()

        if install.failed:
            logger.error(
                "Failed to install some or all system dependencies. Flutter doctor may report issues."
            )
            return StepResult.failed(self.step_id, install.error or "install failed", receipts)

        logger.info("System dependencies installation attempt complete.")
        return StepResult.ok(self.step_id, f"installed {len(missing)} packages", receipts)
