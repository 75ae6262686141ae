"""
SDK acquisition step — the only step that can end a run.

An install directory that already holds ``bin/flutter`` is taken as
satisfied and never re-cloned. Otherwise the configured channel is
shallow-cloned; a pinned version is then checked out, with one
fetch-tags-and-retry before giving up.
"""

from __future__ import annotations

import logging
import shutil

from flutter_sandbox.core.engine.executor import BootstrapContext
from flutter_sandbox.core.models.action import Action, Receipt
from flutter_sandbox.core.models.step import StepResult

logger = logging.getLogger(__name__)


class AcquireSdkStep:
    step_id = "sdk"
    title = "Flutter SDK"

    def run(self, ctx: BootstrapContext) -> StepResult:
        config = ctx.config
        sdk_dir = config.sdk_dir
        receipts: list[Receipt] = []

        if config.clean and ctx.snapshot is not None and ctx.snapshot.sdk_dir_exists:
            logger.info("Removing previous Flutter installation at %s...", sdk_dir)
            if not ctx.dry_run:
                try:
                    shutil.rmtree(sdk_dir)
                except OSError as e:
                    logger.error("Could not remove %s: %s", sdk_dir, e)
                    return StepResult.fatal_error(self.step_id, f"cannot remove {sdk_dir}: {e}")
                ctx.refresh_snapshot()

        snapshot = ctx.snapshot
        assert snapshot is not None

        if config.is_latest:
            logger.info("Using git to clone the latest from Flutter channel: %s.", config.channel)
        else:
            logger.info("Specific version requested: %s. Will use git clone and checkout.", config.version)

        if snapshot.sdk_installed:
            logger.info("Flutter SDK already found at %s.", sdk_dir)
            if config.is_latest or not config.verify_existing:
                return StepResult.skipped(self.step_id, f"already installed at {sdk_dir}")
            return self._checkout(ctx, receipts)

        if snapshot.sdk_dir_exists:
            logger.warning(
                "%s exists but contains no bin/flutter; cloning into it fails unless it is empty.",
                sdk_dir,
            )

        logger.info("Flutter SDK not found. Cloning from %s (channel: %s)...", config.repository, config.channel)
        clone = ctx.dispatch(Action(
            id="sdk:clone",
            name=f"clone flutter ({config.channel})",
            adapter="git",
            step=self.step_id,
            params={
                "operation": "clone",
                "repository": config.repository,
                "branch": config.channel,
                "depth": 1,
                "dest": str(sdk_dir),
            },
        ))
        receipts.append(clone)
        if clone.failed:
            logger.error(
                "Failed to clone Flutter SDK: %s. Please check network connection and git installation.",
                clone.error,
            )
            return StepResult.fatal_error(self.step_id, "clone failed", receipts)
        logger.info("Flutter SDK cloned successfully to %s.", sdk_dir)

        if config.is_latest:
            return StepResult.ok(self.step_id, f"cloned {config.channel}", receipts)
        return self._checkout(ctx, receipts)

    def _checkout(self, ctx: BootstrapContext, receipts: list[Receipt]) -> StepResult:
        """Check out the pinned version, retrying once after fetching tags."""
        config = ctx.config
        version = config.version
        logger.info("Attempting to checkout Flutter version: %s...", version)

        first = ctx.dispatch(self._checkout_action("sdk:checkout", ctx))
        receipts.append(first)
        if not first.failed:
            logger.info("Successfully checked out Flutter version %s.", version)
            return StepResult.ok(self.step_id, f"checked out {version}", receipts)

        logger.warning("Checkout of %s failed. Fetching tags and retrying once...", version)
        fetch = ctx.dispatch(Action(
            id="sdk:fetch-tags",
            name="fetch all tags",
            adapter="git",
            step=self.step_id,
            params={"operation": "fetch_tags", "repo_dir": str(config.sdk_dir)},
        ))
        receipts.append(fetch)
        if fetch.failed:
            logger.warning("git fetch --all --tags failed: %s", fetch.error)

        retry = ctx.dispatch(self._checkout_action("sdk:checkout-retry", ctx))
        receipts.append(retry)
        if retry.failed:
            logger.error(
                "Failed to checkout Flutter version %s. It might not exist on channel %s "
                "or was not fetched successfully.",
                version, config.channel,
            )
            return StepResult.fatal_error(self.step_id, f"checkout of {version} failed", receipts)

        logger.info("Successfully checked out Flutter version %s.", version)
        return StepResult.ok(self.step_id, f"checked out {version} after fetching tags", receipts)

    def _checkout_action(self, action_id: str, ctx: BootstrapContext) -> Action:
        return Action(
            id=action_id,
            name=f"checkout {ctx.config.version}",
            adapter="git",
            step=self.step_id,
            params={
                "operation": "checkout",
                "repo_dir": str(ctx.config.sdk_dir),
                "ref": ctx.config.version,
            },
        )
