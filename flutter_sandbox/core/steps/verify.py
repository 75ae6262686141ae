"""
Verification steps — precache, then doctor.

Both are best-effort. A failing precache still lets doctor run, since
doctor usually explains why; a failing doctor is reported but leaves the
exit code alone. The caller reads the report and decides.
"""

from __future__ import annotations

import logging

from flutter_sandbox.core.engine.executor import BootstrapContext
from flutter_sandbox.core.models.action import Action
from flutter_sandbox.core.models.step import StepResult
from flutter_sandbox.core.steps.toolchain import platform_label

logger = logging.getLogger(__name__)


class PrecacheStep:
    step_id = "precache"
    title = "Precache"

    def run(self, ctx: BootstrapContext) -> StepResult:
        logger.info("Running 'flutter precache' to download development binaries for enabled platforms...")
        receipt = ctx.dispatch(Action(
            id="flutter:precache",
            name="flutter precache",
            adapter="flutter",
            step=self.step_id,
            params={"operation": "precache", "sdk_dir": str(ctx.config.sdk_dir), "stream": True},
        ))
        if receipt.failed:
            logger.error(
                "flutter precache command failed. There might be issues with the network or SDK download."
            )
            return StepResult.failed(self.step_id, receipt.error or "precache failed", [receipt])

        logger.info("flutter precache completed successfully.")
        return StepResult.ok(self.step_id, "precache complete", [receipt])


class DoctorStep:
    step_id = "doctor"
    title = "Diagnostics"

    def run(self, ctx: BootstrapContext) -> StepResult:
        config = ctx.config
        enabled = ", ".join(platform_label(p) for p in config.enable_platforms) or "none"
        disabled = ", ".join(platform_label(p) for p in config.disable_platforms) or "none"

        logger.info("Running 'flutter doctor -v' to check the setup.")
        logger.info("Expect these platforms to be available and configured: %s.", enabled)
        logger.info("These should be reported as not enabled, which is intended: %s.", disabled)

        receipt = ctx.dispatch(Action(
            id="flutter:doctor",
            name="flutter doctor -v",
            adapter="flutter",
            step=self.step_id,
            params={
                "operation": "doctor",
                "sdk_dir": str(config.sdk_dir),
                "verbose": True,
                "stream": True,
            },
        ))
        if receipt.failed:
            logger.error(
                "flutter doctor reported issues. Please review the output above and check "
                "that %s are correctly set up.",
                enabled,
            )
            return StepResult.failed(self.step_id, "doctor reported issues", [receipt])

        logger.info("flutter doctor check completed. Please verify %s readiness in the output above.", enabled)
        return StepResult.ok(self.step_id, "doctor passed", [receipt])
