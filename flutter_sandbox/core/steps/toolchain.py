"""
Toolchain configuration steps.

``env`` exports FLUTTER_HOME and the SDK bin directories for the rest of
the run. ``platforms`` steers ``flutter config``: mobile targets off,
web and Linux desktop on. Every config command is attempted; a failure
is a warning, never a reason to stop.
"""

from __future__ import annotations

import logging

from flutter_sandbox.core.engine.executor import BootstrapContext
from flutter_sandbox.core.models.action import Action, Receipt
from flutter_sandbox.core.models.step import StepResult

logger = logging.getLogger(__name__)

PLATFORM_LABELS = {
    "web": "Web",
    "linux-desktop": "Linux desktop",
    "macos-desktop": "macOS desktop",
    "windows-desktop": "Windows desktop",
    "android": "Android",
    "ios": "iOS",
    "fuchsia": "Fuchsia",
    "custom-devices": "Custom devices",
}


def platform_label(platform: str) -> str:
    return PLATFORM_LABELS.get(platform, platform)


class ExportToolchainStep:
    step_id = "env"
    title = "Toolchain environment"

    def run(self, ctx: BootstrapContext) -> StepResult:
        config = ctx.config
        ctx.toolchain.flutter_home = config.sdk_dir
        ctx.toolchain.path_prepend = config.bin_dirs

        path = ctx.toolchain.as_env(base_path=ctx.environ.get("PATH", ""))["PATH"]
        logger.info("Flutter PATH set for this session: %s", path)
        logger.info("Dart SDK (bundled with Flutter) also added to PATH.")
        return StepResult.ok(self.step_id, f"FLUTTER_HOME={config.sdk_dir}")


class ConfigurePlatformsStep:
    step_id = "platforms"
    title = "Target platforms"

    def run(self, ctx: BootstrapContext) -> StepResult:
        config = ctx.config
        receipts: list[Receipt] = []
        problems: list[str] = []

        if config.disable_platforms:
            names = ", ".join(platform_label(p) for p in config.disable_platforms)
            logger.info("Disabling platforms (%s) for Flutter...", names)
        for platform in config.disable_platforms:
            receipt = self._configure(ctx, platform, enable=False)
            receipts.append(receipt)
            if receipt.failed:
                logger.warning(
                    "Could not disable %s platform. Its components might still be downloaded or checked.",
                    platform_label(platform),
                )
                problems.append(f"disable {platform}")
            else:
                logger.info("%s platform disabled for Flutter.", platform_label(platform))

        if config.enable_platforms:
            names = ", ".join(platform_label(p) for p in config.enable_platforms)
            logger.info("Enabling platforms (%s) explicitly...", names)
        for platform in config.enable_platforms:
            receipt = self._configure(ctx, platform, enable=True)
            receipts.append(receipt)
            if receipt.failed:
                logger.warning(
                    "Could not enable %s platform. Precache and doctor might show issues.",
                    platform_label(platform),
                )
                problems.append(f"enable {platform}")
            else:
                logger.info("%s platform enabled.", platform_label(platform))

        if problems:
            return StepResult.failed(self.step_id, "could not " + ", ".join(problems), receipts)
        return StepResult.ok(self.step_id, "platforms configured", receipts)

    def _configure(self, ctx: BootstrapContext, platform: str, enable: bool) -> Receipt:
        flag = f"--enable-{platform}" if enable else f"--no-enable-{platform}"
        return ctx.dispatch(Action(
            id=f"flutter:config:{platform}",
            name=f"flutter config {flag}",
            adapter="flutter",
            step=self.step_id,
            params={"operation": "config", "sdk_dir": str(ctx.config.sdk_dir), "flags": [flag]},
        ))
