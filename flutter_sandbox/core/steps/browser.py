"""Browser resolution step — picks the Chrome/Chromium used for web targets."""

from __future__ import annotations

import logging
from pathlib import Path

from flutter_sandbox.core.engine.executor import BootstrapContext
from flutter_sandbox.core.models.step import StepResult

logger = logging.getLogger(__name__)


class ResolveBrowserStep:
    step_id = "browser"
    title = "Web browser"

    def run(self, ctx: BootstrapContext) -> StepResult:
        snapshot = ctx.snapshot
        assert snapshot is not None

        preset = snapshot.chrome_executable
        if preset and (ctx.which(preset) or Path(preset).is_file()):
            ctx.toolchain.chrome_executable = preset
            logger.info("CHROME_EXECUTABLE already set to %s", preset)
            return StepResult.ok(self.step_id, preset)

        found = snapshot.first_browser()
        if found is None:
            logger.warning(
                "None of %s found. Web support may fail or require manual "
                "CHROME_EXECUTABLE setup.",
                ", ".join(ctx.config.browsers),
            )
            return StepResult.failed(self.step_id, "no browser found")

        name, _path = found
        ctx.toolchain.chrome_executable = name
        logger.info("CHROME_EXECUTABLE set to %s", name)
        return StepResult.ok(self.step_id, name)
