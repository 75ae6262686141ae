"""
Display guard — two-phase launcher for headless sandboxes.

Linux-desktop verification needs an X display. When none is configured
and we are not already inside a virtual one, the supervisor (this
process) re-runs the whole bootstrap as a child under ``xvfb-run``,
waits for it, and hands back its exit code. The child carries a
sentinel variable, so it never wraps itself again. The child inherits
our stdout and stderr, so its report (plain or ``--json``) reaches the
caller unchanged.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from dataclasses import dataclass

from flutter_sandbox.core.engine.executor import BootstrapContext
from flutter_sandbox.core.models.action import Action, Receipt
from flutter_sandbox.core.models.environment import XVFB_SENTINEL

logger = logging.getLogger(__name__)

# Module the child runs with ``python -m``.
ENTRY_MODULE = "flutter_sandbox.main"


@dataclass
class GuardOutcome:
    """What the guard decided and, if it relaunched, how the child ended."""

    decision: str                     # display | wrapped | disabled | unavailable | relaunched | dry-run
    receipt: Receipt | None = None

    @property
    def relaunched(self) -> bool:
        return self.decision == "relaunched"

    @property
    def exit_code(self) -> int | None:
        """The child's return code (127 if xvfb-run could not be started).

        Falls back to 1 for a failed receipt that carries no code.
        """
        if self.receipt is None:
            return None
        code = self.receipt.metadata.get("return_code")
        if isinstance(code, int):
            return code
        return 0 if self.receipt.ok else 1


def wrapped_command(
    argv: Sequence[str],
    server_args: str,
    xvfb_run: str = "xvfb-run",
    python: str | None = None,
) -> list[str]:
    """Command line that re-runs the bootstrapper under xvfb-run.

    ``argv`` is passed through unchanged.
    """
    return [
        xvfb_run,
        "--auto-servernum",
        f"--server-args={server_args}",
        python or sys.executable,
        "-m",
        ENTRY_MODULE,
        *argv,
    ]


class DisplayGuard:
    """One-shot virtual display guard.

    Args:
        argv: The original command-line arguments, forwarded to the child.
        python: Interpreter for the child (default: ``sys.executable``).
    """

    def __init__(self, argv: Sequence[str], python: str | None = None):
        self._argv = list(argv)
        self._python = python

    def check(self, ctx: BootstrapContext) -> GuardOutcome:
        """Decide whether to wrap, and run the wrapped child if so."""
        snapshot = ctx.snapshot
        assert snapshot is not None
        display = ctx.config.display

        if snapshot.display:
            logger.info("DISPLAY environment variable is set to: %s", snapshot.display)
            return GuardOutcome("display")

        if snapshot.in_virtual_display:
            logger.warning(
                "DISPLAY environment variable is not set, and xvfb-run did not set it. "
                "UI operations may fail."
            )
            return GuardOutcome("wrapped")

        if not display.enabled:
            logger.warning("DISPLAY not set and virtual display disabled. Linux desktop checks may fail.")
            return GuardOutcome("disabled")

        if not snapshot.xvfb_run:
            logger.warning(
                "DISPLAY not set and xvfb-run not found. Continuing without a display; "
                "Linux desktop checks may fail."
            )
            return GuardOutcome("unavailable")

        logger.info("DISPLAY not set and not in Xvfb. Re-executing with xvfb-run...")
        cmd = wrapped_command(
            self._argv,
            display.server_args,
            xvfb_run=snapshot.xvfb_run,
            python=self._python,
        )
        env = ctx.toolchain.as_env(base_path=ctx.environ.get("PATH", ""))
        env[XVFB_SENTINEL] = "1"

        receipt = ctx.registry.execute_action(
            Action(
                id="display:xvfb-run",
                name="re-run under xvfb-run",
                adapter="shell",
                step="display",
                params={"argv": cmd, "inherit_stdio": True},
            ),
            env=env,
        )
        ctx.receipts.append(receipt)

        if receipt.status == "skipped":
            # dry-run: carry on in-process so the rest of the plan is shown
            return GuardOutcome("dry-run", receipt)

        outcome = GuardOutcome("relaunched", receipt)
        logger.debug("Wrapped bootstrap exited with %s", outcome.exit_code)
        return outcome
