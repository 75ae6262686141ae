"""
Engine executor — the bootstrap loop.

Runs step objects strictly in order, threading one BootstrapContext
through them, and collects each StepResult into a BootstrapReport.
A ``fatal`` result stops the loop; everything else is recorded and the
next step runs.

Flow:
    context → step → StepResult → (fatal? stop) → next step → report
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from flutter_sandbox.adapters.registry import AdapterRegistry
from flutter_sandbox.core.models.action import Action, Receipt
from flutter_sandbox.core.models.config import BootstrapConfig
from flutter_sandbox.core.models.environment import EnvironmentSnapshot
from flutter_sandbox.core.models.step import StepResult

logger = logging.getLogger(__name__)


@dataclass
class ToolchainEnv:
    """Variables the run exports for the toolchain.

    Held here instead of in ``os.environ``: every child command gets
    them as explicit overrides, and the caller gets them back as
    ``export`` lines. The process environment is never modified.
    """

    flutter_home: Path | None = None
    path_prepend: list[Path] = field(default_factory=list)
    chrome_executable: str | None = None

    def as_env(self, base_path: str | None = None) -> dict[str, str]:
        """Render as environment overrides.

        Args:
            base_path: PATH to prepend to (default: current ``PATH``).
        """
        env: dict[str, str] = {}
        if self.flutter_home is not None:
            env["FLUTTER_HOME"] = str(self.flutter_home)
        if self.path_prepend:
            base = os.environ.get("PATH", "") if base_path is None else base_path
            entries = [str(p) for p in self.path_prepend]
            env["PATH"] = os.pathsep.join(entries + ([base] if base else []))
        if self.chrome_executable:
            env["CHROME_EXECUTABLE"] = self.chrome_executable
        return env

    def export_lines(self) -> list[str]:
        """Shell ``export`` lines a caller can persist across sessions."""
        lines: list[str] = []
        if self.flutter_home is not None:
            lines.append(f'export FLUTTER_HOME="{self.flutter_home}"')
        if self.path_prepend:
            entries = ":".join(str(p) for p in self.path_prepend)
            lines.append(f'export PATH="{entries}:$PATH"')
        if self.chrome_executable:
            lines.append(f'export CHROME_EXECUTABLE="{self.chrome_executable}"')
        return lines


@dataclass
class BootstrapContext:
    """State threaded through the steps of one run."""

    config: BootstrapConfig
    registry: AdapterRegistry
    environ: Mapping[str, str] = field(default_factory=lambda: dict(os.environ))
    which: Callable[[str], str | None] = shutil.which
    snapshot: EnvironmentSnapshot | None = None
    toolchain: ToolchainEnv = field(default_factory=ToolchainEnv)
    receipts: list[Receipt] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.snapshot is None:
            self.refresh_snapshot()

    @property
    def dry_run(self) -> bool:
        return self.registry.dry_run

    def refresh_snapshot(self) -> EnvironmentSnapshot:
        """Re-probe the host (after packages were installed, for instance)."""
        self.snapshot = EnvironmentSnapshot.capture(
            self.config, environ=self.environ, which=self.which
        )
        return self.snapshot

    def dispatch(self, action: Action, cwd: str | None = None) -> Receipt:
        """Execute an action with the toolchain variables exported so far."""
        receipt = self.registry.execute_action(
            action,
            env=self.toolchain.as_env(base_path=self.environ.get("PATH", "")),
            cwd=cwd,
        )
        self.receipts.append(receipt)
        return receipt


class Step(Protocol):
    """A single bootstrap step."""

    step_id: str
    title: str

    def run(self, ctx: BootstrapContext) -> StepResult:
        ...


@dataclass
class BootstrapReport:
    """Result of a bootstrap run."""

    results: list[StepResult] = field(default_factory=list)
    aborted_at: str | None = None
    relaunched: bool = False
    child_exit_code: int | None = None
    exports: list[str] = field(default_factory=list)

    @property
    def fatal(self) -> bool:
        return self.aborted_at is not None

    @property
    def failed(self) -> list[StepResult]:
        """Non-fatal failures (warnings the operator should triage)."""
        return [r for r in self.results if r.status == "failed"]

    @property
    def exit_code(self) -> int:
        if self.relaunched:
            return self.child_exit_code if self.child_exit_code is not None else 1
        return 1 if self.fatal else 0

    @property
    def status(self) -> str:
        if self.fatal:
            return "fatal"
        if self.failed:
            return "partial"
        return "ok"

    def get(self, step_id: str) -> StepResult | None:
        for result in self.results:
            if result.step_id == step_id:
                return result
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "exit_code": self.exit_code,
            "aborted_at": self.aborted_at,
            "relaunched": self.relaunched,
            "steps": [
                {
                    "step": r.step_id,
                    "status": r.status,
                    "message": r.message,
                    "receipts": [rc.model_dump(mode="json") for rc in r.receipts],
                }
                for r in self.results
            ],
            "exports": self.exports,
        }


def run_steps(
    steps: Sequence[Step],
    ctx: BootstrapContext,
    report: BootstrapReport | None = None,
) -> BootstrapReport:
    """Run steps in order, stopping at the first fatal result.

    Args:
        steps: Steps to run.
        ctx: Shared run context.
        report: Report to append to (lets a run be split into phases).

    Returns:
        The report with one StepResult per step that ran.
    """
    report = report if report is not None else BootstrapReport()

    for step in steps:
        logger.debug("Running step %s", step.step_id)
        result = step.run(ctx)
        report.results.append(result)

        if result.fatal:
            logger.debug("Step %s failed fatally, stopping", step.step_id)
            report.aborted_at = step.step_id
            break

    return report
