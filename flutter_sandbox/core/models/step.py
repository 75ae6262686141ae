"""
StepResult — the outcome of one bootstrap step.

Two-tier failure policy:
    failed  → logged, the run continues
    fatal   → the run stops and exits non-zero
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from flutter_sandbox.core.models.action import Receipt

StepStatus = Literal["ok", "skipped", "failed", "fatal"]


class StepResult(BaseModel):
    """Immutable outcome of a step, consumed by the final report."""

    model_config = ConfigDict(frozen=True)

    step_id: str
    status: StepStatus = "ok"
    message: str = ""
    receipts: list[Receipt] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status in ("ok", "skipped")

    @property
    def fatal(self) -> bool:
        return self.status == "fatal"

    @classmethod
    def ok(cls, step_id: str, message: str = "", receipts: list[Receipt] | None = None) -> StepResult:
        return cls(step_id=step_id, status="ok", message=message, receipts=receipts or [])

    @classmethod
    def skipped(cls, step_id: str, message: str = "", receipts: list[Receipt] | None = None) -> StepResult:
        return cls(step_id=step_id, status="skipped", message=message, receipts=receipts or [])

    @classmethod
    def failed(cls, step_id: str, message: str, receipts: list[Receipt] | None = None) -> StepResult:
        return cls(step_id=step_id, status="failed", message=message, receipts=receipts or [])

    @classmethod
    def fatal_error(cls, step_id: str, message: str, receipts: list[Receipt] | None = None) -> StepResult:
        return cls(step_id=step_id, status="fatal", message=message, receipts=receipts or [])
