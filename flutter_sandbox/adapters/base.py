"""
Adapter base — the protocol contract between bootstrap steps and tools.

Steps only talk to external tools (package manager, git, flutter)
through adapters, and only through this protocol.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from flutter_sandbox.adapters.shell.runner import run_command
from flutter_sandbox.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """Everything an adapter needs to execute an action.

    ``env`` holds the toolchain variables exported so far in the run
    (FLUTTER_HOME, PATH, CHROME_EXECUTABLE). They are layered over the
    process environment for the child command only.
    """

    action: Action
    cwd: str | None = None
    env: dict[str, str] = Field(default_factory=dict)
    dry_run: bool = False
    stream_output: bool = True     # False: capture even when an action asks to stream
    params: dict[str, Any] = Field(default_factory=dict)


class Adapter(ABC):
    """Abstract base class for all adapters.

    Adapters perform external side effects and return receipts.
    They NEVER raise exceptions — failures are captured in the Receipt.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'shell', 'git', 'flutter')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this adapter's underlying tool is available.

        Should be fast and never raise.
        """

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Validate that the action can be executed.

        Returns:
            (is_valid, error_message). error_message is empty if valid.
        """

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Execute the action and return a receipt.

        MUST never raise exceptions. All failures are captured
        in the Receipt with status='failed'.
        """

    def _run(
        self,
        context: ExecutionContext,
        cmd: list[str],
        *,
        stream: bool = False,
        inherit_stdio: bool = False,
        cwd: str | None = None,
        **metadata: Any,
    ) -> Receipt:
        """Run ``cmd`` through the subprocess runner and wrap the result.

        ``stream`` is honoured only when the registry streams output;
        ``inherit_stdio`` always hands the terminal to the command.
        """
        result = run_command(
            cmd,
            env_overrides=context.env,
            cwd=cwd or context.cwd,
            stream=inherit_stdio or (stream and context.stream_output),
        )
        meta = {"command": cmd, "return_code": result.get("returncode"), **metadata}

        if result["ok"]:
            meta["stderr"] = result.get("stderr", "").strip()
            return Receipt.success(
                adapter=self.name,
                action_id=context.action.id,
                output=result.get("stdout", "").strip(),
                duration_ms=result.get("elapsed_ms", 0),
                metadata=meta,
            )

        meta["stdout"] = result.get("stdout", "").strip()
        stderr = result.get("stderr", "").strip()
        return Receipt.failure(
            adapter=self.name,
            action_id=context.action.id,
            error=stderr or result["error"],
            duration_ms=result.get("elapsed_ms", 0),
            metadata=meta,
        )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
