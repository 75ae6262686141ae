"""
Shell command adapter — execute an argument vector.

The most fundamental adapter: it runs a command and captures (or
streams) its output. Used for commands that have no dedicated adapter,
such as the xvfb-run wrapped child.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from flutter_sandbox.adapters.base import Adapter, ExecutionContext
from flutter_sandbox.core.models.action import Receipt

logger = logging.getLogger(__name__)


class ShellCommandAdapter(Adapter):
    """Execute commands and capture output.

    Action params:
        argv (list[str]): The command to execute.
        stream (bool): Write output straight to the terminal (default: False).
        inherit_stdio (bool): Give the command our stdout/stderr even when
            the registry captures output.
        cwd (str): Override working directory.
    """

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return shutil.which("sh") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        argv = context.action.params.get("argv") or []
        if not argv:
            return False, "Missing required param: 'argv'"
        if not all(isinstance(a, str) for a in argv):
            return False, "'argv' must be a list of strings"

        cwd = context.action.params.get("cwd", context.cwd)
        if cwd and not Path(cwd).is_dir():
            return False, f"Working directory does not exist: {cwd}"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        argv = list(context.action.params["argv"])
        return self._run(
            context,
            argv,
            stream=bool(context.action.params.get("stream", False)),
            inherit_stdio=bool(context.action.params.get("inherit_stdio", False)),
            cwd=context.action.params.get("cwd"),
        )
