"""
Flutter adapter — drives the SDK through its command line.

Always invokes the ``flutter`` executable of the configured install
(``<sdk>/bin/flutter``) so a different flutter on PATH is never used.
"""

from __future__ import annotations

import logging
from pathlib import Path

from flutter_sandbox.adapters.base import Adapter, ExecutionContext
from flutter_sandbox.core.models.action import Receipt

logger = logging.getLogger(__name__)

_OPERATIONS = {"config", "precache", "doctor", "version"}


class FlutterAdapter(Adapter):
    """Flutter CLI operations.

    Action params:
        operation (str): One of 'config', 'precache', 'doctor', 'version'.
        sdk_dir (str): SDK root containing ``bin/flutter``.
        flags (list[str]): Extra flags (for 'config', e.g. ['--enable-web']).
        verbose (bool): Pass ``-v`` (for 'doctor', default: True).
        stream (bool): Stream output to the terminal (default: False).
    """

    def __init__(self, sdk_dir: Path | None = None):
        self._sdk_dir = sdk_dir

    @property
    def name(self) -> str:
        return "flutter"

    def is_available(self) -> bool:
        return self._sdk_dir is not None and (self._sdk_dir / "bin" / "flutter").is_file()

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        operation = params.get("operation", "")
        if operation not in _OPERATIONS:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(_OPERATIONS))}"

        if not params.get("sdk_dir") and self._sdk_dir is None:
            return False, "Missing required param: 'sdk_dir'"

        if operation == "config" and not params.get("flags"):
            return False, "Missing required param: 'flags' for config operation"

        if not context.dry_run and not self._flutter(context).is_file():
            return False, f"flutter executable not found: {self._flutter(context)}"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        params = context.action.params
        operation = params["operation"]
        flutter = str(self._flutter(context))
        stream = bool(params.get("stream", False))

        if operation == "config":
            return self._run(context, [flutter, "config", *params["flags"]], stream=stream)
        if operation == "precache":
            return self._run(context, [flutter, "precache"], stream=stream)
        if operation == "doctor":
            cmd = [flutter, "doctor"]
            if params.get("verbose", True):
                cmd.append("-v")
            return self._run(context, cmd, stream=stream)
        return self._run(context, [flutter, "--version"])

    def _flutter(self, context: ExecutionContext) -> Path:
        sdk_dir = context.action.params.get("sdk_dir") or self._sdk_dir
        return Path(sdk_dir) / "bin" / "flutter"
