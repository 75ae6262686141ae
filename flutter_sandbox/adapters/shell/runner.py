"""
Core subprocess runner.

The SINGLE PLACE where ``subprocess.run`` is called for bootstrap
commands. Logging, environment handling and error capture live here;
adapters turn the returned dict into a Receipt.

No timeouts are applied: package installs, clones and precache runs
take as long as they take.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from typing import Any

logger = logging.getLogger(__name__)

# Captured output is trimmed to this many trailing characters.
_OUTPUT_TAIL = 4000


def run_command(
    cmd: list[str],
    *,
    env_overrides: dict[str, str] | None = None,
    cwd: str | None = None,
    stream: bool = False,
) -> dict[str, Any]:
    """Run a command to completion.

    Args:
        cmd: Argument vector (never passed through a shell).
        env_overrides: Variables layered over the current environment.
        cwd: Working directory for the command.
        stream: Let the command write straight to our stdout/stderr
            instead of capturing it (used for long human-readable
            reports such as ``flutter doctor -v``).

    Returns:
        ``{"ok": True, "stdout": "...", "stderr": "...", "returncode": 0,
        "elapsed_ms": N}`` on success, ``{"ok": False, "error": "...", ...}``
        on failure.
    """
    env = os.environ.copy()
    if env_overrides:
        env.update(env_overrides)

    logger.debug("Executing: %s (cwd=%s)", " ".join(cmd), cwd or ".")
    start = time.monotonic()
    try:
        if stream:
            result = subprocess.run(cmd, env=env, cwd=cwd)
        else:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                env=env,
                cwd=cwd,
            )
    except FileNotFoundError:
        return {
            "ok": False,
            "error": f"Command not found: {cmd[0]}",
            "returncode": 127,
        }
    except OSError as e:
        logger.debug("Subprocess error: %s", cmd, exc_info=True)
        return {"ok": False, "error": f"Command execution error: {e}", "returncode": -1}

    elapsed_ms = int((time.monotonic() - start) * 1000)
    stdout = (result.stdout or "")[-_OUTPUT_TAIL:] if not stream else ""
    stderr = (result.stderr or "")[-_OUTPUT_TAIL:] if not stream else ""

    if result.returncode == 0:
        return {
            "ok": True,
            "stdout": stdout,
            "stderr": stderr,
            "returncode": 0,
            "elapsed_ms": elapsed_ms,
        }

    return {
        "ok": False,
        "error": f"Command failed (exit {result.returncode})",
        "stdout": stdout,
        "stderr": stderr,
        "returncode": result.returncode,
        "elapsed_ms": elapsed_ms,
    }
