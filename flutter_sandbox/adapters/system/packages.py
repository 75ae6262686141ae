"""
System package adapter — query, refresh and install OS packages.

Supports the package managers the bootstrapper can detect (apt, dnf,
pacman). Privilege elevation is decided by the caller and passed in as
``sudo``; this adapter only prefixes the command.
"""

from __future__ import annotations

import logging
import shutil

from flutter_sandbox.adapters.base import Adapter, ExecutionContext
from flutter_sandbox.adapters.shell.runner import run_command
from flutter_sandbox.core.models.action import Receipt

logger = logging.getLogger(__name__)

# manager -> (refresh command, install command prefix)
MANAGER_COMMANDS: dict[str, tuple[list[str], list[str]]] = {
    "apt": (["apt-get", "update", "-y"], ["apt-get", "install", "-y"]),
    "dnf": (["dnf", "makecache", "-y"], ["dnf", "install", "-y"]),
    "pacman": (["pacman", "-Sy", "--noconfirm"], ["pacman", "-S", "--noconfirm", "--needed"]),
}

# manager -> installed-check command prefix (package name appended)
QUERY_COMMANDS: dict[str, list[str]] = {
    "apt": ["dpkg-query", "-W", "-f=${Status}"],
    "dnf": ["rpm", "-q"],
    "pacman": ["pacman", "-Q"],
}

_OPERATIONS = {"query", "update", "install"}


class PackageManagerAdapter(Adapter):
    """System package operations.

    Action params:
        operation (str): One of 'query', 'update', 'install'.
        manager (str): One of the keys of ``MANAGER_COMMANDS``.
        packages (list[str]): Package names (for 'query' and 'install').
        sudo (bool): Prefix mutating commands with ``sudo`` (default: False).
    """

    @property
    def name(self) -> str:
        return "packages"

    def is_available(self) -> bool:
        return any(shutil.which(cmds[1][0]) for cmds in MANAGER_COMMANDS.values())

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        operation = params.get("operation", "")
        if operation not in _OPERATIONS:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(_OPERATIONS))}"

        manager = params.get("manager", "")
        if manager not in MANAGER_COMMANDS:
            return False, f"Unsupported package manager '{manager}'"

        if operation in ("query", "install") and not params.get("packages"):
            return False, f"Missing required param: 'packages' for {operation} operation"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        params = context.action.params
        operation = params["operation"]
        manager = params["manager"]
        packages = list(params.get("packages") or [])
        prefix = ["sudo"] if params.get("sudo") else []

        if operation == "query":
            return self._query(context, manager, packages)

        refresh, install = MANAGER_COMMANDS[manager]
        if operation == "update":
            return self._run(context, prefix + refresh, manager=manager)
        return self._run(context, prefix + install + packages, manager=manager, packages=packages)

    def _query(self, ctx: ExecutionContext, manager: str, packages: list[str]) -> Receipt:
        """Split ``packages`` into installed and missing."""
        installed: list[str] = []
        missing: list[str] = []
        for pkg in packages:
            if self._is_installed(manager, pkg):
                installed.append(pkg)
            else:
                missing.append(pkg)

        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"{len(installed)} installed, {len(missing)} missing",
            metadata={"manager": manager, "installed": installed, "missing": missing},
        )

    @staticmethod
    def _is_installed(manager: str, pkg: str) -> bool:
        result = run_command(QUERY_COMMANDS[manager] + [pkg])
        if manager == "apt":
            return result["ok"] and "install ok installed" in result.get("stdout", "")
        return bool(result["ok"])
