"""
SDK inspection use cases — status, shell exports, standalone doctor.

These work against an existing install and never clone or configure.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from flutter_sandbox.adapters.registry import AdapterRegistry
from flutter_sandbox.core.engine.executor import BootstrapContext, ToolchainEnv
from flutter_sandbox.core.models.action import Action, Receipt
from flutter_sandbox.core.models.config import BootstrapConfig
from flutter_sandbox.core.models.environment import EnvironmentSnapshot
from flutter_sandbox.core.use_cases.setup import build_registry

logger = logging.getLogger(__name__)

# Written by the flutter tool on first run.
VERSION_FILE = Path("bin") / "cache" / "flutter.version.json"


@dataclass
class SdkStatus:
    """What is currently installed at the configured location."""

    sdk_dir: Path
    installed: bool = False
    branch: str | None = None
    tag: str | None = None
    framework_version: str | None = None
    dart_version: str | None = None
    requested_channel: str = ""
    requested_version: str = ""
    tools: dict[str, bool] = field(default_factory=dict)
    notes: list[str] = field(default_factory=list)

    @property
    def matches_request(self) -> bool | None:
        """Whether the install matches the configured channel/version.

        ``None`` when it cannot be told (not installed, or nothing known).
        """
        if not self.installed:
            return None
        if self.requested_version and self.requested_version != "latest":
            if self.tag is None and self.framework_version is None:
                return None
            return self.requested_version in (self.tag, self.framework_version)
        if self.branch is None:
            return None
        return self.branch == self.requested_channel

    def to_dict(self) -> dict[str, Any]:
        return {
            "sdk_dir": str(self.sdk_dir),
            "installed": self.installed,
            "branch": self.branch,
            "tag": self.tag,
            "framework_version": self.framework_version,
            "dart_version": self.dart_version,
            "requested": {
                "channel": self.requested_channel,
                "version": self.requested_version,
            },
            "matches_request": self.matches_request,
            "tools": self.tools,
            "notes": self.notes,
        }


def get_sdk_status(
    config: BootstrapConfig,
    registry: AdapterRegistry | None = None,
) -> SdkStatus:
    """Inspect the install directory without changing it."""
    status = SdkStatus(
        sdk_dir=config.sdk_dir,
        installed=config.flutter_bin.is_file(),
        requested_channel=config.channel,
        requested_version=config.version,
    )
    registry = registry or build_registry(config)
    status.tools = {name: info["available"] for name, info in registry.adapter_status().items()}

    if not status.installed:
        status.notes.append(f"no flutter executable at {config.flutter_bin}")
        return status

    repo_dir = str(config.sdk_dir)

    branch = _git(registry, "branch", repo_dir)
    if branch.ok and branch.output:
        status.branch = branch.output.strip()
    tag = _git(registry, "describe", repo_dir)
    if tag.ok and tag.output:
        status.tag = tag.output.strip()

    version_file = config.sdk_dir / VERSION_FILE
    if version_file.is_file():
        try:
            data = json.loads(version_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            status.notes.append(f"unreadable {VERSION_FILE}: {e}")
        else:
            status.framework_version = data.get("frameworkVersion")
            status.dart_version = data.get("dartSdkVersion")
    else:
        status.notes.append("flutter has not been run yet (no version cache)")

    return status


def _git(registry: AdapterRegistry, operation: str, repo_dir: str) -> Receipt:
    return registry.execute_action(Action(
        id=f"status:{operation}",
        adapter="git",
        params={"operation": operation, "repo_dir": repo_dir},
    ))


def toolchain_env_for(
    config: BootstrapConfig,
    environ: Mapping[str, str] | None = None,
    which: Callable[[str], str | None] | None = None,
) -> ToolchainEnv:
    """The variables a setup run would export, computed without running it."""
    kwargs: dict[str, Any] = {}
    if which is not None:
        kwargs["which"] = which
    snapshot = EnvironmentSnapshot.capture(config, environ=environ, **kwargs)

    env = ToolchainEnv(flutter_home=config.sdk_dir, path_prepend=config.bin_dirs)
    if snapshot.chrome_executable:
        env.chrome_executable = snapshot.chrome_executable
    else:
        found = snapshot.first_browser()
        if found is not None:
            env.chrome_executable = found[0]
    return env


def run_doctor(
    config: BootstrapConfig,
    registry: AdapterRegistry | None = None,
    environ: Mapping[str, str] | None = None,
) -> Receipt:
    """Run ``flutter doctor -v`` against an existing install."""
    registry = registry or build_registry(config)
    ctx_kwargs: dict[str, Any] = {"config": config, "registry": registry}
    if environ is not None:
        ctx_kwargs["environ"] = dict(environ)
    ctx = BootstrapContext(**ctx_kwargs)
    ctx.toolchain = toolchain_env_for(config, environ=ctx.environ, which=ctx.which)

    return ctx.dispatch(Action(
        id="flutter:doctor",
        name="flutter doctor -v",
        adapter="flutter",
        step="doctor",
        params={
            "operation": "doctor",
            "sdk_dir": str(config.sdk_dir),
            "verbose": True,
            "stream": True,
        },
    ))
