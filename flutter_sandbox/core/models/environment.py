"""
EnvironmentSnapshot — read-only view of the sandbox at a point in time.

Every decision the bootstrapper makes about the host (elevate or not,
which package manager, wrap in a virtual display or not, which browser)
is made from a snapshot, never from ad-hoc ``os.environ`` reads. A
snapshot is captured fresh on every run and re-captured after system
packages change.
"""

from __future__ import annotations

import os
import shutil
from collections.abc import Callable, Mapping

from pydantic import BaseModel, ConfigDict, Field

from flutter_sandbox.core.models.config import BootstrapConfig

# Set on the child process spawned under xvfb-run.
XVFB_SENTINEL = "FLUTTER_SANDBOX_XVFB"

# Older wrappers marked the wrapped process with this variable instead.
LEGACY_XVFB_SENTINEL = "XVFB_RUN_PID"

# Probe order: first hit wins.
PACKAGE_MANAGERS: dict[str, str] = {
    "apt": "apt-get",
    "dnf": "dnf",
    "pacman": "pacman",
}

Which = Callable[[str], "str | None"]


class EnvironmentSnapshot(BaseModel):
    """Ambient facts the bootstrap steps branch on."""

    model_config = ConfigDict(frozen=True)

    is_root: bool = False
    sudo_available: bool = False
    package_manager: str | None = None       # key of PACKAGE_MANAGERS
    display: str | None = None
    in_virtual_display: bool = False
    xvfb_run: str | None = None              # resolved xvfb-run path
    browsers: dict[str, str] = Field(default_factory=dict)   # name -> path
    chrome_executable: str | None = None     # pre-set CHROME_EXECUTABLE
    sdk_dir_exists: bool = False
    sdk_installed: bool = False

    @classmethod
    def capture(
        cls,
        config: BootstrapConfig,
        environ: Mapping[str, str] | None = None,
        which: Which = shutil.which,
    ) -> EnvironmentSnapshot:
        """Probe the host.

        Args:
            config: Run configuration (browser candidates, SDK path).
            environ: Environment to read (default: ``os.environ``).
            which: Executable lookup (default: ``shutil.which``).
        """
        env = os.environ if environ is None else environ

        manager = None
        for key, binary in PACKAGE_MANAGERS.items():
            if which(binary):
                manager = key
                break

        browsers: dict[str, str] = {}
        for name in config.browsers:
            path = which(name)
            if path:
                browsers[name] = path

        sentinel = env.get(XVFB_SENTINEL) or env.get(LEGACY_XVFB_SENTINEL)

        return cls(
            is_root=_is_root(),
            sudo_available=which("sudo") is not None,
            package_manager=manager,
            display=env.get("DISPLAY") or None,
            in_virtual_display=bool(sentinel),
            xvfb_run=which("xvfb-run"),
            browsers=browsers,
            chrome_executable=env.get("CHROME_EXECUTABLE") or None,
            sdk_dir_exists=config.sdk_dir.is_dir(),
            sdk_installed=config.flutter_bin.is_file(),
        )

    @property
    def can_elevate(self) -> bool:
        """Whether privileged commands can run (as root or through sudo)."""
        return self.is_root or self.sudo_available

    @property
    def needs_virtual_display(self) -> bool:
        """No display configured and not already inside a wrapper."""
        return not self.display and not self.in_virtual_display

    def first_browser(self) -> tuple[str, str] | None:
        """First browser candidate found, as ``(name, path)``."""
        for name, path in self.browsers.items():
            return name, path
        return None


def _is_root() -> bool:
    geteuid = getattr(os, "geteuid", None)
    return geteuid is not None and geteuid() == 0
