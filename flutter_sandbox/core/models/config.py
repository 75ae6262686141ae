"""
BootstrapConfig — everything a bootstrap run is told up front.

Loaded from flutter-sandbox.yml (optional), environment overrides and
CLI options, then frozen for the duration of the run.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Sentinel version meaning "whatever the channel head is".
LATEST = "latest"

DEFAULT_REPOSITORY = "https://github.com/flutter/flutter.git"

# Platforms understood by ``flutter config --[no-]enable-<platform>``.
KNOWN_PLATFORMS = (
    "web",
    "linux-desktop",
    "macos-desktop",
    "windows-desktop",
    "android",
    "ios",
    "fuchsia",
    "custom-devices",
)

# Build prerequisites for web + Linux desktop, per package manager.
DEFAULT_PACKAGES: dict[str, list[str]] = {
    "apt": [
        "curl", "git", "tar", "xz-utils", "unzip", "libglu1-mesa",
        "libgtk-3-dev", "pkg-config", "clang", "cmake", "ninja-build",
        "chromium-browser", "mesa-utils", "xvfb",
    ],
    "dnf": [
        "curl", "git", "tar", "xz", "unzip", "mesa-libGLU",
        "gtk3-devel", "pkgconf-pkg-config", "clang", "cmake", "ninja-build",
        "chromium", "mesa-demos", "xorg-x11-server-Xvfb",
    ],
    "pacman": [
        "curl", "git", "tar", "xz", "unzip", "glu",
        "gtk3", "pkgconf", "clang", "cmake", "ninja",
        "chromium", "mesa-utils", "xorg-server-xvfb",
    ],
}


def _default_sdk_dir() -> Path:
    return Path.home() / "flutter_sdk"


class DisplayConfig(BaseModel):
    """Virtual framebuffer settings for headless desktop verification."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    server_args: str = "-screen 0 1280x1024x24"


class BootstrapConfig(BaseModel):
    """Immutable configuration for one bootstrap run.

    Attributes:
        sdk_dir: Where the SDK is cloned.
        channel: Branch cloned from the upstream repository.
        version: Tag to check out after cloning, or ``latest``.
        repository: Upstream git URL.
        packages: Required system packages, keyed by package manager.
        enable_platforms: Platforms switched on with ``flutter config``.
        disable_platforms: Platforms switched off with ``flutter config``.
        browsers: Browser executables probed in order for web targets.
        display: Virtual display launcher settings.
        clean: Remove an existing install before acquisition.
        skip_deps: Do not touch system packages.
        verify_existing: Check out the pinned version in an existing install.
    """

    model_config = ConfigDict(frozen=True)

    sdk_dir: Path = Field(default_factory=_default_sdk_dir)
    channel: str = "stable"
    version: str = LATEST
    repository: str = DEFAULT_REPOSITORY

    packages: dict[str, list[str]] = Field(
        default_factory=lambda: {pm: list(pkgs) for pm, pkgs in DEFAULT_PACKAGES.items()}
    )
    enable_platforms: list[str] = Field(default_factory=lambda: ["web", "linux-desktop"])
    disable_platforms: list[str] = Field(default_factory=lambda: ["android", "ios"])
    browsers: list[str] = Field(
        default_factory=lambda: ["chromium-browser", "google-chrome", "chromium"]
    )
    display: DisplayConfig = Field(default_factory=DisplayConfig)

    clean: bool = False
    skip_deps: bool = False
    verify_existing: bool = False

    @field_validator("sdk_dir", mode="before")
    @classmethod
    def _expand_sdk_dir(cls, value: object) -> object:
        if isinstance(value, (str, Path)):
            return Path(value).expanduser()
        return value

    @field_validator("channel", "version", "repository")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("enable_platforms", "disable_platforms")
    @classmethod
    def _known_platforms(cls, value: list[str]) -> list[str]:
        unknown = [p for p in value if p not in KNOWN_PLATFORMS]
        if unknown:
            raise ValueError(
                f"unknown platform(s): {', '.join(unknown)}. "
                f"Valid: {', '.join(KNOWN_PLATFORMS)}"
            )
        return value

    @property
    def is_latest(self) -> bool:
        """Whether no specific version tag was requested."""
        return self.version == LATEST

    @property
    def flutter_bin(self) -> Path:
        """Path of the SDK's ``flutter`` executable."""
        return self.sdk_dir / "bin" / "flutter"

    @property
    def bin_dirs(self) -> list[Path]:
        """Directories put on PATH once the SDK is present."""
        return [
            self.sdk_dir / "bin",
            self.sdk_dir / "bin" / "cache" / "dart-sdk" / "bin",
        ]

    def packages_for(self, manager: str) -> list[str]:
        """Required packages for a package manager (empty if unknown)."""
        return list(self.packages.get(manager, []))

    def reference_packages(self) -> list[str]:
        """Package list used when naming prerequisites without a manager.

        Prefers the apt names, otherwise the first configured list.
        """
        if "apt" in self.packages:
            return list(self.packages["apt"])
        for pkgs in self.packages.values():
            return list(pkgs)
        return []
