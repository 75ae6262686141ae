"""
Shared test fixtures and configuration.
"""

import logging
import stat
from collections.abc import Callable
from pathlib import Path

import pytest

from flutter_sandbox.adapters.mock import MockAdapter
from flutter_sandbox.adapters.registry import AdapterRegistry
from flutter_sandbox.core.engine.executor import BootstrapContext
from flutter_sandbox.core.models.config import BootstrapConfig


def make_which(*names: str) -> Callable[[str], str | None]:
    """Fake ``shutil.which`` that only knows ``names`` (under /usr/bin)."""
    known = set(names)

    def which(name: str) -> str | None:
        return f"/usr/bin/{name}" if name in known else None

    return which


def install_fake_sdk(sdk_dir: Path) -> Path:
    """Create ``<sdk_dir>/bin/flutter`` as an executable stub."""
    flutter = sdk_dir / "bin" / "flutter"
    flutter.parent.mkdir(parents=True, exist_ok=True)
    flutter.write_text("#!/bin/sh\nexit 0\n")
    flutter.chmod(flutter.stat().st_mode | stat.S_IEXEC)
    return flutter


@pytest.fixture
def sdk_dir(tmp_path: Path) -> Path:
    """Install location inside the test's temp dir (not created)."""
    return tmp_path / "flutter_sdk"


@pytest.fixture
def config(sdk_dir: Path) -> BootstrapConfig:
    return BootstrapConfig(sdk_dir=sdk_dir)


@pytest.fixture
def mock_adapter() -> MockAdapter:
    return MockAdapter()


@pytest.fixture
def mock_registry(mock_adapter: MockAdapter) -> AdapterRegistry:
    """Registry that routes every action to ``mock_adapter``."""
    registry = AdapterRegistry()
    registry.set_mock_mode(True, mock_adapter)
    return registry


@pytest.fixture
def not_root(monkeypatch: pytest.MonkeyPatch) -> None:
    """Pretend the tests are not running as root."""
    monkeypatch.setattr("flutter_sandbox.core.models.environment._is_root", lambda: False)


@pytest.fixture
def make_context(config: BootstrapConfig, mock_registry: AdapterRegistry):
    """Factory for a BootstrapContext over the mock registry.

    Defaults to a host with apt, sudo, chromium and an X display.
    """

    def _make(
        cfg: BootstrapConfig | None = None,
        environ: dict[str, str] | None = None,
        which: Callable[[str], str | None] | None = None,
        registry: AdapterRegistry | None = None,
    ) -> BootstrapContext:
        return BootstrapContext(
            config=cfg or config,
            registry=registry or mock_registry,
            environ={"PATH": "/usr/bin", "DISPLAY": ":0"} if environ is None else environ,
            which=which or make_which("apt-get", "sudo", "chromium", "xvfb-run"),
        )

    return _make


@pytest.fixture
def fake_which() -> Callable[..., Callable[[str], str | None]]:
    return make_which


@pytest.fixture
def fake_sdk() -> Callable[[Path], Path]:
    return install_fake_sdk


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """Undo ``setup_logging`` calls made by a test (CLI tests call it)."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
