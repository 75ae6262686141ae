"""
Tests for SDK inspection use cases — status, exports, doctor.
"""

import json
from pathlib import Path

from flutter_sandbox.adapters.mock import MockAdapter
from flutter_sandbox.core.models.action import Receipt
from flutter_sandbox.core.models.config import BootstrapConfig
from flutter_sandbox.core.use_cases.sdk_info import (
    SdkStatus,
    get_sdk_status,
    run_doctor,
    toolchain_env_for,
)


class TestSdkStatus:
    def test_not_installed(self, config: BootstrapConfig, mock_registry, mock_adapter: MockAdapter):
        status = get_sdk_status(config, registry=mock_registry)
        assert not status.installed
        assert status.matches_request is None
        assert mock_adapter.call_count == 0

    def test_installed_on_channel(self, config, mock_registry, mock_adapter, fake_sdk):
        fake_sdk(config.sdk_dir)
        mock_adapter.set_response("status:branch", Receipt.success(
            adapter="git", action_id="status:branch", output="stable\n",
        ))
        mock_adapter.set_failure("status:describe", "no tag exactly matches")

        status = get_sdk_status(config, registry=mock_registry)
        assert status.installed
        assert status.branch == "stable"
        assert status.tag is None
        assert status.matches_request is True
        assert any("version cache" in n for n in status.notes)

    def test_pinned_version_from_cache(self, config, mock_registry, mock_adapter, fake_sdk):
        fake_sdk(config.sdk_dir)
        cache = config.sdk_dir / "bin" / "cache"
        cache.mkdir(parents=True)
        (cache / "flutter.version.json").write_text(json.dumps({"frameworkVersion": "3.19.6"}))
        mock_adapter.set_failure("status:describe")

        cfg = config.model_copy(update={"version": "3.22.0"})
        status = get_sdk_status(cfg, registry=mock_registry)
        assert status.framework_version == "3.19.6"
        assert status.matches_request is False

    def test_unreadable_cache(self, config, mock_registry, fake_sdk):
        fake_sdk(config.sdk_dir)
        cache = config.sdk_dir / "bin" / "cache"
        cache.mkdir(parents=True)
        (cache / "flutter.version.json").write_text("{not json")
        status = get_sdk_status(config, registry=mock_registry)
        assert status.framework_version is None
        assert any("unreadable" in n for n in status.notes)

    def test_reports_tool_availability(self, config: BootstrapConfig):
        status = get_sdk_status(config)
        assert set(status.tools) == {"shell", "packages", "git", "flutter"}
        assert status.tools["flutter"] is False
        assert status.to_dict()["tools"] == status.tools

    def test_to_dict(self):
        status = SdkStatus(sdk_dir=Path("/sdk"), installed=True, branch="beta", requested_channel="stable",
                           requested_version="latest")
        data = status.to_dict()
        assert data["sdk_dir"] == "/sdk"
        assert data["matches_request"] is False
        assert data["requested"] == {"channel": "stable", "version": "latest"}


class TestToolchainEnvFor:
    def test_uses_first_browser(self, config: BootstrapConfig, fake_which):
        env = toolchain_env_for(config, environ={}, which=fake_which("chromium"))
        assert env.flutter_home == config.sdk_dir
        assert env.chrome_executable == "chromium"
        assert env.path_prepend == config.bin_dirs

    def test_keeps_preset_chrome(self, config: BootstrapConfig, fake_which):
        env = toolchain_env_for(config, environ={"CHROME_EXECUTABLE": "/opt/chrome"}, which=fake_which())
        assert env.chrome_executable == "/opt/chrome"


class TestRunDoctor:
    def test_dispatches_verbose_doctor_with_env(self, config, mock_registry, mock_adapter):
        receipt = run_doctor(config, registry=mock_registry, environ={"PATH": "/usr/bin"})
        assert receipt.ok
        call = mock_adapter.calls_for("flutter:doctor")[0]
        assert call.action.params["verbose"] is True
        assert call.env["FLUTTER_HOME"] == str(config.sdk_dir)
