"""
Tests for the bootstrap steps — driven through the mock adapter.
"""

import logging
from pathlib import Path

import pytest

from flutter_sandbox.adapters.mock import MockAdapter
from flutter_sandbox.adapters.registry import AdapterRegistry
from flutter_sandbox.core.models.action import Receipt
from flutter_sandbox.core.models.config import BootstrapConfig
from flutter_sandbox.core.steps import (
    AcquireSdkStep,
    ConfigurePlatformsStep,
    DoctorStep,
    ExportToolchainStep,
    InstallDependenciesStep,
    PrecacheStep,
    ResolveBrowserStep,
)

# ── Dependencies ─────────────────────────────────────────────────────


class TestInstallDependenciesStep:
    def test_skip_deps(self, make_context, config: BootstrapConfig, mock_adapter: MockAdapter):
        ctx = make_context(cfg=config.model_copy(update={"skip_deps": True}))
        result = InstallDependenciesStep().run(ctx)
        assert result.status == "skipped"
        assert mock_adapter.call_count == 0

    def test_no_package_manager_warns_and_continues(
        self, make_context, fake_which, mock_adapter: MockAdapter, caplog: pytest.LogCaptureFixture
    ):
        ctx = make_context(which=fake_which("sudo"))
        with caplog.at_level(logging.WARNING):
            result = InstallDependenciesStep().run(ctx)

        assert result.status == "skipped"
        assert not result.fatal
        assert mock_adapter.call_count == 0
        warning = next(r for r in caplog.records if r.levelno == logging.WARNING)
        assert "libgtk-3-dev" in warning.getMessage()
        assert "xvfb" in warning.getMessage()

    def test_cannot_elevate(
        self, make_context, fake_which, not_root, mock_adapter: MockAdapter,
        caplog: pytest.LogCaptureFixture,
    ):
        ctx = make_context(which=fake_which("apt-get"))
        with caplog.at_level(logging.ERROR):
            result = InstallDependenciesStep().run(ctx)

        assert result.status == "failed"
        assert mock_adapter.call_count == 0
        assert any("sudo not found" in r.getMessage() for r in caplog.records)

    def test_installs_missing_with_sudo(self, make_context, not_root, mock_adapter: MockAdapter):
        mock_adapter.set_response("deps:query", Receipt.success(
            adapter="packages", action_id="deps:query",
            metadata={"installed": ["git"], "missing": ["xvfb", "clang"]},
        ))
        result = InstallDependenciesStep().run(make_context())

        assert result.status == "ok"
        assert mock_adapter.called_ids == ["deps:query", "deps:update", "deps:install"]
        install = mock_adapter.calls_for("deps:install")[0].action.params
        assert install["packages"] == ["xvfb", "clang"]
        assert install["manager"] == "apt"
        assert install["sudo"] is True

    def test_nothing_missing(self, make_context, mock_adapter: MockAdapter):
        mock_adapter.set_response("deps:query", Receipt.success(
            adapter="packages", action_id="deps:query",
            metadata={"installed": ["git"], "missing": []},
        ))
        result = InstallDependenciesStep().run(make_context())
        assert result.status == "skipped"
        assert mock_adapter.called_ids == ["deps:query"]

    def test_update_failure_still_installs(self, make_context, mock_adapter: MockAdapter):
        mock_adapter.set_failure("deps:update", "mirror unreachable")
        result = InstallDependenciesStep().run(make_context())
        assert result.status == "ok"
        assert "deps:install" in mock_adapter.called_ids

    def test_install_failure_is_not_fatal(self, make_context, mock_adapter: MockAdapter):
        mock_adapter.set_failure("deps:install", "E: Unable to locate package")
        result = InstallDependenciesStep().run(make_context())
        assert result.status == "failed"
        assert not result.fatal

    def test_snapshot_refreshed_after_install(self, make_context):
        available = {"apt-get", "sudo"}
        ctx = make_context(which=lambda name: f"/usr/bin/{name}" if name in available else None)
        assert ctx.snapshot.xvfb_run is None

        available.add("xvfb-run")
        InstallDependenciesStep().run(ctx)
        assert ctx.snapshot.xvfb_run is not None


# ── Browser ──────────────────────────────────────────────────────────


class TestResolveBrowserStep:
    def test_first_candidate(self, make_context, fake_which):
        ctx = make_context(which=fake_which("google-chrome", "chromium"))
        result = ResolveBrowserStep().run(ctx)
        assert result.status == "ok"
        assert ctx.toolchain.chrome_executable == "google-chrome"

    def test_preset_is_kept(self, make_context, fake_which, tmp_path: Path):
        chrome = tmp_path / "chrome"
        chrome.write_text("")
        ctx = make_context(
            environ={"PATH": "/usr/bin", "CHROME_EXECUTABLE": str(chrome)},
            which=fake_which("chromium"),
        )
        ResolveBrowserStep().run(ctx)
        assert ctx.toolchain.chrome_executable == str(chrome)

    def test_stale_preset_falls_back(self, make_context, fake_which):
        ctx = make_context(
            environ={"PATH": "/usr/bin", "CHROME_EXECUTABLE": "/nowhere/chrome"},
            which=fake_which("chromium"),
        )
        ResolveBrowserStep().run(ctx)
        assert ctx.toolchain.chrome_executable == "chromium"

    def test_none_found_warns(self, make_context, fake_which, caplog: pytest.LogCaptureFixture):
        ctx = make_context(which=fake_which("apt-get"))
        with caplog.at_level(logging.WARNING):
            result = ResolveBrowserStep().run(ctx)
        assert result.status == "failed"
        assert not result.fatal
        assert ctx.toolchain.chrome_executable is None
        assert any("CHROME_EXECUTABLE" in r.getMessage() for r in caplog.records)


# ── SDK acquisition ──────────────────────────────────────────────────


class TestAcquireSdkStep:
    def test_existing_install_is_not_cloned(self, make_context, fake_sdk, config, mock_adapter):
        fake_sdk(config.sdk_dir)
        result = AcquireSdkStep().run(make_context())
        assert result.status == "skipped"
        assert mock_adapter.call_count == 0

    def test_clone_latest(self, make_context, config, mock_adapter):
        result = AcquireSdkStep().run(make_context())
        assert result.status == "ok"
        assert mock_adapter.called_ids == ["sdk:clone"]
        params = mock_adapter.call_log[0].action.params
        assert params["branch"] == "stable"
        assert params["depth"] == 1
        assert params["dest"] == str(config.sdk_dir)
        assert params["repository"] == "https://github.com/flutter/flutter.git"

    def test_clone_failure_is_fatal(self, make_context, mock_adapter):
        mock_adapter.set_failure("sdk:clone", "Could not resolve host")
        result = AcquireSdkStep().run(make_context())
        assert result.fatal
        assert mock_adapter.called_ids == ["sdk:clone"]

    def test_pinned_version_checked_out(self, make_context, config, mock_adapter):
        ctx = make_context(cfg=config.model_copy(update={"version": "3.22.0"}))
        result = AcquireSdkStep().run(ctx)
        assert result.status == "ok"
        assert mock_adapter.called_ids == ["sdk:clone", "sdk:checkout"]
        assert mock_adapter.calls_for("sdk:checkout")[0].action.params["ref"] == "3.22.0"

    def test_checkout_retry_after_fetching_tags(self, make_context, config, mock_adapter):
        mock_adapter.set_failure("sdk:checkout", "pathspec '3.22.0' did not match")
        ctx = make_context(cfg=config.model_copy(update={"version": "3.22.0"}))
        result = AcquireSdkStep().run(ctx)
        assert result.status == "ok"
        assert mock_adapter.called_ids == [
            "sdk:clone", "sdk:checkout", "sdk:fetch-tags", "sdk:checkout-retry",
        ]

    def test_checkout_retried_exactly_once_then_fatal(self, make_context, config, mock_adapter):
        mock_adapter.set_failure("sdk:checkout")
        mock_adapter.set_failure("sdk:checkout-retry")
        ctx = make_context(cfg=config.model_copy(update={"version": "9.9.9"}))
        result = AcquireSdkStep().run(ctx)
        assert result.fatal
        assert len(mock_adapter.calls_for("sdk:fetch-tags")) == 1
        assert len(mock_adapter.calls_for("sdk:checkout-retry")) == 1
        assert len(mock_adapter.calls_for("sdk:checkout")) == 1

    def test_fetch_failure_still_retries(self, make_context, config, mock_adapter):
        mock_adapter.set_failure("sdk:checkout")
        mock_adapter.set_failure("sdk:fetch-tags")
        ctx = make_context(cfg=config.model_copy(update={"version": "3.22.0"}))
        result = AcquireSdkStep().run(ctx)
        assert result.status == "ok"
        assert mock_adapter.called_ids[-1] == "sdk:checkout-retry"

    def test_existing_pinned_install_left_alone_by_default(self, make_context, fake_sdk, config, mock_adapter):
        fake_sdk(config.sdk_dir)
        ctx = make_context(cfg=config.model_copy(update={"version": "3.22.0"}))
        assert AcquireSdkStep().run(ctx).status == "skipped"
        assert mock_adapter.call_count == 0

    def test_verify_existing_checks_out_without_cloning(self, make_context, fake_sdk, config, mock_adapter):
        fake_sdk(config.sdk_dir)
        ctx = make_context(cfg=config.model_copy(update={"version": "3.22.0", "verify_existing": True}))
        result = AcquireSdkStep().run(ctx)
        assert result.status == "ok"
        assert mock_adapter.called_ids == ["sdk:checkout"]

    def test_clean_removes_install_and_clones(self, make_context, fake_sdk, config, mock_adapter):
        fake_sdk(config.sdk_dir)
        ctx = make_context(cfg=config.model_copy(update={"clean": True}))
        result = AcquireSdkStep().run(ctx)
        assert not config.sdk_dir.exists()
        assert result.status == "ok"
        assert mock_adapter.called_ids == ["sdk:clone"]

    def test_clean_in_dry_run_keeps_install(self, make_context, fake_sdk, config):
        fake_sdk(config.sdk_dir)
        registry = AdapterRegistry(dry_run=True)
        registry.set_mock_mode(True, MockAdapter())
        ctx = make_context(cfg=config.model_copy(update={"clean": True}), registry=registry)
        AcquireSdkStep().run(ctx)
        assert config.flutter_bin.is_file()


# ── Toolchain ────────────────────────────────────────────────────────


class TestExportToolchainStep:
    def test_exports(self, make_context, config):
        ctx = make_context()
        result = ExportToolchainStep().run(ctx)
        assert result.status == "ok"
        assert ctx.toolchain.flutter_home == config.sdk_dir
        env = ctx.toolchain.as_env(base_path="/usr/bin")
        assert env["FLUTTER_HOME"] == str(config.sdk_dir)
        assert env["PATH"].split(":") == [
            str(config.sdk_dir / "bin"),
            str(config.sdk_dir / "bin" / "cache" / "dart-sdk" / "bin"),
            "/usr/bin",
        ]

    def test_later_actions_receive_env(self, make_context, config, mock_adapter):
        ctx = make_context()
        ExportToolchainStep().run(ctx)
        PrecacheStep().run(ctx)
        env = mock_adapter.calls_for("flutter:precache")[0].env
        assert env["FLUTTER_HOME"] == str(config.sdk_dir)
        assert env["PATH"].startswith(str(config.sdk_dir / "bin"))


class TestConfigurePlatformsStep:
    def test_disables_then_enables(self, make_context, mock_adapter):
        result = ConfigurePlatformsStep().run(make_context())
        assert result.status == "ok"
        assert mock_adapter.called_ids == [
            "flutter:config:android",
            "flutter:config:ios",
            "flutter:config:web",
            "flutter:config:linux-desktop",
        ]
        flags = [ctx.action.params["flags"] for ctx in mock_adapter.call_log]
        assert flags == [
            ["--no-enable-android"],
            ["--no-enable-ios"],
            ["--enable-web"],
            ["--enable-linux-desktop"],
        ]

    def test_failure_is_a_warning_and_rest_still_run(
        self, make_context, mock_adapter, caplog: pytest.LogCaptureFixture
    ):
        mock_adapter.set_failure("flutter:config:ios")
        with caplog.at_level(logging.WARNING):
            result = ConfigurePlatformsStep().run(make_context())
        assert result.status == "failed"
        assert not result.fatal
        assert mock_adapter.call_count == 4
        assert any("iOS" in r.getMessage() for r in caplog.records if r.levelno == logging.WARNING)


# ── Verification ─────────────────────────────────────────────────────


class TestVerifySteps:
    def test_precache_failure_is_not_fatal(self, make_context, mock_adapter):
        mock_adapter.set_failure("flutter:precache")
        result = PrecacheStep().run(make_context())
        assert result.status == "failed"
        assert not result.fatal

    def test_doctor_is_verbose_and_streamed(self, make_context, mock_adapter):
        DoctorStep().run(make_context())
        params = mock_adapter.calls_for("flutter:doctor")[0].action.params
        assert params["verbose"] is True
        assert params["stream"] is True

    def test_doctor_failure_is_not_fatal(self, make_context, mock_adapter):
        mock_adapter.set_failure("flutter:doctor", "Doctor found issues in 2 categories.")
        result = DoctorStep().run(make_context())
        assert result.status == "failed"
        assert not result.fatal
