"""
Tests for the display guard — the xvfb-run supervisor/child launcher.
"""

import sys

from flutter_sandbox.adapters.mock import MockAdapter
from flutter_sandbox.adapters.registry import AdapterRegistry
from flutter_sandbox.core.engine.launcher import DisplayGuard, wrapped_command
from flutter_sandbox.core.models.action import Receipt
from flutter_sandbox.core.models.environment import XVFB_SENTINEL

ARGV = ["setup", "--flutter-version", "3.22.0", "--skip-deps"]


class TestWrappedCommand:
    def test_shape(self):
        cmd = wrapped_command(ARGV, "-screen 0 1280x1024x24", python="/usr/bin/python3")
        assert cmd == [
            "xvfb-run",
            "--auto-servernum",
            "--server-args=-screen 0 1280x1024x24",
            "/usr/bin/python3",
            "-m",
            "flutter_sandbox.main",
            *ARGV,
        ]

    def test_default_interpreter(self):
        assert wrapped_command([], "-screen 0 1x1x8")[3] == sys.executable


class TestDisplayGuard:
    def test_display_set_runs_in_process(self, make_context, mock_adapter: MockAdapter):
        outcome = DisplayGuard(ARGV).check(make_context())
        assert outcome.decision == "display"
        assert not outcome.relaunched
        assert mock_adapter.call_count == 0

    def test_inside_wrapper_never_wraps_again(self, make_context, mock_adapter: MockAdapter):
        ctx = make_context(environ={"PATH": "/usr/bin", XVFB_SENTINEL: "1"})
        outcome = DisplayGuard(ARGV).check(ctx)
        assert outcome.decision == "wrapped"
        assert mock_adapter.call_count == 0

    def test_legacy_sentinel(self, make_context, mock_adapter: MockAdapter):
        ctx = make_context(environ={"PATH": "/usr/bin", "XVFB_RUN_PID": "4242"})
        assert DisplayGuard(ARGV).check(ctx).decision == "wrapped"

    def test_disabled(self, make_context, config, mock_adapter: MockAdapter):
        cfg = config.model_copy(update={"display": config.display.model_copy(update={"enabled": False})})
        ctx = make_context(cfg=cfg, environ={"PATH": "/usr/bin"})
        assert DisplayGuard(ARGV).check(ctx).decision == "disabled"
        assert mock_adapter.call_count == 0

    def test_xvfb_run_missing(self, make_context, fake_which, mock_adapter: MockAdapter):
        ctx = make_context(environ={"PATH": "/usr/bin"}, which=fake_which("apt-get"))
        assert DisplayGuard(ARGV).check(ctx).decision == "unavailable"
        assert mock_adapter.call_count == 0

    def test_relaunches_exactly_once_with_original_argv(self, make_context, mock_adapter: MockAdapter):
        ctx = make_context(environ={"PATH": "/usr/bin"})
        outcome = DisplayGuard(ARGV, python="/usr/bin/python3").check(ctx)

        assert outcome.relaunched
        assert outcome.exit_code == 0
        assert mock_adapter.called_ids == ["display:xvfb-run"]

        call = mock_adapter.call_log[0]
        argv = call.action.params["argv"]
        assert argv[0] == "/usr/bin/xvfb-run"
        assert argv[-len(ARGV):] == ARGV
        assert call.action.params["inherit_stdio"] is True
        assert call.env[XVFB_SENTINEL] == "1"
        assert ctx.receipts == [outcome.receipt]

    def test_child_exit_code_propagates(self, make_context, mock_adapter: MockAdapter):
        mock_adapter.set_response("display:xvfb-run", Receipt.failure(
            adapter="shell", action_id="display:xvfb-run",
            error="Command failed (exit 1)", metadata={"return_code": 1},
        ))
        outcome = DisplayGuard(ARGV).check(make_context(environ={"PATH": "/usr/bin"}))
        assert outcome.relaunched
        assert outcome.exit_code == 1

    def test_xvfb_run_not_startable_exits_127(self, make_context, mock_adapter: MockAdapter):
        mock_adapter.set_response("display:xvfb-run", Receipt.failure(
            adapter="shell", action_id="display:xvfb-run",
            error="Command not found: /usr/bin/xvfb-run", metadata={"return_code": 127},
        ))
        outcome = DisplayGuard(ARGV).check(make_context(environ={"PATH": "/usr/bin"}))
        assert outcome.exit_code == 127

    def test_child_failure_without_code(self, make_context, mock_adapter: MockAdapter):
        mock_adapter.set_failure("display:xvfb-run", "killed")
        outcome = DisplayGuard(ARGV).check(make_context(environ={"PATH": "/usr/bin"}))
        assert outcome.exit_code == 1

    def test_dry_run_continues_in_process(self, make_context):
        registry = AdapterRegistry(dry_run=True)
        mock = MockAdapter()
        registry.set_mock_mode(True, mock)
        ctx = make_context(environ={"PATH": "/usr/bin"}, registry=registry)
        outcome = DisplayGuard(ARGV).check(ctx)
        assert outcome.decision == "dry-run"
        assert not outcome.relaunched
        assert mock.call_count == 0
