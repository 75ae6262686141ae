"""
Adapter registry — central dispatch for all adapter operations.

The registry handles registration, lookup, mock mode, dry-run and
action execution. Bootstrap steps never talk to adapters directly —
always through the registry.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from flutter_sandbox.adapters.base import Adapter, ExecutionContext
from flutter_sandbox.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Central registry and dispatcher for adapters.

    Features:
        - Register adapters by name
        - Mock mode: route every action to one mock adapter
        - Dry-run: validate but do not execute
        - Output capture: keep streamed tool output off stdout (JSON mode)
        - Query adapter availability (`sdk status`)
    """

    def __init__(
        self,
        dry_run: bool = False,
        stream_output: bool = True,
    ):
        self._adapters: dict[str, Adapter] = {}
        self._mock_mode = False
        self._mock_adapter: Adapter | None = None
        self._dry_run = dry_run
        self._stream_output = stream_output

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    def set_mock_mode(self, enabled: bool, mock_adapter: Adapter | None = None) -> None:
        """Enable or disable mock mode.

        Args:
            enabled: Whether to use mock mode.
            mock_adapter: Adapter that receives every action while enabled.
        """
        self._mock_mode = enabled
        self._mock_adapter = mock_adapter

    def register(self, adapter: Adapter) -> None:
        """Register an adapter under its ``name``."""
        name = adapter.name
        if name in self._adapters:
            logger.warning("Overwriting existing adapter: %s", name)
        self._adapters[name] = adapter
        logger.debug("Registered adapter: %s", name)

    def adapter_status(self) -> dict[str, dict[str, Any]]:
        """Get availability status of all registered adapters."""
        status = {}
        for name, adapter in self._adapters.items():
            try:
                available = adapter.is_available()
            except Exception:
                available = False
            status[name] = {
                "name": name,
                "available": available,
                "type": adapter.__class__.__name__,
            }
        return status

    def execute_action(
        self,
        action: Action,
        env: dict[str, str] | None = None,
        cwd: str | None = None,
        dry_run: bool | None = None,
    ) -> Receipt:
        """Execute an action through the appropriate adapter.

        This is the main dispatch method. It:
        1. Resolves the adapter (or mock)
        2. Builds the execution context
        3. Validates the action
        4. Executes (or dry-runs)
        5. Returns a Receipt (never raises)

        Args:
            action: The action to execute.
            env: Toolchain variables layered over the process environment.
            cwd: Working directory for the command.
            dry_run: Override the registry-wide dry-run flag.

        Returns:
            Receipt with execution results.
        """
        start_time = time.monotonic()
        dry_run = self._dry_run if dry_run is None else dry_run

        context = ExecutionContext(
            action=action,
            cwd=cwd,
            env=dict(env or {}),
            dry_run=dry_run,
            stream_output=self._stream_output,
            params=action.params,
        )

        if self._mock_mode and self._mock_adapter:
            adapter: Adapter | None = self._mock_adapter
        else:
            adapter = self._adapters.get(action.adapter)

        if adapter is None:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"No adapter registered for '{action.adapter}'",
            )

        try:
            is_valid, error_msg = adapter.validate(context)
            if not is_valid:
                return Receipt.failure(
                    adapter=action.adapter,
                    action_id=action.id,
                    error=f"Validation failed: {error_msg}",
                )
        except Exception as e:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Validation error: {e}",
            )

        # Dry run: validated but not executed
        if dry_run:
            logger.info("[dry-run] %s", action.name or action.id)
            return Receipt.skip(
                adapter=action.adapter,
                action_id=action.id,
                reason=f"[dry-run] Would execute {action.adapter}:{action.id}",
                metadata={"dry_run": True},
            )

        try:
            receipt = adapter.execute(context)
        except Exception as e:
            # Adapters should never raise
            logger.error("Adapter %s raised during execution: %s", action.adapter, e)
            receipt = Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Unexpected error: {e}",
            )

        receipt.duration_ms = int((time.monotonic() - start_time) * 1000)
        return receipt
