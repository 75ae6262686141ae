"""Adapters — tool bindings for the package manager, git and flutter.

Public re-exports for convenient access.
"""

from flutter_sandbox.adapters.base import Adapter, ExecutionContext
from flutter_sandbox.adapters.mock import MockAdapter
from flutter_sandbox.adapters.registry import AdapterRegistry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
]
