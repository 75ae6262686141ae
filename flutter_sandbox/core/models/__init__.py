"""
Domain models — Pydantic types for the bootstrapper.

All models are re-exported here for convenient access:

    from flutter_sandbox.core.models import BootstrapConfig, EnvironmentSnapshot, StepResult
"""

from flutter_sandbox.core.models.action import Action, Receipt
from flutter_sandbox.core.models.config import (
    DEFAULT_PACKAGES,
    DEFAULT_REPOSITORY,
    KNOWN_PLATFORMS,
    LATEST,
    BootstrapConfig,
    DisplayConfig,
)
from flutter_sandbox.core.models.environment import (
    LEGACY_XVFB_SENTINEL,
    PACKAGE_MANAGERS,
    XVFB_SENTINEL,
    EnvironmentSnapshot,
)
from flutter_sandbox.core.models.step import StepResult, StepStatus

__all__ = [
    # action.py
    "Action",
    "Receipt",
    # config.py
    "BootstrapConfig",
    "DEFAULT_PACKAGES",
    "DEFAULT_REPOSITORY",
    "DisplayConfig",
    "KNOWN_PLATFORMS",
    "LATEST",
    # environment.py
    "EnvironmentSnapshot",
    "LEGACY_XVFB_SENTINEL",
    "PACKAGE_MANAGERS",
    "XVFB_SENTINEL",
    # step.py
    "StepResult",
    "StepStatus",
]
