"""Bootstrap steps, in run order."""

from flutter_sandbox.core.steps.browser import ResolveBrowserStep
from flutter_sandbox.core.steps.dependencies import InstallDependenciesStep
from flutter_sandbox.core.steps.sdk import AcquireSdkStep
from flutter_sandbox.core.steps.toolchain import ConfigurePlatformsStep, ExportToolchainStep
from flutter_sandbox.core.steps.verify import DoctorStep, PrecacheStep

__all__ = [
    "AcquireSdkStep",
    "ConfigurePlatformsStep",
    "DoctorStep",
    "ExportToolchainStep",
    "InstallDependenciesStep",
    "PrecacheStep",
    "ResolveBrowserStep",
]
