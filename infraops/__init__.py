"""
infraops: step-sequenced provisioning for an Infra-Ops Kubernetes platform.

This package provides core primitives:
- EnvironmentContext: immutable run configuration resolved once at start-up.
- Operations: the single boundary for external commands and downloads.
- Step: idempotent unit of provisioning work returning a StepOutcome.
- Provisioner: sequential, fail-fast runner producing a ProvisioningReport.
- Step catalog: cluster, ArgoCD, Crossplane, self-management, validation.
"""

from .config import Config, Settings
from .context import EnvironmentContext, Platform, resolve_context
from .errors import (
    ConfigurationError,
    DegradedCompletion,
    ExternalOperationError,
    InfraOpsError,
    PrerequisiteMissingError,
    StepFailure,
    UnsupportedPlatformError,
)
from .hook import Hook, ConsoleHook
from .operations import CommandResult, Operations
from .runner import Provisioner, ProvisioningReport
from .step import Step, StepOutcome, OutcomeStatus, FunctionStep
from .steps import (
    PrerequisiteCheck,
    ClusterSetup,
    ArgoCDInstall,
    CrossplaneInstall,
    SelfManagementSetup,
    Validation,
    default_steps,
)
from .devenv import ToolInstallStep, ShellProfileStep, setup_steps

__all__ = [
    # Context & config
    "Config",
    "Settings",
    "EnvironmentContext",
    "Platform",
    "resolve_context",
    # Errors
    "InfraOpsError",
    "ConfigurationError",
    "UnsupportedPlatformError",
    "StepFailure",
    "PrerequisiteMissingError",
    "ExternalOperationError",
    "DegradedCompletion",
    # Execution
    "Operations",
    "CommandResult",
    "Step",
    "StepOutcome",
    "OutcomeStatus",
    "FunctionStep",
    "Provisioner",
    "ProvisioningReport",
    "Hook",
    "ConsoleHook",
    # Bootstrap steps
    "PrerequisiteCheck",
    "ClusterSetup",
    "ArgoCDInstall",
    "CrossplaneInstall",
    "SelfManagementSetup",
    "Validation",
    "default_steps",
    # Dev environment setup
    "ToolInstallStep",
    "ShellProfileStep",
    "setup_steps",
]
