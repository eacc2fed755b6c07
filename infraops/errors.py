"""Error taxonomy for infraops.

Fatal configuration problems are raised before any step runs. Step-level
failures are converted by the Provisioner into ``failed`` outcomes.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .operations import CommandResult


class InfraOpsError(Exception):
    """Base class for all infraops errors."""


class ConfigurationError(InfraOpsError):
    """Invalid environment name, flag value or settings entry."""


class UnsupportedPlatformError(InfraOpsError):
    """The host machine architecture is not one we ship binaries for."""

    def __init__(self, machine: str):
        self.machine = machine
        super().__init__(f"Unsupported architecture: {machine}")


class StepFailure(InfraOpsError):
    """A step could not reach its goal state."""

    def __init__(self, reason: str, step_name: Optional[str] = None):
        self.reason = reason
        self.step_name = step_name
        super().__init__(reason)

    def __str__(self) -> str:
        if self.step_name:
            return f"{self.step_name}: {self.reason}"
        return self.reason


class PrerequisiteMissingError(StepFailure):
    """One or more required tools are not on PATH."""

    def __init__(self, tools: List[str], step_name: Optional[str] = None):
        self.tools = list(tools)
        super().__init__(f"Required tool(s) not found: {', '.join(self.tools)}", step_name)


class ExternalOperationError(InfraOpsError):
    """An external command exited non-zero or timed out."""

    def __init__(self, message: str, result: "CommandResult"):
        self.result = result
        super().__init__(self._build_message(message))

    @property
    def timed_out(self) -> bool:
        return self.result.timed_out

    def _build_message(self, message: str) -> str:
        detail = (self.result.stderr or self.result.stdout).strip()
        if len(detail) > 400:
            detail = f"{detail[:397]}..."
        if self.result.timed_out:
            return f"{message} (timed out, command={self.result.display!r})"
        return f"{message} (returncode={self.result.returncode}, command={self.result.display!r}, detail={detail!r})"


class DegradedCompletion(InfraOpsError):
    """A step completed without fulfilling its full intent.

    Raised from inside a step; the Provisioner records a ``degraded``
    outcome and logs a warning instead of failing the run.
    """

    def __init__(self, reason: str, hint: Optional[str] = None):
        self.reason = reason
        self.hint = hint
        super().__init__(reason)
