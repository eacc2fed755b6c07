from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

if TYPE_CHECKING:
    from .context import EnvironmentContext
    from .operations import Operations


class OutcomeStatus(str, Enum):
    PERFORMED = "performed"
    ALREADY_SATISFIED = "already_satisfied"
    DISABLED = "disabled"
    DEGRADED = "degraded"
    SKIPPED = "skipped"
    FAILED = "failed"


_SUCCESS = {
    OutcomeStatus.PERFORMED,
    OutcomeStatus.ALREADY_SATISFIED,
    OutcomeStatus.DISABLED,
    OutcomeStatus.DEGRADED,
}


@dataclass(frozen=True)
class StepOutcome:
    """Result of one step execution.

    ``actions`` names the sub-actions that actually ran (for example a
    configuration patch applied on top of an existing install), so they are
    visible in the report even when the step as a whole was already satisfied.
    """

    status: OutcomeStatus
    message: str = ""
    actions: List[str] = field(default_factory=list)
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status in _SUCCESS

    @property
    def failed(self) -> bool:
        return self.status is OutcomeStatus.FAILED

    @property
    def reason(self) -> Optional[str]:
        return self.message if self.failed else None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"status": self.status.value}
        if self.message:
            out["message"] = self.message
        if self.actions:
            out["actions"] = list(self.actions)
        if self.details:
            out["details"] = dict(self.details)
        return out

    @classmethod
    def performed(cls, message: str = "", actions: Optional[List[str]] = None, **details: Any) -> StepOutcome:
        return cls(OutcomeStatus.PERFORMED, message, list(actions or []), details)

    @classmethod
    def already_satisfied(cls, message: str = "", actions: Optional[List[str]] = None, **details: Any) -> StepOutcome:
        return cls(OutcomeStatus.ALREADY_SATISFIED, message, list(actions or []), details)

    @classmethod
    def disabled(cls, message: str) -> StepOutcome:
        return cls(OutcomeStatus.DISABLED, message)

    @classmethod
    def degraded(cls, message: str, **details: Any) -> StepOutcome:
        return cls(OutcomeStatus.DEGRADED, message, [], details)

    @classmethod
    def skipped(cls, message: str = "dry run") -> StepOutcome:
        return cls(OutcomeStatus.SKIPPED, message)

    @classmethod
    def failure(cls, reason: str, **details: Any) -> StepOutcome:
        return cls(OutcomeStatus.FAILED, reason, [], details)


class Step(ABC):
    """A named, stateless unit of provisioning work.

    Steps check whether their goal state already holds before mutating
    anything and report that as ``already_satisfied``. Failures are either
    returned as a ``failed`` outcome or raised as :class:`StepFailure`.
    """

    name: str = ""

    def __init__(self, name: Optional[str] = None) -> None:
        if name:
            self.name = name
        if not self.name:
            self.name = type(self).__name__

    @abstractmethod
    def run(self, ctx: "EnvironmentContext", ops: "Operations") -> StepOutcome:
        """Perform the step and return its outcome."""

    def describe(self, ctx: "EnvironmentContext") -> str:
        """One-line description of what ``run`` would do, used by dry runs."""
        return f"Would execute {self.name}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class FunctionStep(Step):
    """Adapt a plain callable ``fn(ctx, ops) -> StepOutcome | None`` into a Step.

    Returning None counts as ``performed``.
    """

    def __init__(self, name: str, fn: Callable[["EnvironmentContext", "Operations"], Optional[StepOutcome]]) -> None:
        super().__init__(name)
        self.fn = fn

    def run(self, ctx: "EnvironmentContext", ops: "Operations") -> StepOutcome:
        outcome = self.fn(ctx, ops)
        return outcome if outcome is not None else StepOutcome.performed()

