from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .context import EnvironmentContext
from .errors import DegradedCompletion, ExternalOperationError, PrerequisiteMissingError, StepFailure
from .hook import Hook
from .operations import Operations
from .rollback import rollback_guidance
from .step import Step, StepOutcome

logger = logging.getLogger(__name__)

RollbackAdvisor = Callable[[EnvironmentContext], List[str]]


@dataclass
class ProvisioningReport:
    """Ordered record of what happened to each step in one run."""

    ctx: EnvironmentContext
    entries: List[Tuple[str, StepOutcome]] = field(default_factory=list)
    rollback: List[str] = field(default_factory=list)

    def record(self, name: str, outcome: StepOutcome) -> None:
        self.entries.append((name, outcome))

    @property
    def ok(self) -> bool:
        return not any(outcome.failed for _, outcome in self.entries)

    @property
    def failed_step(self) -> Optional[str]:
        for name, outcome in self.entries:
            if outcome.failed:
                return name
        return None

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    def outcome(self, name: str) -> Optional[StepOutcome]:
        for entry_name, outcome in self.entries:
            if entry_name == name:
                return outcome
        return None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "status": "ok" if self.ok else "error",
            "environment": self.ctx.name,
            "target": self.ctx.target_id,
            "dry_run": self.ctx.dry_run,
            "steps": [{"name": name, **outcome.to_dict()} for name, outcome in self.entries],
        }
        if not self.ok:
            out["failed_step"] = self.failed_step
            out["rollback"] = list(self.rollback)
        return out


class Provisioner:
    """Sequential, fail-fast executor for an ordered list of steps.

    There are no retries: every external operation is attempted at most once
    per run. Running the provisioner again is the retry mechanism, and each
    step's own existence checks keep the rerun from repeating finished work.
    """

    def __init__(
        self,
        steps: Sequence[Step],
        ops: Optional[Operations] = None,
        hooks: Optional[List[Hook]] = None,
        rollback: Optional[RollbackAdvisor] = None,
    ) -> None:
        self.steps = list(steps)
        self.ops = ops or Operations()
        self.hooks = hooks or []
        self.rollback = rollback or rollback_guidance

    def run(self, ctx: EnvironmentContext) -> ProvisioningReport:
        report = ProvisioningReport(ctx=ctx)
        self._emit("on_run_start", ctx, self.steps)
        for step in self.steps:
            self._emit("on_step_start", step, ctx)
            if ctx.dry_run:
                outcome = StepOutcome.skipped(step.describe(ctx))
            else:
                outcome = self._execute(step, ctx)
            report.record(step.name, outcome)
            self._emit("on_step_end", step, outcome)
            if outcome.failed:
                logger.error(f"Failed at step: {step.name}: {outcome.message}")
                report.rollback = self.rollback(ctx)
                break
        self._emit("on_run_end", report)
        return report

    def _execute(self, step: Step, ctx: EnvironmentContext) -> StepOutcome:
        try:
            outcome = step.run(ctx, self.ops)
        except DegradedCompletion as e:
            logger.warning(f"{step.name}: {e.reason}")
            if e.hint:
                logger.warning(f"{step.name}: {e.hint}")
            details = {"hint": e.hint} if e.hint else {}
            return StepOutcome.degraded(e.reason, **details)
        except PrerequisiteMissingError as e:
            return StepOutcome.failure(e.reason, missing=e.tools)
        except StepFailure as e:
            return StepOutcome.failure(e.reason)
        except ExternalOperationError as e:
            return StepOutcome.failure(str(e), timed_out=e.timed_out)
        except Exception as e:  # noqa: BLE001
            logger.exception(f"Unexpected error in step {step.name}")
            return StepOutcome.failure(f"{type(e).__name__}: {e}")
        if outcome is None:
            return StepOutcome.failure("step returned no outcome")
        return outcome

    def _emit(self, event: str, *args: Any) -> None:
        for hook in self.hooks:
            try:
                getattr(hook, event)(*args)
            except Exception:  # noqa: BLE001
                logger.debug(f"hook {type(hook).__name__}.{event} raised", exc_info=True)
