from __future__ import annotations

from abc import ABC
from typing import TYPE_CHECKING, List, Optional, Sequence

from rich.console import Console
from rich.rule import Rule
from rich.text import Text

from .step import OutcomeStatus

if TYPE_CHECKING:
    from .context import EnvironmentContext
    from .runner import ProvisioningReport
    from .step import Step, StepOutcome


class Hook(ABC):
    """Base Hook with no-op defaults.

    Hooks observe a provisioning run. They are a side channel: the
    Provisioner isolates hook errors so they never change control flow.
    """

    def on_run_start(self, ctx: "EnvironmentContext", steps: Sequence["Step"]) -> None:  # noqa: D401
        return None

    def on_step_start(self, step: "Step", ctx: "EnvironmentContext") -> None:  # noqa: D401
        return None

    def on_step_end(self, step: "Step", outcome: "StepOutcome") -> None:  # noqa: D401
        return None

    def on_run_end(self, report: "ProvisioningReport") -> None:  # noqa: D401
        return None


_STATUS_STYLE = {
    OutcomeStatus.PERFORMED: ("green", "✅"),
    OutcomeStatus.ALREADY_SATISFIED: ("green", "✅"),
    OutcomeStatus.DISABLED: ("yellow", "⏭️ "),
    OutcomeStatus.DEGRADED: ("yellow", "⚠️ "),
    OutcomeStatus.SKIPPED: ("blue", "ℹ️ "),
    OutcomeStatus.FAILED: ("red", "❌"),
}


class ConsoleHook(Hook):
    """Human-readable progress on a rich Console."""

    def __init__(
        self,
        console: Optional[Console] = None,
        title: str = "Infra-Ops Platform Bootstrap",
        failure_title: str = "Bootstrap failed!",
    ) -> None:
        self.console = console or Console()
        self.title = title
        self.failure_title = failure_title

    def header(self, text: str) -> None:
        self.console.print()
        self.console.print(Rule(Text(f"🚀 {text}", style="bold blue"), align="left"))

    def info(self, text: str) -> None:
        self.console.print(Text(f"ℹ️  {text}", style="blue"))

    def on_run_start(self, ctx: "EnvironmentContext", steps: Sequence["Step"]) -> None:
        self.header(self.title)
        self.info(f"Environment: {ctx.name}")
        self.info(f"Cluster: {ctx.target_id}")
        self.info(f"Dry Run: {str(ctx.dry_run).lower()}")
        if ctx.platform.hosted_dev_env:
            self.info("🌐 Running in GitHub Codespaces")

    def on_step_start(self, step: "Step", ctx: "EnvironmentContext") -> None:
        self.header(step.name)
        if ctx.dry_run:
            self.info(f"DRY RUN: {step.describe(ctx)}")

    def on_step_end(self, step: "Step", outcome: "StepOutcome") -> None:
        color, icon = _STATUS_STYLE[outcome.status]
        if outcome.status is OutcomeStatus.FAILED:
            self.console.print(Text(f"{icon} Failed at step: {step.name}", style=color))
            self.console.print(Text(f"   {outcome.message}", style=color))
            return
        if outcome.status is OutcomeStatus.SKIPPED:
            return
        label = outcome.status.value.replace("_", " ")
        line = f"{step.name} completed ({label})"
        if outcome.message:
            line += f": {outcome.message}"
        self.console.print(Text(f"{icon} {line}", style=color))

    def on_run_end(self, report: "ProvisioningReport") -> None:
        if report.ok:
            return
        lines: List[str] = ["", f"💥 {self.failure_title} Cleanup options:", ""]
        lines.extend(report.rollback)
        self.console.print("\n".join(lines), style="red", markup=False, highlight=False)
