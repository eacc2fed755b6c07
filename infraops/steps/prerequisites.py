from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..context import EnvironmentContext
from ..envvalidate import ToolValidator
from ..errors import PrerequisiteMissingError, StepFailure
from ..operations import Operations
from ..step import Step, StepOutcome

logger = logging.getLogger(__name__)


class PrerequisiteCheck(Step):
    """Fail unless every required CLI tool is on PATH. Read-only."""

    name = "Prerequisites Check"

    def __init__(self, tools: Optional[Sequence[str]] = None, name: Optional[str] = None) -> None:
        super().__init__(name)
        self.tools = tuple(tools) if tools is not None else None

    def run(self, ctx: EnvironmentContext, ops: Operations) -> StepOutcome:
        tools = self.tools if self.tools is not None else ctx.settings.required_tools
        logger.info("Checking required tools...")
        validator = ToolValidator(list(tools), ops)
        issues = validator.run()

        missing = [i.name for i in issues if i.kind == "tool_missing"]
        if missing:
            for tool in missing:
                logger.error(f"Required tool not found: {tool}")
            raise PrerequisiteMissingError(missing)
        if issues:
            raise StepFailure("; ".join(i.message for i in issues))

        for report in validator.found:
            logger.info(f"✓ {report.name}: {report.version}")
        return StepOutcome.performed(
            f"{len(validator.found)} tools available",
            tools={r.name: r.version for r in validator.found},
        )

    def describe(self, ctx: EnvironmentContext) -> str:
        tools = self.tools if self.tools is not None else ctx.settings.required_tools
        return f"Would check for: {', '.join(tools)}"
