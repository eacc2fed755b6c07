from __future__ import annotations

import logging

from ..clients import KubeClient
from ..context import EnvironmentContext
from ..errors import StepFailure
from ..operations import Operations
from ..step import Step, StepOutcome

logger = logging.getLogger(__name__)


class Validation(Step):
    """Require at least one Running pod in each controller namespace."""

    name = "Validation"

    def run(self, ctx: EnvironmentContext, ops: Operations) -> StepOutcome:
        kube = KubeClient(ops)
        logger.info("Validating installation...")
        running = {}
        for label, ns in (("ArgoCD", ctx.settings.argocd_namespace), ("Crossplane", ctx.settings.crossplane_namespace)):
            pods = kube.list_pods(namespace=ns)
            count = sum(1 for p in pods if p.running)
            if not count:
                listing = ", ".join(f"{p.name}={p.phase}" for p in pods) or "no pods"
                raise StepFailure(f"{label} pods are not running in '{ns}' ({listing})")
            logger.info(f"{label} pods are running")
            running[ns] = count
        return StepOutcome.performed("ArgoCD and Crossplane pods are running", running=running)
