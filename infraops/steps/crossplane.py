from __future__ import annotations

import logging

from ..clients import HelmClient, KubeClient
from ..context import EnvironmentContext
from ..operations import Operations
from ..step import Step, StepOutcome

logger = logging.getLogger(__name__)


class CrossplaneInstall(Step):
    """Install Crossplane from its Helm chart.

    Unlike ArgoCDInstall, an existing namespace skips the step entirely:
    nothing is reconciled on reruns.
    """

    name = "Crossplane Installation"

    def run(self, ctx: EnvironmentContext, ops: Operations) -> StepOutcome:
        s = ctx.settings
        kube = KubeClient(ops)
        helm = HelmClient(ops)
        logger.info("Installing Crossplane...")

        if kube.namespace_exists(s.crossplane_namespace):
            logger.warning("Crossplane namespace already exists, skipping installation")
            return StepOutcome.already_satisfied(f"namespace '{s.crossplane_namespace}' already exists")

        helm.repo_add(s.crossplane_repo_name, s.crossplane_repo_url)
        helm.repo_update()
        logger.info("Installing Crossplane via Helm...")
        helm.install(
            release=s.crossplane_release,
            chart=s.crossplane_chart,
            namespace=s.crossplane_namespace,
            timeout=s.wait_timeout,
        )
        logger.info("Crossplane installed successfully")
        return StepOutcome.performed(
            "Crossplane installed",
            ["helm-repo-add", "helm-repo-update", "helm-install"],
        )

    def describe(self, ctx: EnvironmentContext) -> str:
        return f"Would helm install {ctx.settings.crossplane_chart} into '{ctx.settings.crossplane_namespace}'"
