from __future__ import annotations

import logging
from typing import List

from ..clients import K3dClient, KubeClient
from ..context import EnvironmentContext
from ..errors import StepFailure
from ..operations import Operations
from ..step import Step, StepOutcome

logger = logging.getLogger(__name__)


class ClusterSetup(Step):
    """Create or start the target cluster.

    ``local`` uses k3d. ``staging`` and ``production`` reuse an existing kube
    context named after the target, or run the configured
    ``cloud_cluster_command`` to provision one.
    """

    name = "Cluster Setup"

    def run(self, ctx: EnvironmentContext, ops: Operations) -> StepOutcome:
        if ctx.skip_cluster_create:
            logger.info("Skipping cluster creation (SKIP_CLUSTER_CREATE=true)")
            return StepOutcome.disabled("Skipping cluster creation (SKIP_CLUSTER_CREATE=true)")
        if ctx.is_local:
            return self._setup_k3d(ctx, ops)
        return self._setup_cloud(ctx, ops)

    def _setup_k3d(self, ctx: EnvironmentContext, ops: Operations) -> StepOutcome:
        k3d = K3dClient(ops)
        kube = KubeClient(ops)
        name = ctx.target_id
        timeout = ctx.settings.wait_timeout
        actions: List[str] = []

        existed = k3d.cluster_exists(name)
        if existed:
            logger.warning(f"k3d cluster '{name}' already exists")
            logger.info("Starting existing cluster...")
            if k3d.start_cluster(name, timeout=timeout):
                actions.append("start-cluster")
            else:
                logger.warning(f"k3d cluster start '{name}' returned an error; continuing")
        else:
            logger.info(f"Creating k3d cluster: {name}")
            k3d.create_cluster(name, port=ctx.settings.loadbalancer_port, timeout=timeout)
            actions.append("create-cluster")

        kube.use_context(ctx.kube_context)
        actions.append("use-context")
        logger.info("Waiting for cluster to be ready...")
        kube.wait_nodes_ready(timeout=timeout)
        kube.cluster_info(ctx.kube_context)
        actions.append("wait-ready")
        logger.info(f"k3d cluster '{name}' is ready")

        if existed:
            return StepOutcome.already_satisfied(f"k3d cluster '{name}' already exists", actions)
        return StepOutcome.performed(f"k3d cluster '{name}' created", actions)

    def _setup_cloud(self, ctx: EnvironmentContext, ops: Operations) -> StepOutcome:
        kube = KubeClient(ops)
        name = ctx.target_id
        timeout = ctx.settings.wait_timeout

        if kube.context_exists(name):
            logger.info(f"Using existing {ctx.name} cluster context '{name}'")
            kube.use_context(name)
            return StepOutcome.already_satisfied(f"{ctx.name} cluster '{name}' already exists", ["use-context"])

        template = ctx.settings.cloud_cluster_command
        if not template:
            raise StepFailure(
                f"No kube context '{name}' and no cloud_cluster_command configured for {ctx.name}"
            )
        cmd = [part.replace("{cluster}", name).replace("{environment}", ctx.name) for part in template]
        logger.info(f"Provisioning {ctx.name} cluster: {name}")
        ops.run(cmd, timeout=timeout, error_message=f"Failed to provision {ctx.name} cluster {name}")
        kube.use_context(name)
        kube.wait_nodes_ready(timeout=timeout)
        return StepOutcome.performed(
            f"{ctx.name} cluster '{name}' provisioned",
            ["provision-cluster", "use-context", "wait-ready"],
        )

    def describe(self, ctx: EnvironmentContext) -> str:
        if ctx.skip_cluster_create:
            return "Would skip cluster creation (SKIP_CLUSTER_CREATE=true)"
        kind = "k3d" if ctx.is_local else ctx.name
        return f"Would create or start {kind} cluster '{ctx.target_id}'"
