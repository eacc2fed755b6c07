"""
Rollback guidance

Produces the manual cleanup instructions shown when a run fails. Nothing here
executes a command: the operator decides what to tear down.
"""
from __future__ import annotations

from typing import List

from .context import EnvironmentContext


def rollback_guidance(ctx: EnvironmentContext) -> List[str]:
    """Return cleanup suggestions for the environment in ``ctx``."""
    namespaces = f"{ctx.settings.argocd_namespace} {ctx.settings.crossplane_namespace}"

    if ctx.is_local:
        return [
            "  Local environment cleanup:",
            f"    k3d cluster delete {ctx.target_id}",
            "",
            "  Manual cleanup:",
            f"    kubectl delete namespace {namespaces} --ignore-not-found",
            "",
            "  Full reset:",
            f"    k3d cluster delete {ctx.target_id}",
            "    docker system prune -f",
        ]

    return [
        f"  {ctx.name.capitalize()} cluster cleanup:",
        f"    Delete cluster '{ctx.target_id}' with your cloud provider's tooling",
        "",
        "  Manual cleanup:",
        f"    kubectl --context {ctx.kube_context} delete namespace {namespaces} --ignore-not-found",
    ]
