from __future__ import annotations

import logging

import yaml

from ..clients import KubeClient
from ..context import EnvironmentContext
from ..errors import DegradedCompletion
from ..operations import Operations
from ..step import Step, StepOutcome
from ..vcs import GitInspector

logger = logging.getLogger(__name__)

APPLICATION_KIND = "applications.argoproj.io"
IN_CLUSTER_SERVER = "https://kubernetes.default.svc"


def application_manifest(name: str, namespace: str, repo_url: str, path: str, revision: str) -> str:
    """Render the ArgoCD Application that points the cluster at its own repo."""
    doc = {
        "apiVersion": "argoproj.io/v1alpha1",
        "kind": "Application",
        "metadata": {"name": name, "namespace": namespace},
        "spec": {
            "project": "default",
            "source": {"repoURL": repo_url, "targetRevision": revision, "path": path},
            "destination": {"server": IN_CLUSTER_SERVER, "namespace": namespace},
            "syncPolicy": {"automated": {"prune": True, "selfHeal": True}},
        },
    }
    return yaml.safe_dump(doc, sort_keys=False)


class SelfManagementSetup(Step):
    """Register the platform repository with ArgoCD.

    Missing information (no repository URL, no manifest path) degrades to a
    warning rather than failing the run.
    """

    name = "Self-Management Setup"

    def run(self, ctx: EnvironmentContext, ops: Operations) -> StepOutcome:
        s = ctx.settings
        logger.info("Setting up GitOps self-management...")

        repo_url = ctx.repo_url or GitInspector(ops).discover_remote_url()
        if not repo_url:
            raise DegradedCompletion(
                "Cannot determine Git repository URL; self-management setup skipped",
                hint="To enable later, set INFRA_OPS_REPO_URL and re-run",
            )
        logger.info(f"Repository URL: {repo_url}")

        if not s.self_management_path:
            raise DegradedCompletion(
                f"No self_management_path configured for {repo_url}; manual setup required",
                hint="Set self_management_path in .infraops/config.yaml and re-run",
            )

        kube = KubeClient(ops)
        if kube.object_exists(APPLICATION_KIND, s.self_management_app, namespace=s.argocd_namespace):
            logger.info(f"Application '{s.self_management_app}' already registered")
            return StepOutcome.already_satisfied(
                f"application '{s.self_management_app}' already exists", repo_url=repo_url
            )

        manifest = application_manifest(
            s.self_management_app, s.argocd_namespace, repo_url, s.self_management_path, s.self_management_revision
        )
        kube.apply_manifest(manifest, namespace=s.argocd_namespace)
        return StepOutcome.performed(
            f"application '{s.self_management_app}' tracks {repo_url}", ["apply-application"], repo_url=repo_url
        )
