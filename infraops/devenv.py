"""Development environment setup steps.

Installs the CLI tools the bootstrap workflow relies on and adds shell
helpers. Runs through the same Provisioner as ``bootstrap`` so dry runs,
fail-fast and reporting behave identically.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List, Optional

from .context import EnvironmentContext
from .errors import DegradedCompletion, ExternalOperationError, StepFailure
from .operations import Operations
from .profile import ProfileWriter
from .step import Step, StepOutcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolSpec:
    name: str
    url: str  # {arch} is replaced with amd64/arm64
    required: bool = False


DEV_TOOLS = (
    ToolSpec("k3d", "https://github.com/k3d-io/k3d/releases/latest/download/k3d-linux-{arch}", required=True),
    ToolSpec("yq", "https://github.com/mikefarah/yq/releases/latest/download/yq_linux_{arch}"),
    ToolSpec("argocd", "https://github.com/argoproj/argo-cd/releases/latest/download/argocd-linux-{arch}"),
    ToolSpec("kubectl-crossplane", "https://releases.crossplane.io/stable/current/bin/linux_{arch}/crank"),
    ToolSpec("jq", "https://github.com/jqlang/jq/releases/latest/download/jq-linux-{arch}"),
)

ALIASES_BLOCK = """
# Infra-Ops aliases
alias k='kubectl'
alias kg='kubectl get'
alias kd='kubectl describe'
alias kl='kubectl logs'
alias kaf='kubectl apply -f'
alias kdf='kubectl delete -f'
alias argopass='kubectl -n argocd get secret argocd-initial-admin-secret -o jsonpath="{.data.password}" | base64 -d'

# ArgoCD port-forward helper
argocd-ui() {
    echo "Starting ArgoCD UI port-forward on port ${ARGOCD_PORT:-9090}..."
    kubectl port-forward svc/argocd-server -n argocd ${ARGOCD_PORT:-9090}:80
}

# Quick cluster info
cluster-info() {
    kubectl cluster-info
    kubectl get nodes
    kubectl get pods -n argocd
    kubectl get pods -n crossplane-system
}
"""

CODESPACES_BLOCK = """
# Codespaces-specific configuration
export CODESPACES=true

show-ports() {
    echo "Available ports:"
    echo "  ArgoCD UI: https://${CODESPACE_NAME}-9090.app.github.dev"
    echo "  k3d LB:    https://${CODESPACE_NAME}-8080.app.github.dev"
}
"""


def _is_executable(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)


class ToolInstallStep(Step):
    """Download a single release binary unless the tool is already available."""

    def __init__(self, tool: ToolSpec, name: Optional[str] = None) -> None:
        super().__init__(name or f"Install {tool.name}")
        self.tool = tool

    def run(self, ctx: EnvironmentContext, ops: Operations) -> StepOutcome:
        tool = self.tool
        found = ops.which(tool.name) or ops.which(tool.name, path=str(ctx.settings.install_dir))
        if found:
            logger.info(f"{tool.name} already installed")
            return StepOutcome.already_satisfied(f"{tool.name} already installed", path=found)

        dest = ctx.settings.install_dir / tool.name
        url = tool.url.format(arch=ctx.platform.arch)
        logger.info(f"Installing {tool.name}...")
        try:
            ops.download(url, dest)
        except ExternalOperationError as e:
            return self._install_failed(str(e))
        if not _is_executable(str(dest)):
            return self._install_failed(f"{dest} is not executable after download")
        return StepOutcome.performed(f"{tool.name} installed", ["download"], path=str(dest))

    def _install_failed(self, reason: str) -> StepOutcome:
        if self.tool.required:
            raise StepFailure(f"Failed to install {self.tool.name}: {reason}")
        raise DegradedCompletion(f"Failed to install {self.tool.name}: {reason}")

    def describe(self, ctx: EnvironmentContext) -> str:
        return f"Would install {self.tool.name} from {self.tool.url.format(arch=ctx.platform.arch)}"


class ShellProfileStep(Step):
    """Add PATH, alias and hosted-environment blocks to the shell profile."""

    name = "Shell Profile"

    def run(self, ctx: EnvironmentContext, ops: Operations) -> StepOutcome:
        writer = ProfileWriter(ctx.settings.profile_path)
        blocks = [
            ("path", f'export PATH="{ctx.settings.install_dir}:$PATH"'),
            ("aliases", ALIASES_BLOCK),
        ]
        if ctx.platform.hosted_dev_env:
            blocks.append(("codespaces", CODESPACES_BLOCK))

        actions: List[str] = []
        for block_name, content in blocks:
            if writer.ensure_block(block_name, content):
                actions.append(f"append-{block_name}")
        if not actions:
            return StepOutcome.already_satisfied(f"{writer.path} already configured")
        return StepOutcome.performed(f"updated {writer.path}", actions)

    def describe(self, ctx: EnvironmentContext) -> str:
        return f"Would add infraops blocks to {ctx.settings.profile_path}"


def setup_steps() -> List[Step]:
    steps: List[Step] = [ToolInstallStep(tool) for tool in DEV_TOOLS]
    steps.append(ShellProfileStep())
    return steps


def setup_rollback_guidance(ctx: EnvironmentContext) -> List[str]:
    return [
        "  Downloaded binaries:",
        f"    ls {ctx.settings.install_dir}",
        "",
        "  Profile changes (blocks marked '# >>> infraops ... >>>'):",
        f"    {ctx.settings.profile_path}",
        "",
        "  Fix the error above and re-run: infraops setup",
    ]
