from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from ..errors import ExternalOperationError
from ..operations import CommandResult, Operations
from .k3d import WAIT_GRACE


@dataclass(frozen=True)
class PodStatus:
    name: str
    phase: str

    @property
    def running(self) -> bool:
        return self.phase == "Running"


def _not_found(result: CommandResult) -> bool:
    return "not found" in f"{result.stderr}\n{result.stdout}".lower()


class KubeClient:
    """Adapter for kubectl operations against the current context."""

    def __init__(self, ops: Operations) -> None:
        self.ops = ops

    # Cluster
    def wait_nodes_ready(self, *, timeout: int) -> None:
        self.ops.run(
            ["kubectl", "wait", "--for=condition=Ready", "nodes", "--all", f"--timeout={timeout}s"],
            timeout=timeout + WAIT_GRACE,
            error_message="Nodes did not become Ready",
        )

    def cluster_info(self, context: Optional[str] = None) -> str:
        cmd = ["kubectl", "cluster-info"]
        if context:
            cmd += ["--context", context]
        return self.ops.run(cmd, error_message="Failed to query cluster info").stdout

    def context_exists(self, name: str) -> bool:
        result = self.ops.execute(["kubectl", "config", "get-contexts", name, "-o", "name"])
        return result.ok and name in result.stdout.split()

    def use_context(self, name: str) -> None:
        self.ops.run(["kubectl", "config", "use-context", name], error_message=f"Failed to switch to context {name}")

    # Namespaces
    def namespace_exists(self, name: str) -> bool:
        result = self.ops.execute(["kubectl", "get", "namespace", name, "-o", "name"])
        if result.ok:
            return True
        if _not_found(result):
            return False
        raise ExternalOperationError(f"Failed to check namespace {name}", result)

    def create_namespace(self, name: str) -> None:
        self.ops.run(["kubectl", "create", "namespace", name], error_message=f"Failed to create namespace {name}")

    # Manifests and objects
    def apply_url(self, url: str, *, namespace: str) -> None:
        self.ops.run(["kubectl", "apply", "-n", namespace, "-f", url], error_message=f"Failed to apply {url}")

    def apply_manifest(self, manifest: str, *, namespace: str) -> None:
        self.ops.run(
            ["kubectl", "apply", "-n", namespace, "-f", "-"],
            input=manifest,
            error_message="Failed to apply manifest",
        )

    def object_exists(self, kind: str, name: str, *, namespace: str) -> bool:
        result = self.ops.execute(["kubectl", "get", kind, name, "-n", namespace, "-o", "name"])
        if result.ok:
            return True
        if _not_found(result):
            return False
        raise ExternalOperationError(f"Failed to check {kind}/{name}", result)

    def patch_configmap(self, name: str, data: Dict[str, str], *, namespace: str) -> None:
        self.ops.run(
            ["kubectl", "patch", "configmap", name, "-n", namespace, "--type", "merge", "-p", json.dumps({"data": data})],
            error_message=f"Failed to patch configmap {name}",
        )

    # Workloads
    def wait_available(self, deployments: Sequence[str], *, namespace: str, timeout: int) -> None:
        cmd = ["kubectl", "wait", "--for=condition=available", f"--timeout={timeout}s"]
        cmd += [f"deployment/{d}" for d in deployments]
        cmd += ["-n", namespace]
        self.ops.run(cmd, timeout=timeout + WAIT_GRACE, error_message=f"Deployments in {namespace} did not become available")

    def rollout_restart(self, deployment: str, *, namespace: str) -> None:
        self.ops.run(
            ["kubectl", "rollout", "restart", f"deployment/{deployment}", "-n", namespace],
            error_message=f"Failed to restart deployment {deployment}",
        )

    def rollout_status(self, deployment: str, *, namespace: str, timeout: int) -> None:
        self.ops.run(
            ["kubectl", "rollout", "status", f"deployment/{deployment}", "-n", namespace, f"--timeout={timeout}s"],
            timeout=timeout + WAIT_GRACE,
            error_message=f"Rollout of {deployment} did not finish",
        )

    def list_pods(self, *, namespace: str) -> List[PodStatus]:
        result = self.ops.run(
            ["kubectl", "get", "pods", "-n", namespace, "-o", "json"],
            error_message=f"Failed to list pods in {namespace}",
        )
        try:
            items = json.loads(result.stdout or "{}").get("items", [])
        except json.JSONDecodeError as e:
            raise ExternalOperationError(f"Unparseable pod list for {namespace}: {e}", result) from e
        return [
            PodStatus(
                name=item.get("metadata", {}).get("name", ""),
                phase=item.get("status", {}).get("phase", "Unknown"),
            )
            for item in items
        ]
