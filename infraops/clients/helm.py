from __future__ import annotations

from ..operations import Operations
from .k3d import WAIT_GRACE


class HelmClient:
    """Adapter for Helm repository and release operations."""

    def __init__(self, ops: Operations) -> None:
        self.ops = ops

    def repo_add(self, name: str, url: str) -> None:
        self.ops.run(["helm", "repo", "add", name, url], error_message=f"Failed to add helm repo {name}")

    def repo_update(self) -> None:
        self.ops.run(["helm", "repo", "update"], error_message="Failed to update helm repos")

    def install(
        self,
        *,
        release: str,
        chart: str,
        namespace: str,
        timeout: int,
        create_namespace: bool = True,
        wait: bool = True,
    ) -> None:
        cmd = ["helm", "install", release, chart, "--namespace", namespace]
        if create_namespace:
            cmd.append("--create-namespace")
        if wait:
            cmd.append("--wait")
        cmd += ["--timeout", f"{timeout}s"]
        self.ops.run(cmd, timeout=timeout + WAIT_GRACE, error_message=f"Failed to install release {release}")
