from __future__ import annotations

import json
from typing import List

from ..errors import ExternalOperationError
from ..operations import Operations

# extra wall-clock time granted on top of a tool's own --timeout
WAIT_GRACE = 30


class K3dClient:
    """Adapter for local k3d cluster lifecycle."""

    def __init__(self, ops: Operations) -> None:
        self.ops = ops

    def list_clusters(self) -> List[str]:
        result = self.ops.run(
            ["k3d", "cluster", "list", "-o", "json"],
            error_message="Failed to list k3d clusters",
        )
        try:
            clusters = json.loads(result.stdout or "[]")
        except json.JSONDecodeError as e:
            raise ExternalOperationError(f"Unparseable k3d cluster list output: {e}", result) from e
        return [c.get("name", "") for c in clusters if isinstance(c, dict)]

    def cluster_exists(self, name: str) -> bool:
        return name in self.list_clusters()

    def create_cluster(self, name: str, *, port: str, timeout: int) -> None:
        self.ops.run(
            ["k3d", "cluster", "create", name, "--port", port, "--wait", "--timeout", f"{timeout}s"],
            timeout=timeout + WAIT_GRACE,
            error_message=f"Failed to create k3d cluster {name}",
        )

    def start_cluster(self, name: str, *, timeout: int) -> bool:
        """Start an existing cluster. Returns False instead of raising on failure."""
        result = self.ops.execute(["k3d", "cluster", "start", name], timeout=timeout + WAIT_GRACE)
        return result.ok
