from __future__ import annotations

from typing import Optional

from ..operations import Operations


class GitInspector:
    """Read-only view of the git checkout the process runs in."""

    def __init__(self, ops: Operations) -> None:
        self.ops = ops

    def is_repository(self) -> bool:
        result = self.ops.execute(["git", "rev-parse", "--is-inside-work-tree"])
        return result.ok and result.stdout.strip() == "true"

    def remote_url(self, remote: str = "origin") -> Optional[str]:
        result = self.ops.execute(["git", "remote", "get-url", remote])
        if not result.ok:
            return None
        return result.stdout.strip() or None

    def discover_remote_url(self, remote: str = "origin") -> Optional[str]:
        if not self.is_repository():
            return None
        return self.remote_url(remote)
