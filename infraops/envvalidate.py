from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from .operations import Operations

VERSION_ARGS: Dict[str, List[str]] = {
    "kubectl": ["version", "--client"],
    "helm": ["version", "--short"],
    "k3d": ["version"],
    "docker": ["version", "--format", "{{.Client.Version}}"],
}


@dataclass
class EnvIssue:
    kind: str         # 'tool_missing' | 'tool_version'
    name: str         # tool name
    message: str
    details: Optional[Dict[str, Any]] = None


@dataclass
class ToolReport:
    name: str
    path: Optional[str]
    version: str = "installed"


class ToolValidator:
    """Check that required CLI tools exist and optionally meet a minimum version.

    Each tool is either a plain name or a dict with:
      - name: str (executable name)
      - min_version: str (optional, e.g. '1.0.0')
      - version_args: List[str] (optional override)
    """

    def __init__(self, tools: Sequence[Any], ops: Operations) -> None:
        self.tools = [t if isinstance(t, dict) else {"name": t} for t in tools]
        self.ops = ops
        self.found: List[ToolReport] = []

    @staticmethod
    def _parse_version(text: str) -> Optional[str]:
        m = re.search(r"v?(\d+\.\d+(?:\.\d+)*)", text)
        return m.group(1) if m else None

    @staticmethod
    def _version_tuple(s: str) -> List[int]:
        return [int(p) for p in re.split(r"[._-]", s) if p.isdigit()]

    def _query_version(self, exe: str, name: str, override: Optional[List[str]]) -> str:
        candidates = [override] if override else [VERSION_ARGS.get(name, ["version", "--short"]), ["version"]]
        for args in candidates:
            result = self.ops.execute([exe] + list(args), timeout=30)
            first = (result.stdout or result.stderr).splitlines()[:1]
            if result.ok and first:
                return first[0].strip()
        return "installed"

    def run(self) -> List[EnvIssue]:
        issues: List[EnvIssue] = []
        self.found = []
        for t in self.tools:
            name = t.get("name")
            if not name:
                continue
            exe = self.ops.which(name)
            if not exe:
                issues.append(EnvIssue(kind="tool_missing", name=name, message=f"Required tool not found: {name}"))
                continue
            version = self._query_version(exe, name, t.get("version_args"))
            self.found.append(ToolReport(name=name, path=exe, version=version))
            minv = t.get("min_version")
            if minv:
                parsed = self._parse_version(version)
                if not parsed or self._version_tuple(parsed) < self._version_tuple(minv):
                    issues.append(
                        EnvIssue(
                            kind="tool_version",
                            name=name,
                            message=f"Tool '{name}' version {parsed or 'unknown'} is below required {minv}",
                            details={"found": parsed, "required": minv},
                        )
                    )
        return issues
