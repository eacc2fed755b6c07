"""Environment context resolution.

The context is built exactly once, at process start, from CLI arguments and
environment variables. Steps read it; nothing writes to it afterwards.
"""
from __future__ import annotations

import logging
import os
import platform as _platform
from dataclasses import dataclass, field
from typing import FrozenSet, Mapping, Optional

from .config import Settings
from .errors import ConfigurationError, UnsupportedPlatformError

logger = logging.getLogger(__name__)

ENVIRONMENTS = ("local", "staging", "production")
DEFAULT_ENVIRONMENT = "local"
SKIP_CLUSTER_CREATE = "skip_cluster_create"

_ARCH_MAP = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
}
_TRUE = ("true", "1", "yes", "on")
_FALSE = ("false", "0", "no", "off", "")
_HOSTED_ENV_VARS = ("CODESPACES", "GITHUB_CODESPACE_TOKEN")


@dataclass(frozen=True)
class Platform:
    arch: str
    hosted_dev_env: bool = False
    codespace_name: Optional[str] = None


@dataclass(frozen=True)
class EnvironmentContext:
    name: str
    target_id: str
    dry_run: bool = False
    skip_flags: FrozenSet[str] = frozenset()
    platform: Platform = field(default_factory=lambda: Platform(arch="amd64"))
    repo_url: Optional[str] = None
    settings: Settings = field(default_factory=Settings)

    @property
    def skip_cluster_create(self) -> bool:
        return SKIP_CLUSTER_CREATE in self.skip_flags

    @property
    def is_local(self) -> bool:
        return self.name == "local"

    @property
    def kube_context(self) -> str:
        """kubectl context name for the target cluster."""
        if self.is_local:
            return f"k3d-{self.target_id}"
        return self.target_id


def validate_environment(name: str) -> str:
    if name not in ENVIRONMENTS:
        raise ConfigurationError(
            f"Invalid environment: {name!r}. Valid environments: {', '.join(ENVIRONMENTS)}"
        )
    return name


def normalize_arch(machine: str) -> str:
    arch = _ARCH_MAP.get(machine.strip().lower())
    if arch is None:
        raise UnsupportedPlatformError(machine)
    return arch


def parse_flag(name: str, raw: Optional[str]) -> bool:
    if raw is None:
        return False
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigurationError(f"{name} must be true or false, got {raw!r}")


def detect_platform(env: Mapping[str, str], machine: Optional[str] = None) -> Platform:
    arch = normalize_arch(machine if machine is not None else _platform.machine())
    hosted = any(env.get(var) for var in _HOSTED_ENV_VARS)
    return Platform(
        arch=arch,
        hosted_dev_env=hosted,
        codespace_name=(env.get("CODESPACE_NAME") or None) if hosted else None,
    )


def resolve_context(
    environment: Optional[str] = None,
    target: Optional[str] = None,
    *,
    dry_run: Optional[bool] = None,
    skip_cluster_create: Optional[bool] = None,
    env: Optional[Mapping[str, str]] = None,
    machine: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> EnvironmentContext:
    """Build the EnvironmentContext for this run.

    Explicit keyword values win over environment variables. The environment
    name is validated first so an invalid name never triggers platform
    probing.

    Raises:
        ConfigurationError: unknown environment or malformed flag value.
        UnsupportedPlatformError: unrecognized machine architecture.
    """
    env = os.environ if env is None else env
    name = validate_environment(environment or DEFAULT_ENVIRONMENT)
    target_id = target or f"infra-ops-{name}"

    if dry_run is None:
        dry_run = parse_flag("DRY_RUN", env.get("DRY_RUN"))
    if skip_cluster_create is None:
        skip_cluster_create = parse_flag("SKIP_CLUSTER_CREATE", env.get("SKIP_CLUSTER_CREATE"))

    skip_flags = frozenset({SKIP_CLUSTER_CREATE} if skip_cluster_create else ())
    ctx = EnvironmentContext(
        name=name,
        target_id=target_id,
        dry_run=dry_run,
        skip_flags=skip_flags,
        platform=detect_platform(env, machine),
        repo_url=env.get("INFRA_OPS_REPO_URL") or None,
        settings=settings or Settings(),
    )
    logger.info(f"Resolved context env={ctx.name} target={ctx.target_id} dry_run={ctx.dry_run} arch={ctx.platform.arch}")
    return ctx
