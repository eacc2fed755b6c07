"""Configuration management for infraops."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Tuple

import yaml

from .errors import ConfigurationError


GLOBAL_CONFIG_PATH = Path.home() / ".infraops.yaml"

DEFAULT_REQUIRED_TOOLS = ("kubectl", "helm", "k3d", "docker")
DEFAULT_WAIT_TIMEOUT = 300
ARGOCD_MANIFEST_URL = "https://raw.githubusercontent.com/argoproj/argo-cd/stable/manifests/install.yaml"
CROSSPLANE_REPO_URL = "https://charts.crossplane.io/stable"


class Config:
    """Manages infraops configuration with hierarchical lookup.

    Config hierarchy (higher priority first):
    1. Local repo config (.infraops/config.yaml)
    2. Global config (~/.infraops.yaml)

    When reading, local values override global.
    When writing, writes to the config path specified at init (local or global).
    """

    def __init__(self, config_path: Optional[Path] = None, enable_hierarchy: bool = True, global_path: Optional[Path] = None):
        """Initialize config.

        Args:
            config_path: Specific config file to use. If None, uses global config.
            enable_hierarchy: If True, uses hierarchical lookup (local + global).
                             If False, only uses the specified config_path.
            global_path: Override for the global config location.
        """
        self.global_path = global_path or GLOBAL_CONFIG_PATH
        self.config_path = config_path or self.global_path
        self.enable_hierarchy = enable_hierarchy
        self._data: dict[str, Any] = {}
        self._global_data: dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        """Load configuration from file(s)."""
        self._data = self._read(self.config_path)

        if self.enable_hierarchy and self.config_path != self.global_path:
            self._global_data = self._read(self.global_path)
        else:
            self._global_data = {}

    @staticmethod
    def _read(path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load config from {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        return data

    def save(self) -> None:
        """Save configuration to primary config file."""
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w") as f:
                yaml.safe_dump(self._data, f, default_flow_style=False)
        except OSError as e:
            raise ConfigurationError(f"Failed to save config to {self.config_path}: {e}") from e

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value, local first, then global, then default."""
        if key in self._data:
            return self._data[key]
        if key in self._global_data:
            return self._global_data[key]
        return default

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value in the primary config."""
        self._data[key] = value

    def as_dict(self) -> dict[str, Any]:
        merged = dict(self._global_data)
        merged.update(self._data)
        return merged

    @classmethod
    def load_with_repo_context(cls, start_path: Optional[Path] = None) -> Config:
        """Load config with repo context if available.

        Tries to find repo-local config first, falls back to global.
        """
        from .paths import get_repo_config_path

        repo_config_path = get_repo_config_path(start_path)
        if repo_config_path:
            return cls(config_path=repo_config_path, enable_hierarchy=True)
        return cls(config_path=GLOBAL_CONFIG_PATH, enable_hierarchy=False)


def _as_int(key: str, value: Any) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Config key '{key}' must be an integer, got {value!r}") from None
    if parsed <= 0:
        raise ConfigurationError(f"Config key '{key}' must be positive, got {parsed}")
    return parsed


def _as_str_tuple(key: str, value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        return tuple(value.split())
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return tuple(value)
    raise ConfigurationError(f"Config key '{key}' must be a list of strings, got {value!r}")


@dataclass(frozen=True)
class Settings:
    """Typed, read-only view of the tunables used by the step catalog."""

    required_tools: Tuple[str, ...] = DEFAULT_REQUIRED_TOOLS
    wait_timeout: int = DEFAULT_WAIT_TIMEOUT
    loadbalancer_port: str = "8080:80@loadbalancer"
    argocd_namespace: str = "argocd"
    argocd_manifest_url: str = ARGOCD_MANIFEST_URL
    argocd_url: str = "http://localhost:9090"
    crossplane_namespace: str = "crossplane-system"
    crossplane_repo_name: str = "crossplane-stable"
    crossplane_repo_url: str = CROSSPLANE_REPO_URL
    crossplane_chart: str = "crossplane-stable/crossplane"
    crossplane_release: str = "crossplane"
    cloud_cluster_command: Optional[Tuple[str, ...]] = None
    self_management_app: str = "infra-ops"
    self_management_path: Optional[str] = None
    self_management_revision: str = "HEAD"
    install_dir: Path = field(default_factory=lambda: Path.home() / ".local" / "bin")
    profile_path: Path = field(default_factory=lambda: Path.home() / ".bashrc")

    @classmethod
    def from_config(cls, config: Config) -> Settings:
        values = config.as_dict()
        known = set(cls.__dataclass_fields__)
        kwargs: dict[str, Any] = {}
        for key, value in values.items():
            if key not in known or value is None:
                continue
            if key == "wait_timeout":
                kwargs[key] = _as_int(key, value)
            elif key in ("required_tools", "cloud_cluster_command"):
                kwargs[key] = _as_str_tuple(key, value)
            elif key in ("install_dir", "profile_path"):
                kwargs[key] = Path(str(value)).expanduser()
            else:
                kwargs[key] = str(value)
        return cls(**kwargs)
