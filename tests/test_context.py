"""Tests for environment context resolution"""
import dataclasses

import pytest

from infraops.context import (
    SKIP_CLUSTER_CREATE,
    detect_platform,
    normalize_arch,
    parse_flag,
    resolve_context,
    validate_environment,
)
from infraops.errors import ConfigurationError, UnsupportedPlatformError


class TestResolveContext:
    """Test resolve_context()"""

    def test_defaults_to_local(self):
        """Test no arguments gives the local environment and derived cluster name"""
        ctx = resolve_context(env={}, machine="x86_64")

        assert ctx.name == "local"
        assert ctx.target_id == "infra-ops-local"
        assert ctx.dry_run is False
        assert ctx.skip_flags == frozenset()
        assert ctx.platform.arch == "amd64"
        assert ctx.kube_context == "k3d-infra-ops-local"

    def test_explicit_target(self):
        """Test an explicit cluster name is used as-is"""
        ctx = resolve_context("staging", "eu-cluster", env={}, machine="arm64")

        assert ctx.name == "staging"
        assert ctx.target_id == "eu-cluster"
        assert ctx.is_local is False
        assert ctx.kube_context == "eu-cluster"

    def test_invalid_environment_rejected_before_platform_lookup(self):
        """Test a bad environment name wins over a bad architecture"""
        with pytest.raises(ConfigurationError, match="Invalid environment"):
            resolve_context("dev", env={}, machine="sparc")

    def test_flags_from_environment(self):
        """Test DRY_RUN and SKIP_CLUSTER_CREATE are read from the environment"""
        ctx = resolve_context(env={"DRY_RUN": "true", "SKIP_CLUSTER_CREATE": "1"}, machine="x86_64")

        assert ctx.dry_run is True
        assert ctx.skip_cluster_create is True
        assert SKIP_CLUSTER_CREATE in ctx.skip_flags

    def test_explicit_flags_override_environment(self):
        """Test keyword flags win over environment variables"""
        ctx = resolve_context(
            env={"DRY_RUN": "true"}, machine="x86_64", dry_run=False, skip_cluster_create=True
        )

        assert ctx.dry_run is False
        assert ctx.skip_cluster_create is True

    def test_malformed_flag_is_fatal(self):
        """Test an unparseable DRY_RUN raises instead of defaulting"""
        with pytest.raises(ConfigurationError, match="DRY_RUN"):
            resolve_context(env={"DRY_RUN": "maybe"}, machine="x86_64")

    def test_repo_url_from_environment(self):
        """Test INFRA_OPS_REPO_URL is carried on the context"""
        ctx = resolve_context(env={"INFRA_OPS_REPO_URL": "https://example.com/ops.git"}, machine="x86_64")
        assert ctx.repo_url == "https://example.com/ops.git"

    def test_context_is_immutable(self):
        """Test steps cannot mutate the context"""
        ctx = resolve_context(env={}, machine="x86_64")
        with pytest.raises(dataclasses.FrozenInstanceError):
            ctx.dry_run = True


class TestPlatform:
    """Test architecture and hosted environment detection"""

    @pytest.mark.parametrize(
        "machine,arch",
        [("x86_64", "amd64"), ("amd64", "amd64"), ("aarch64", "arm64"), ("arm64", "arm64"), ("X86_64", "amd64")],
    )
    def test_normalize_arch(self, machine, arch):
        """Test supported machine names map to amd64/arm64"""
        assert normalize_arch(machine) == arch

    def test_unsupported_arch(self):
        """Test an unknown machine raises UnsupportedPlatformError"""
        with pytest.raises(UnsupportedPlatformError, match="Unsupported architecture: riscv64"):
            normalize_arch("riscv64")

    def test_codespaces_detected(self):
        """Test CODESPACES marks a hosted dev environment"""
        platform = detect_platform({"CODESPACES": "true", "CODESPACE_NAME": "fuzzy-pancake"}, machine="x86_64")

        assert platform.hosted_dev_env is True
        assert platform.codespace_name == "fuzzy-pancake"

    def test_codespace_token_detected(self):
        """Test GITHUB_CODESPACE_TOKEN alone also marks a hosted environment"""
        platform = detect_platform({"GITHUB_CODESPACE_TOKEN": "x"}, machine="aarch64")
        assert platform.hosted_dev_env is True

    def test_not_hosted(self):
        """Test CODESPACE_NAME is ignored outside a hosted environment"""
        platform = detect_platform({"CODESPACE_NAME": "stale"}, machine="x86_64")

        assert platform.hosted_dev_env is False
        assert platform.codespace_name is None


class TestParsing:
    """Test small validation helpers"""

    @pytest.mark.parametrize("raw", ["true", "TRUE", "1", "yes", "on", " true "])
    def test_truthy_flags(self, raw):
        assert parse_flag("X", raw) is True

    @pytest.mark.parametrize("raw", [None, "", "false", "0", "no", "off"])
    def test_falsy_flags(self, raw):
        assert parse_flag("X", raw) is False

    def test_validate_environment(self):
        """Test the three known environments are accepted"""
        for name in ("local", "staging", "production"):
            assert validate_environment(name) == name
        with pytest.raises(ConfigurationError):
            validate_environment("Local")
