"""Pytest configuration and fixtures for infraops tests"""
import tempfile
from pathlib import Path

import pytest

from infraops.config import Settings
from infraops.context import resolve_context
from infraops.operations import Operations

from fakes import FakeCluster, FakeSession


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for test files"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def infraops_project(temp_dir):
    """Provide a temporary checkout with .git and .infraops folders"""
    (temp_dir / ".git").mkdir()
    (temp_dir / ".infraops").mkdir()
    yield temp_dir


@pytest.fixture
def settings(temp_dir):
    """Settings that keep installs and profile edits inside temp_dir"""
    return Settings(
        wait_timeout=60,
        install_dir=temp_dir / "bin",
        profile_path=temp_dir / ".bashrc",
    )


@pytest.fixture
def make_ctx(settings):
    """Factory for EnvironmentContext with an empty process environment"""

    def _make(environment="local", target=None, env=None, machine="x86_64", **kwargs):
        kwargs.setdefault("settings", settings)
        return resolve_context(environment, target, env=env or {}, machine=machine, **kwargs)

    return _make


@pytest.fixture
def cluster():
    """Fresh simulated host: tools installed, no clusters, no namespaces"""
    return FakeCluster()


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def ops(cluster, session):
    """Operations wired to the simulated host"""
    return Operations(runner=cluster, which=cluster.which, session=session)
