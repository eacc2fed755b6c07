"""Tests for development environment setup"""
import pytest

from infraops.devenv import DEV_TOOLS, ShellProfileStep, ToolInstallStep, ToolSpec, setup_steps
from infraops.errors import DegradedCompletion, StepFailure
from infraops.operations import Operations
from infraops.profile import ProfileWriter
from infraops.runner import Provisioner
from infraops.step import OutcomeStatus

from fakes import FakeCluster, FakeSession

K3D = ToolSpec("k3d", "https://example.com/k3d-linux-{arch}", required=True)
YQ = ToolSpec("yq", "https://example.com/yq_linux_{arch}")


class TestProfileWriter:
    """Test marked block edits"""

    def test_appends_block_once(self, temp_dir):
        """Test a second ensure_block leaves the file unchanged"""
        path = temp_dir / ".bashrc"
        path.write_text("export EDITOR=vim")
        writer = ProfileWriter(path)

        assert writer.ensure_block("aliases", "alias k='kubectl'\n") is True
        content = path.read_text()
        assert writer.ensure_block("aliases", "alias k='kubectl'\n") is False
        assert path.read_text() == content

        assert content.startswith("export EDITOR=vim\n")
        assert "# >>> infraops aliases >>>\nalias k='kubectl'\n# <<< infraops aliases <<<\n" in content
        assert writer.has_block("aliases")
        assert not writer.has_block("path")

    def test_creates_missing_file(self, temp_dir):
        path = temp_dir / "nested" / ".zshrc"
        assert ProfileWriter(path).ensure_block("path", 'export PATH="/x:$PATH"')
        assert path.exists()


class TestToolInstallStep:
    """Test single binary installs"""

    def test_already_on_path(self, make_ctx, ops, session):
        """Test a tool found on PATH is not downloaded"""
        outcome = ToolInstallStep(K3D).run(make_ctx(), ops)

        assert outcome.status is OutcomeStatus.ALREADY_SATISFIED
        assert session.urls == []

    def test_downloads_for_arch(self, make_ctx, settings):
        """Test a missing tool is fetched for the host architecture"""
        session = FakeSession()
        cluster = FakeCluster(tools=[])
        ops = Operations(runner=cluster, which=cluster.which, session=session)

        outcome = ToolInstallStep(K3D).run(make_ctx(machine="aarch64"), ops)

        assert outcome.status is OutcomeStatus.PERFORMED
        assert outcome.actions == ["download"]
        assert session.urls == ["https://example.com/k3d-linux-arm64"]
        assert (settings.install_dir / "k3d").exists()

    def test_required_tool_failure(self, make_ctx):
        cluster = FakeCluster(tools=[])
        ops = Operations(runner=cluster, which=cluster.which, session=FakeSession(status=500))

        with pytest.raises(StepFailure, match="Failed to install k3d"):
            ToolInstallStep(K3D).run(make_ctx(), ops)

    def test_optional_tool_failure_degrades(self, make_ctx):
        cluster = FakeCluster(tools=[])
        ops = Operations(runner=cluster, which=cluster.which, session=FakeSession(status=404))

        with pytest.raises(DegradedCompletion, match="Failed to install yq"):
            ToolInstallStep(YQ).run(make_ctx(), ops)

    def test_describe(self, make_ctx):
        assert ToolInstallStep(YQ).describe(make_ctx()) == "Would install yq from https://example.com/yq_linux_amd64"


class TestShellProfileStep:
    """Test shell profile configuration"""

    def test_first_run_then_idempotent(self, make_ctx, ops, settings):
        ctx = make_ctx()

        first = ShellProfileStep().run(ctx, ops)
        second = ShellProfileStep().run(ctx, ops)

        assert first.status is OutcomeStatus.PERFORMED
        assert first.actions == ["append-path", "append-aliases"]
        assert second.status is OutcomeStatus.ALREADY_SATISFIED
        assert str(settings.install_dir) in settings.profile_path.read_text()

    def test_hosted_block(self, make_ctx, ops, settings):
        outcome = ShellProfileStep().run(make_ctx(env={"CODESPACES": "true"}), ops)

        assert outcome.actions[-1] == "append-codespaces"
        assert "show-ports()" in settings.profile_path.read_text()


class TestSetupRun:
    """Test the full setup catalog"""

    def test_catalog_order(self):
        names = [s.name for s in setup_steps()]
        assert names == [f"Install {t.name}" for t in DEV_TOOLS] + ["Shell Profile"]
        assert [t.name for t in DEV_TOOLS if t.required] == ["k3d"]

    def test_fresh_host(self, make_ctx, settings):
        """Test every tool is downloaded and the profile written"""
        session = FakeSession()
        cluster = FakeCluster(tools=[])
        ops = Operations(runner=cluster, which=cluster.which, session=session)

        report = Provisioner(setup_steps(), ops=ops).run(make_ctx())

        assert report.ok
        assert len(session.urls) == len(DEV_TOOLS)
        assert all(o.status is OutcomeStatus.PERFORMED for _, o in report.entries)
        assert cluster.calls == []

    def test_optional_download_failure_continues(self, make_ctx):
        """Test a failed optional download degrades without stopping setup"""
        cluster = FakeCluster(tools=["k3d"])
        ops = Operations(runner=cluster, which=cluster.which, session=FakeSession(status=503))

        report = Provisioner(setup_steps(), ops=ops).run(make_ctx())

        assert report.ok
        assert report.outcome("Install k3d").status is OutcomeStatus.ALREADY_SATISFIED
        assert report.outcome("Install yq").status is OutcomeStatus.DEGRADED
        assert report.outcome("Shell Profile").status is OutcomeStatus.PERFORMED
