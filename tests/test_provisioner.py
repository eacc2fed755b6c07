"""Tests for the Provisioner, outcomes and hooks"""
from infraops.errors import DegradedCompletion, ExternalOperationError, StepFailure
from infraops.hook import Hook
from infraops.operations import CommandResult
from infraops.runner import Provisioner
from infraops.step import FunctionStep, OutcomeStatus, Step, StepOutcome
from infraops.steps import default_steps


class RecordingHook(Hook):
    def __init__(self):
        self.events = []

    def on_run_start(self, ctx, steps):
        self.events.append(("run_start", len(steps)))

    def on_step_start(self, step, ctx):
        self.events.append(("step_start", step.name))

    def on_step_end(self, step, outcome):
        self.events.append(("step_end", step.name, outcome.status))

    def on_run_end(self, report):
        self.events.append(("run_end", report.ok))


class ExplodingHook(Hook):
    def on_step_start(self, step, ctx):
        raise RuntimeError("hook is broken")


def ok_step(name):
    return FunctionStep(name, lambda ctx, ops: None)


def failing_step(name, exc):
    def _fn(ctx, ops):
        raise exc

    return FunctionStep(name, _fn)


class TestFailFast:
    """Test sequential, fail-fast execution"""

    def test_all_steps_succeed(self, make_ctx, ops):
        """Test every step is recorded in order and the exit code is 0"""
        report = Provisioner([ok_step("a"), ok_step("b")], ops=ops).run(make_ctx())

        assert [name for name, _ in report.entries] == ["a", "b"]
        assert all(o.status is OutcomeStatus.PERFORMED for _, o in report.entries)
        assert report.ok
        assert report.exit_code == 0
        assert report.rollback == []

    def test_stops_at_first_failure(self, make_ctx, ops):
        """Test later steps never run after a failure"""
        ran = []
        third = FunctionStep("c", lambda ctx, ops: ran.append("c"))
        steps = [ok_step("a"), failing_step("b", StepFailure("nope")), third]

        report = Provisioner(steps, ops=ops).run(make_ctx())

        assert [name for name, _ in report.entries] == ["a", "b"]
        assert report.failed_step == "b"
        assert report.outcome("b").reason == "nope"
        assert report.exit_code == 1
        assert ran == []

    def test_failure_attaches_rollback_guidance(self, make_ctx, ops):
        """Test a failed run carries the cleanup suggestions"""
        report = Provisioner([failing_step("a", StepFailure("x"))], ops=ops).run(make_ctx(target="dev1"))

        assert any("k3d cluster delete dev1" in line for line in report.rollback)
        assert report.to_dict()["failed_step"] == "a"
        assert report.to_dict()["rollback"] == report.rollback

    def test_custom_rollback_advisor(self, make_ctx, ops):
        """Test the rollback advisor can be replaced"""
        report = Provisioner(
            [failing_step("a", StepFailure("x"))], ops=ops, rollback=lambda ctx: ["  rm -rf it"]
        ).run(make_ctx())
        assert report.rollback == ["  rm -rf it"]

    def test_degraded_does_not_stop_run(self, make_ctx, ops):
        """Test DegradedCompletion is recorded and execution continues"""
        steps = [failing_step("a", DegradedCompletion("half done", hint="do the rest")), ok_step("b")]

        report = Provisioner(steps, ops=ops).run(make_ctx())

        assert report.ok
        assert report.outcome("a").status is OutcomeStatus.DEGRADED
        assert report.outcome("a").details == {"hint": "do the rest"}
        assert report.outcome("b").status is OutcomeStatus.PERFORMED

    def test_external_error_becomes_failure(self, make_ctx, ops):
        """Test ExternalOperationError is converted with its timeout flag"""
        result = CommandResult(["kubectl", "wait"], -9, "", "", timed_out=True)
        report = Provisioner([failing_step("a", ExternalOperationError("waited", result))], ops=ops).run(make_ctx())

        outcome = report.outcome("a")
        assert outcome.failed
        assert outcome.details["timed_out"] is True
        assert "timed out" in outcome.message

    def test_unexpected_exception_becomes_failure(self, make_ctx, ops):
        """Test programming errors inside a step do not escape the run"""
        report = Provisioner([failing_step("a", KeyError("oops"))], ops=ops).run(make_ctx())

        assert report.outcome("a").failed
        assert report.outcome("a").message.startswith("KeyError")

    def test_returned_failure_stops_run(self, make_ctx, ops):
        """Test a step may return a failed outcome instead of raising"""
        steps = [FunctionStep("a", lambda ctx, ops: StepOutcome.failure("bad")), ok_step("b")]
        report = Provisioner(steps, ops=ops).run(make_ctx())

        assert report.failed_step == "a"
        assert report.outcome("b") is None

    def test_step_returning_none_is_failure(self, make_ctx, ops):
        """Test a Step subclass that forgets to return an outcome fails"""

        class Forgetful(Step):
            name = "forgetful"

            def run(self, ctx, ops):
                return None

        report = Provisioner([Forgetful()], ops=ops).run(make_ctx())
        assert report.outcome("forgetful").failed


class TestDryRun:
    """Test dry-run mode"""

    def test_dry_run_makes_no_external_calls(self, make_ctx, ops, cluster):
        """Test the full catalog in dry-run touches nothing"""
        report = Provisioner(default_steps(), ops=ops).run(make_ctx(dry_run=True))

        assert report.ok
        assert len(report.entries) == 6
        assert all(o.status is OutcomeStatus.SKIPPED for _, o in report.entries)
        assert cluster.calls == []
        assert ops.history == []

    def test_dry_run_messages_describe_intent(self, make_ctx, ops):
        """Test skipped outcomes carry each step's description"""
        report = Provisioner(default_steps(), ops=ops).run(make_ctx(dry_run=True))

        assert report.outcome("Prerequisites Check").message == "Would check for: kubectl, helm, k3d, docker"
        assert "infra-ops-local" in report.outcome("Cluster Setup").message


class TestHooks:
    """Test hook notifications"""

    def test_events_in_order(self, make_ctx, ops):
        """Test start/end events bracket each step"""
        hook = RecordingHook()
        Provisioner([ok_step("a"), ok_step("b")], ops=ops, hooks=[hook]).run(make_ctx())

        assert hook.events == [
            ("run_start", 2),
            ("step_start", "a"),
            ("step_end", "a", OutcomeStatus.PERFORMED),
            ("step_start", "b"),
            ("step_end", "b", OutcomeStatus.PERFORMED),
            ("run_end", True),
        ]

    def test_hook_errors_are_isolated(self, make_ctx, ops):
        """Test a raising hook does not change the run"""
        hook = RecordingHook()
        report = Provisioner([ok_step("a")], ops=ops, hooks=[ExplodingHook(), hook]).run(make_ctx())

        assert report.ok
        assert ("step_end", "a", OutcomeStatus.PERFORMED) in hook.events


class TestOutcome:
    """Test StepOutcome helpers"""

    def test_success_statuses(self):
        assert StepOutcome.performed().succeeded
        assert StepOutcome.already_satisfied().succeeded
        assert StepOutcome.disabled("off").succeeded
        assert StepOutcome.degraded("meh").succeeded
        assert not StepOutcome.skipped().succeeded
        assert not StepOutcome.failure("x").succeeded

    def test_reason_only_on_failure(self):
        assert StepOutcome.failure("boom").reason == "boom"
        assert StepOutcome.performed("fine").reason is None

    def test_to_dict(self):
        outcome = StepOutcome.already_satisfied("exists", ["configure"], ns="argocd")
        assert outcome.to_dict() == {
            "status": "already_satisfied",
            "message": "exists",
            "actions": ["configure"],
            "details": {"ns": "argocd"},
        }
