# tests/contracts/test_result_types.py
"""Tests for verdicts, trial outcomes and property reports."""

import json

from infraprop.contracts import (
    ABSENT,
    UNKNOWN,
    EcsServiceConfig,
    ExecutionStage,
    ListValue,
    ModuleKind,
    NumberValue,
    PropertyReport,
    ReportStatus,
    Satisfied,
    StringValue,
    TrialError,
    TrialFailure,
    TrialOutcome,
    Violated,
)


class TestVerdicts:
    def test_satisfied_ok(self) -> None:
        assert Satisfied("ecs.desired-count").ok

    def test_violated_not_ok(self) -> None:
        assert not Violated("ecs.desired-count", "clause").ok

    def test_describe_names_location(self) -> None:
        violated = Violated(
            invariant="ecs.desired-count",
            clause="desired_count equals the input",
            address="module.ecs_service.aws_ecs_service.main",
            attribute="desired_count",
            expected=3,
            observed=3.0,
        )
        text = violated.describe()
        assert "[ecs.desired-count] desired_count equals the input" in text
        assert "module.ecs_service.aws_ecs_service.main.desired_count" in text
        assert "expected: 3" in text
        assert "observed: 3.0" in text

    def test_describe_without_address(self) -> None:
        assert "<plan>" in Violated("plan.idempotent", "clause").describe()

    def test_to_dict_is_json_safe(self) -> None:
        violated = Violated(
            invariant="x",
            clause="c",
            expected={"a", "b"},
            observed=ListValue((StringValue("a"), NumberValue(1))),
        )
        data = violated.to_dict()
        assert data["expected"] == ["a", "b"]
        assert data["observed"] == ["a", 1]
        json.dumps(data)

    def test_sentinels_render_readably(self) -> None:
        assert Violated("x", "c", observed=UNKNOWN).to_dict()["observed"] == "(known after apply)"
        assert Violated("x", "c", observed=ABSENT).to_dict()["observed"] is None


class TestTrialOutcome:
    def test_passed_when_all_satisfied(self, public_ecs_config: EcsServiceConfig) -> None:
        outcome = TrialOutcome(0, 1, public_ecs_config, (Satisfied("a"), Satisfied("b")))
        assert outcome.passed
        assert outcome.violation is None

    def test_first_violation(self, public_ecs_config: EcsServiceConfig) -> None:
        first = Violated("b", "first")
        outcome = TrialOutcome(0, 1, public_ecs_config, (Satisfied("a"), first, Violated("c", "second")))
        assert not outcome.passed
        assert outcome.violation is first

    def test_error_fails_trial(self, public_ecs_config: EcsServiceConfig) -> None:
        error = TrialError(0, 1, public_ecs_config, "ExecutionError", "terraform plan failed", ExecutionStage.PLAN)
        assert not TrialOutcome(0, 1, public_ecs_config, error=error).passed


class TestPropertyReport:
    def test_passed_report(self) -> None:
        report = PropertyReport("s", ModuleKind.NETWORKING, 5, 10, 10, ReportStatus.PASSED, elapsed_seconds=1.23456)
        assert report.passed
        data = report.to_dict()
        assert data["module"] == "networking"
        assert data["status"] == "passed"
        assert data["elapsed_seconds"] == 1.235
        assert data["failure"] is None

    def test_violated_report_serializes_failure(self, public_ecs_config: EcsServiceConfig) -> None:
        failure = TrialFailure(3, 99, public_ecs_config, Violated("ecs.desired-count", "clause", expected=2, observed=3))
        report = PropertyReport(
            "ecs-desired-count", ModuleKind.ECS_SERVICE, 5, 10, 4, ReportStatus.VIOLATED, failure=failure
        )
        data = json.loads(json.dumps(report.to_dict()))
        assert data["failure"]["trial_index"] == 3
        assert data["failure"]["trial_seed"] == 99
        assert data["failure"]["config"]["service_name"] == public_ecs_config.service_name
        assert data["failure"]["violation"]["observed"] == 3

    def test_errored_report_serializes_stage(self) -> None:
        error = TrialError(0, 1, None, "PlanParseError", "bad json", ExecutionStage.PARSE, "<html>")
        data = error.to_dict()
        assert data["stage"] == "parse"
        assert data["config"] is None
