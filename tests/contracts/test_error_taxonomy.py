# tests/contracts/test_error_taxonomy.py
"""Tests for the harness exception taxonomy."""

import pytest

from infraprop.contracts import (
    ConfigMismatchError,
    ExecutionError,
    ExecutionStage,
    HarnessError,
    InvariantViolation,
    ModuleKind,
    PlanParseError,
    RenderError,
    UnknownInvariantError,
    UnknownPropertyError,
)


class TestExecutionError:
    def test_message_names_stage(self) -> None:
        error = ExecutionError(ExecutionStage.INIT, "exit code 1", diagnostics="Error: x", returncode=1)
        assert str(error) == "terraform init failed: exit code 1"
        assert error.diagnostics == "Error: x"
        assert error.returncode == 1

    def test_plan_failure_is_input_error(self) -> None:
        assert ExecutionError(ExecutionStage.PLAN, "exit code 1").is_input_error

    def test_plan_timeout_is_not_input_error(self) -> None:
        assert not ExecutionError(ExecutionStage.PLAN, "timed out", timed_out=True).is_input_error

    @pytest.mark.parametrize("stage", [ExecutionStage.INIT, ExecutionStage.SHOW, ExecutionStage.PARSE])
    def test_other_stages_are_not_input_errors(self, stage: ExecutionStage) -> None:
        assert not ExecutionError(stage, "boom").is_input_error

    def test_parse_error_is_execution_error(self) -> None:
        error = PlanParseError("not JSON", diagnostics="<html>")
        assert isinstance(error, ExecutionError)
        assert error.stage is ExecutionStage.PARSE
        assert error.diagnostics == "<html>"


class TestHierarchy:
    def test_harness_errors(self) -> None:
        assert issubclass(RenderError, HarnessError)
        assert issubclass(ExecutionError, HarnessError)

    def test_violation_is_not_a_harness_error(self) -> None:
        assert not issubclass(InvariantViolation, HarnessError)

    def test_lookup_errors_are_key_errors(self) -> None:
        assert issubclass(UnknownInvariantError, KeyError)
        assert issubclass(UnknownPropertyError, KeyError)

    def test_unknown_errors_have_readable_str(self) -> None:
        error = UnknownPropertyError("nope", ["a", "b"])
        # KeyError would otherwise wrap the message in quotes
        assert str(error) == "Unknown property 'nope'. Available: a, b"
        assert error.available == ["a", "b"]
        assert str(UnknownInvariantError("x.y", ["z"])).startswith("Unknown invariant 'x.y'")

    def test_config_mismatch_is_type_error(self) -> None:
        error = ConfigMismatchError("net.single-vpc", ModuleKind.NETWORKING, ModuleKind.ECS_SERVICE)
        assert isinstance(error, TypeError)
        assert "networking" in str(error)
        assert "ecs-service" in str(error)


class TestInvariantViolation:
    def test_carries_diagnostics(self) -> None:
        violation = InvariantViolation("clause", address="a.b", attribute="x", expected=1, observed=2)
        assert violation.clause == "clause"
        assert (violation.address, violation.attribute, violation.expected, violation.observed) == ("a.b", "x", 1, 2)
        assert str(violation) == "clause"
