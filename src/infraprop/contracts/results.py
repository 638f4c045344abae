# src/infraprop/contracts/results.py
"""Invariant verdicts, trial outcomes and property reports.

These types answer: "What did checking a plan produce?"

IMPORTANT:
- Result is Satisfied | Violated, never an exception. Violations are the
  harness's intended output.
- Infrastructure failures (render/execution/parse) are carried by TrialError,
  never by Violated, so the two failure classes stay distinct in reports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from infraprop.contracts.attributes import (
    UNKNOWN,
    Absent,
    BoolValue,
    ListValue,
    MapValue,
    NumberValue,
    StringValue,
    to_python,
)
from infraprop.contracts.configs import GeneratedConfig, config_as_dict
from infraprop.contracts.enums import ExecutionStage, ModuleKind, ReportStatus


@dataclass(frozen=True)
class Satisfied:
    """The invariant held for this (config, plan) pair."""

    invariant: str

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Violated:
    """The invariant failed.

    Fields:
        invariant: Registered invariant id
        clause: Which clause of the invariant failed
        address: Resource address (or resource kind for cardinality clauses)
        attribute: Attribute path that was inspected, if any
        expected: What the clause required
        observed: What the plan contained
    """

    invariant: str
    clause: str
    address: str | None = None
    attribute: str | None = None
    expected: Any = None
    observed: Any = None

    @property
    def ok(self) -> bool:
        return False

    def describe(self) -> str:
        """Human-readable diagnostic for test output and the CLI."""
        location = self.address or "<plan>"
        if self.attribute:
            location = f"{location}.{self.attribute}"
        return (
            f"[{self.invariant}] {self.clause}\n"
            f"  at:       {location}\n"
            f"  expected: {_display(self.expected)}\n"
            f"  observed: {_display(self.observed)}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "invariant": self.invariant,
            "clause": self.clause,
            "address": self.address,
            "attribute": self.attribute,
            "expected": _jsonable(self.expected),
            "observed": _jsonable(self.observed),
        }


Result = Satisfied | Violated


def _jsonable(value: Any) -> Any:
    """Make diagnostic values JSON-safe (attribute values, sets, sentinels)."""
    if value is UNKNOWN:
        return "(known after apply)"
    if isinstance(value, StringValue | NumberValue | BoolValue | ListValue | MapValue | Absent):
        return _jsonable(to_python(value))
    if isinstance(value, list | tuple):
        return [_jsonable(v) for v in value]
    if isinstance(value, set | frozenset):
        return sorted((_jsonable(v) for v in value), key=repr)
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if value is None or isinstance(value, str | int | float | bool):
        return value
    return repr(value)


def _display(value: Any) -> str:
    return repr(_jsonable(value))


# =============================================================================
# Trial and property outcomes
# =============================================================================


@dataclass(frozen=True)
class TrialFailure:
    """First invariant violation of a property run, with its reproducing input."""

    trial_index: int
    trial_seed: int
    config: GeneratedConfig
    violation: Violated

    def to_dict(self) -> dict[str, Any]:
        return {
            "trial_index": self.trial_index,
            "trial_seed": self.trial_seed,
            "config": config_as_dict(self.config),
            "violation": self.violation.to_dict(),
        }


@dataclass(frozen=True)
class TrialError:
    """First infrastructure failure of a property run (tool or harness broke)."""

    trial_index: int
    trial_seed: int
    config: GeneratedConfig | None
    error_type: str
    message: str
    stage: ExecutionStage | None = None
    diagnostics: str = ""
    timed_out: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "trial_index": self.trial_index,
            "trial_seed": self.trial_seed,
            "config": config_as_dict(self.config) if self.config is not None else None,
            "error_type": self.error_type,
            "message": self.message,
            "stage": self.stage.value if self.stage is not None else None,
            "diagnostics": self.diagnostics,
            "timed_out": self.timed_out,
        }


@dataclass(frozen=True)
class TrialOutcome:
    """Everything one generate -> render -> execute -> check cycle produced."""

    trial_index: int
    trial_seed: int
    config: GeneratedConfig | None
    results: tuple[Result, ...] = ()
    error: TrialError | None = None

    @property
    def violation(self) -> Violated | None:
        for result in self.results:
            if isinstance(result, Violated):
                return result
        return None

    @property
    def passed(self) -> bool:
        return self.error is None and self.violation is None


@dataclass(frozen=True)
class PropertyReport:
    """Summary of one property suite run.

    Only the first failure is kept: a violation for VIOLATED, an
    infrastructure error for ERRORED.
    """

    suite: str
    module: ModuleKind
    seed: int
    trials_requested: int
    trials_run: int
    status: ReportStatus
    failure: TrialFailure | None = None
    error: TrialError | None = None
    elapsed_seconds: float = field(default=0.0, compare=False)

    @property
    def passed(self) -> bool:
        return self.status is ReportStatus.PASSED

    def to_dict(self) -> dict[str, Any]:
        return {
            "suite": self.suite,
            "module": self.module.value,
            "seed": self.seed,
            "trials_requested": self.trials_requested,
            "trials_run": self.trials_run,
            "status": self.status.value,
            "failure": self.failure.to_dict() if self.failure is not None else None,
            "error": self.error.to_dict() if self.error is not None else None,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
        }
