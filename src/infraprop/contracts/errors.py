# src/infraprop/contracts/errors.py
"""Exception taxonomy for the harness.

Two families must never be conflated in reporting:

- HarnessError (RenderError, ExecutionError, PlanParseError): the harness or
  the Terraform tool broke. The trial is aborted and reported as an
  infrastructure failure.
- InvariantViolation: the plan broke a property. This is the harness's
  intended output and is converted into a Violated result by the checker.
"""

from __future__ import annotations

from typing import Any

from infraprop.contracts.enums import ExecutionStage, ModuleKind


class HarnessError(Exception):
    """Base class for failures of the harness itself (not of the module under test)."""


class RenderError(HarnessError):
    """Raised when a value cannot be expressed as an HCL literal.

    Generators only produce representable values, so this signals a
    generator or renderer bug rather than bad user input.
    """


class ExecutionError(HarnessError):
    """Raised when the Terraform pipeline fails at any stage.

    Attributes:
        stage: Which step failed (init, plan, show, parse)
        diagnostics: Raw output captured from the tool (stderr, or stdout
            when stderr was empty)
        returncode: Process exit code, None when the process never exited
        timed_out: True if the step exceeded its timeout
    """

    def __init__(
        self,
        stage: ExecutionStage,
        message: str,
        *,
        diagnostics: str = "",
        returncode: int | None = None,
        timed_out: bool = False,
    ) -> None:
        self.stage = stage
        self.message = message
        self.diagnostics = diagnostics
        self.returncode = returncode
        self.timed_out = timed_out
        super().__init__(f"terraform {stage.value} failed: {message}")

    @property
    def is_input_error(self) -> bool:
        """Whether Terraform rejected the rendered input rather than the environment failing.

        Only a plan step that ran to completion with a nonzero exit is
        attributable to the input (variable validation, provider-side
        constraints). Init failures, timeouts and malformed output are
        tool/environment problems.
        """
        return self.stage is ExecutionStage.PLAN and not self.timed_out


class PlanParseError(ExecutionError):
    """Raised when `terraform show -json` output is not a usable plan document."""

    def __init__(self, message: str, *, diagnostics: str = "") -> None:
        super().__init__(ExecutionStage.PARSE, message, diagnostics=diagnostics)


class UnknownInvariantError(KeyError):
    """Raised when an invariant id is not registered."""

    def __init__(self, invariant_id: str, available: list[str]) -> None:
        self.invariant_id = invariant_id
        self.available = available
        super().__init__(f"Unknown invariant '{invariant_id}'. Available: {', '.join(available)}")

    def __str__(self) -> str:
        return str(self.args[0])


class UnknownPropertyError(KeyError):
    """Raised when a property suite name is not registered."""

    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.available = available
        super().__init__(f"Unknown property '{name}'. Available: {', '.join(available)}")

    def __str__(self) -> str:
        return str(self.args[0])


class ConfigMismatchError(TypeError):
    """Raised when an invariant is checked against a config for another module."""

    def __init__(self, invariant_id: str, expected: ModuleKind, actual: ModuleKind) -> None:
        self.invariant_id = invariant_id
        self.expected = expected
        self.actual = actual
        super().__init__(f"Invariant '{invariant_id}' targets module '{expected}', got a '{actual}' config")


# =============================================================================
# Control Flow Exceptions
# =============================================================================


class InvariantViolation(Exception):
    """Raised by assertion helpers when one clause of an invariant fails.

    This is NOT an error condition - the invariant checker catches it and
    turns it into a Violated result carrying the same diagnostics.

    Attributes:
        clause: Short description of the clause that failed
        address: Address of the inspected resource, or the kind when the
            clause concerns the whole set of nodes of that kind
        attribute: Attribute path that was inspected (None for cardinality)
        expected: What the clause required
        observed: What the plan contained
    """

    def __init__(
        self,
        clause: str,
        *,
        address: str | None = None,
        attribute: str | None = None,
        expected: Any = None,
        observed: Any = None,
    ) -> None:
        self.clause = clause
        self.address = address
        self.attribute = attribute
        self.expected = expected
        self.observed = observed
        super().__init__(clause)
