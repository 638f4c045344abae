# src/infraprop/invariants/registry.py
"""Invariant registry and checker.

An invariant is a named predicate over (GeneratedConfig, PlanDocument).
Predicates are written as a sequence of clauses using the expect_* helpers;
the first failing clause raises InvariantViolation and check() converts it
into a Violated result. Predicates return None when every clause holds.

Invariants are independent: check() evaluates exactly one predicate, and no
predicate mutates its config or document, so any subset can run in any
order.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from infraprop.contracts.configs import GeneratedConfig
from infraprop.contracts.enums import InvariantCategory, ModuleKind
from infraprop.contracts.errors import ConfigMismatchError, InvariantViolation, UnknownInvariantError
from infraprop.contracts.results import Result, Satisfied, Violated
from infraprop.plan.document import PlanDocument

Predicate = Callable[[GeneratedConfig, PlanDocument], None]
P = TypeVar("P", bound=Callable[..., None])


@dataclass(frozen=True)
class Invariant:
    """A registered, named property of a module's plan."""

    id: str
    module: ModuleKind
    category: InvariantCategory
    description: str
    predicate: Predicate


_REGISTRY: dict[str, Invariant] = {}


def invariant(
    invariant_id: str,
    *,
    module: ModuleKind,
    category: InvariantCategory,
    description: str,
) -> Callable[[P], P]:
    """Register a predicate under an invariant id.

    Raises:
        ValueError: If the id is already registered
    """

    def decorator(predicate: P) -> P:
        if invariant_id in _REGISTRY:
            raise ValueError(f"Invariant '{invariant_id}' is already registered")
        _REGISTRY[invariant_id] = Invariant(invariant_id, module, category, description, predicate)
        return predicate

    return decorator


def get_invariant(invariant_id: str) -> Invariant:
    """Look up a registered invariant.

    Raises:
        UnknownInvariantError: If no invariant has this id
    """
    try:
        return _REGISTRY[invariant_id]
    except KeyError:
        raise UnknownInvariantError(invariant_id, sorted(_REGISTRY)) from None


def invariants_for(module: ModuleKind) -> tuple[Invariant, ...]:
    """All invariants targeting a module, in registration order."""
    return tuple(inv for inv in _REGISTRY.values() if inv.module is module)


def all_invariants() -> tuple[Invariant, ...]:
    return tuple(_REGISTRY.values())


def check(invariant_id: str, config: GeneratedConfig, doc: PlanDocument) -> Result:
    """Evaluate one invariant against one (config, plan) pair.

    Returns:
        Satisfied, or Violated describing the first failing clause

    Raises:
        UnknownInvariantError: If the id is not registered
        ConfigMismatchError: If the config targets a different module
    """
    inv = get_invariant(invariant_id)
    if config.module is not inv.module:
        raise ConfigMismatchError(invariant_id, inv.module, config.module)
    try:
        inv.predicate(config, doc)
    except InvariantViolation as violation:
        return Violated(
            invariant=invariant_id,
            clause=violation.clause,
            address=violation.address,
            attribute=violation.attribute,
            expected=violation.expected,
            observed=violation.observed,
        )
    return Satisfied(invariant_id)


def check_all(invariant_ids: tuple[str, ...] | list[str], config: GeneratedConfig, doc: PlanDocument) -> tuple[Result, ...]:
    return tuple(check(invariant_id, config, doc) for invariant_id in invariant_ids)
