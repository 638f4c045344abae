# src/infraprop/invariants/assertions.py
"""Clause helpers for writing invariant predicates.

Each helper either returns the inspected value (so predicates can chain
clauses) or raises InvariantViolation with the resource address, attribute
path, expected and observed values filled in.

Equality is strict about types (see same_value): a port planned as 8443.0
or "8443" does not equal the generated integer 8443.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from infraprop.contracts.attributes import (
    UNKNOWN,
    Absent,
    AttributeValue,
    ListValue,
    MapValue,
    NumberValue,
    StringValue,
    Unknown,
    same_value,
    to_python,
)
from infraprop.contracts.errors import InvariantViolation
from infraprop.plan.document import PlanDocument, ResourceNode


def expect_true(condition: bool, clause: str, **diagnostics: Any) -> None:
    """Generic clause for conditions the other helpers don't cover."""
    if not condition:
        raise InvariantViolation(clause, **diagnostics)


def expect_count(doc: PlanDocument, kind: str, expected: int, *, clause: str | None = None) -> tuple[ResourceNode, ...]:
    """Exactly `expected` managed resources of a kind exist."""
    nodes = doc.resources_of_kind(kind)
    if len(nodes) != expected:
        raise InvariantViolation(
            clause or f"exactly {expected} {kind} resource(s)",
            address=kind,
            expected=expected,
            observed=[node.address for node in nodes],
        )
    return nodes


def expect_single(doc: PlanDocument, kind: str, *, clause: str | None = None) -> ResourceNode:
    """Exactly one resource of a kind exists; returns it."""
    return expect_count(doc, kind, 1, clause=clause or f"exactly one {kind} resource")[0]


def expect_known(node: ResourceNode, path: str, *, clause: str) -> Any:
    """Attribute has a known, non-null value at plan time; returns it as plain Python."""
    value = node.attribute(path)
    if isinstance(value, Absent | Unknown):
        raise InvariantViolation(clause, address=node.address, attribute=path, expected="a known value", observed=value)
    return to_python(value)


def expect_present(node: ResourceNode, path: str, *, clause: str) -> AttributeValue:
    """Attribute is set: known non-null, or known after apply."""
    value = node.attribute(path)
    if isinstance(value, Absent):
        raise InvariantViolation(clause, address=node.address, attribute=path, expected="a value", observed=value)
    return value


def expect_absent(node: ResourceNode, path: str, *, clause: str) -> None:
    """Attribute is missing or null."""
    value = node.attribute(path)
    if not isinstance(value, Absent):
        raise InvariantViolation(clause, address=node.address, attribute=path, expected=None, observed=value)


def expect_equal(node: ResourceNode, path: str, expected: Any, *, clause: str) -> None:
    """Attribute equals a value exactly (value AND type)."""
    value = node.attribute(path)
    observed = UNKNOWN if isinstance(value, Unknown) else to_python(value)
    if not same_value(observed, expected):
        raise InvariantViolation(clause, address=node.address, attribute=path, expected=expected, observed=observed)


def expect_string(node: ResourceNode, path: str, *, clause: str) -> str:
    value = node.attribute(path)
    if not isinstance(value, StringValue):
        raise InvariantViolation(clause, address=node.address, attribute=path, expected="a string", observed=value)
    return value.value


def expect_contains(node: ResourceNode, path: str, fragment: str, *, clause: str) -> str:
    """String attribute contains a substring; returns the full string."""
    text = expect_string(node, path, clause=clause)
    if fragment not in text:
        raise InvariantViolation(
            clause, address=node.address, attribute=path, expected=f"contains {fragment!r}", observed=text
        )
    return text


def expect_number(node: ResourceNode, path: str, *, clause: str) -> int | float:
    value = node.attribute(path)
    if not isinstance(value, NumberValue):
        raise InvariantViolation(clause, address=node.address, attribute=path, expected="a number", observed=value)
    return value.value


def expect_in_range(node: ResourceNode, path: str, low: float, high: float, *, clause: str) -> int | float:
    """Numeric attribute lies in the closed interval [low, high]."""
    number = expect_number(node, path, clause=clause)
    if not low <= number <= high:
        raise InvariantViolation(
            clause, address=node.address, attribute=path, expected=f"in [{low:g}, {high:g}]", observed=number
        )
    return number


def expect_sequence(node: ResourceNode, path: str, expected: Sequence[Any], *, clause: str) -> None:
    """List attribute equals `expected` element-for-element, in order."""
    value = node.attribute(path)
    if not isinstance(value, ListValue):
        raise InvariantViolation(clause, address=node.address, attribute=path, expected=list(expected), observed=value)
    observed = to_python(value)
    if not same_value(observed, list(expected)):
        raise InvariantViolation(clause, address=node.address, attribute=path, expected=list(expected), observed=observed)


def expect_set(node: ResourceNode, path: str, expected: Iterable[Any], *, clause: str) -> None:
    """List/set attribute holds exactly the expected elements, order ignored."""
    value = node.attribute(path)
    wanted = sorted(expected, key=repr)
    if not isinstance(value, ListValue):
        raise InvariantViolation(clause, address=node.address, attribute=path, expected=wanted, observed=value)
    observed = sorted(to_python(value), key=repr)
    if not same_value(observed, wanted):
        raise InvariantViolation(clause, address=node.address, attribute=path, expected=wanted, observed=observed)


def blocks(node: ResourceNode, path: str) -> tuple[MapValue, ...]:
    """Nested blocks of a resource (load_balancer, service_registries, ...).

    Absent and empty lists both mean "no blocks". Block presence is decided
    by configuration, never by apply, so an unknown block list is a
    violation.
    """
    value = node.attribute(path)
    match value:
        case Absent():
            return ()
        case ListValue(items=items):
            return tuple(item for item in items if isinstance(item, MapValue))
        case _:
            raise InvariantViolation(
                f"{path} is a list of blocks", address=node.address, attribute=path, expected="list of blocks", observed=value
            )
