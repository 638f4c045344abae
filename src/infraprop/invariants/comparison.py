# src/infraprop/invariants/comparison.py
"""Structural comparison of two plans of the same configuration.

Planning is deterministic: the same inputs must yield the same resource
addresses, kinds and plan-time-known values. Values known only after apply
are excluded by PlanDocument.snapshot(), so generated ids never cause a
spurious difference.
"""

from __future__ import annotations

from typing import Any

from infraprop.contracts.attributes import same_value
from infraprop.contracts.results import Result, Satisfied, Violated
from infraprop.plan.document import PlanDocument

IDEMPOTENCE = "plan.idempotent"


def compare_plans(first: PlanDocument, second: PlanDocument) -> Result:
    """Satisfied when both plans describe the same resources with the same known values."""
    left = first.snapshot()
    right = second.snapshot()

    if left.keys() != right.keys():
        return Violated(
            invariant=IDEMPOTENCE,
            clause="both plans contain the same resource addresses",
            address=None,
            attribute=None,
            expected=sorted(left),
            observed=sorted(right),
        )

    for address in left:
        a, b = left[address], right[address]
        if a["kind"] != b["kind"]:
            return Violated(
                invariant=IDEMPOTENCE,
                clause="resource kind is stable between plans",
                address=address,
                attribute="type",
                expected=a["kind"],
                observed=b["kind"],
            )
        key = _first_difference(a["values"], b["values"])
        if key is not None:
            return Violated(
                invariant=IDEMPOTENCE,
                clause="known attribute values are stable between plans",
                address=address,
                attribute=key,
                expected=a["values"].get(key),
                observed=b["values"].get(key),
            )
    return Satisfied(IDEMPOTENCE)


def _first_difference(left: dict[str, Any], right: dict[str, Any]) -> str | None:
    for key in sorted(left.keys() | right.keys()):
        if key not in left or key not in right or not same_value(left[key], right[key]):
            return key
    return None
