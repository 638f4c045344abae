"""Invariant Checker: named properties over (config, plan) pairs.

Importing this package registers the builtin ecs-service and networking
invariants.

Example:
    from infraprop.invariants import check

    result = check("ecs.desired-count", config, plan)
    if not result.ok:
        print(result.describe())
"""

from infraprop.invariants import ecs_service, networking
from infraprop.invariants.comparison import IDEMPOTENCE, compare_plans
from infraprop.invariants.registry import (
    Invariant,
    all_invariants,
    check,
    check_all,
    get_invariant,
    invariant,
    invariants_for,
)

__all__ = [
    "IDEMPOTENCE",
    "Invariant",
    "all_invariants",
    "check",
    "check_all",
    "compare_plans",
    "ecs_service",
    "get_invariant",
    "invariant",
    "invariants_for",
    "networking",
]
