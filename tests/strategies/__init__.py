# tests/strategies/__init__.py
"""Hypothesis strategies for property-based tests.

Re-exports commonly used strategies for convenience:
    from tests.strategies import ecs_service_configs, networking_configs
"""

from tests.strategies.configs import (
    configs,
    ecs_service_configs,
    hcl_values,
    networking_configs,
    trial_seeds,
)

__all__ = [
    "configs",
    "ecs_service_configs",
    "hcl_values",
    "networking_configs",
    "trial_seeds",
]
