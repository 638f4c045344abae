# src/infraprop/contracts/protocols.py
"""Protocols for swappable pipeline stages.

The trial engine only needs something that turns a generated config into a
plan document. Production uses TerraformPipeline (render + terraform);
tests inject runners that return simulated plans.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from infraprop.contracts.configs import GeneratedConfig
    from infraprop.plan.document import PlanDocument


class PlanRunner(Protocol):
    """Produces a PlanDocument for one generated config.

    Implementations must be safe to call from several worker threads at
    once: each call owns its own working directory and output.

    Raises:
        HarnessError: If the config cannot be rendered or planned
    """

    def plan(self, config: GeneratedConfig) -> PlanDocument: ...
