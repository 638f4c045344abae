# src/infraprop/engine/suites.py
"""Property suites: which invariants to check over which generated inputs.

A suite names a module, the invariant ids to evaluate on every trial, and
optional pins that restrict generation to the inputs the property is about
(for example only public services). Replay suites plan each config twice
and additionally require both plans to match.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from infraprop.contracts.enums import ModuleKind, ServiceType
from infraprop.contracts.errors import UnknownPropertyError
from infraprop.generation import allowed_pins
from infraprop.invariants import get_invariant


@dataclass(frozen=True)
class PropertySuite:
    """A named property over one module.

    Raises:
        ValueError: If a pin is not allowed for the module, or an invariant
            targets a different module
        UnknownInvariantError: If an invariant id is not registered
    """

    name: str
    module: ModuleKind
    invariants: tuple[str, ...]
    description: str = ""
    pins: Mapping[str, Any] = field(default_factory=dict, hash=False)
    replay: bool = False

    def __post_init__(self) -> None:
        unknown = set(self.pins) - allowed_pins(self.module)
        if unknown:
            raise ValueError(f"Suite '{self.name}' pins unknown fields: {', '.join(sorted(unknown))}")
        for invariant_id in self.invariants:
            if get_invariant(invariant_id).module is not self.module:
                raise ValueError(f"Suite '{self.name}' targets '{self.module}' but '{invariant_id}' does not")
        if not self.invariants and not self.replay:
            raise ValueError(f"Suite '{self.name}' checks nothing")
        object.__setattr__(self, "pins", MappingProxyType(dict(self.pins)))


_ECS = ModuleKind.ECS_SERVICE
_NET = ModuleKind.NETWORKING

BUILTIN_SUITES: dict[str, PropertySuite] = {
    suite.name: suite
    for suite in (
        PropertySuite(
            "ecs-service-per-microservice",
            _ECS,
            ("ecs.single-service", "ecs.service-identity"),
            "Each invocation plans one service named for the service and environment, in the given cluster",
        ),
        PropertySuite(
            "ecs-desired-count",
            _ECS,
            ("ecs.desired-count",),
            "desired_count is passed through unchanged",
        ),
        PropertySuite(
            "ecs-rolling-update",
            _ECS,
            ("ecs.deployment-bounds",),
            "Rolling deployment percentages stay within ECS bounds",
        ),
        PropertySuite(
            "ecs-private-subnet-placement",
            _ECS,
            ("ecs.private-subnets",),
            "Tasks run in the given private subnets without public IPs",
        ),
        PropertySuite(
            "ecs-public-target-group",
            _ECS,
            ("ecs.public-load-balancer",),
            "Public services register with the given target group",
            pins={"service_type": ServiceType.PUBLIC},
        ),
        PropertySuite(
            "ecs-internal-no-alb",
            _ECS,
            ("ecs.internal-no-load-balancer",),
            "Internal services have no load balancer; service discovery follows its flag",
            pins={"service_type": ServiceType.INTERNAL},
        ),
        PropertySuite(
            "ecs-scalar-round-trip",
            _ECS,
            ("ecs.scalar-round-trip",),
            "Scalar inputs keep their value and type through planning",
        ),
        PropertySuite(
            "ecs-idempotent-plan",
            _ECS,
            ("ecs.single-service",),
            "Planning the same inputs twice yields the same plan",
            replay=True,
        ),
        PropertySuite(
            "net-segmentation",
            _NET,
            (
                "net.single-vpc",
                "net.subnet-layout",
                "net.internet-gateway",
                "net.nat-gateway-count",
                "net.private-routes-via-nat",
                "net.public-routes-via-igw",
            ),
            "Public and private tiers are separated and routed through the right gateways",
            pins={"enable_nat_gateway": True},
        ),
        PropertySuite(
            "net-multi-az",
            _NET,
            ("net.multi-az", "net.subnet-layout"),
            "Subnets span every requested availability zone, and at least two",
        ),
        PropertySuite(
            "net-flow-logs",
            _NET,
            ("net.flow-logs",),
            "Enabled flow logs capture all traffic to CloudWatch with the given retention",
            pins={"enable_vpc_flow_logs": True},
        ),
        PropertySuite(
            "net-flow-logs-disabled",
            _NET,
            ("net.flow-logs",),
            "Disabled flow logs plan no flow log",
            pins={"enable_vpc_flow_logs": False},
        ),
    )
}


def get_suite(name: str) -> PropertySuite:
    """Look up a builtin suite by name.

    Raises:
        UnknownPropertyError: If no suite has this name
    """
    try:
        return BUILTIN_SUITES[name]
    except KeyError:
        raise UnknownPropertyError(name, sorted(BUILTIN_SUITES)) from None
