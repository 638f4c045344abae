# src/infraprop/invariants/ecs_service.py
"""Invariants for the ecs-service module.

Every predicate inspects the single aws_ecs_service resource the module
plans. Nested blocks (network_configuration, load_balancer,
service_registries, deployment_configuration) appear in plan JSON as lists
of objects, so paths index them explicitly: `network_configuration[0].subnets`.
"""

from __future__ import annotations

from infraprop.contracts.attributes import Absent, NumberValue
from infraprop.contracts.configs import EcsServiceConfig
from infraprop.contracts.enums import InvariantCategory, ModuleKind
from infraprop.invariants.assertions import (
    blocks,
    expect_contains,
    expect_count,
    expect_equal,
    expect_in_range,
    expect_sequence,
    expect_set,
    expect_single,
    expect_string,
    expect_true,
)
from infraprop.invariants.registry import invariant
from infraprop.plan.document import PlanDocument, ResourceNode

SERVICE = "aws_ecs_service"
GRACE_PERIOD = "health_check_grace_period_seconds"

_ECS = ModuleKind.ECS_SERVICE


def _service(doc: PlanDocument) -> ResourceNode:
    return expect_single(doc, SERVICE, clause="the module plans exactly one ECS service")


def _deployment_path(node: ResourceNode, top_level: str, nested: str) -> str:
    """Newer providers expose the percentages top-level; older ones nest them."""
    if isinstance(node.attribute(top_level), Absent):
        return f"deployment_configuration[0].{nested}"
    return top_level


@invariant(
    "ecs.single-service",
    module=_ECS,
    category=InvariantCategory.CARDINALITY,
    description="Exactly one ECS service per module invocation",
)
def single_service(config: EcsServiceConfig, doc: PlanDocument) -> None:
    expect_count(doc, SERVICE, 1, clause="the module plans exactly one ECS service")


@invariant(
    "ecs.service-identity",
    module=_ECS,
    category=InvariantCategory.IDENTITY,
    description="Service is named after the service and environment and bound to the given cluster and task definition",
)
def service_identity(config: EcsServiceConfig, doc: PlanDocument) -> None:
    service = _service(doc)
    expect_contains(service, "name", config.service_name, clause="service name contains the service name")
    expect_contains(service, "name", config.environment.value, clause="service name contains the environment")
    expect_equal(service, "cluster", config.cluster_arn, clause="service runs in the given cluster")
    expect_equal(service, "task_definition", config.task_definition_arn, clause="service runs the given task definition")


@invariant(
    "ecs.desired-count",
    module=_ECS,
    category=InvariantCategory.IDENTITY,
    description="desired_count is a positive integer equal to the input",
)
def desired_count(config: EcsServiceConfig, doc: PlanDocument) -> None:
    service = _service(doc)
    expect_equal(service, "desired_count", config.desired_count, clause="desired_count equals the input")
    expect_in_range(service, "desired_count", 1, float("inf"), clause="desired_count is at least 1")


@invariant(
    "ecs.deployment-bounds",
    module=_ECS,
    category=InvariantCategory.BOUNDED_RANGE,
    description="Rolling update percentages stay within the bounds ECS accepts",
)
def deployment_bounds(config: EcsServiceConfig, doc: PlanDocument) -> None:
    service = _service(doc)
    minimum = _deployment_path(service, "deployment_minimum_healthy_percent", "minimum_healthy_percent")
    maximum = _deployment_path(service, "deployment_maximum_percent", "maximum_percent")
    expect_in_range(service, minimum, 0, 200, clause="minimum healthy percent is within [0, 200]")
    expect_in_range(service, maximum, 100, 400, clause="maximum percent is within [100, 400]")


@invariant(
    "ecs.private-subnets",
    module=_ECS,
    category=InvariantCategory.CROSS_RESOURCE,
    description="Tasks run in the given private subnets and security groups without public IPs",
)
def private_subnets(config: EcsServiceConfig, doc: PlanDocument) -> None:
    service = _service(doc)
    expect_true(
        len(blocks(service, "network_configuration")) == 1,
        "service has one network_configuration block",
        address=service.address,
        attribute="network_configuration",
        expected=1,
        observed=len(blocks(service, "network_configuration")),
    )
    expect_sequence(
        service,
        "network_configuration[0].subnets",
        config.private_subnet_ids,
        clause="tasks are placed in the given private subnets, in order",
    )
    expect_set(
        service,
        "network_configuration[0].security_groups",
        config.security_group_ids,
        clause="tasks use exactly the given security groups",
    )
    if not isinstance(service.attribute("network_configuration[0].assign_public_ip"), Absent):
        expect_equal(
            service,
            "network_configuration[0].assign_public_ip",
            False,
            clause="tasks in private subnets get no public IP",
        )


@invariant(
    "ecs.public-load-balancer",
    module=_ECS,
    category=InvariantCategory.CONDITIONAL,
    description="Public services register the container with the given target group",
)
def public_load_balancer(config: EcsServiceConfig, doc: PlanDocument) -> None:
    if not config.is_public:
        return
    service = _service(doc)
    balancers = blocks(service, "load_balancer")
    expect_true(
        len(balancers) == 1,
        "public service has exactly one load_balancer block",
        address=service.address,
        attribute="load_balancer",
        expected=1,
        observed=len(balancers),
    )
    expect_equal(
        service, "load_balancer[0].target_group_arn", config.target_group_arn, clause="load balancer uses the given target group"
    )
    expect_equal(
        service, "load_balancer[0].container_name", config.container_name, clause="load balancer targets the container"
    )
    expect_equal(
        service, "load_balancer[0].container_port", config.container_port, clause="load balancer targets the container port"
    )
    expect_in_range(service, GRACE_PERIOD, 0, float("inf"), clause="public service sets a health check grace period")


@invariant(
    "ecs.internal-no-load-balancer",
    module=_ECS,
    category=InvariantCategory.CONDITIONAL,
    description="Internal services skip the load balancer; service discovery follows its flag",
)
def internal_no_load_balancer(config: EcsServiceConfig, doc: PlanDocument) -> None:
    service = _service(doc)
    registries = blocks(service, "service_registries")
    if config.is_public:
        expect_true(
            not registries,
            "public service has no service_registries block",
            address=service.address,
            attribute="service_registries",
            expected=0,
            observed=len(registries),
        )
        return

    balancers = blocks(service, "load_balancer")
    expect_true(
        not balancers,
        "internal service has no load_balancer block",
        address=service.address,
        attribute="load_balancer",
        expected=0,
        observed=len(balancers),
    )
    grace = service.attribute(GRACE_PERIOD)
    expect_true(
        isinstance(grace, Absent) or (isinstance(grace, NumberValue) and grace.value == 0),
        "internal service sets no health check grace period",
        address=service.address,
        attribute=GRACE_PERIOD,
        expected="absent or 0",
        observed=grace,
    )
    expect_true(
        bool(registries) == config.enable_service_discovery,
        "service_registries is present exactly when service discovery is enabled",
        address=service.address,
        attribute="service_registries",
        expected=config.enable_service_discovery,
        observed=len(registries),
    )


@invariant(
    "ecs.scalar-round-trip",
    module=_ECS,
    category=InvariantCategory.IDENTITY,
    description="Scalar inputs come back from the plan with identical value and type",
)
def scalar_round_trip(config: EcsServiceConfig, doc: PlanDocument) -> None:
    service = _service(doc)
    name = expect_string(service, "name", clause="service name is a string")
    expect_true(
        config.service_name in name,
        "service name carries the service name",
        address=service.address,
        attribute="name",
        expected=f"contains {config.service_name!r}",
        observed=name,
    )
    expect_equal(service, "desired_count", config.desired_count, clause="desired_count keeps its integer value")
    if config.is_public:
        expect_equal(
            service, "load_balancer[0].container_port", config.container_port, clause="container_port keeps its integer value"
        )
        expect_equal(
            service, "load_balancer[0].container_name", config.container_name, clause="container_name keeps its string value"
        )
