# src/infraprop/invariants/networking.py
"""Invariants for the networking module.

Subnets are classified by map_public_ip_on_launch: true means public,
anything else means private.

Route checks follow the module's wiring rather than attribute values,
because subnet, route table and gateway ids are all unknown until apply:

    subnet <- aws_route_table_association.subnet_id
           -> aws_route_table_association.route_table_id -> aws_route_table
    aws_route.route_table_id -> aws_route_table

A default route counts as "via NAT" when nat_gateway_id is set (known or
known after apply) and "via the internet gateway" when gateway_id is set.
Routes declared inline on the route table (`route` blocks) are checked the
same way; inline blocks carry "" for unused targets.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass

from infraprop.contracts.attributes import (
    AttributeValue,
    BoolValue,
    StringValue,
    Unknown,
)
from infraprop.contracts.configs import NetworkingConfig
from infraprop.contracts.enums import InvariantCategory, ModuleKind
from infraprop.invariants.assertions import (
    blocks,
    expect_count,
    expect_equal,
    expect_single,
    expect_true,
)
from infraprop.invariants.registry import invariant
from infraprop.plan.document import PlanDocument, ResourceNode

DEFAULT_ROUTE = "0.0.0.0/0"
FLOW_LOGS_MARKER = "flow-logs"

_NET = ModuleKind.NETWORKING


@dataclass(frozen=True)
class DefaultRoute:
    """One 0.0.0.0/0 route of a route table, wherever it was declared."""

    source: str
    via_nat: bool
    via_internet_gateway: bool


def _is_public(subnet: ResourceNode) -> bool:
    return subnet.attribute("map_public_ip_on_launch") == BoolValue(True)


def split_subnets(doc: PlanDocument) -> tuple[tuple[ResourceNode, ...], tuple[ResourceNode, ...]]:
    """(public, private) subnets in emission order."""
    subnets = doc.resources_of_kind("aws_subnet")
    return (
        tuple(s for s in subnets if _is_public(s)),
        tuple(s for s in subnets if not _is_public(s)),
    )


def _zone(subnet: ResourceNode) -> str | None:
    value = subnet.attribute("availability_zone")
    return value.value if isinstance(value, StringValue) else None


def _targets(value: AttributeValue) -> bool:
    """Whether a route target attribute points somewhere."""
    if isinstance(value, Unknown):
        return True
    return isinstance(value, StringValue) and value.value != ""


def route_tables_for(doc: PlanDocument, subnet: ResourceNode) -> tuple[ResourceNode, ...]:
    """Route tables associated with a subnet, through aws_route_table_association."""
    tables: dict[str, ResourceNode] = {}
    for association in doc.resources_of_kind("aws_route_table_association"):
        if subnet not in doc.references(association, "subnet_id"):
            continue
        for table in doc.references(association, "route_table_id"):
            if table.kind == "aws_route_table":
                tables.setdefault(table.address, table)
    return tuple(tables.values())


def default_routes(doc: PlanDocument, table: ResourceNode) -> list[DefaultRoute]:
    """Default routes of a table: standalone aws_route resources plus inline blocks."""
    routes: list[DefaultRoute] = []
    for route in doc.resources_of_kind("aws_route"):
        if route.attribute("destination_cidr_block") != StringValue(DEFAULT_ROUTE):
            continue
        if table not in doc.references(route, "route_table_id"):
            continue
        routes.append(
            DefaultRoute(
                source=route.address,
                via_nat=_targets(route.attribute("nat_gateway_id")),
                via_internet_gateway=_targets(route.attribute("gateway_id")),
            )
        )

    if isinstance(table.attribute("route"), Unknown):
        return routes
    for position in range(len(blocks(table, "route"))):
        path = f"route[{position}]"
        if table.attribute(f"{path}.cidr_block") != StringValue(DEFAULT_ROUTE):
            continue
        routes.append(
            DefaultRoute(
                source=f"{table.address}.{path}",
                via_nat=_targets(table.attribute(f"{path}.nat_gateway_id")),
                via_internet_gateway=_targets(table.attribute(f"{path}.gateway_id")),
            )
        )
    return routes


@invariant(
    "net.single-vpc",
    module=_NET,
    category=InvariantCategory.IDENTITY,
    description="One VPC with the given CIDR and DNS support and hostnames enabled",
)
def single_vpc(config: NetworkingConfig, doc: PlanDocument) -> None:
    vpc = expect_single(doc, "aws_vpc", clause="the module plans exactly one VPC")
    expect_equal(vpc, "cidr_block", config.vpc_cidr, clause="VPC uses the given CIDR block")
    expect_equal(vpc, "enable_dns_support", True, clause="VPC has DNS support enabled")
    expect_equal(vpc, "enable_dns_hostnames", True, clause="VPC has DNS hostnames enabled")


@invariant(
    "net.subnet-layout",
    module=_NET,
    category=InvariantCategory.CARDINALITY,
    description="One public and one private subnet per availability zone, inside the VPC CIDR",
)
def subnet_layout(config: NetworkingConfig, doc: PlanDocument) -> None:
    public, private = split_subnets(doc)
    zones = set(config.availability_zones)
    vpc_network = ipaddress.ip_network(config.vpc_cidr)

    for tier, subnets in (("public", public), ("private", private)):
        expect_true(
            len(subnets) == len(config.availability_zones),
            f"one {tier} subnet per availability zone",
            address="aws_subnet",
            attribute="map_public_ip_on_launch",
            expected=len(config.availability_zones),
            observed=[s.address for s in subnets],
        )
        covered = {_zone(s) for s in subnets}
        expect_true(
            covered == zones,
            f"{tier} subnets cover every availability zone",
            address="aws_subnet",
            attribute="availability_zone",
            expected=sorted(zones),
            observed=sorted(str(z) for z in covered),
        )
        for subnet in subnets:
            cidr = subnet.attribute("cidr_block")
            if not isinstance(cidr, StringValue):
                # Computed at apply time; containment can't be judged from the plan
                continue
            try:
                inside = ipaddress.ip_network(cidr.value, strict=False).subnet_of(vpc_network)
            except (ValueError, TypeError):
                inside = False
            expect_true(
                inside,
                f"{tier} subnet lies inside the VPC CIDR",
                address=subnet.address,
                attribute="cidr_block",
                expected=f"within {config.vpc_cidr}",
                observed=cidr.value,
            )


@invariant(
    "net.multi-az",
    module=_NET,
    category=InvariantCategory.CARDINALITY,
    description="Public and private subnets each span at least two availability zones",
)
def multi_az(config: NetworkingConfig, doc: PlanDocument) -> None:
    public, private = split_subnets(doc)
    for tier, subnets in (("public", public), ("private", private)):
        covered = {zone for zone in map(_zone, subnets) if zone is not None}
        expect_true(
            len(covered) >= 2,
            f"{tier} subnets span at least two availability zones",
            address="aws_subnet",
            attribute="availability_zone",
            expected=">= 2 zones",
            observed=sorted(covered),
        )


@invariant(
    "net.internet-gateway",
    module=_NET,
    category=InvariantCategory.CARDINALITY,
    description="Exactly one internet gateway",
)
def internet_gateway(config: NetworkingConfig, doc: PlanDocument) -> None:
    expect_count(doc, "aws_internet_gateway", 1, clause="the module plans exactly one internet gateway")


@invariant(
    "net.nat-gateway-count",
    module=_NET,
    category=InvariantCategory.CONDITIONAL,
    description="NAT gateways: none when disabled, one when single, otherwise one per zone",
)
def nat_gateway_count(config: NetworkingConfig, doc: PlanDocument) -> None:
    expected = config.expected_nat_gateways
    expect_count(doc, "aws_nat_gateway", expected, clause=f"the module plans {expected} NAT gateway(s)")


@invariant(
    "net.private-routes-via-nat",
    module=_NET,
    category=InvariantCategory.CROSS_RESOURCE,
    description="With NAT enabled, private subnets reach the internet only through a NAT gateway",
)
def private_routes_via_nat(config: NetworkingConfig, doc: PlanDocument) -> None:
    if not config.enable_nat_gateway:
        return
    _, private = split_subnets(doc)
    for subnet in private:
        _check_default_route(doc, subnet, tier="private", via_nat=True)


@invariant(
    "net.public-routes-via-igw",
    module=_NET,
    category=InvariantCategory.CROSS_RESOURCE,
    description="Public subnets reach the internet through the internet gateway",
)
def public_routes_via_igw(config: NetworkingConfig, doc: PlanDocument) -> None:
    public, _ = split_subnets(doc)
    for subnet in public:
        _check_default_route(doc, subnet, tier="public", via_nat=False)


def _check_default_route(doc: PlanDocument, subnet: ResourceNode, *, tier: str, via_nat: bool) -> None:
    target = "NAT gateway" if via_nat else "internet gateway"
    other = "internet gateway" if via_nat else "NAT gateway"

    tables = route_tables_for(doc, subnet)
    expect_true(
        bool(tables),
        f"{tier} subnet is associated with a route table",
        address=subnet.address,
        attribute="aws_route_table_association",
        expected="an associated route table",
        observed=None,
    )
    for table in tables:
        routes = default_routes(doc, table)
        expected_routes = [r for r in routes if (r.via_nat if via_nat else r.via_internet_gateway)]
        stray_routes = [r for r in routes if (r.via_internet_gateway if via_nat else r.via_nat)]
        expect_true(
            bool(expected_routes),
            f"{tier} route table has a default route via the {target}",
            address=table.address,
            attribute=DEFAULT_ROUTE,
            expected=target,
            observed=[r.source for r in routes],
        )
        expect_true(
            not stray_routes,
            f"{tier} route table has no default route via the {other}",
            address=table.address,
            attribute=DEFAULT_ROUTE,
            expected=f"no {other}",
            observed=[r.source for r in stray_routes],
        )


@invariant(
    "net.flow-logs",
    module=_NET,
    category=InvariantCategory.CONDITIONAL,
    description="Flow logs capture all traffic to CloudWatch with the given retention when enabled",
)
def flow_logs(config: NetworkingConfig, doc: PlanDocument) -> None:
    if not config.enable_vpc_flow_logs:
        expect_count(doc, "aws_flow_log", 0, clause="no flow log is planned when flow logs are disabled")
        return

    flow_log = expect_single(doc, "aws_flow_log", clause="exactly one flow log is planned when enabled")
    expect_equal(flow_log, "traffic_type", "ALL", clause="flow log captures all traffic")
    expect_equal(flow_log, "log_destination_type", "cloud-watch-logs", clause="flow log writes to CloudWatch Logs")

    groups = _named(doc, "aws_cloudwatch_log_group", FLOW_LOGS_MARKER)
    expect_true(
        bool(groups),
        "a CloudWatch log group for flow logs is planned",
        address="aws_cloudwatch_log_group",
        attribute="name",
        expected=f"name contains {FLOW_LOGS_MARKER!r}",
        observed=[g.address for g in doc.resources_of_kind("aws_cloudwatch_log_group")],
    )
    expect_equal(
        groups[0],
        "retention_in_days",
        config.flow_logs_retention_days,
        clause="flow log group keeps logs for the given retention",
    )

    roles = _named(doc, "aws_iam_role", FLOW_LOGS_MARKER)
    expect_true(
        bool(roles),
        "an IAM role for flow logs is planned",
        address="aws_iam_role",
        attribute="name",
        expected=f"name contains {FLOW_LOGS_MARKER!r}",
        observed=[r.address for r in doc.resources_of_kind("aws_iam_role")],
    )


def _named(doc: PlanDocument, kind: str, marker: str) -> tuple[ResourceNode, ...]:
    matches = []
    for node in doc.resources_of_kind(kind):
        name = node.attribute("name")
        if isinstance(name, StringValue) and marker in name.value:
            matches.append(node)
    return tuple(matches)
