# tests/invariants/test_networking_invariants.py
"""Tests for the networking invariants against simulated plans."""

import dataclasses
from typing import Any

import pytest

from infraprop.contracts import Environment, ModuleKind, NetworkingConfig, Violated
from infraprop.invariants import check, invariants_for
from infraprop.invariants.networking import default_routes, route_tables_for, split_subnets
from tests.fixtures.plans import (
    networking_plan,
    remove_resource,
    set_value,
    simulated_document,
    to_document,
)

NET_INVARIANTS = [inv.id for inv in invariants_for(ModuleKind.NETWORKING)]
PREFIX = "module.networking"


def _violation(invariant_id: str, config: NetworkingConfig, plan: dict[str, Any]) -> Violated:
    result = check(invariant_id, config, to_document(plan))
    assert isinstance(result, Violated), f"{invariant_id} unexpectedly held"
    return result


def _variant(config: NetworkingConfig, **changes: Any) -> NetworkingConfig:
    return dataclasses.replace(config, **changes)


class TestCorrectPlansSatisfied:
    @pytest.mark.parametrize("invariant_id", NET_INVARIANTS)
    @pytest.mark.parametrize(
        "changes",
        [
            {},
            {"single_nat_gateway": True},
            {"enable_nat_gateway": False},
            {"enable_vpc_flow_logs": False},
            {"availability_zones": ("us-east-1a", "us-east-1b"), "vpc_cidr": "192.168.0.0/16"},
        ],
        ids=["multi-nat", "single-nat", "no-nat", "no-flow-logs", "two-zones"],
    )
    def test_variants(self, invariant_id: str, changes: dict[str, Any], networking_config: NetworkingConfig) -> None:
        config = _variant(networking_config, **changes)
        assert check(invariant_id, config, simulated_document(config)).ok

    @pytest.mark.parametrize("invariant_id", NET_INVARIANTS)
    def test_inline_routes(self, invariant_id: str, networking_config: NetworkingConfig) -> None:
        doc = simulated_document(networking_config, inline_routes=True)
        assert check(invariant_id, networking_config, doc).ok


class TestVpc:
    def test_dns_hostnames_disabled(self, networking_config: NetworkingConfig) -> None:
        plan = set_value(networking_plan(networking_config), f"{PREFIX}.aws_vpc.main", "enable_dns_hostnames", False)
        assert _violation("net.single-vpc", networking_config, plan).clause == "VPC has DNS hostnames enabled"

    def test_wrong_cidr(self, networking_config: NetworkingConfig) -> None:
        plan = set_value(networking_plan(networking_config), f"{PREFIX}.aws_vpc.main", "cidr_block", "10.99.0.0/16")
        violation = _violation("net.single-vpc", networking_config, plan)
        assert violation.expected == "10.20.0.0/16"
        assert violation.observed == "10.99.0.0/16"

    def test_missing_vpc(self, networking_config: NetworkingConfig) -> None:
        plan = remove_resource(networking_plan(networking_config), f"{PREFIX}.aws_vpc.main")
        assert _violation("net.single-vpc", networking_config, plan).address == "aws_vpc"


class TestSubnets:
    def test_split_by_public_ip_flag(self, networking_config: NetworkingConfig) -> None:
        public, private = split_subnets(simulated_document(networking_config))
        assert [s.name for s in public] == ["public"] * 3
        assert [s.name for s in private] == ["private"] * 3

    def test_missing_private_subnet(self, networking_config: NetworkingConfig) -> None:
        plan = remove_resource(networking_plan(networking_config), f"{PREFIX}.aws_subnet.private[2]")
        violation = _violation("net.subnet-layout", networking_config, plan)
        assert violation.clause == "one private subnet per availability zone"
        assert violation.expected == 3

    def test_subnet_outside_vpc(self, networking_config: NetworkingConfig) -> None:
        plan = set_value(networking_plan(networking_config), f"{PREFIX}.aws_subnet.public[1]", "cidr_block", "192.0.2.0/24")
        violation = _violation("net.subnet-layout", networking_config, plan)
        assert violation.clause == "public subnet lies inside the VPC CIDR"
        assert violation.address == f"{PREFIX}.aws_subnet.public[1]"

    def test_unknown_subnet_cidr_not_judged(self, networking_config: NetworkingConfig) -> None:
        plan = networking_plan(networking_config)
        for change in plan["resource_changes"]:
            if change["type"] == "aws_subnet":
                change["change"]["after_unknown"]["cidr_block"] = True
        assert check("net.subnet-layout", networking_config, to_document(plan)).ok

    def test_zone_missing(self, networking_config: NetworkingConfig) -> None:
        plan = set_value(
            networking_plan(networking_config), f"{PREFIX}.aws_subnet.private[2]", "availability_zone", "eu-west-1a"
        )
        violation = _violation("net.subnet-layout", networking_config, plan)
        assert violation.clause == "private subnets cover every availability zone"

    def test_single_zone_tier(self) -> None:
        config = NetworkingConfig(
            environment=Environment.DEVELOP,
            project_name="web-core-3",
            vpc_cidr="10.0.0.0/16",
            availability_zones=("us-east-1a", "us-east-1b"),
            enable_nat_gateway=False,
            single_nat_gateway=False,
            enable_vpc_flow_logs=False,
            flow_logs_retention_days=7,
        )
        plan = set_value(networking_plan(config), f"{PREFIX}.aws_subnet.public[1]", "availability_zone", "us-east-1a")
        violation = _violation("net.multi-az", config, plan)
        assert violation.clause == "public subnets span at least two availability zones"
        assert violation.observed == ["us-east-1a"]


class TestGateways:
    def test_missing_internet_gateway(self, networking_config: NetworkingConfig) -> None:
        plan = remove_resource(networking_plan(networking_config), f"{PREFIX}.aws_internet_gateway.main")
        assert _violation("net.internet-gateway", networking_config, plan).observed == []

    def test_multi_nat_planned_for_single_nat_config(self, networking_config: NetworkingConfig) -> None:
        single = _variant(networking_config, single_nat_gateway=True)
        violation = _violation("net.nat-gateway-count", single, networking_plan(networking_config))
        assert violation.expected == 1
        assert len(violation.observed) == 3

    def test_nat_planned_when_disabled(self, networking_config: NetworkingConfig) -> None:
        disabled = _variant(networking_config, enable_nat_gateway=False)
        assert _violation("net.nat-gateway-count", disabled, networking_plan(networking_config)).expected == 0


class TestRoutes:
    def test_private_tables_follow_association_index(self, networking_config: NetworkingConfig) -> None:
        doc = simulated_document(networking_config)
        _, private = split_subnets(doc)
        for subnet in private:
            (table,) = route_tables_for(doc, subnet)
            assert table.address == f"{PREFIX}.aws_route_table.private[{subnet.index}]"

    def test_private_default_route_via_nat(self, networking_config: NetworkingConfig) -> None:
        doc = simulated_document(networking_config)
        table = doc.resource(f"{PREFIX}.aws_route_table.private[1]")
        (route,) = default_routes(doc, table)
        assert route.source == f"{PREFIX}.aws_route.private_nat[1]"
        assert route.via_nat
        assert not route.via_internet_gateway

    def test_inline_default_route(self, networking_config: NetworkingConfig) -> None:
        doc = simulated_document(networking_config, inline_routes=True)
        table = doc.resource(f"{PREFIX}.aws_route_table.public")
        (route,) = default_routes(doc, table)
        assert route.source == f"{PREFIX}.aws_route_table.public.route[0]"
        assert route.via_internet_gateway
        assert not route.via_nat

    def test_private_route_via_internet_gateway(self, networking_config: NetworkingConfig) -> None:
        plan = networking_plan(networking_config, private_route_target="igw")
        violation = _violation("net.private-routes-via-nat", networking_config, plan)
        assert violation.clause == "private route table has a default route via the NAT gateway"
        assert violation.address == f"{PREFIX}.aws_route_table.private[0]"

    def test_private_route_missing(self, networking_config: NetworkingConfig) -> None:
        plan = networking_plan(networking_config, private_route_target="none")
        assert _violation("net.private-routes-via-nat", networking_config, plan).observed == []

    def test_private_inline_route_via_internet_gateway(self, networking_config: NetworkingConfig) -> None:
        plan = networking_plan(networking_config, private_route_target="igw", inline_routes=True)
        assert _violation("net.private-routes-via-nat", networking_config, plan).attribute == "0.0.0.0/0"

    def test_private_routes_vacuous_without_nat(self, networking_config: NetworkingConfig) -> None:
        config = _variant(networking_config, enable_nat_gateway=False)
        doc = simulated_document(config, private_route_target="none")
        assert check("net.private-routes-via-nat", config, doc).ok

    def test_unassociated_private_subnet(self, networking_config: NetworkingConfig) -> None:
        plan = remove_resource(networking_plan(networking_config), f"{PREFIX}.aws_route_table_association.private[0]")
        violation = _violation("net.private-routes-via-nat", networking_config, plan)
        assert violation.clause == "private subnet is associated with a route table"
        assert violation.address == f"{PREFIX}.aws_subnet.private[0]"

    def test_public_route_via_nat(self, networking_config: NetworkingConfig) -> None:
        plan = networking_plan(networking_config, public_route_target="nat")
        violation = _violation("net.public-routes-via-igw", networking_config, plan)
        assert violation.clause == "public route table has a default route via the internet gateway"

    def test_public_route_missing(self, networking_config: NetworkingConfig) -> None:
        plan = networking_plan(networking_config, public_route_target="none")
        assert not check("net.public-routes-via-igw", networking_config, to_document(plan)).ok

    def test_unknown_inline_route_list_ignored(self, networking_config: NetworkingConfig) -> None:
        plan = networking_plan(networking_config)
        for change in plan["resource_changes"]:
            if change["type"] == "aws_route_table":
                change["change"]["after_unknown"]["route"] = True
        doc = to_document(plan)
        table = doc.resource(f"{PREFIX}.aws_route_table.public")
        assert [r.source for r in default_routes(doc, table)] == [f"{PREFIX}.aws_route.public_internet"]


class TestFlowLogs:
    def test_traffic_type(self, networking_config: NetworkingConfig) -> None:
        plan = set_value(networking_plan(networking_config), f"{PREFIX}.aws_flow_log.main[0]", "traffic_type", "REJECT")
        violation = _violation("net.flow-logs", networking_config, plan)
        assert violation.expected == "ALL"
        assert violation.observed == "REJECT"

    def test_retention_must_match(self, networking_config: NetworkingConfig) -> None:
        plan = set_value(
            networking_plan(networking_config),
            f"{PREFIX}.aws_cloudwatch_log_group.flow_logs[0]",
            "retention_in_days",
            30,
        )
        violation = _violation("net.flow-logs", networking_config, plan)
        assert violation.attribute == "retention_in_days"
        assert violation.expected == 14

    def test_missing_log_group(self, networking_config: NetworkingConfig) -> None:
        plan = remove_resource(networking_plan(networking_config), f"{PREFIX}.aws_cloudwatch_log_group.flow_logs[0]")
        assert _violation("net.flow-logs", networking_config, plan).clause == "a CloudWatch log group for flow logs is planned"

    def test_missing_role(self, networking_config: NetworkingConfig) -> None:
        plan = remove_resource(networking_plan(networking_config), f"{PREFIX}.aws_iam_role.flow_logs[0]")
        assert _violation("net.flow-logs", networking_config, plan).clause == "an IAM role for flow logs is planned"

    def test_flow_log_planned_when_disabled(self, networking_config: NetworkingConfig) -> None:
        disabled = _variant(networking_config, enable_vpc_flow_logs=False)
        violation = _violation("net.flow-logs", disabled, networking_plan(networking_config))
        assert violation.clause == "no flow log is planned when flow logs are disabled"

    def test_missing_flow_log_when_enabled(self, networking_config: NetworkingConfig) -> None:
        plan = remove_resource(networking_plan(networking_config), f"{PREFIX}.aws_flow_log.main[0]")
        assert _violation("net.flow-logs", networking_config, plan).expected == 1
