# tests/plan/test_plan_document.py
"""Tests for plan JSON parsing and the resource query API."""

import json

import pytest

from infraprop.contracts import (
    ABSENT,
    UNKNOWN,
    BoolValue,
    EcsServiceConfig,
    NetworkingConfig,
    NumberValue,
    PlanParseError,
    StringValue,
)
from infraprop.plan import PlanDocument, ResourceNode, parse_plan
from tests.fixtures.plans import SERVICE_ADDRESS, simulated_plan


def _plan(resources: list, *, changes: list | None = None, children: list | None = None) -> str:
    root: dict = {"resources": resources}
    if children is not None:
        root["child_modules"] = children
    return json.dumps(
        {
            "format_version": "1.2",
            "terraform_version": "1.7.5",
            "planned_values": {"root_module": root},
            "resource_changes": changes or [],
        }
    )


def _resource(address: str, kind: str, name: str, values: object, **extra: object) -> dict:
    return {"address": address, "mode": "managed", "type": kind, "name": name, "values": values, **extra}


class TestParsePlan:
    def test_not_json(self) -> None:
        with pytest.raises(PlanParseError, match="not valid JSON") as exc_info:
            parse_plan("Error: no plan file")
        assert exc_info.value.diagnostics == "Error: no plan file"

    def test_not_an_object(self) -> None:
        with pytest.raises(PlanParseError, match="JSON object"):
            parse_plan("[1, 2]")

    def test_missing_planned_values(self) -> None:
        with pytest.raises(PlanParseError, match="planned_values"):
            parse_plan(json.dumps({"format_version": "1.2"}))

    def test_empty_plan(self) -> None:
        doc = parse_plan(json.dumps({"planned_values": {}}))
        assert len(doc) == 0
        assert doc.resources_of_kind("aws_vpc") == ()

    def test_versions(self) -> None:
        doc = parse_plan(_plan([]))
        assert doc.format_version == "1.2"
        assert doc.terraform_version == "1.7.5"

    def test_accepts_bytes(self) -> None:
        assert len(parse_plan(_plan([_resource("aws_vpc.main", "aws_vpc", "main", {})]).encode())) == 1

    def test_child_modules_flattened_in_order(self) -> None:
        text = _plan(
            [_resource("aws_vpc.root", "aws_vpc", "root", {})],
            children=[
                {
                    "address": "module.a",
                    "resources": [_resource("module.a.aws_vpc.x", "aws_vpc", "x", {})],
                    "child_modules": [
                        {
                            "address": "module.a.module.b",
                            "resources": [_resource("module.a.module.b.aws_vpc.y", "aws_vpc", "y", {})],
                        }
                    ],
                }
            ],
        )
        doc = parse_plan(text)
        assert [n.address for n in doc.resources_of_kind("aws_vpc")] == [
            "aws_vpc.root",
            "module.a.aws_vpc.x",
            "module.a.module.b.aws_vpc.y",
        ]
        assert doc.resource("module.a.module.b.aws_vpc.y").module_address == "module.a.module.b"

    def test_malformed_entries_skipped(self) -> None:
        doc = parse_plan(
            _plan(
                [
                    "not a resource",
                    {"type": "aws_vpc", "name": "no_address"},
                    _resource("aws_vpc.ok", "aws_vpc", "ok", {}),
                ]
            )
        )
        assert [n.address for n in doc] == ["aws_vpc.ok"]

    def test_non_object_values_answer_absent(self) -> None:
        doc = parse_plan(_plan([_resource("aws_vpc.bad", "aws_vpc", "bad", "garbage")]))
        assert doc.resource("aws_vpc.bad").attribute("cidr_block") is ABSENT

    def test_duplicate_address_kept_once(self) -> None:
        doc = parse_plan(
            _plan(
                [
                    _resource("aws_vpc.main", "aws_vpc", "main", {"cidr_block": "10.0.0.0/16"}),
                    _resource("aws_vpc.main", "aws_vpc", "main", {"cidr_block": "10.9.0.0/16"}),
                ]
            )
        )
        assert len(doc) == 1
        assert doc.resource("aws_vpc.main").attribute("cidr_block") == StringValue("10.0.0.0/16")

    def test_data_sources_not_managed(self) -> None:
        doc = parse_plan(
            _plan([_resource("data.aws_vpc.main", "aws_vpc", "main", {}, mode="data")])
        )
        assert not doc.has_kind("aws_vpc")
        assert doc.resource("data.aws_vpc.main").config_address == "data.aws_vpc.main"

    def test_index_kept(self) -> None:
        doc = parse_plan(
            _plan(
                [
                    _resource("aws_subnet.a[0]", "aws_subnet", "a", {}, index=0),
                    _resource('aws_subnet.b["x"]', "aws_subnet", "b", {}, index="x"),
                ]
            )
        )
        assert [n.index for n in doc] == [0, "x"]

    def test_resource_changes_indexed(self) -> None:
        doc = parse_plan(
            _plan(
                [_resource("aws_vpc.main", "aws_vpc", "main", {})],
                changes=[{"address": "aws_vpc.main", "change": {"actions": ["create"], "after_unknown": {"id": True}}}],
            )
        )
        change = doc.change("aws_vpc.main")
        assert change is not None
        assert change.actions == ("create",)
        assert doc.change("aws_vpc.other") is None


class TestAttributes:
    @pytest.fixture
    def node(self) -> ResourceNode:
        return ResourceNode(
            address="aws_ecs_service.main",
            kind="aws_ecs_service",
            name="main",
            values={
                "desired_count": 3,
                "name": "svc",
                "health_check_grace_period_seconds": None,
                "network_configuration": [{"subnets": ["b", "a"], "assign_public_ip": False}],
                "service_registries": [{"registry_arn": None}],
            },
            after_unknown={"id": True, "service_registries": [{"registry_arn": True}], "iam_role": True},
        )

    def test_known_scalar(self, node: ResourceNode) -> None:
        assert node.attribute("desired_count") == NumberValue(3)

    def test_null_is_absent(self, node: ResourceNode) -> None:
        assert node.attribute("health_check_grace_period_seconds") is ABSENT
        assert not node.is_set("health_check_grace_period_seconds")

    def test_missing_is_absent(self, node: ResourceNode) -> None:
        assert node.attribute("launch_type") is ABSENT
        assert node.attribute("network_configuration[5].subnets") is ABSENT
        assert node.attribute("name.first") is ABSENT

    def test_unknown_top_level(self, node: ResourceNode) -> None:
        assert node.attribute("id") is UNKNOWN
        assert node.attribute("iam_role") is UNKNOWN
        assert node.is_set("id")

    def test_unknown_nested(self, node: ResourceNode) -> None:
        assert node.attribute("service_registries[0].registry_arn") is UNKNOWN

    def test_unknown_ancestor(self, node: ResourceNode) -> None:
        assert node.attribute("id.anything") is UNKNOWN

    def test_nested_known(self, node: ResourceNode) -> None:
        assert node.attribute("network_configuration[0].assign_public_ip") == BoolValue(False)
        assert node.attribute(("network_configuration", 0, "subnets", 1)) == StringValue("a")

    def test_known_values_drop_unknown_keys(self, node: ResourceNode) -> None:
        known = node.known_values()
        assert "desired_count" in known
        assert "id" not in known
        assert "service_registries" in known

    def test_document_attribute_delegates(self, node: ResourceNode) -> None:
        doc = PlanDocument([node])
        assert doc.attribute(node, "name") == StringValue("svc")


class TestPlanDocument:
    def test_unique_addresses_required(self) -> None:
        node = ResourceNode(address="a.b", kind="a", name="b")
        with pytest.raises(ValueError, match="unique"):
            PlanDocument([node, ResourceNode(address="a.b", kind="a", name="b")])

    def test_simulated_ecs_plan(self, public_ecs_config: EcsServiceConfig) -> None:
        doc = parse_plan(json.dumps(simulated_plan(public_ecs_config)))
        service = doc.resource(SERVICE_ADDRESS)
        assert service is not None
        assert service.module_address == "module.ecs_service"
        assert service.attribute("desired_count") == NumberValue(public_ecs_config.desired_count)
        assert service.attribute("iam_role") is UNKNOWN
        assert service.references("cluster") == ("var.cluster_arn",)

    def test_instances_of(self, networking_config: NetworkingConfig) -> None:
        doc = parse_plan(json.dumps(simulated_plan(networking_config)))
        tables = doc.instances_of("module.networking", "aws_route_table.private")
        assert [t.index for t in tables] == [0, 1, 2]
        assert doc.instances_of("", "aws_route_table.private") == ()

    def test_snapshot_excludes_unknown(self, networking_config: NetworkingConfig) -> None:
        doc = parse_plan(json.dumps(simulated_plan(networking_config)))
        snapshot = doc.snapshot()
        vpc = snapshot["module.networking.aws_vpc.main"]
        assert vpc["kind"] == "aws_vpc"
        assert vpc["values"]["cidr_block"] == "10.20.0.0/16"
        assert "arn" not in vpc["values"]
        assert set(snapshot) == {node.address for node in doc}
