# src/infraprop/contracts/configs.py
"""Generated module configurations.

One frozen dataclass per module kind. Instances are produced by the
generator, consumed by exactly one trial and never mutated. Each class
enforces the module's own input validation plus the conditional-field
policy in __post_init__, so a ValueError here always means a generator bug.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, ClassVar

from infraprop.contracts.enums import Environment, ModuleKind, ServiceType

# CloudWatch Logs only accepts these retention periods (days)
FLOW_LOG_RETENTION_DAYS: tuple[int, ...] = (1, 3, 5, 7, 14, 30, 60, 90)


@dataclass(frozen=True)
class EcsServiceConfig:
    """Inputs for one invocation of the ecs-service module.

    Conditional fields:
    - public services carry a target group ARN and never use service discovery
    - internal services carry no target group ARN; the namespace id is set
      exactly when service discovery is enabled
    """

    module: ClassVar[ModuleKind] = ModuleKind.ECS_SERVICE
    module_name: ClassVar[str] = "ecs_service"

    environment: Environment
    project_name: str
    service_name: str
    service_type: ServiceType
    cluster_arn: str
    cluster_name: str
    task_definition_arn: str
    container_name: str
    container_port: int
    desired_count: int
    deployment_minimum_healthy_percent: int
    deployment_maximum_percent: int
    private_subnet_ids: tuple[str, ...]
    security_group_ids: tuple[str, ...]
    target_group_arn: str | None = None
    enable_service_discovery: bool = False
    service_discovery_namespace_id: str | None = None

    def __post_init__(self) -> None:
        if not 1 <= self.container_port <= 65535:
            raise ValueError(f"container_port must be in 1..65535, got {self.container_port}")
        if self.desired_count < 1:
            raise ValueError(f"desired_count must be >= 1, got {self.desired_count}")
        if not 0 <= self.deployment_minimum_healthy_percent <= 200:
            raise ValueError(
                f"deployment_minimum_healthy_percent must be in [0, 200], got {self.deployment_minimum_healthy_percent}"
            )
        if not 100 <= self.deployment_maximum_percent <= 400:
            raise ValueError(f"deployment_maximum_percent must be in [100, 400], got {self.deployment_maximum_percent}")
        if not self.private_subnet_ids:
            raise ValueError("private_subnet_ids must not be empty")
        if not self.security_group_ids:
            raise ValueError("security_group_ids must not be empty")

        if self.service_type == ServiceType.PUBLIC:
            if not self.target_group_arn:
                raise ValueError("public services require target_group_arn")
            if self.enable_service_discovery or self.service_discovery_namespace_id is not None:
                raise ValueError("public services must not enable service discovery")
        else:
            if self.target_group_arn is not None:
                raise ValueError("internal services must not set target_group_arn")
            if self.enable_service_discovery != (self.service_discovery_namespace_id is not None):
                raise ValueError("service_discovery_namespace_id must be set exactly when service discovery is enabled")

    @property
    def is_public(self) -> bool:
        return self.service_type == ServiceType.PUBLIC

    def to_variables(self) -> dict[str, Any]:
        """Module input variables in declaration order. None renders as null."""
        return {
            "environment": self.environment,
            "project_name": self.project_name,
            "service_name": self.service_name,
            "service_type": self.service_type,
            "cluster_arn": self.cluster_arn,
            "cluster_name": self.cluster_name,
            "task_definition_arn": self.task_definition_arn,
            "container_name": self.container_name,
            "container_port": self.container_port,
            "desired_count": self.desired_count,
            "deployment_minimum_healthy_percent": self.deployment_minimum_healthy_percent,
            "deployment_maximum_percent": self.deployment_maximum_percent,
            "private_subnet_ids": list(self.private_subnet_ids),
            "security_group_ids": list(self.security_group_ids),
            "target_group_arn": self.target_group_arn,
            "enable_service_discovery": self.enable_service_discovery,
            "service_discovery_namespace_id": self.service_discovery_namespace_id,
        }


@dataclass(frozen=True)
class NetworkingConfig:
    """Inputs for one invocation of the networking module."""

    module: ClassVar[ModuleKind] = ModuleKind.NETWORKING
    module_name: ClassVar[str] = "networking"

    environment: Environment
    project_name: str
    vpc_cidr: str
    availability_zones: tuple[str, ...]
    enable_nat_gateway: bool
    single_nat_gateway: bool
    enable_vpc_flow_logs: bool
    flow_logs_retention_days: int

    def __post_init__(self) -> None:
        # strict=True rejects host bits, e.g. 10.0.0.1/16
        network = ipaddress.ip_network(self.vpc_cidr, strict=True)
        if network.version != 4:
            raise ValueError(f"vpc_cidr must be IPv4, got {self.vpc_cidr}")
        if len(set(self.availability_zones)) < 2:
            raise ValueError("at least two distinct availability zones are required")
        if len(set(self.availability_zones)) != len(self.availability_zones):
            raise ValueError("availability_zones must be unique")
        if self.flow_logs_retention_days not in FLOW_LOG_RETENTION_DAYS:
            raise ValueError(f"flow_logs_retention_days must be one of {FLOW_LOG_RETENTION_DAYS}")

    @property
    def expected_nat_gateways(self) -> int:
        if not self.enable_nat_gateway:
            return 0
        return 1 if self.single_nat_gateway else len(self.availability_zones)

    def to_variables(self) -> dict[str, Any]:
        """Module input variables in declaration order."""
        return {
            "environment": self.environment,
            "project_name": self.project_name,
            "vpc_cidr": self.vpc_cidr,
            "availability_zones": list(self.availability_zones),
            "enable_nat_gateway": self.enable_nat_gateway,
            "single_nat_gateway": self.single_nat_gateway,
            "enable_vpc_flow_logs": self.enable_vpc_flow_logs,
            "flow_logs_retention_days": self.flow_logs_retention_days,
        }


GeneratedConfig = EcsServiceConfig | NetworkingConfig


def config_as_dict(config: GeneratedConfig) -> dict[str, Any]:
    """JSON-safe view of a config for reports and the CLI."""
    result: dict[str, Any] = {"module": config.module.value}
    for f in fields(config):
        value = getattr(config, f.name)
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, tuple):
            value = list(value)
        result[f.name] = value
    return result
