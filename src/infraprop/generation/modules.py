# src/infraprop/generation/modules.py
"""Per-module configuration generators.

draw() is the single entry point. Pins fix categorical inputs (for example a
property that only concerns public services); dependent fields are still
derived from the pinned value so the conditional-field policy holds without
rejection sampling.

Reproducibility: the same random source state and the same pins always
produce the same config. There is no module-level random state.
"""

from __future__ import annotations

import random
from collections.abc import Callable
from typing import Any

from infraprop.contracts.configs import EcsServiceConfig, GeneratedConfig, NetworkingConfig
from infraprop.contracts.enums import Environment, ModuleKind, ServiceType
from infraprop.generation import fields

ECS_SERVICE_PINS = frozenset({"service_type", "environment", "enable_service_discovery"})
NETWORKING_PINS = frozenset({"environment", "enable_nat_gateway", "single_nat_gateway", "enable_vpc_flow_logs"})


def _check_pins(module: ModuleKind, pins: dict[str, Any], allowed: frozenset[str]) -> None:
    unknown = sorted(set(pins) - allowed)
    if unknown:
        raise ValueError(f"Unknown pins for module '{module}': {', '.join(unknown)}. Allowed: {', '.join(sorted(allowed))}")


def draw_ecs_service(rng: random.Random, **pins: Any) -> EcsServiceConfig:
    """Draw a valid ecs-service configuration.

    Raises:
        ValueError: If a pin is unknown or contradicts the conditional policy
            (service discovery pinned on together with a public service type)
    """
    _check_pins(ModuleKind.ECS_SERVICE, pins, ECS_SERVICE_PINS)

    # Draw order is fixed so pins never shift the values of unrelated fields
    drawn_type = rng.choice(list(ServiceType))
    if "service_type" in pins:
        service_type = ServiceType(pins["service_type"])
    elif pins.get("enable_service_discovery"):
        # Service discovery only exists for internal services
        service_type = ServiceType.INTERNAL
    else:
        service_type = drawn_type
    name = fields.service_name(rng)
    drawn_env = fields.environment(rng)
    env = Environment(pins.get("environment", drawn_env))
    project = fields.project_name(rng)
    region = fields.region(rng)
    account = fields.account_id(rng)
    cluster = fields.cluster_name(project, env)

    common: dict[str, Any] = {
        "environment": env,
        "project_name": project,
        "service_name": name,
        "service_type": service_type,
        "cluster_arn": fields.cluster_arn(region, account, cluster),
        "cluster_name": cluster,
        "task_definition_arn": fields.task_definition_arn(region, account, f"{name}-{env.value}", rng.randint(1, 50)),
        "container_name": name,
        "container_port": fields.container_port(rng),
        "desired_count": fields.desired_count(rng),
        "deployment_minimum_healthy_percent": fields.minimum_healthy_percent(rng),
        "deployment_maximum_percent": fields.maximum_percent(rng),
        "private_subnet_ids": fields.subnet_ids(rng),
        "security_group_ids": fields.security_group_ids(rng),
    }

    drawn_discovery = rng.random() < 0.5
    if service_type == ServiceType.PUBLIC:
        if pins.get("enable_service_discovery"):
            raise ValueError("enable_service_discovery cannot be pinned on together with service_type=public")
        return EcsServiceConfig(
            **common,
            target_group_arn=fields.target_group_arn(rng, region, account, f"{name}-{env.value}"),
        )

    discovery = bool(pins.get("enable_service_discovery", drawn_discovery))
    return EcsServiceConfig(
        **common,
        target_group_arn=None,
        enable_service_discovery=discovery,
        service_discovery_namespace_id=fields.namespace_id(rng) if discovery else None,
    )


def draw_networking(rng: random.Random, **pins: Any) -> NetworkingConfig:
    """Draw a valid networking configuration.

    Raises:
        ValueError: If a pin is unknown
    """
    _check_pins(ModuleKind.NETWORKING, pins, NETWORKING_PINS)

    drawn_env = fields.environment(rng)
    project = fields.project_name(rng)
    cidr = fields.vpc_cidr(rng)
    zones = fields.availability_zones(rng)
    drawn_nat = rng.random() < 0.5
    drawn_single_nat = rng.random() < 0.5
    drawn_flow_logs = rng.random() < 0.5
    retention = fields.flow_logs_retention_days(rng)

    return NetworkingConfig(
        environment=Environment(pins.get("environment", drawn_env)),
        project_name=project,
        vpc_cidr=cidr,
        availability_zones=zones,
        enable_nat_gateway=bool(pins.get("enable_nat_gateway", drawn_nat)),
        single_nat_gateway=bool(pins.get("single_nat_gateway", drawn_single_nat)),
        enable_vpc_flow_logs=bool(pins.get("enable_vpc_flow_logs", drawn_flow_logs)),
        flow_logs_retention_days=retention,
    )


_GENERATORS: dict[ModuleKind, Callable[..., GeneratedConfig]] = {
    ModuleKind.ECS_SERVICE: draw_ecs_service,
    ModuleKind.NETWORKING: draw_networking,
}


def draw(module: ModuleKind | str, rng: random.Random, **pins: Any) -> GeneratedConfig:
    """Draw one fully-populated, valid configuration for a module.

    Args:
        module: Which module's input schema to target
        rng: The trial's random source (seed it to reproduce a draw)
        **pins: Categorical fields to fix instead of drawing

    Returns:
        A config that passes the module's own input validation
    """
    return _GENERATORS[ModuleKind(module)](rng, **pins)


def allowed_pins(module: ModuleKind | str) -> frozenset[str]:
    return ECS_SERVICE_PINS if ModuleKind(module) is ModuleKind.ECS_SERVICE else NETWORKING_PINS


_BOOL_PINS = frozenset({"enable_service_discovery", "enable_nat_gateway", "single_nat_gateway", "enable_vpc_flow_logs"})
_TRUE = frozenset({"true", "1", "yes", "on"})
_FALSE = frozenset({"false", "0", "no", "off"})


def coerce_pins(module: ModuleKind | str, raw: dict[str, str]) -> dict[str, Any]:
    """Convert textual pins (from the CLI) to typed values.

    Raises:
        ValueError: If a pin is unknown or its value is not legal for the field
    """
    kind = ModuleKind(module)
    _check_pins(kind, raw, allowed_pins(kind))
    pins: dict[str, Any] = {}
    for key, text in raw.items():
        value = text.strip().lower()
        if key in _BOOL_PINS:
            if value in _TRUE:
                pins[key] = True
            elif value in _FALSE:
                pins[key] = False
            else:
                raise ValueError(f"Pin '{key}' expects a boolean, got {text!r}")
        elif key == "environment":
            pins[key] = Environment(value)
        elif key == "service_type":
            pins[key] = ServiceType(value)
    return pins
