"""Configuration Generator: randomized-but-valid module inputs."""

from infraprop.generation.modules import (
    ECS_SERVICE_PINS,
    NETWORKING_PINS,
    allowed_pins,
    coerce_pins,
    draw,
    draw_ecs_service,
    draw_networking,
)

__all__ = [
    "ECS_SERVICE_PINS",
    "NETWORKING_PINS",
    "allowed_pins",
    "coerce_pins",
    "draw",
    "draw_ecs_service",
    "draw_networking",
]
