# src/infraprop/generation/fields.py
"""Field-level generators.

Every function takes the trial's random source explicitly and only ever
returns values from the module's legal domain, so generation needs no
rejection sampling.
"""

from __future__ import annotations

import random

from infraprop.contracts.configs import FLOW_LOG_RETENTION_DAYS
from infraprop.contracts.enums import Environment

_PROJECT_PREFIXES = ("app", "svc", "api", "web", "data")
_PROJECT_SUFFIXES = ("service", "platform", "system", "core", "hub")

_SERVICE_PREFIXES = ("api", "web", "worker", "processor", "gateway", "auth", "data")
_SERVICE_SUFFIXES = ("service", "svc", "app", "handler")

CONTAINER_PORTS = (80, 443, 3000, 8080, 8443, 9000)
MIN_HEALTHY_PERCENTS = (50, 100)
MAX_PERCENTS = (150, 200)
DESIRED_COUNT_RANGE = (1, 10)

REGIONS = ("us-east-1", "us-west-2", "eu-west-1")

VPC_CIDRS = (
    "10.0.0.0/16",
    "10.1.0.0/16",
    "10.2.0.0/16",
    "172.16.0.0/16",
    "172.17.0.0/16",
    "192.168.0.0/16",
)

AVAILABILITY_ZONE_SETS: tuple[tuple[str, ...], ...] = (
    ("us-east-1a", "us-east-1b"),
    ("us-east-1a", "us-east-1b", "us-east-1c"),
    ("us-west-2a", "us-west-2b", "us-west-2c"),
    ("eu-west-1a", "eu-west-1b", "eu-west-1c"),
)

# ALB target group names are limited to 32 characters
_TARGET_GROUP_NAME_MAX = 32


def environment(rng: random.Random) -> Environment:
    return rng.choice(list(Environment))


def _hyphenated_name(rng: random.Random, prefixes: tuple[str, ...], suffixes: tuple[str, ...]) -> str:
    return f"{rng.choice(prefixes)}-{rng.choice(suffixes)}-{rng.randint(1, 99)}"


def project_name(rng: random.Random) -> str:
    return _hyphenated_name(rng, _PROJECT_PREFIXES, _PROJECT_SUFFIXES)


def service_name(rng: random.Random) -> str:
    return _hyphenated_name(rng, _SERVICE_PREFIXES, _SERVICE_SUFFIXES)


def container_port(rng: random.Random) -> int:
    return rng.choice(CONTAINER_PORTS)


def desired_count(rng: random.Random) -> int:
    return rng.randint(*DESIRED_COUNT_RANGE)


def minimum_healthy_percent(rng: random.Random) -> int:
    return rng.choice(MIN_HEALTHY_PERCENTS)


def maximum_percent(rng: random.Random) -> int:
    return rng.choice(MAX_PERCENTS)


def region(rng: random.Random) -> str:
    return rng.choice(REGIONS)


def account_id(rng: random.Random) -> str:
    return f"{rng.randrange(10**11, 10**12):012d}"


def _hex(rng: random.Random, length: int) -> str:
    return f"{rng.getrandbits(length * 4):0{length}x}"


def subnet_ids(rng: random.Random, *, minimum: int = 2, maximum: int = 3) -> tuple[str, ...]:
    """Unique subnet ids in sorted order.

    AWS set-typed attributes come back sorted in the plan, so drawing them
    sorted keeps "same elements in the same order" a meaningful check.
    """
    count = rng.randint(minimum, maximum)
    ids: set[str] = set()
    while len(ids) < count:
        ids.add(f"subnet-{_hex(rng, 17)}")
    return tuple(sorted(ids))


def security_group_ids(rng: random.Random, *, minimum: int = 1, maximum: int = 3) -> tuple[str, ...]:
    count = rng.randint(minimum, maximum)
    return tuple(f"sg-{n}" for n in rng.sample(range(100000, 1000000), count))


def namespace_id(rng: random.Random) -> str:
    return f"ns-{_hex(rng, 16)}"


def cluster_name(project: str, env: Environment) -> str:
    return f"{project}-{env.value}-cluster"


def cluster_arn(region_name: str, account: str, name: str) -> str:
    return f"arn:aws:ecs:{region_name}:{account}:cluster/{name}"


def task_definition_arn(region_name: str, account: str, family: str, revision: int) -> str:
    return f"arn:aws:ecs:{region_name}:{account}:task-definition/{family}:{revision}"


def target_group_arn(rng: random.Random, region_name: str, account: str, name: str) -> str:
    tg_name = name[:_TARGET_GROUP_NAME_MAX].rstrip("-")
    return f"arn:aws:elasticloadbalancing:{region_name}:{account}:targetgroup/{tg_name}/{_hex(rng, 16)}"


def vpc_cidr(rng: random.Random) -> str:
    return rng.choice(VPC_CIDRS)


def availability_zones(rng: random.Random) -> tuple[str, ...]:
    return rng.choice(AVAILABILITY_ZONE_SETS)


def flow_logs_retention_days(rng: random.Random) -> int:
    return rng.choice(FLOW_LOG_RETENTION_DAYS)
