# src/infraprop/contracts/enums.py
"""All categorical values used across subsystem boundaries.

Enum values double as the literal strings the Terraform modules accept,
so a member can be rendered straight into a module argument.
"""

from enum import StrEnum


class ModuleKind(StrEnum):
    """Infrastructure module targeted by a generated configuration.

    The value is the module's directory name under the modules root.
    """

    NETWORKING = "networking"
    ECS_SERVICE = "ecs-service"


class Environment(StrEnum):
    """Deployment environment accepted by every module's validation block."""

    DEVELOP = "develop"
    TEST = "test"
    QA = "qa"
    PROD = "prod"


class ServiceType(StrEnum):
    """ECS service exposure.

    PUBLIC services sit behind an ALB target group.
    INTERNAL services are reachable only through service discovery.
    """

    PUBLIC = "public"
    INTERNAL = "internal"


class ExecutionStage(StrEnum):
    """Step of the init -> plan -> show -> parse pipeline that failed."""

    INIT = "init"
    PLAN = "plan"
    SHOW = "show"
    PARSE = "parse"


class InvariantCategory(StrEnum):
    """Shape of assertion an invariant makes about a plan."""

    CARDINALITY = "cardinality"
    IDENTITY = "identity"
    CONDITIONAL = "conditional"
    BOUNDED_RANGE = "bounded_range"
    CROSS_RESOURCE = "cross_resource"


class ReportStatus(StrEnum):
    """Outcome of one property suite run.

    VIOLATED means the module broke a property.
    ERRORED means the harness or tool broke (infrastructure failure).
    """

    PASSED = "passed"
    VIOLATED = "violated"
    ERRORED = "errored"
