"""Shared contracts for cross-boundary data types.

All dataclasses, enums and exceptions that cross subsystem boundaries
(generation, rendering, execution, plan model, invariants, engine) live here.

This package is a LEAF MODULE: it imports nothing from the rest of
infraprop at runtime.

Import patterns:
    from infraprop.contracts import EcsServiceConfig, ModuleKind, Violated
    from infraprop.core.config import HarnessSettings
"""

from infraprop.contracts.attributes import (
    ABSENT,
    UNKNOWN,
    Absent,
    AttributeValue,
    BoolValue,
    ListValue,
    MapValue,
    NumberValue,
    PathStep,
    StringValue,
    Unknown,
    attribute_from_json,
    format_attribute_path,
    parse_attribute_path,
    same_value,
    to_python,
)
from infraprop.contracts.configs import (
    FLOW_LOG_RETENTION_DAYS,
    EcsServiceConfig,
    GeneratedConfig,
    NetworkingConfig,
    config_as_dict,
)
from infraprop.contracts.enums import (
    Environment,
    ExecutionStage,
    InvariantCategory,
    ModuleKind,
    ReportStatus,
    ServiceType,
)
from infraprop.contracts.errors import (
    ConfigMismatchError,
    ExecutionError,
    HarnessError,
    InvariantViolation,
    PlanParseError,
    RenderError,
    UnknownInvariantError,
    UnknownPropertyError,
)
from infraprop.contracts.protocols import PlanRunner
from infraprop.contracts.results import (
    PropertyReport,
    Result,
    Satisfied,
    TrialError,
    TrialFailure,
    TrialOutcome,
    Violated,
)

__all__ = [
    # attributes
    "ABSENT",
    "UNKNOWN",
    "Absent",
    "AttributeValue",
    "BoolValue",
    "ListValue",
    "MapValue",
    "NumberValue",
    "PathStep",
    "StringValue",
    "Unknown",
    "attribute_from_json",
    "format_attribute_path",
    "parse_attribute_path",
    "same_value",
    "to_python",
    # configs
    "FLOW_LOG_RETENTION_DAYS",
    "EcsServiceConfig",
    "GeneratedConfig",
    "NetworkingConfig",
    "config_as_dict",
    # enums
    "Environment",
    "ExecutionStage",
    "InvariantCategory",
    "ModuleKind",
    "ReportStatus",
    "ServiceType",
    # errors
    "ConfigMismatchError",
    "ExecutionError",
    "HarnessError",
    "InvariantViolation",
    "PlanParseError",
    "RenderError",
    "UnknownInvariantError",
    "UnknownPropertyError",
    # protocols
    "PlanRunner",
    # results
    "PropertyReport",
    "Result",
    "Satisfied",
    "TrialError",
    "TrialFailure",
    "TrialOutcome",
    "Violated",
]
