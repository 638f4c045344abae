# src/infraprop/contracts/attributes.py
"""Typed attribute values read out of a Terraform plan.

Plan JSON attribute maps are arbitrarily nested. Instead of handing callers
raw dicts and lists to type-assert, every lookup returns one member of the
AttributeValue union so callers can pattern-match exhaustively:

    match doc.attribute(node, "desired_count"):
        case NumberValue(value=int() as count):
            ...
        case Absent():
            ...

Absent covers both a missing key and JSON null. Unknown marks a value that
Terraform will only know after apply ("after_unknown" in the plan). Neither
is ever conflated with an empty string, empty list or False.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Final


@dataclass(frozen=True, slots=True)
class StringValue:
    value: str


@dataclass(frozen=True, slots=True)
class NumberValue:
    """Numeric attribute. JSON integers stay int; only JSON reals become float."""

    value: int | float


@dataclass(frozen=True, slots=True)
class BoolValue:
    value: bool


@dataclass(frozen=True, slots=True)
class ListValue:
    """List, set or tuple typed attribute (also nested blocks)."""

    items: tuple[AttributeValue, ...]

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True, slots=True, eq=True)
class MapValue:
    """Map or object typed attribute (also the body of one nested block)."""

    entries: Mapping[str, AttributeValue]

    def __len__(self) -> int:
        return len(self.entries)

    def __hash__(self) -> int:
        return hash(tuple(sorted(self.entries.items(), key=lambda kv: kv[0])))


class Absent:
    """No value: key missing from the plan or explicitly null."""

    __slots__ = ()
    _instance: Absent | None = None

    def __new__(cls) -> Absent:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


class Unknown:
    """Value computed at apply time; present in the plan only as a marker."""

    __slots__ = ()
    _instance: Unknown | None = None

    def __new__(cls) -> Unknown:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNKNOWN"


ABSENT: Final = Absent()
UNKNOWN: Final = Unknown()

AttributeValue = StringValue | NumberValue | BoolValue | ListValue | MapValue | Absent | Unknown

PathStep = str | int


def attribute_from_json(raw: Any) -> AttributeValue:
    """Convert a decoded JSON value into an AttributeValue.

    bool is checked before int because bool is an int subclass in Python;
    a planned `true` must never surface as the number 1.
    """
    if raw is None:
        return ABSENT
    if isinstance(raw, bool):
        return BoolValue(raw)
    if isinstance(raw, int | float):
        return NumberValue(raw)
    if isinstance(raw, str):
        return StringValue(raw)
    if isinstance(raw, list):
        return ListValue(tuple(attribute_from_json(item) for item in raw))
    if isinstance(raw, dict):
        return MapValue({str(k): attribute_from_json(v) for k, v in raw.items()})
    # json.loads never produces anything else; treat foreign objects as missing
    return ABSENT


def to_python(value: AttributeValue) -> Any:
    """Convert an AttributeValue back to plain Python (Absent -> None).

    Unknown is returned as the UNKNOWN sentinel since there is no plain
    equivalent.
    """
    match value:
        case StringValue(value=v) | NumberValue(value=v) | BoolValue(value=v):
            return v
        case ListValue(items=items):
            return [to_python(item) for item in items]
        case MapValue(entries=entries):
            return {k: to_python(v) for k, v in entries.items()}
        case Unknown():
            return UNKNOWN
        case _:
            return None


def same_value(left: Any, right: Any) -> bool:
    """Strict equality: values must match AND have the same Python type.

    8443 == 8443.0 and 1 == True in Python; a plan that turns an integer port
    into a float or a bool flag into a number is a type coercion the harness
    must report, so types are compared recursively.
    """
    if type(left) is not type(right):
        return False
    if isinstance(left, list | tuple):
        return len(left) == len(right) and all(same_value(a, b) for a, b in zip(left, right, strict=True))
    if isinstance(left, dict):
        return left.keys() == right.keys() and all(same_value(left[k], right[k]) for k in left)
    if isinstance(left, float) and math.isnan(left):
        return math.isnan(right)
    return bool(left == right)


# =============================================================================
# Attribute paths
# =============================================================================

# name | [123] | ["quoted key"]
_PATH_TOKEN = re.compile(r'\.?([A-Za-z_][A-Za-z0-9_\-]*)|\[(\d+)\]|\["((?:[^"\\]|\\.)*)"\]')


def parse_attribute_path(path: str) -> tuple[PathStep, ...]:
    """Split an attribute path into map keys (str) and list indices (int).

    Examples:
        "desired_count"                   -> ("desired_count",)
        "network_configuration[0].subnets" -> ("network_configuration", 0, "subnets")
        'tags["kubernetes.io/role"]'      -> ("tags", "kubernetes.io/role")

    Raises:
        ValueError: If the path is empty or contains an unparseable segment
    """
    if not path:
        raise ValueError("attribute path must not be empty")

    steps: list[PathStep] = []
    pos = 0
    while pos < len(path):
        match = _PATH_TOKEN.match(path, pos)
        if match is None or match.end() == pos:
            raise ValueError(f"invalid attribute path {path!r} at offset {pos}")
        # A leading dot is only valid between segments
        if path[pos] == "." and pos == 0:
            raise ValueError(f"invalid attribute path {path!r}: leading '.'")
        name, index, quoted = match.groups()
        if name is not None:
            steps.append(name)
        elif index is not None:
            steps.append(int(index))
        else:
            steps.append(re.sub(r"\\(.)", r"\1", quoted))
        pos = match.end()
    return tuple(steps)


def format_attribute_path(steps: tuple[PathStep, ...]) -> str:
    """Inverse of parse_attribute_path, used in diagnostics."""
    parts: list[str] = []
    for step in steps:
        if isinstance(step, int):
            parts.append(f"[{step}]")
        elif re.fullmatch(r"[A-Za-z_][A-Za-z0-9_\-]*", step):
            parts.append(f".{step}" if parts else step)
        else:
            escaped = step.replace("\\", "\\\\").replace('"', '\\"')
            parts.append(f'["{escaped}"]')
    return "".join(parts)
