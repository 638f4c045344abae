# src/infraprop/plan/document.py
"""Typed, read-only model of `terraform show -json` plan output.

Shape consumed (plan JSON format 1.x):

    planned_values.root_module.resources[]          address, type, name, index, values
    planned_values.root_module.child_modules[]      address, resources[], child_modules[]
    resource_changes[]                               address, change.actions, change.after_unknown
    configuration.root_module.module_calls.<name>.module.resources[]
                                                     address, expressions.<attr>.references

A module invocation puts its resources under child_modules, so resources
are collected recursively in the order Terraform emitted them.

Malformed nodes never abort parsing: a node whose values are not an object
simply has no attributes, and every lookup answers ABSENT. Only a document
that is not JSON, or has no planned_values object at all, is rejected.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from infraprop.contracts.attributes import (
    ABSENT,
    UNKNOWN,
    AttributeValue,
    PathStep,
    attribute_from_json,
    parse_attribute_path,
)
from infraprop.contracts.errors import PlanParseError
from infraprop.core.logging import get_logger
from infraprop.plan.references import resolve_references

logger = get_logger(__name__)

# module.a[0].module.b["x"] -> module.a.module.b
_MODULE_INSTANCE_KEY = re.compile(r"\[[^\]]*\]")


@dataclass(frozen=True)
class ResourceChange:
    """Planned action for one resource instance (e.g. ("create",))."""

    address: str
    actions: tuple[str, ...]


@dataclass(frozen=True, eq=False)
class ResourceNode:
    """One planned resource instance.

    Fields:
        address: Unique plan address (module.ecs_service.aws_ecs_service.main)
        kind: Resource type (aws_ecs_service)
        name: Resource name in configuration (main)
        index: count index (int), for_each key (str) or None
        module_address: Containing module instance address ("" for root)
        mode: "managed" or "data"
    """

    address: str
    kind: str
    name: str
    index: int | str | None = None
    module_address: str = ""
    mode: str = "managed"
    values: Mapping[str, Any] = field(default_factory=dict, repr=False)
    after_unknown: Mapping[str, Any] = field(default_factory=dict, repr=False)
    expressions: Mapping[str, Any] = field(default_factory=dict, repr=False)

    @property
    def config_address(self) -> str:
        """Module-relative configuration address without instance key (aws_subnet.private)."""
        prefix = "data." if self.mode == "data" else ""
        return f"{prefix}{self.kind}.{self.name}"

    def attribute(self, path: str | tuple[PathStep, ...]) -> AttributeValue:
        """Look up a (possibly nested) attribute.

        Returns UNKNOWN when Terraform marks the value (or one of its
        ancestors) as known only after apply, and ABSENT when the path does
        not exist, crosses a value of the wrong shape, or ends in null.
        """
        steps = parse_attribute_path(path) if isinstance(path, str) else path

        unknown: Any = self.after_unknown
        current: Any = self.values
        for step in steps:
            if unknown is True:
                return UNKNOWN
            unknown = _step(unknown, step)
            current = _step(current, step)
            if current is _MISSING:
                return UNKNOWN if unknown is True else ABSENT
        if unknown is True:
            return UNKNOWN
        return attribute_from_json(current)

    def is_set(self, path: str | tuple[PathStep, ...]) -> bool:
        """Whether the attribute will have a value: known non-null or unknown."""
        return self.attribute(path) is not ABSENT

    def known_values(self) -> dict[str, Any]:
        """Top-level values that are known at plan time (unknown keys dropped)."""
        if not isinstance(self.values, Mapping):
            return {}
        return {k: v for k, v in self.values.items() if _step(self.after_unknown, k) is not True}

    def references(self, attribute: str) -> tuple[str, ...]:
        """Raw configuration references of one argument expression."""
        expression = self.expressions.get(attribute) if isinstance(self.expressions, Mapping) else None
        return tuple(_collect_references(expression))


_MISSING = object()


def _step(container: Any, step: PathStep) -> Any:
    if isinstance(step, int):
        if isinstance(container, list) and 0 <= step < len(container):
            return container[step]
        return _MISSING
    if isinstance(container, Mapping) and step in container:
        return container[step]
    return _MISSING


def _collect_references(expression: Any) -> Iterator[str]:
    """References of an expression, including those nested in blocks."""
    if isinstance(expression, Mapping):
        refs = expression.get("references")
        if isinstance(refs, list):
            yield from (r for r in refs if isinstance(r, str))
        for key, nested in expression.items():
            if key != "references":
                yield from _collect_references(nested)
    elif isinstance(expression, list):
        for item in expression:
            yield from _collect_references(item)


class PlanDocument:
    """Read-only, queryable view of one plan.

    Owned by the trial that produced it; never mutated after construction.
    """

    def __init__(
        self,
        nodes: list[ResourceNode],
        *,
        changes: Mapping[str, ResourceChange] | None = None,
        format_version: str | None = None,
        terraform_version: str | None = None,
    ) -> None:
        self._nodes: tuple[ResourceNode, ...] = tuple(nodes)
        self._by_address = {node.address: node for node in self._nodes}
        if len(self._by_address) != len(self._nodes):
            raise ValueError("resource addresses must be unique within a plan document")
        self._changes = dict(changes or {})
        self.format_version = format_version
        self.terraform_version = terraform_version

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[ResourceNode]:
        return iter(self._nodes)

    @property
    def nodes(self) -> tuple[ResourceNode, ...]:
        return self._nodes

    def resources_of_kind(self, kind: str) -> tuple[ResourceNode, ...]:
        """All managed resources of a type, in Terraform's emission order."""
        return tuple(node for node in self._nodes if node.kind == kind and node.mode == "managed")

    def has_kind(self, kind: str) -> bool:
        return any(node.kind == kind and node.mode == "managed" for node in self._nodes)

    def resource(self, address: str) -> ResourceNode | None:
        return self._by_address.get(address)

    def attribute(self, node: ResourceNode, path: str | tuple[PathStep, ...]) -> AttributeValue:
        return node.attribute(path)

    def change(self, address: str) -> ResourceChange | None:
        return self._changes.get(address)

    def references(self, node: ResourceNode, attribute: str) -> tuple[ResourceNode, ...]:
        """Resolve an argument's configuration references to planned resources.

        See plan.references for the resolution rules.
        """
        return resolve_references(self, node, attribute)

    def instances_of(self, module_address: str, config_address: str) -> tuple[ResourceNode, ...]:
        """All planned instances of one configuration resource within a module instance."""
        return tuple(
            node
            for node in self._nodes
            if node.module_address == module_address and node.config_address == config_address
        )

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """Address -> kind and known values, for structural comparison of two plans."""
        return {node.address: {"kind": node.kind, "values": node.known_values()} for node in self._nodes}


# =============================================================================
# Parsing
# =============================================================================


def parse_plan(text: str | bytes) -> PlanDocument:
    """Parse `terraform show -json` output.

    Raises:
        PlanParseError: If the text is not JSON or lacks a planned_values object
    """
    try:
        raw = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise PlanParseError(f"plan output is not valid JSON: {e}", diagnostics=_excerpt(text)) from e

    if not isinstance(raw, dict):
        raise PlanParseError(f"plan output must be a JSON object, got {type(raw).__name__}", diagnostics=_excerpt(text))
    planned = raw.get("planned_values")
    if not isinstance(planned, dict):
        raise PlanParseError("plan output has no planned_values object", diagnostics=_excerpt(text))

    unknowns, changes = _index_resource_changes(raw.get("resource_changes"))
    expressions = _index_configuration(raw.get("configuration"))

    nodes: list[ResourceNode] = []
    seen: set[str] = set()
    root = planned.get("root_module")
    for module_address, entry in _walk_modules(root if isinstance(root, dict) else {}, ""):
        node = _build_node(entry, module_address, unknowns, expressions)
        if node is None:
            continue
        if node.address in seen:
            logger.warning("duplicate_resource_address", address=node.address)
            continue
        seen.add(node.address)
        nodes.append(node)

    return PlanDocument(
        nodes,
        changes=changes,
        format_version=_str_or_none(raw.get("format_version")),
        terraform_version=_str_or_none(raw.get("terraform_version")),
    )


def _walk_modules(module: dict[str, Any], module_address: str) -> Iterator[tuple[str, Any]]:
    resources = module.get("resources")
    if isinstance(resources, list):
        for entry in resources:
            yield module_address, entry
    children = module.get("child_modules")
    if isinstance(children, list):
        for child in children:
            if isinstance(child, dict):
                address = child.get("address")
                yield from _walk_modules(child, address if isinstance(address, str) else module_address)


def _build_node(
    entry: Any,
    module_address: str,
    unknowns: dict[str, Any],
    expressions: dict[tuple[str, str], Any],
) -> ResourceNode | None:
    if not isinstance(entry, dict):
        logger.debug("skipping_malformed_resource", entry_type=type(entry).__name__)
        return None
    address = entry.get("address")
    if not isinstance(address, str) or not address:
        logger.debug("skipping_resource_without_address")
        return None

    kind = entry.get("type")
    name = entry.get("name")
    mode = entry.get("mode")
    index = entry.get("index")
    values = entry.get("values")
    node_kind = kind if isinstance(kind, str) else ""
    node_name = name if isinstance(name, str) else ""
    node_mode = mode if isinstance(mode, str) else "managed"
    prefix = "data." if node_mode == "data" else ""
    return ResourceNode(
        address=address,
        kind=node_kind,
        name=node_name,
        index=index if isinstance(index, int | str) and not isinstance(index, bool) else None,
        module_address=module_address,
        mode=node_mode,
        values=values if isinstance(values, dict) else {},
        after_unknown=unknowns.get(address, {}),
        expressions=expressions.get((_module_path(module_address), f"{prefix}{node_kind}.{node_name}"), {}),
    )


def _index_resource_changes(raw: Any) -> tuple[dict[str, Any], dict[str, ResourceChange]]:
    unknowns: dict[str, Any] = {}
    changes: dict[str, ResourceChange] = {}
    if not isinstance(raw, list):
        return unknowns, changes
    for entry in raw:
        if not isinstance(entry, dict) or not isinstance(entry.get("address"), str):
            continue
        change = entry.get("change")
        if not isinstance(change, dict):
            continue
        address = entry["address"]
        after_unknown = change.get("after_unknown")
        if isinstance(after_unknown, dict):
            unknowns[address] = after_unknown
        actions = change.get("actions")
        if isinstance(actions, list):
            changes[address] = ResourceChange(address, tuple(a for a in actions if isinstance(a, str)))
    return unknowns, changes


def _index_configuration(raw: Any) -> dict[tuple[str, str], Any]:
    """Map (module path, resource config address) -> expressions."""
    index: dict[tuple[str, str], Any] = {}
    if not isinstance(raw, dict):
        return index

    def visit(module: Any, path: str) -> None:
        if not isinstance(module, dict):
            return
        resources = module.get("resources")
        if isinstance(resources, list):
            for resource in resources:
                if isinstance(resource, dict) and isinstance(resource.get("address"), str):
                    index[(path, resource["address"])] = resource.get("expressions") or {}
        calls = module.get("module_calls")
        if isinstance(calls, dict):
            for call_name, call in calls.items():
                if isinstance(call, dict):
                    child_path = f"{path}.module.{call_name}" if path else f"module.{call_name}"
                    visit(call.get("module"), child_path)

    visit(raw.get("root_module"), "")
    return index


def _module_path(module_address: str) -> str:
    """Strip instance keys: module.a[0].module.b -> module.a.module.b."""
    return _MODULE_INSTANCE_KEY.sub("", module_address)


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _excerpt(text: str | bytes, limit: int = 2000) -> str:
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")
    return text[:limit]
