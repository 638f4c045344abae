# src/infraprop/plan/references.py
"""Resolution of configuration references to planned resource instances.

Most cross-resource links (route -> route table, association -> subnet) are
ids that are unknown until apply, so they cannot be matched by value. The
plan's configuration section still records which resources each argument
references, e.g.

    "route_table_id": {"references": ["aws_route_table.private[count.index].id",
                                      "aws_route_table.private[count.index]",
                                      "aws_route_table.private"]}

Resolution rules, per reference:
- `[count.index]` / `[each.key]` / `[each.value]`: the instance with the
  referring node's own index
- a literal index (`[0]`, `["a"]`): that instance
- any other index expression, or no index: every instance
Input variables, locals, module outputs and other non-resource references
are ignored. The result keeps first-seen order without duplicates.
"""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from infraprop.plan.document import PlanDocument, ResourceNode

_NON_RESOURCE_PREFIXES = ("var.", "local.", "module.", "count.", "each.", "path.", "terraform.", "self.")

# [data.]type.name[index] followed by an optional attribute tail
_REFERENCE = re.compile(
    r"""^(?P<data>data\.)?
        (?P<kind>[A-Za-z][A-Za-z0-9_]*)\.
        (?P<name>[A-Za-z_][A-Za-z0-9_\-]*)
        (?:\[(?P<index>[^\]]+)\])?""",
    re.VERBOSE,
)

_SELF_INDEX = frozenset({"count.index", "each.key", "each.value"})


def parse_reference(reference: str) -> tuple[str, str | None] | None:
    """Split a reference into (config address, raw index expression).

    Returns None for references that do not name a resource.
    """
    if reference.startswith(_NON_RESOURCE_PREFIXES):
        return None
    match = _REFERENCE.match(reference)
    if match is None:
        return None
    prefix = "data." if match.group("data") else ""
    return f"{prefix}{match.group('kind')}.{match.group('name')}", match.group("index")


def _literal_index(expression: str) -> int | str | None:
    expression = expression.strip()
    if expression.isdigit():
        return int(expression)
    if expression.startswith('"') and expression.endswith('"'):
        try:
            decoded = json.loads(expression)
        except json.JSONDecodeError:
            return None
        return decoded if isinstance(decoded, str) else None
    return None


def resolve_references(doc: PlanDocument, node: ResourceNode, attribute: str) -> tuple[ResourceNode, ...]:
    """Planned instances referenced by one argument of a node."""
    indexed: list[ResourceNode] = []
    unindexed: list[ResourceNode] = []
    for reference in node.references(attribute):
        parsed = parse_reference(reference)
        if parsed is None:
            continue
        config_address, index_expr = parsed
        instances = doc.instances_of(node.module_address, config_address)
        if index_expr is None:
            unindexed.extend(instances)
            continue
        if index_expr.strip() in _SELF_INDEX:
            wanted = node.index
        else:
            wanted = _literal_index(index_expr)
            if wanted is None:
                indexed.extend(instances)
                continue
        indexed.extend(instance for instance in instances if instance.index == wanted)

    # Terraform lists `x[count.index].id`, `x[count.index]` and `x` for one
    # expression; the bare `x` only matters when nothing more specific resolved.
    candidates = indexed or unindexed
    ordered: dict[str, ResourceNode] = {}
    for candidate in candidates:
        ordered.setdefault(candidate.address, candidate)
    return tuple(ordered.values())
