"""Plan Document Model: parsed, queryable `terraform show -json` output."""

from infraprop.plan.document import PlanDocument, ResourceChange, ResourceNode, parse_plan
from infraprop.plan.references import parse_reference, resolve_references

__all__ = [
    "PlanDocument",
    "ResourceChange",
    "ResourceNode",
    "parse_plan",
    "parse_reference",
    "resolve_references",
]
