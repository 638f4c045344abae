# src/infraprop/rendering/hcl.py
"""HCL literal encoding.

Turns plain Python values into HCL expression text. Every string goes
through escaping (quotes, backslashes, control characters and template
introducers), so no generated value can change the structure of the
rendered file.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from enum import Enum
from typing import Any

from infraprop.contracts.errors import RenderError

_SIMPLE_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}

# Bare identifiers usable as block labels and argument names
_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")


def quote_string(value: str) -> str:
    """Quote a string as an HCL template literal with nothing interpolated.

    `${` and `%{` start interpolation/directives in HCL strings; doubling the
    introducer (`$${`, `%%{`) makes Terraform read them literally.
    """
    out: list[str] = []
    for ch in value:
        if ch in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[ch])
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(ch)
    escaped = "".join(out).replace("${", "$${").replace("%{", "%%{")
    return f'"{escaped}"'


def hcl_literal(value: Any) -> str:
    """Render a Python value as an HCL expression.

    None -> null (never an empty string), bool -> true/false, int/float ->
    number, str/enum -> quoted string, list/tuple -> [..], mapping -> { .. }.

    Raises:
        RenderError: For NaN/infinity, non-string map keys or unsupported types
    """
    if value is None:
        return "null"
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return hcl_literal(value.value)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise RenderError(f"Cannot render non-finite number {value!r} in HCL")
        return repr(value)
    if isinstance(value, str):
        return quote_string(value)
    if isinstance(value, list | tuple):
        return "[" + ", ".join(hcl_literal(item) for item in value) + "]"
    if isinstance(value, Mapping):
        if not value:
            return "{}"
        parts = []
        for key, item in value.items():
            if not isinstance(key, str):
                raise RenderError(f"HCL object keys must be strings, got {type(key).__name__}: {key!r}")
            parts.append(f"{quote_string(key)} = {hcl_literal(item)}")
        return "{ " + ", ".join(parts) + " }"
    raise RenderError(f"Cannot render value of type {type(value).__name__} in HCL: {value!r}")


def identifier(name: str) -> str:
    """Validate a bare identifier (block label or argument name).

    Raises:
        RenderError: If the name would need quoting
    """
    if not _IDENTIFIER.match(name):
        raise RenderError(f"Invalid HCL identifier {name!r}")
    return name


def render_arguments(arguments: Mapping[str, Any], *, indent: int = 2) -> str:
    """Render `name = value` lines with the `=` signs aligned, like terraform fmt."""
    if not arguments:
        return ""
    width = max(len(identifier(name)) for name in arguments)
    pad = " " * indent
    return "\n".join(f"{pad}{name.ljust(width)} = {hcl_literal(value)}" for name, value in arguments.items())
