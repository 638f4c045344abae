"""Configuration Renderer: generated configs as Terraform source text."""

from infraprop.rendering.hcl import hcl_literal, quote_string
from infraprop.rendering.module_call import ModuleRenderer, render

__all__ = [
    "ModuleRenderer",
    "hcl_literal",
    "quote_string",
    "render",
]
